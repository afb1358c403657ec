import pytest

from models.category import Category, DEFAULT_CATEGORIES
from models.user import User


def test_init_db_seeds_categories_once(app):
    runner = app.test_cli_runner()

    first = runner.invoke(args=['init-db'])
    second = runner.invoke(args=['init-db'])

    assert first.exit_code == 0
    assert f'{len(DEFAULT_CATEGORIES)} categories added' in first.output
    assert '0 categories added' in second.output
    assert Category.query.count() == len(DEFAULT_CATEGORIES)


def test_create_admin(app):
    result = app.test_cli_runner().invoke(args=['create-admin', 'root@example.com', '--password', 'secret123'])

    assert result.exit_code == 0
    user = User.query.filter_by(email='root@example.com').one()
    assert user.role_names() == ['admin', 'customer']


class ScriptedClient:
    instances = []

    def __init__(self, base_url, access_token=None):
        self.base_url = base_url
        self.access_token = access_token
        self.statuses = ['pending', 'completed']
        self.closed = False
        ScriptedClient.instances.append(self)

    def check_status(self, payment_id):
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return {'payment_id': payment_id, 'status': status}

    def close(self):
        self.closed = True


@pytest.fixture
def scripted_client(app, monkeypatch):
    ScriptedClient.instances = []
    monkeypatch.setattr('app.commands.PaymentStatusClient', ScriptedClient)
    app.config['PAYMENT_POLL_INTERVAL_SECONDS'] = 0.001
    return ScriptedClient


def test_watch_payment_until_terminal(app, scripted_client):
    result = app.test_cli_runner().invoke(
        args=['payments', 'watch', 'pay-1', '--base-url', 'http://api.local', '--token', 'tok']
    )

    assert result.exit_code == 0
    assert 'pay-1: pending' in result.output
    assert 'Payment pay-1 finished: completed' in result.output
    client = scripted_client.instances[0]
    assert (client.base_url, client.access_token, client.closed) == ('http://api.local', 'tok', True)


def test_watch_payment_times_out(app, scripted_client):
    app.config['PAYMENT_POLL_TIMEOUT_SECONDS'] = 0

    result = app.test_cli_runner().invoke(args=['payments', 'watch', 'pay-1'])

    assert result.exit_code == 1
    assert 'timed out' in result.output
