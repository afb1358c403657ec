import threading

import pytest
import requests

from services.payment_client import PaymentStatusClient, PaymentStatusClientError
from services.payment_poller import PaymentPollTimeout, PaymentStatusPoller


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def scripted(statuses, clock=None, step=3.0):
    """fetch_status that walks through ``statuses`` (exceptions are raised)."""
    remaining = list(statuses)
    calls = []

    def fetch(payment_id):
        calls.append(payment_id)
        if clock is not None:
            clock.now += step
        value = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(value, Exception):
            raise value
        return {'payment_id': payment_id, 'status': value}

    fetch.calls = calls
    return fetch


def test_polls_until_terminal():
    fetch = scripted(['pending', 'pending', 'completed'])
    updates, terminal = [], []
    poller = PaymentStatusPoller(fetch, interval=0.001, on_update=updates.append, on_terminal=terminal.append)

    result = poller.wait_for_terminal('pay-1')

    assert result['status'] == 'completed'
    assert len(fetch.calls) == 3
    assert [u['status'] for u in updates] == ['pending', 'pending', 'completed']
    assert terminal == [result]


def test_fetch_errors_do_not_stop_polling():
    fetch = scripted([RuntimeError('network down'), 'failed'])
    poller = PaymentStatusPoller(fetch, interval=0.001)

    assert poller.wait_for_terminal('pay-1')['status'] == 'failed'
    assert len(fetch.calls) == 2


def test_times_out_with_last_status():
    clock = FakeClock()
    fetch = scripted(['pending'], clock=clock, step=3.0)
    poller = PaymentStatusPoller(fetch, interval=0.001, timeout=10, clock=clock)

    with pytest.raises(PaymentPollTimeout) as exc:
        poller.wait_for_terminal('pay-1')

    assert exc.value.payment_id == 'pay-1'
    assert exc.value.last_status == 'pending'
    assert len(fetch.calls) == 4


def test_background_poll_can_be_stopped():
    poller = PaymentStatusPoller(scripted(['pending']), interval=0.01)

    poller.start('pay-1')
    assert poller.running
    poller.stop()

    assert not poller.running
    assert poller.result is None


def test_background_poll_reports_terminal():
    done = threading.Event()
    poller = PaymentStatusPoller(scripted(['pending', 'cancelled']), interval=0.001,
                                 on_terminal=lambda payload: done.set())

    poller.start('pay-1')

    assert done.wait(2)
    poller.stop()
    assert poller.result['status'] == 'cancelled'


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        PaymentStatusPoller(lambda payment_id: {}, interval=0)


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError('No JSON')
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append((url, timeout))
        if self.error:
            raise self.error
        return self.response

    def close(self):
        pass


def test_client_reads_status_with_bearer_token():
    session = FakeSession(FakeResponse(payload={'status': 'completed'}))
    client = PaymentStatusClient('http://api.local/', access_token='tok', timeout=5, session=session)

    assert client.check_status('abc') == {'status': 'completed'}
    assert session.requested == [('http://api.local/api/payments/abc/status', 5)]
    assert session.headers['Authorization'] == 'Bearer tok'


@pytest.mark.parametrize('session', [
    FakeSession(FakeResponse(status_code=404)),
    FakeSession(error=requests.exceptions.ConnectionError('refused')),
    FakeSession(FakeResponse(payload=None)),
])
def test_client_wraps_failures(session):
    client = PaymentStatusClient('http://api.local', session=session)
    with pytest.raises(PaymentStatusClientError):
        client.check_status('abc')


def test_client_drives_poller():
    session = FakeSession(FakeResponse(payload={'status': 'completed'}))
    client = PaymentStatusClient('http://api.local', session=session)

    result = PaymentStatusPoller(client.check_status, interval=0.001).wait_for_terminal('abc')

    assert result == {'status': 'completed'}


def test_poller_from_config():
    config = {'PAYMENT_POLL_INTERVAL_SECONDS': 3.0, 'PAYMENT_POLL_TIMEOUT_SECONDS': 600.0}

    poller = PaymentStatusPoller.from_config(lambda payment_id: {}, config)
    quick = PaymentStatusPoller.from_config(lambda payment_id: {}, config, interval=0.5)

    assert (poller.interval, poller.timeout) == (3.0, 600.0)
    assert quick.interval == 0.5
