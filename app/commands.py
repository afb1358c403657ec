# app/commands.py

import click
from flask import current_app
from flask.cli import AppGroup

from db.extensions import db
from models.category import Category, DEFAULT_CATEGORIES
from models.user import User
from services.auth_service import AuthService
from services.payment_client import PaymentStatusClient
from services.payment_poller import PaymentPollTimeout, PaymentStatusPoller
from services.payment_service import PaymentService

payments_cli = AppGroup('payments', help='Payment maintenance.')


def seed_categories():
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        if not Category.query.filter_by(name=name).first():
            db.session.add(Category(name=name, description=description))
            created += 1
    db.session.commit()
    return created


@click.command('init-db')
def init_db_command():
    """Create tables and seed the default produce categories."""
    db.create_all()
    created = seed_categories()
    click.echo(f"Database ready, {created} categories added.")


@click.command('create-admin')
@click.argument('email')
@click.password_option()
def create_admin_command(email, password):
    """Create (or promote) an admin user."""
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        user = AuthService.register(email, password)
    AuthService.grant_role(user, 'admin')
    db.session.commit()
    click.echo(f"{user.email} is now an admin.")


@payments_cli.command('expire-stale')
@click.option('--minutes', type=int, default=None,
              help='Age after which pending payments are cancelled (default PAYMENT_PENDING_EXPIRY_MINUTES).')
def expire_stale_command(minutes):
    """Cancel payments stuck in pending and mirror the cancellation onto their orders."""
    count = PaymentService.expire_stale_payments(minutes)
    current_app.logger.info(f"expire-stale finished: {count} payment(s) cancelled")
    click.echo(f"Cancelled {count} stale payment(s).")


@payments_cli.command('watch')
@click.argument('payment_id')
@click.option('--base-url', default='http://localhost:5000', show_default=True,
              help='Marketplace API to poll.')
@click.option('--token', envvar='AGRO_ACCESS_TOKEN', default=None,
              help='Bearer token of the paying customer or an admin.')
def watch_payment_command(payment_id, base_url, token):
    """Poll a payment until it completes, fails or is cancelled."""
    client = PaymentStatusClient(base_url, access_token=token)
    poller = PaymentStatusPoller.from_config(
        client.check_status, current_app.config,
        on_update=lambda payload: click.echo(f"{payment_id}: {payload.get('status')}")
    )
    try:
        result = poller.wait_for_terminal(payment_id)
    except PaymentPollTimeout as e:
        raise click.ClickException(str(e))
    finally:
        client.close()
    click.echo(f"Payment {payment_id} finished: {result['status']}")


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_admin_command)
    app.cli.add_command(payments_cli)
