from datetime import datetime, timedelta
import uuid

import pytest

from db.extensions import db
from models.order import Order
from models.payment import Payment
from services.exceptions import InvalidStatusTransition, PaymentConflict, ValidationError
from services.payment_service import PaymentService

from conftest import auth_header, make_product, make_user


@pytest.fixture
def order(client, customer, vendor, checkout_data):
    rice = make_product(vendor, name='Rice', price='12500.00')
    response = client.post('/api/orders', headers=auth_header(customer),
                           json=checkout_data([{'product_id': str(rice.id), 'quantity': 1}]))
    assert response.status_code == 201
    return db.session.get(Order, uuid.UUID(response.get_json()['id']))


def _refresh(obj):
    db.session.expire_all()
    return db.session.get(type(obj), obj.id)


def test_payment_methods_catalog(client):
    response = client.get('/api/payments/methods')
    assert response.status_code == 200
    assert [m['id'] for m in response.get_json()] == ['orange_money', 'afrimoney', 'stripe']


def test_orange_money_initiation(client, customer, order):
    response = client.post(f'/api/orders/{order.id}/payments', headers=auth_header(customer),
                           json={'payment_method': 'orange_money'})

    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['redirect_url'] is None
    assert body['message'] == ('Orange Money payment initiated. Please dial *144*076123456# '
                               'to complete payment of Le 12,505')

    payment = db.session.get(Payment, uuid.UUID(body['payment_id']))
    assert payment.status == 'pending'
    assert payment.currency == 'SLL'
    assert float(payment.amount) == 12505.0
    assert payment.payment_metadata['source'] == 'web_checkout'


def test_afrimoney_initiation(client, customer, order):
    response = client.post(f'/api/orders/{order.id}/payments', headers=auth_header(customer),
                           json={'payment_method': 'afrimoney'})

    body = response.get_json()
    assert response.status_code == 201
    assert body['redirect_url'] is None
    assert 'check your phone' in body['message']
    assert _refresh(order).payment_method == 'afrimoney'


def test_card_initiation_redirects_to_checkout(client, customer, order):
    response = client.post(f'/api/orders/{order.id}/payments', headers=auth_header(customer),
                           json={'payment_method': 'stripe'})

    body = response.get_json()
    assert body['success'] is True
    assert body['redirect_url'] == f"/payment/stripe/{body['payment_id']}"


def test_unsupported_method_fails_softly(client, customer, order):
    response = client.post(f'/api/orders/{order.id}/payments', headers=auth_header(customer),
                           json={'payment_method': 'paypal'})

    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert body['error'] == 'Invalid payment method'
    assert Payment.query.count() == 0


def test_other_customers_cannot_pay_or_read(client, order):
    stranger = make_user('stranger@example.com')
    response = client.post(f'/api/orders/{order.id}/payments', headers=auth_header(stranger),
                           json={'payment_method': 'orange_money'})
    assert response.status_code == 404


def test_repeat_initiation_reuses_pending_payment(customer, order):
    first = PaymentService.process_payment(customer, order.id, 'orange_money')
    second = PaymentService.process_payment(customer, order.id, 'orange_money')

    assert first['payment_id'] == second['payment_id']
    assert Payment.query.count() == 1


def test_switching_rail_cancels_previous_pending_payment(customer, order):
    first = PaymentService.process_payment(customer, order.id, 'orange_money')
    second = PaymentService.process_payment(customer, order.id, 'afrimoney')

    assert first['payment_id'] != second['payment_id']
    statuses = {str(p.id): p.status for p in Payment.query.all()}
    assert statuses[first['payment_id']] == 'cancelled'
    assert statuses[second['payment_id']] == 'pending'
    assert _refresh(order).payment_status == 'pending'


def test_paid_order_cannot_be_paid_again(customer, order):
    first = PaymentService.process_payment(customer, order.id, 'orange_money')
    PaymentService.update_payment_status(first['payment_id'], 'completed', 'txn_1')

    with pytest.raises(PaymentConflict):
        PaymentService.process_payment(customer, order.id, 'afrimoney')


def test_cancelled_order_cannot_be_paid(customer, order):
    order.status = 'cancelled'
    db.session.commit()

    with pytest.raises(PaymentConflict):
        PaymentService.process_payment(customer, order.id, 'orange_money')


def test_status_update_mirrors_onto_order(customer, order):
    started = PaymentService.process_payment(customer, order.id, 'stripe')

    payment = PaymentService.update_payment_status(started['payment_id'], 'completed', 'pi_123')

    assert payment.status == 'completed'
    assert payment.transaction_id == 'pi_123'
    assert _refresh(order).payment_status == 'completed'


def test_failed_payment_mirrors_onto_order(customer, order):
    started = PaymentService.process_payment(customer, order.id, 'orange_money')
    PaymentService.update_payment_status(started['payment_id'], 'failed')
    assert _refresh(order).payment_status == 'failed'


def test_terminal_payment_cannot_be_reopened(customer, order):
    started = PaymentService.process_payment(customer, order.id, 'orange_money')
    PaymentService.update_payment_status(started['payment_id'], 'completed', 'txn_1')

    with pytest.raises(InvalidStatusTransition):
        PaymentService.update_payment_status(started['payment_id'], 'failed')

    payment = db.session.get(Payment, uuid.UUID(started['payment_id']))
    assert _refresh(payment).status == 'completed'
    assert _refresh(order).payment_status == 'completed'


def test_status_endpoint(client, customer, order):
    started = PaymentService.process_payment(customer, order.id, 'orange_money')

    response = client.get(f"/api/payments/{started['payment_id']}/status", headers=auth_header(customer))

    assert response.status_code == 200
    body = response.get_json()
    assert body['status'] == 'pending'
    assert body['message'] == 'Payment is being processed'
    assert body['order_id'] == str(order.id)


def test_admin_reports_outcome_and_repeat_is_rejected(client, admin, customer, order):
    started = PaymentService.process_payment(customer, order.id, 'stripe')
    url = f"/api/payments/{started['payment_id']}/status"

    ok = client.put(url, headers=auth_header(admin), json={'status': 'completed', 'transaction_id': 'pi_9'})
    again = client.put(url, headers=auth_header(admin), json={'status': 'failed'})
    by_customer = client.put(url, headers=auth_header(customer), json={'status': 'failed'})

    assert ok.status_code == 200
    assert ok.get_json()['transaction_id'] == 'pi_9'
    assert again.status_code == 409
    assert by_customer.status_code == 403


def test_simulated_completion(client, customer, order):
    started = PaymentService.process_payment(customer, order.id, 'afrimoney')

    response = client.post(f"/api/payments/{started['payment_id']}/simulate", headers=auth_header(customer),
                           json={'success': True})

    body = response.get_json()
    assert response.status_code == 200
    assert body['status'] == 'completed'
    assert body['transaction_id'].startswith('txn_')
    assert _refresh(order).payment_status == 'completed'


def test_simulated_failure(customer, order):
    started = PaymentService.process_payment(customer, order.id, 'orange_money')
    payment = PaymentService.simulate_payment_completion(customer, started['payment_id'], success=False)
    assert payment.status == 'failed'
    assert payment.transaction_id is None


def test_simulate_reads_string_flags(client, customer, order):
    started = PaymentService.process_payment(customer, order.id, 'orange_money')

    response = client.post(f"/api/payments/{started['payment_id']}/simulate", headers=auth_header(customer),
                           json={'success': 'false'})

    assert response.status_code == 200
    assert response.get_json()['status'] == 'failed'
    assert response.get_json()['transaction_id'] is None


def test_cancelled_order_payment_cannot_complete(customer, order):
    started = PaymentService.process_payment(customer, order.id, 'orange_money')
    order.status = 'cancelled'
    db.session.commit()

    with pytest.raises(PaymentConflict):
        PaymentService.update_payment_status(started['payment_id'], 'completed', 'txn_1')

    payment = db.session.get(Payment, uuid.UUID(started['payment_id']))
    assert _refresh(payment).status == 'pending'
    assert PaymentService.update_payment_status(started['payment_id'], 'failed').status == 'failed'


def test_simulation_after_order_cancellation_is_rejected(client, customer, order):
    started = PaymentService.process_payment(customer, order.id, 'afrimoney')
    client.put(f'/api/orders/{order.id}/status', headers=auth_header(customer), json={'status': 'cancelled'})

    response = client.post(f"/api/payments/{started['payment_id']}/simulate", headers=auth_header(customer),
                           json={'success': True})

    assert response.status_code == 409
    assert _refresh(order).payment_status == 'cancelled'


def test_card_payments_cannot_be_simulated(customer, order):
    started = PaymentService.process_payment(customer, order.id, 'stripe')
    with pytest.raises(ValidationError):
        PaymentService.simulate_payment_completion(customer, started['payment_id'])


def test_stale_pending_payments_expire(app, customer, order):
    started = PaymentService.process_payment(customer, order.id, 'orange_money')
    payment = db.session.get(Payment, uuid.UUID(started['payment_id']))
    payment.created_at = datetime.utcnow() - timedelta(minutes=45)
    db.session.commit()

    assert PaymentService.expire_stale_payments(30) == 1
    assert _refresh(payment).status == 'cancelled'
    assert _refresh(order).payment_status == 'cancelled'
    assert PaymentService.expire_stale_payments(30) == 0


def test_fresh_pending_payments_are_kept(customer, order):
    PaymentService.process_payment(customer, order.id, 'orange_money')
    assert PaymentService.expire_stale_payments(30) == 0


def test_expire_stale_cli(app, customer, order):
    started = PaymentService.process_payment(customer, order.id, 'orange_money')
    payment = db.session.get(Payment, uuid.UUID(started['payment_id']))
    payment.created_at = datetime.utcnow() - timedelta(hours=2)
    db.session.commit()

    result = app.test_cli_runner().invoke(args=['payments', 'expire-stale', '--minutes', '60'])

    assert result.exit_code == 0
    assert 'Cancelled 1 stale payment(s).' in result.output
