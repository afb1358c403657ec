"""
Payment initiation and status reconciliation for the three payment rails.

Orange Money and AfriMoney are simulated locally: a pending payment is
recorded and the customer completes it on their phone (or through the
simulate endpoint). Card payments hand off to a hosted checkout page whose
gateway reports the outcome through ``update_payment_status``. Every status
change on a payment is mirrored onto its order's ``payment_status``.
"""

from datetime import datetime, timedelta
import time

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from db.extensions import db
from models.order import Order
from models.payment import Payment
from services.auth_service import AuthService
from services.exceptions import NotFound, PaymentConflict, ValidationError
from services.status_machine import (
    check_payment_transition,
    payment_status_message,
)
from services.utils import format_price, parse_uuid

MOBILE_MONEY_METHODS = ('orange_money', 'afrimoney')

PAYMENT_METHOD_CATALOG = [
    {
        'id': 'orange_money',
        'name': 'Orange Money',
        'description': 'Pay with your Orange Money account',
        'type': 'mobile_money',
        'enabled': True,
        'countries': ['SL', 'CI', 'SN', 'ML', 'BF'],
    },
    {
        'id': 'afrimoney',
        'name': 'AfriMoney',
        'description': 'Pay with your AfriMoney account',
        'type': 'mobile_money',
        'enabled': True,
        'countries': ['SL', 'CI', 'GH', 'TG'],
    },
    {
        'id': 'stripe',
        'name': 'Credit/Debit Card',
        'description': 'Pay with Visa, Mastercard, or other cards',
        'type': 'card',
        'enabled': True,
        'countries': ['*'],
    },
]


class PaymentService:

    @staticmethod
    def get_payment_methods():
        return [dict(method) for method in PAYMENT_METHOD_CATALOG]

    @staticmethod
    def _failure(message, error):
        return {'success': False, 'payment_id': None, 'redirect_url': None, 'message': message, 'error': error}

    @staticmethod
    def _get_order_for_payer(user, order_id):
        order = db.session.get(Order, parse_uuid(order_id, 'Order'))
        if not order or (order.customer_id != user.id and not AuthService.has_role(user, 'admin')):
            raise NotFound('Order not found')
        return order

    @staticmethod
    def get_payment_for_user(user, payment_id):
        payment = db.session.get(Payment, parse_uuid(payment_id, 'Payment'))
        if not payment or (payment.order.customer_id != user.id and not AuthService.has_role(user, 'admin')):
            raise NotFound('Payment not found')
        return payment

    @staticmethod
    def _create_pending_payment(order, method, metadata):
        payment = Payment(
            order=order,
            payment_method=method,
            amount=order.total_amount,
            currency=current_app.config.get('CURRENCY', 'SLL'),
            status='pending',
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            payment_metadata=metadata
        )
        db.session.add(payment)
        order.payment_method = method
        order.payment_status = 'pending'
        db.session.flush()
        return payment

    @staticmethod
    def _reuse_or_supersede(order, method):
        """
        Apply the one-live-payment-per-order rule.

        Returns an existing pending payment for the same rail, cancels a
        pending payment on another rail, and refuses orders already paid.
        """
        for existing in order.payments:
            if existing.status == 'completed':
                raise PaymentConflict('This order has already been paid for')
        for existing in order.payments:
            if existing.status != 'pending':
                continue
            if existing.payment_method == method:
                return existing
            PaymentService._apply_status(existing, 'cancelled')
        return None

    @staticmethod
    def _rail_response(payment, order):
        amount = format_price(payment.amount)
        if payment.payment_method == 'orange_money':
            return {
                'success': True,
                'payment_id': str(payment.id),
                'redirect_url': None,
                'message': (f"Orange Money payment initiated. Please dial *144*{order.customer_phone}# "
                            f"to complete payment of {amount}"),
            }
        if payment.payment_method == 'afrimoney':
            return {
                'success': True,
                'payment_id': str(payment.id),
                'redirect_url': None,
                'message': 'AfriMoney payment initiated. Please check your phone for payment instructions.',
            }
        checkout_path = current_app.config.get('STRIPE_CHECKOUT_PATH', '/payment/stripe')
        return {
            'success': True,
            'payment_id': str(payment.id),
            'redirect_url': f"{checkout_path}/{payment.id}",
            'message': 'Redirecting to Stripe checkout...',
        }

    @staticmethod
    def process_payment(user, order_id, payment_method=None, metadata=None):
        """
        Start (or resume) payment of an order on one of the three rails.

        Returns a response dict; ``success`` is False when the rail is
        unsupported or the payment could not be recorded, so the customer
        can retry.
        """
        order = PaymentService._get_order_for_payer(user, order_id)
        method = payment_method or order.payment_method

        if method not in ('orange_money', 'afrimoney', 'stripe'):
            return PaymentService._failure('The selected payment method is not supported', 'Invalid payment method')
        if order.status == 'cancelled':
            raise PaymentConflict('This order was cancelled')

        try:
            payment = PaymentService._reuse_or_supersede(order, method)
            if payment is None:
                payment = PaymentService._create_pending_payment(order, method, metadata)
                current_app.logger.info(f"Payment {payment.id} ({method}) initiated for order {order.id}")
            else:
                current_app.logger.info(f"Resuming pending payment {payment.id} for order {order.id}")
            response = PaymentService._rail_response(payment, order)
            db.session.commit()
            return response
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Payment initiation failed for order {order_id}: {str(e)}", exc_info=True)
            label = next((m['name'] for m in PAYMENT_METHOD_CATALOG if m['id'] == method), method)
            return PaymentService._failure(f'Failed to initiate {label} payment', str(e))

    @staticmethod
    def status_payload(payment):
        return {
            'payment_id': str(payment.id),
            'order_id': str(payment.order_id),
            'status': payment.status,
            'transaction_id': payment.transaction_id,
            'message': payment_status_message(payment.status),
            'updated_at': payment.updated_at.isoformat() if payment.updated_at else None,
        }

    @staticmethod
    def check_payment_status(user, payment_id):
        return PaymentService.status_payload(PaymentService.get_payment_for_user(user, payment_id))

    @staticmethod
    def _apply_status(payment, status, transaction_id=None):
        check_payment_transition(payment.status, status)
        payment.status = status
        if transaction_id:
            payment.transaction_id = transaction_id
        payment.updated_at = datetime.utcnow()
        payment.order.payment_status = status

    @staticmethod
    def cancel_pending_payments(order):
        """Cancel the order's pending payments; the caller commits."""
        pending = [p for p in order.payments if p.status == 'pending']
        for payment in pending:
            PaymentService._apply_status(payment, 'cancelled')
        return len(pending)

    @staticmethod
    def update_payment_status(payment_id, status, transaction_id=None):
        """
        Record a payment outcome and mirror it onto the order.

        The payment row is locked for the update so two concurrent reports
        cannot both leave ``pending``.
        """
        payment = (Payment.query
                   .filter_by(id=parse_uuid(payment_id, 'Payment'))
                   .with_for_update()
                   .first())
        if not payment:
            raise NotFound('Payment not found')
        if status == 'completed' and payment.order.status == 'cancelled':
            raise PaymentConflict('This order was cancelled')

        previous = payment.status
        PaymentService._apply_status(payment, status, transaction_id)
        db.session.commit()
        current_app.logger.info(f"Payment {payment.id} {previous} -> {status} (order {payment.order_id})")
        return payment

    @staticmethod
    def simulate_payment_completion(user, payment_id, success=True):
        """Complete or fail a mobile-money payment as if the customer had answered on their phone."""
        payment = PaymentService.get_payment_for_user(user, payment_id)
        if payment.payment_method not in MOBILE_MONEY_METHODS:
            raise ValidationError('Only mobile money payments can be simulated')

        status = 'completed' if success else 'failed'
        transaction_id = f"txn_{int(time.time() * 1000)}" if success else None
        return PaymentService.update_payment_status(payment.id, status, transaction_id)

    @staticmethod
    def expire_stale_payments(max_age_minutes=None):
        """Cancel payments left pending longer than the configured expiry."""
        if max_age_minutes is None:
            max_age_minutes = current_app.config.get('PAYMENT_PENDING_EXPIRY_MINUTES', 30)
        cutoff = datetime.utcnow() - timedelta(minutes=max_age_minutes)

        stale = Payment.query.filter(Payment.status == 'pending', Payment.created_at < cutoff).all()
        for payment in stale:
            PaymentService._apply_status(payment, 'cancelled')
        db.session.commit()

        if stale:
            current_app.logger.info(f"Expired {len(stale)} pending payment(s) older than {max_age_minutes} minutes")
        return len(stale)