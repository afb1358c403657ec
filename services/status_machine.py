"""Allowed status transitions for orders and payments."""

from services.exceptions import InvalidStatusTransition

PAYMENT_TERMINAL_STATUSES = frozenset({'completed', 'failed', 'cancelled'})

PAYMENT_TRANSITIONS = {
    'pending': frozenset({'completed', 'failed', 'cancelled'}),
    'completed': frozenset(),
    'failed': frozenset(),
    'cancelled': frozenset(),
}

ORDER_TRANSITIONS = {
    'pending': frozenset({'confirmed', 'cancelled'}),
    'confirmed': frozenset({'dispatched', 'cancelled'}),
    'dispatched': frozenset({'in_transit', 'delivered'}),
    'in_transit': frozenset({'delivered'}),
    'delivered': frozenset(),
    'cancelled': frozenset(),
}

PAYMENT_STATUS_MESSAGES = {
    'pending': 'Payment is being processed',
    'completed': 'Payment completed successfully',
    'failed': 'Payment failed',
    'cancelled': 'Payment was cancelled',
}


def is_terminal_payment_status(status):
    return status in PAYMENT_TERMINAL_STATUSES


def payment_status_message(status):
    return PAYMENT_STATUS_MESSAGES.get(status, 'Unknown status')


def check_payment_transition(current, new):
    """Raise unless a payment may move from ``current`` to ``new``.

    ``pending -> pending`` is accepted as a no-op; terminal states never change.
    """
    if new not in PAYMENT_TRANSITIONS:
        raise InvalidStatusTransition(f"Unknown payment status '{new}'", 400)
    if current == new == 'pending':
        return
    if new not in PAYMENT_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransition(f"Payment cannot move from '{current}' to '{new}'")


def check_order_transition(current, new):
    if new not in ORDER_TRANSITIONS:
        raise InvalidStatusTransition(f"Unknown order status '{new}'", 400)
    if new not in ORDER_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransition(f"Order cannot move from '{current}' to '{new}'")
