"""
Keeps ``orders.total_amount`` equal to the sum of its line-item subtotals
plus the order's delivery fee.

Affected orders are collected before each flush and recomputed with a single
UPDATE on the flush's own connection, so the new total commits (or rolls
back) together with the item mutation that caused it.
"""

from datetime import datetime
from sqlalchemy import event, func, inspect, select, update
from sqlalchemy.orm import Session
from models.order import Order
from models.orderItem import OrderItem

_PENDING_ITEMS = 'order_totals_items'
_PENDING_ORDER_IDS = 'order_totals_order_ids'


def _previous_order_ids(item):
    """Order ids an item belonged to before this flush (moved or deleted items)."""
    state = inspect(item)
    ids = set()
    for value in state.attrs.order_id.history.deleted:
        if value is not None:
            ids.add(value)
    for order in state.attrs.order.history.deleted:
        if order is not None and order.id is not None:
            ids.add(order.id)
    current = state.dict.get('order_id')
    if current is not None:
        ids.add(current)
    return ids


@event.listens_for(Session, 'before_flush')
def collect_orders_to_recompute(session, flush_context, instances):
    items = session.info.setdefault(_PENDING_ITEMS, [])
    order_ids = session.info.setdefault(_PENDING_ORDER_IDS, set())

    for obj in list(session.new) + list(session.dirty) + list(session.deleted):
        if isinstance(obj, OrderItem):
            items.append(obj)
            order_ids.update(_previous_order_ids(obj))
        elif isinstance(obj, Order):
            if obj in session.new or inspect(obj).attrs.delivery_fee.history.has_changes():
                # id is assigned during the flush for new orders
                items.append(obj)


@event.listens_for(Session, 'after_flush_postexec')
def recompute_order_totals(session, flush_context):
    pending = session.info.pop(_PENDING_ITEMS, [])
    order_ids = session.info.pop(_PENDING_ORDER_IDS, set())

    for obj in pending:
        state_dict = inspect(obj).dict
        key = 'order_id' if isinstance(obj, OrderItem) else 'id'
        if state_dict.get(key) is not None:
            order_ids.add(state_dict[key])

    if not order_ids:
        return

    orders = Order.__table__
    order_items = OrderItem.__table__
    subtotal_sum = (
        select(func.coalesce(func.sum(order_items.c.subtotal), 0))
        .where(order_items.c.order_id == orders.c.id)
        .scalar_subquery()
    )
    session.connection().execute(
        update(orders)
        .where(orders.c.id.in_(order_ids))
        .values(total_amount=subtotal_sum + orders.c.delivery_fee, updated_at=datetime.utcnow())
    )

    for obj in list(session.identity_map.values()):
        identity = inspect(obj).identity
        if isinstance(obj, Order) and identity and identity[0] in order_ids:
            session.expire(obj, ['total_amount', 'updated_at'])


@event.listens_for(Session, 'after_soft_rollback')
def discard_pending_recompute(session, previous_transaction):
    session.info.pop(_PENDING_ITEMS, None)
    session.info.pop(_PENDING_ORDER_IDS, None)
