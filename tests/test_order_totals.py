from decimal import Decimal

from db.extensions import db
from models.order import Order
from models.orderItem import OrderItem

from conftest import make_product


def _new_order(customer, delivery_fee='5.00'):
    return Order(
        customer_id=customer.id,
        delivery_address='Freetown',
        delivery_fee=Decimal(delivery_fee),
        customer_name='Aminata',
        customer_email='customer@example.com',
        customer_phone='076123456'
    )


def _item(product, quantity):
    return OrderItem(
        product_id=product.id,
        quantity=quantity,
        unit_price=product.price,
        subtotal=product.price * quantity
    )


def _total(order_id):
    db.session.expire_all()
    return db.session.get(Order, order_id).total_amount


def test_total_is_items_plus_delivery_fee(customer, vendor):
    rice = make_product(vendor, name='Rice', price='10.00')
    yam = make_product(vendor, name='Yam', price='15.00')

    order = _new_order(customer)
    order.items.append(_item(rice, 1))
    order.items.append(_item(yam, 1))
    db.session.add(order)
    db.session.commit()

    assert _total(order.id) == Decimal('30.00')


def test_order_without_items_totals_delivery_fee(customer):
    order = _new_order(customer, delivery_fee='7.50')
    db.session.add(order)
    db.session.commit()

    assert _total(order.id) == Decimal('7.50')


def test_total_follows_item_insert_update_and_delete(customer, vendor):
    rice = make_product(vendor, name='Rice', price='10.00')
    order = _new_order(customer)
    db.session.add(order)
    db.session.commit()
    assert _total(order.id) == Decimal('5.00')

    item = _item(rice, 2)
    item.order_id = order.id
    db.session.add(item)
    db.session.commit()
    assert _total(order.id) == Decimal('25.00')

    item = db.session.get(OrderItem, item.id)
    item.quantity = 3
    item.subtotal = Decimal('30.00')
    db.session.commit()
    assert _total(order.id) == Decimal('35.00')

    db.session.delete(db.session.get(OrderItem, item.id))
    db.session.commit()
    assert _total(order.id) == Decimal('5.00')


def test_removing_item_from_collection_updates_total(customer, vendor):
    rice = make_product(vendor, name='Rice', price='10.00')
    order = _new_order(customer)
    order.items.append(_item(rice, 1))
    order.items.append(_item(rice, 4))
    db.session.add(order)
    db.session.commit()
    assert _total(order.id) == Decimal('55.00')

    order = db.session.get(Order, order.id)
    order.items.remove(order.items[0])
    db.session.commit()

    remaining = sum(i.subtotal for i in db.session.get(Order, order.id).items)
    assert _total(order.id) == remaining + Decimal('5.00')


def test_delivery_fee_change_recomputes_total(customer, vendor):
    rice = make_product(vendor, name='Rice', price='10.00')
    order = _new_order(customer)
    order.items.append(_item(rice, 1))
    db.session.add(order)
    db.session.commit()

    order = db.session.get(Order, order.id)
    order.delivery_fee = Decimal('0.00')
    db.session.commit()

    assert _total(order.id) == Decimal('10.00')


def test_manual_total_is_overwritten_on_next_item_change(customer, vendor):
    rice = make_product(vendor, name='Rice', price='10.00')
    order = _new_order(customer)
    order.items.append(_item(rice, 1))
    db.session.add(order)
    db.session.commit()

    order.total_amount = Decimal('999.00')
    item = order.items[0]
    item.quantity = 2
    item.subtotal = Decimal('20.00')
    db.session.commit()

    assert _total(order.id) == Decimal('25.00')


def test_rollback_leaves_total_untouched(customer, vendor):
    rice = make_product(vendor, name='Rice', price='10.00')
    order = _new_order(customer)
    order.items.append(_item(rice, 1))
    db.session.add(order)
    db.session.commit()
    order_id = order.id

    order.items.append(_item(rice, 5))
    db.session.flush()
    db.session.rollback()

    assert _total(order_id) == Decimal('15.00')
