from flask import current_app
from sqlalchemy import exists
from db.extensions import db
from models.order import Order, ORDER_STATUSES, PAYMENT_METHODS
from models.orderItem import OrderItem
from models.product import Product
from models.vendor import Vendor
from services.auth_service import AuthService
from services.checkout_guard import CheckoutGuard
from services.exceptions import DuplicateCheckout, NotFound, PermissionDenied, ValidationError
from services.order_notification import NotificationService
from services.payment_service import PaymentService
from services.product_service import ProductService
from services.status_machine import check_order_transition
from services.utils import parse_uuid, to_money

REQUIRED_CHECKOUT_FIELDS = ('full_name', 'email', 'phone', 'delivery_address', 'payment_method')


def _vendor_owns_item_clause(user):
    """SQL clause: the order contains a product of a vendor owned by ``user``."""
    return exists().where(
        OrderItem.order_id == Order.id,
        OrderItem.product_id == Product.id,
        Product.vendor_id == Vendor.id,
        Vendor.user_id == user.id
    )


class OrderService:

    @staticmethod
    def _parse_cart(items):
        if not isinstance(items, list) or not items:
            raise ValidationError('Your cart is empty')
        cart = {}
        for item in items:
            if not isinstance(item, dict) or 'product_id' not in item:
                raise ValidationError('Each item needs a product_id and quantity')
            product_id = parse_uuid(item['product_id'], 'Product')
            try:
                quantity = int(item.get('quantity'))
            except (TypeError, ValueError):
                raise ValidationError('Quantity must be a whole number')
            if quantity <= 0:
                raise ValidationError('Quantity must be greater than zero')
            # Repeated lines for the same product are merged
            cart[product_id] = cart.get(product_id, 0) + quantity
        return cart

    @staticmethod
    def place_order(customer, data):
        """
        Create an order and its line items from a cart in one transaction.

        Unit prices are captured from the live products; the order total is
        maintained by the order total hook. Vendors are e-mailed after commit.
        """
        missing = [f for f in REQUIRED_CHECKOUT_FIELDS if not (data.get(f) or '').strip()]
        if missing:
            raise ValidationError(f"Missing fields: {', '.join(missing)}")
        if data['payment_method'] not in PAYMENT_METHODS:
            raise ValidationError('Please select a payment method')

        cart = OrderService._parse_cart(data.get('items'))
        lock_key = CheckoutGuard.acquire(
            customer.id, [{'product_id': pid, 'quantity': qty} for pid, qty in cart.items()]
        )
        if lock_key is None:
            raise DuplicateCheckout('This order is already being placed')

        try:
            delivery_fee = to_money(current_app.config.get('DEFAULT_DELIVERY_FEE', '0'), 'delivery_fee')
            order = Order(
                customer_id=customer.id,
                delivery_address=data['delivery_address'].strip(),
                delivery_fee=delivery_fee,
                status='pending',
                payment_status='pending',
                payment_method=data['payment_method'],
                notes=data.get('notes') or None,
                customer_name=data['full_name'].strip(),
                customer_email=data['email'].strip(),
                customer_phone=data['phone'].strip()
            )

            for product_id, quantity in cart.items():
                product = (Product.query
                           .filter_by(id=product_id)
                           .with_for_update()
                           .first())
                if not ProductService.is_publicly_visible(product):
                    raise ValidationError('One of the products is no longer available')
                if quantity > product.stock_quantity:
                    raise ValidationError(f"Only {product.stock_quantity} {product.unit} of {product.name} left in stock")

                product.stock_quantity -= quantity
                order.items.append(OrderItem(
                    product_id=product.id,
                    product=product,
                    quantity=quantity,
                    unit_price=product.price,
                    subtotal=product.price * quantity
                ))

            db.session.add(order)
            db.session.commit()
        except Exception:
            db.session.rollback()
            CheckoutGuard.release(lock_key)
            raise

        current_app.logger.info(f"Order {order.id} placed by customer {customer.id} ({len(cart)} lines)")
        NotificationService.send_new_order_notifications(order)
        return order

    @staticmethod
    def can_view(user, order):
        if order.customer_id == user.id or AuthService.has_role(user, 'admin'):
            return True
        return OrderService.vendor_has_items(user, order)

    @staticmethod
    def vendor_has_items(user, order):
        return any(item.product and item.product.vendor.user_id == user.id for item in order.items)

    @staticmethod
    def get_order_for_user(user, order_id):
        order = db.session.get(Order, parse_uuid(order_id, 'Order'))
        if not order or not OrderService.can_view(user, order):
            raise NotFound('Order not found')
        return order

    @staticmethod
    def list_customer_orders(user):
        return (Order.query
                .filter_by(customer_id=user.id)
                .order_by(Order.created_at.desc())
                .all())

    @staticmethod
    def list_vendor_orders(user, status=None):
        query = Order.query.filter(_vendor_owns_item_clause(user))
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc()).all()

    @staticmethod
    def list_all_orders(status=None):
        query = Order.query
        if status:
            if status not in ORDER_STATUSES:
                raise ValidationError(f"Unknown order status '{status}'")
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc()).all()

    @staticmethod
    def _restock(order):
        """Return a cancelled order's quantities to stock."""
        for item in order.items:
            if item.product_id is None:
                continue
            product = (Product.query
                       .filter_by(id=item.product_id)
                       .with_for_update()
                       .first())
            if product:
                product.stock_quantity += item.quantity

    @staticmethod
    def update_order_status(user, order_id, new_status):
        """
        Move an order along its delivery lifecycle.

        Admins and vendors with items in the order may make any allowed move;
        customers may only cancel their own pending orders.
        """
        order = OrderService.get_order_for_user(user, order_id)
        is_manager = AuthService.has_role(user, 'admin') or OrderService.vendor_has_items(user, order)
        if not is_manager:
            if not (order.customer_id == user.id and order.status == 'pending' and new_status == 'cancelled'):
                raise PermissionDenied('You can only cancel your own pending orders')

        check_order_transition(order.status, new_status)
        previous = order.status
        order.status = new_status
        if new_status == 'cancelled':
            OrderService._restock(order)
            PaymentService.cancel_pending_payments(order)
        db.session.commit()
        current_app.logger.info(f"Order {order.id} status {previous} -> {new_status} by user {user.id}")
        return order
