from flask import Blueprint, request, jsonify, g
from app.decorators import login_required, roles_required
from services.order_service import OrderService

order_bp = Blueprint('order', __name__)


def _vendor_view(order, user):
    """Order as seen by a vendor: only the lines for their own products."""
    data = order.to_dict(include_items=False)
    data['items'] = [
        item.to_dict() for item in order.items
        if item.product and item.product.vendor.user_id == user.id
    ]
    data['vendor_subtotal'] = sum(i['subtotal'] for i in data['items'])
    return data


@order_bp.route('/orders', methods=['POST'])
@login_required
def place_order():
    data = request.get_json() or {}
    order = OrderService.place_order(g.current_user, data)
    return jsonify(order.to_dict()), 201


@order_bp.route('/orders', methods=['GET'])
@login_required
def list_my_orders():
    orders = OrderService.list_customer_orders(g.current_user)
    return jsonify([o.to_dict() for o in orders]), 200


@order_bp.route('/orders/<order_id>', methods=['GET'])
@login_required
def get_order(order_id):
    order = OrderService.get_order_for_user(g.current_user, order_id)
    data = order.to_dict()
    data['payments'] = [p.to_dict() for p in order.payments]
    return jsonify(data), 200


@order_bp.route('/vendors/me/orders', methods=['GET'])
@roles_required('vendor')
def list_vendor_orders():
    user = g.current_user
    orders = OrderService.list_vendor_orders(user, request.args.get('status'))
    return jsonify([_vendor_view(o, user) for o in orders]), 200


@order_bp.route('/admin/orders', methods=['GET'])
@roles_required('admin')
def admin_list_orders():
    orders = OrderService.list_all_orders(request.args.get('status'))
    return jsonify([o.to_dict() for o in orders]), 200


@order_bp.route('/orders/<order_id>/status', methods=['PUT'])
@login_required
def update_order_status(order_id):
    data = request.get_json() or {}
    order = OrderService.update_order_status(g.current_user, order_id, data.get('status'))
    return jsonify(order.to_dict(include_items=False)), 200
