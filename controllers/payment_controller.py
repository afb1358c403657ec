from datetime import datetime
from flask import Blueprint, request, jsonify, g
from app.decorators import login_required, roles_required
from services.payment_service import PaymentService
from services.utils import parse_bool

payment_bp = Blueprint('payment', __name__)


@payment_bp.route('/payments/methods', methods=['GET'])
def payment_methods():
    return jsonify(PaymentService.get_payment_methods()), 200


@payment_bp.route('/orders/<order_id>/payments', methods=['POST'])
@login_required
def initiate_payment(order_id):
    data = request.get_json() or {}
    metadata = data.get('metadata') if isinstance(data.get('metadata'), dict) else {}
    metadata.setdefault('source', 'web_checkout')
    metadata.setdefault('timestamp', datetime.utcnow().isoformat())
    response = PaymentService.process_payment(
        g.current_user, order_id, data.get('payment_method'), metadata
    )
    return jsonify(response), (201 if response['success'] else 400)


@payment_bp.route('/payments/<payment_id>/status', methods=['GET'])
@login_required
def payment_status(payment_id):
    return jsonify(PaymentService.check_payment_status(g.current_user, payment_id)), 200


@payment_bp.route('/payments/<payment_id>/status', methods=['PUT'])
@roles_required('admin')
def update_payment_status(payment_id):
    """Gateway/admin report of a payment outcome."""
    data = request.get_json() or {}
    payment = PaymentService.update_payment_status(payment_id, data.get('status'), data.get('transaction_id'))
    return jsonify(PaymentService.status_payload(payment)), 200


@payment_bp.route('/payments/<payment_id>/simulate', methods=['POST'])
@login_required
def simulate_payment(payment_id):
    data = request.get_json() or {}
    payment = PaymentService.simulate_payment_completion(
        g.current_user, payment_id, parse_bool(data.get('success', True))
    )
    return jsonify(PaymentService.status_payload(payment)), 200
