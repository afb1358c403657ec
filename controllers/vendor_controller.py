from flask import Blueprint, request, jsonify, g
from db.extensions import db
from app.decorators import login_required, roles_required
from services.vendor_service import VendorService

vendor_bp = Blueprint('vendor', __name__)


@vendor_bp.route('/vendors', methods=['POST'])
@login_required
def register_vendor():
    data = request.get_json() or {}
    vendor = VendorService.register_vendor(g.current_user, data)
    db.session.commit()
    return jsonify(vendor.to_dict(include_private=True)), 201


@vendor_bp.route('/vendors', methods=['GET'])
def list_public_vendors():
    vendors = VendorService.list_public_vendors()
    return jsonify([v.to_dict() for v in vendors]), 200


@vendor_bp.route('/vendors/me', methods=['GET'])
@roles_required('vendor')
def get_my_vendor():
    vendor = VendorService.get_vendor_for_user(g.current_user)
    return jsonify(vendor.to_dict(include_private=True)), 200


@vendor_bp.route('/vendors/me', methods=['PUT'])
@roles_required('vendor')
def update_my_vendor():
    data = request.get_json() or {}
    vendor = VendorService.update_vendor(VendorService.get_vendor_for_user(g.current_user), data)
    db.session.commit()
    return jsonify(vendor.to_dict(include_private=True)), 200


@vendor_bp.route('/admin/vendors', methods=['GET'])
@roles_required('admin')
def admin_list_vendors():
    vendors = VendorService.list_vendors(request.args.get('status'))
    return jsonify([v.to_dict(include_private=True) for v in vendors]), 200


@vendor_bp.route('/admin/vendors/<vendor_id>/verification', methods=['PUT'])
@roles_required('admin')
def admin_set_verification(vendor_id):
    data = request.get_json() or {}
    vendor = VendorService.set_verification_status(vendor_id, data.get('status'), data.get('reason'))
    db.session.commit()
    return jsonify(vendor.to_dict(include_private=True)), 200
