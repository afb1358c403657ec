from flask import Blueprint, request, jsonify, g
from db.extensions import db
from app.decorators import roles_required, login_required
from services.product_service import ProductService
from services.vendor_service import VendorService

product_bp = Blueprint('product', __name__)


def _request_data():
    if request.mimetype == 'multipart/form-data':
        return request.form.to_dict()
    return request.get_json() or {}


@product_bp.route('/categories', methods=['GET'])
def list_categories():
    return jsonify([c.to_dict() for c in ProductService.list_categories()]), 200


@product_bp.route('/categories', methods=['POST'])
@roles_required('admin')
def create_category():
    data = request.get_json() or {}
    category = ProductService.create_category(data.get('name'), data.get('description'))
    db.session.commit()
    return jsonify(category.to_dict()), 201


@product_bp.route('/products', methods=['GET'])
def list_products():
    products = ProductService.list_public_products(
        category_id=request.args.get('category_id'),
        search=request.args.get('search')
    )
    return jsonify([p.to_dict() for p in products]), 200


@product_bp.route('/products/<product_id>', methods=['GET'])
def get_product(product_id):
    return jsonify(ProductService.get_public_product(product_id).to_dict()), 200


@product_bp.route('/vendors/me/products', methods=['POST'])
@roles_required('vendor')
def add_product():
    vendor = VendorService.get_vendor_for_user(g.current_user)
    product = ProductService.create_product(vendor, _request_data(), request.files.get('image'))
    db.session.commit()
    return jsonify(product.to_dict()), 201


@product_bp.route('/vendors/me/products', methods=['GET'])
@roles_required('vendor')
def list_my_products():
    vendor = VendorService.get_vendor_for_user(g.current_user)
    return jsonify([p.to_dict() for p in ProductService.list_vendor_products(vendor)]), 200


@product_bp.route('/products/<product_id>', methods=['PUT'])
@login_required
def update_product(product_id):
    product = ProductService.update_product(g.current_user, product_id, _request_data(), request.files.get('image'))
    db.session.commit()
    return jsonify(product.to_dict()), 200


@product_bp.route('/products/<product_id>', methods=['DELETE'])
@login_required
def delete_product(product_id):
    deleted = ProductService.delete_product(g.current_user, product_id)
    db.session.commit()
    return jsonify({'message': 'Deleted' if deleted else 'Deactivated', 'deleted': deleted}), 200
