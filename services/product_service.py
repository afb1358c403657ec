from flask import current_app
from sqlalchemy import or_
from db.extensions import db
from models.category import Category
from models.orderItem import OrderItem
from models.product import Product
from models.vendor import Vendor
from services.auth_service import AuthService
from services.cloudinary_services import CloudinaryImageService
from services.exceptions import NotFound, PermissionDenied, ValidationError
from services.utils import parse_bool, parse_uuid, to_money

PRODUCT_FIELDS = ('name', 'description', 'unit', 'category_id', 'price', 'stock_quantity', 'is_active')


class ProductService:

    @staticmethod
    def public_products_query():
        """Active products whose vendor is verified; the only products customers may see."""
        return (Product.query
                .join(Vendor, Product.vendor_id == Vendor.id)
                .filter(Product.is_active.is_(True), Vendor.verification_status == 'verified'))

    @staticmethod
    def is_publicly_visible(product):
        return bool(product and product.is_active and product.vendor and product.vendor.is_verified)

    @staticmethod
    def list_public_products(category_id=None, search=None):
        query = ProductService.public_products_query()
        if category_id:
            query = query.filter(Product.category_id == parse_uuid(category_id, 'Category'))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        return query.order_by(Product.created_at.desc()).all()

    @staticmethod
    def get_public_product(product_id):
        product = ProductService.public_products_query().filter(
            Product.id == parse_uuid(product_id, 'Product')).first()
        if not product:
            raise NotFound('Product not found')
        return product

    @staticmethod
    def list_vendor_products(vendor):
        return Product.query.filter_by(vendor_id=vendor.id).order_by(Product.created_at.desc()).all()

    @staticmethod
    def _apply_fields(product, data):
        if 'name' in data:
            product.name = (data['name'] or '').strip()
        if 'description' in data:
            product.description = data['description']
        if 'unit' in data:
            product.unit = (data['unit'] or '').strip()
        if 'category_id' in data:
            category = db.session.get(Category, parse_uuid(data['category_id'], 'Category'))
            if not category:
                raise ValidationError('Invalid category')
            product.category_id = category.id
        if 'price' in data:
            product.price = to_money(data['price'], 'price')
        if 'stock_quantity' in data:
            try:
                product.stock_quantity = int(data['stock_quantity'])
            except (TypeError, ValueError):
                raise ValidationError('stock_quantity must be an integer')
            if product.stock_quantity < 0:
                raise ValidationError('stock_quantity cannot be negative')
        if 'is_active' in data:
            product.is_active = parse_bool(data['is_active'])

        if not product.name:
            raise ValidationError('Product name is required')
        if not product.unit:
            raise ValidationError('Unit is required')

    @staticmethod
    def create_product(vendor, data, image_file=None):
        missing = [f for f in ('name', 'category_id', 'price', 'unit') if not data.get(f)]
        if missing:
            raise ValidationError(f"Missing fields: {', '.join(missing)}")

        product = Product(vendor_id=vendor.id, stock_quantity=0, is_active=True)
        ProductService._apply_fields(product, data)

        if image_file:
            url, public_id, _ = CloudinaryImageService.upload_product_image(
                image_file, product.name, vendor.business_name
            )
            product.image_url, product.image_public_id = url, public_id

        db.session.add(product)
        db.session.flush()
        current_app.logger.info(f"Product {product.id} created by vendor {vendor.id}")
        return product

    @staticmethod
    def get_managed_product(user, product_id):
        """Load a product the user may edit: its vendor's owner or an admin."""
        product = db.session.get(Product, parse_uuid(product_id, 'Product'))
        if not product:
            raise NotFound('Product not found')
        if product.vendor.user_id != user.id and not AuthService.has_role(user, 'admin'):
            raise PermissionDenied('You cannot manage this product')
        return product

    @staticmethod
    def update_product(user, product_id, data, image_file=None):
        product = ProductService.get_managed_product(user, product_id)
        ProductService._apply_fields(product, {k: v for k, v in data.items() if k in PRODUCT_FIELDS})
        if image_file:
            old_public_id = product.image_public_id
            url, public_id, _ = CloudinaryImageService.upload_product_image(
                image_file, product.name, product.vendor.business_name
            )
            product.image_url, product.image_public_id = url, public_id
            if old_public_id:
                CloudinaryImageService.delete_image(old_public_id)
        return product

    @staticmethod
    def delete_product(user, product_id):
        """
        Delete a product, or deactivate it when orders reference it so past
        order lines and totals stay intact. Returns True when deleted.
        """
        product = ProductService.get_managed_product(user, product_id)
        if OrderItem.query.filter_by(product_id=product.id).first():
            product.is_active = False
            current_app.logger.info(f"Product {product.id} has orders, deactivated instead of deleted")
            return False
        public_id = product.image_public_id
        db.session.delete(product)
        if public_id:
            CloudinaryImageService.delete_image(public_id)
        return True

    @staticmethod
    def list_categories():
        return Category.query.order_by(Category.name).all()

    @staticmethod
    def create_category(name, description=None):
        name = (name or '').strip()
        if not name:
            raise ValidationError('Category name is required')
        if Category.query.filter_by(name=name).first():
            raise ValidationError('Category already exists')
        category = Category(name=name, description=description)
        db.session.add(category)
        db.session.flush()
        return category
