from datetime import datetime
import uuid
from sqlalchemy import Uuid
from db.extensions import db


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id = db.Column(Uuid, db.ForeignKey('vendors.id', ondelete='CASCADE'), nullable=False, index=True)
    category_id = db.Column(Uuid, db.ForeignKey('categories.id'), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    unit = db.Column(db.String(50), nullable=False)  # kg, pieces, bunches, etc.
    stock_quantity = db.Column(db.Integer, default=0, nullable=False)
    image_url = db.Column(db.Text, nullable=True)      # Cloudinary URL or data URL fallback
    image_public_id = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = db.relationship("Vendor", back_populates="products")
    category = db.relationship("Category", back_populates="products")

    def to_dict(self):
        return {
            'id': str(self.id),
            'vendor_id': str(self.vendor_id),
            'vendor_name': self.vendor.business_name if self.vendor else None,
            'category_id': str(self.category_id),
            'category': self.category.name if self.category else None,
            'name': self.name,
            'description': self.description,
            'price': str(self.price),
            'unit': self.unit,
            'stock_quantity': self.stock_quantity,
            'image_url': self.image_url,
            'is_active': self.is_active,
        }
