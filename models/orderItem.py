from datetime import datetime
import uuid
from sqlalchemy import Uuid
from db.extensions import db


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = (db.CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),)

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = db.Column(Uuid, db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = db.Column(Uuid, db.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    # Captured at order time, independent of the live product price
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self):
        return {
            "id": str(self.id),
            "product_id": str(self.product_id),
            "product_name": self.product.name if self.product else None,
            "unit": self.product.unit if self.product else None,
            "vendor_id": str(self.product.vendor_id) if self.product else None,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "subtotal": float(self.subtotal)
        }
