from datetime import datetime
from decimal import Decimal
import uuid
from sqlalchemy import Uuid
from db.extensions import db

ORDER_STATUSES = ('pending', 'confirmed', 'dispatched', 'in_transit', 'delivered', 'cancelled')
PAYMENT_STATUSES = ('pending', 'completed', 'failed', 'cancelled')
PAYMENT_METHODS = ('orange_money', 'afrimoney', 'stripe')

# Shared by orders and payments so PostgreSQL sees one type per enum
payment_status_enum = db.Enum(*PAYMENT_STATUSES, name='payment_status_enum')
payment_method_enum = db.Enum(*PAYMENT_METHODS, name='payment_method_enum')


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id = db.Column(Uuid, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    # Maintained by the order total hook in models.orderTotals
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'))
    delivery_address = db.Column(db.Text, nullable=False)
    delivery_fee = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0.00'))
    status = db.Column(db.Enum(*ORDER_STATUSES, name='order_status_enum'), default='pending', nullable=False, index=True)
    payment_status = db.Column(payment_status_enum, default='pending', nullable=False, index=True)
    payment_method = db.Column(payment_method_enum, nullable=True)
    notes = db.Column(db.Text)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(30), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = db.relationship('OrderItem', back_populates='order', cascade='all, delete-orphan')
    payments = db.relationship('Payment', back_populates='order', cascade='all, delete-orphan',
                               order_by='Payment.created_at')

    def to_dict(self, include_items=True):
        data = {
            'id': str(self.id),
            'customer_id': str(self.customer_id),
            'status': self.status,
            'payment_status': self.payment_status,
            'payment_method': self.payment_method,
            'delivery_address': self.delivery_address,
            'delivery_fee': float(self.delivery_fee),
            'total_amount': float(self.total_amount),
            'notes': self.notes,
            'customer_name': self.customer_name,
            'customer_email': self.customer_email,
            'customer_phone': self.customer_phone,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data
