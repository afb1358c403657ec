from datetime import datetime
import uuid
from sqlalchemy import Uuid
from db.extensions import db
from models.order import payment_status_enum, payment_method_enum


class Payment(db.Model):
    __tablename__ = 'payments'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = db.Column(Uuid, db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    payment_method = db.Column(payment_method_enum, nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(10), default='SLL', nullable=False)
    status = db.Column(payment_status_enum, default='pending', nullable=False, index=True)
    transaction_id = db.Column(db.String(255), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(30), nullable=False)
    payment_metadata = db.Column('metadata', db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = db.relationship('Order', back_populates='payments')

    def __repr__(self):
        return f"<Payment order={self.order_id} method={self.payment_method} status={self.status}>"

    def to_dict(self):
        return {
            'id': str(self.id),
            'order_id': str(self.order_id),
            'payment_method': self.payment_method,
            'amount': float(self.amount),
            'currency': self.currency,
            'status': self.status,
            'transaction_id': self.transaction_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
