from datetime import datetime
import uuid
from sqlalchemy import Uuid
from sqlalchemy.orm import relationship
from db.extensions import db

VERIFICATION_STATUSES = ('pending', 'verified', 'rejected')


class Vendor(db.Model):
    __tablename__ = 'vendors'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = db.Column(Uuid, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    business_name = db.Column(db.String(255), nullable=False)
    business_license = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(255), nullable=True)
    verification_status = db.Column(
        db.Enum(*VERIFICATION_STATUSES, name='verification_status_enum'),
        default='pending',
        nullable=False
    )
    rejection_reason = db.Column(db.Text, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship('User', back_populates='vendors')

    products = relationship(
        'Product',
        back_populates='vendor',
        cascade="all, delete-orphan"
    )

    @property
    def is_verified(self):
        return self.verification_status == 'verified'

    def to_dict(self, include_private=False):
        data = {
            'id': str(self.id),
            'business_name': self.business_name,
            'description': self.description,
            'location': self.location,
            'verification_status': self.verification_status,
        }
        if include_private:
            data.update({
                'user_id': str(self.user_id),
                'business_license': self.business_license,
                'rejection_reason': self.rejection_reason,
                'created_at': self.created_at.isoformat() if self.created_at else None,
                'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            })
        return data

    def __str__(self):
        return f"Vendor(id={self.id}, business_name='{self.business_name}', verification_status='{self.verification_status}')"

    def __repr__(self):
        return self.__str__()
