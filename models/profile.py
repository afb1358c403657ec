from datetime import datetime
import uuid
from sqlalchemy import Uuid
from db.extensions import db


class Profile(db.Model):
    __tablename__ = 'profiles'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = db.Column(Uuid, db.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    full_name = db.Column(db.String(255))
    phone = db.Column(db.String(30))
    address = db.Column(db.Text)
    avatar_url = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', back_populates='profile')

    def to_dict(self):
        return {
            'user_id': str(self.user_id),
            'full_name': self.full_name,
            'phone': self.phone,
            'address': self.address,
            'avatar_url': self.avatar_url,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
