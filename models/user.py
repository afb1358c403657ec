from datetime import datetime
import uuid
from sqlalchemy import Uuid
from werkzeug.security import generate_password_hash, check_password_hash
from db.extensions import db


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    profile = db.relationship('Profile', back_populates='user', uselist=False, cascade='all, delete-orphan')
    roles = db.relationship('UserRole', back_populates='user', cascade='all, delete-orphan')
    vendors = db.relationship('Vendor', back_populates='user', cascade='all, delete-orphan')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def role_names(self):
        return sorted(r.role for r in self.roles)

    def __repr__(self):
        return f"<User {self.email}>"
