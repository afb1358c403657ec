from datetime import datetime
import uuid
from sqlalchemy import Uuid
from db.extensions import db

DEFAULT_CATEGORIES = [
    ('Grains', 'Rice, maize, wheat, millet and other grains'),
    ('Vegetables', 'Fresh vegetables including leafy greens, root vegetables'),
    ('Fruits', 'Fresh seasonal and tropical fruits'),
    ('Legumes', 'Beans, peas, groundnuts and other legumes'),
    ('Tubers', 'Cassava, yam, sweet potato and other tubers'),
    ('Spices & Herbs', 'Fresh and dried spices, herbs and seasonings'),
]


class Category(db.Model):
    __tablename__ = 'categories'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    products = db.relationship('Product', back_populates='category')

    def to_dict(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'description': self.description
        }
