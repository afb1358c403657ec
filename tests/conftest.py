from decimal import Decimal

import fakeredis
import pytest

from app import create_app
from app.config import Config
from db.extensions import db
from models.category import Category
from models.product import Product
from models.vendor import Vendor
from services.auth_service import AuthService


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length-for-hs256'
    SECRET_KEY = 'test-secret-key'
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = 'no-reply@agroconnect.test'
    CLOUDINARY_CLOUD_NAME = None
    CLOUDINARY_API_KEY = None
    CLOUDINARY_API_SECRET = None
    DEFAULT_DELIVERY_FEE = '5.00'


@pytest.fixture
def fake_redis(monkeypatch):
    server = fakeredis.FakeStrictRedis(decode_responses=True)
    monkeypatch.setattr('services.checkout_guard.redis_client', server)
    monkeypatch.setattr('db.extensions.redis_client', server)
    return server


@pytest.fixture
def app(fake_redis):
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email, roles=(), password='secret123', full_name=None):
    user = AuthService.register(email, password, full_name or email.split('@')[0])
    for role in roles:
        AuthService.grant_role(user, role)
    db.session.commit()
    return user


def make_vendor(user, status='verified', business_name='Green Farm'):
    vendor = Vendor(user_id=user.id, business_name=business_name, verification_status=status)
    db.session.add(vendor)
    AuthService.grant_role(user, 'vendor')
    db.session.commit()
    return vendor


def make_category(name='Vegetables'):
    category = Category.query.filter_by(name=name).first()
    if not category:
        category = Category(name=name)
        db.session.add(category)
        db.session.commit()
    return category


def make_product(vendor, name='Cassava', price='10.00', stock=100, unit='kg', is_active=True):
    product = Product(
        vendor_id=vendor.id,
        category_id=make_category().id,
        name=name,
        price=Decimal(price),
        unit=unit,
        stock_quantity=stock,
        is_active=is_active
    )
    db.session.add(product)
    db.session.commit()
    return product


def auth_header(user):
    return {'Authorization': f'Bearer {AuthService.issue_token(user)}'}


@pytest.fixture
def customer(app):
    return make_user('customer@example.com')


@pytest.fixture
def admin(app):
    return make_user('admin@example.com', roles=('admin',))


@pytest.fixture
def vendor_user(app):
    return make_user('farmer@example.com')


@pytest.fixture
def vendor(vendor_user):
    return make_vendor(vendor_user)


@pytest.fixture
def checkout_data():
    def build(items, payment_method='orange_money'):
        return {
            'full_name': 'Aminata Kamara',
            'email': 'customer@example.com',
            'phone': '076123456',
            'delivery_address': '12 Siaka Stevens Street, Freetown',
            'payment_method': payment_method,
            'items': items,
        }
    return build
