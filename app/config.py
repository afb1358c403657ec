# app/config.py

import os
from datetime import timedelta

class Config:
    # Flask Secret Key
    SECRET_KEY = os.getenv('SECRET_KEY', 'your_secret_key')

    # Database Configuration
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URI',
        'postgresql://postgres:postgres@db:5432/agroconnect_db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Database connection pool configuration
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,       # Validate connections before using
        "pool_recycle": 1800,        # Recycle every 30 minutes
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "connect_args": {
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000"  # 30s query timeout
        }
    }

    # JWT session tokens
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'your_jwt_secret_key')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv('JWT_ACCESS_TOKEN_HOURS', 24)))

    # CORS
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://localhost:5173').split(',')
        if origin.strip()
    ]

    # Upload Configuration
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB request limit
    MAX_IMAGE_SIZE = 5 * 1024 * 1024       # 5 MB per image, same as the storage bucket limit
    ALLOWED_IMAGE_TYPES = ('image/jpeg', 'image/png', 'image/gif', 'image/webp')

    # Mail Configuration
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.agroconnect.sl")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "true").lower() in ("true", "1", "t")
    MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "false").lower() in ("true", "1", "t")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@agroconnect.sl")
    MAIL_SUPPRESS_SEND = os.getenv("MAIL_SUPPRESS_SEND", "false").lower() in ("true", "1", "t")

    # Redis Configuration (for direct access via redis_client)
    REDIS_URL = os.getenv('REDIS_URL')
    REDIS_TLS_ENABLED = os.getenv('REDIS_TLS_ENABLED', 'false').lower() == 'true'

    # Cloudinary Configuration
    CLOUDINARY_CLOUD_NAME = os.getenv('CLOUDINARY_CLOUD_NAME')
    CLOUDINARY_API_KEY = os.getenv('CLOUDINARY_API_KEY')
    CLOUDINARY_API_SECRET = os.getenv('CLOUDINARY_API_SECRET')

    # Marketplace
    CURRENCY = os.getenv('CURRENCY', 'SLL')
    DEFAULT_DELIVERY_FEE = os.getenv('DEFAULT_DELIVERY_FEE', '5.00')
    CHECKOUT_LOCK_TTL_SECONDS = int(os.getenv('CHECKOUT_LOCK_TTL_SECONDS', 30))

    # Payments
    PAYMENT_POLL_INTERVAL_SECONDS = float(os.getenv('PAYMENT_POLL_INTERVAL_SECONDS', 3))
    PAYMENT_POLL_TIMEOUT_SECONDS = float(os.getenv('PAYMENT_POLL_TIMEOUT_SECONDS', 600))
    PAYMENT_PENDING_EXPIRY_MINUTES = int(os.getenv('PAYMENT_PENDING_EXPIRY_MINUTES', 30))
    STRIPE_CHECKOUT_PATH = os.getenv('STRIPE_CHECKOUT_PATH', '/payment/stripe')
