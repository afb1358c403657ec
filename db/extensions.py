# db/extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_mail import Mail
from flask_jwt_extended import JWTManager
import os
import redis
from redis.connection import ConnectionPool, SSLConnection
import logging

db = SQLAlchemy()
migrate = Migrate()
mail = Mail()
jwt = JWTManager()

logger = logging.getLogger(__name__)

REDIS_POOL_OPTIONS = {
    'decode_responses': True,
    'socket_connect_timeout': 5,
    'socket_timeout': 5,
    'retry_on_timeout': True,
    'health_check_interval': 30,
    'max_connections': 50,
}


def create_redis_pool():
    """
    Build the shared Redis pool used for checkout locks.

    ``REDIS_URL`` wins when set (``rediss://`` or ``REDIS_TLS_ENABLED`` turn on
    TLS); otherwise REDIS_HOST/REDIS_PORT/REDIS_DB point at a local server.
    No connection is opened until the first command.
    """
    redis_url = os.getenv('REDIS_URL')
    if not redis_url:
        logger.info("Using local Redis")
        return ConnectionPool(
            host=os.getenv('REDIS_HOST', 'localhost'),
            port=int(os.getenv('REDIS_PORT', 6379)),
            db=int(os.getenv('REDIS_DB', 0)),
            **REDIS_POOL_OPTIONS
        )

    options = dict(REDIS_POOL_OPTIONS)
    use_tls = os.getenv('REDIS_TLS_ENABLED', 'false').lower() == 'true'
    if use_tls and redis_url.startswith('redis://'):
        options.update(connection_class=SSLConnection, ssl_cert_reqs=None)
    pool = ConnectionPool.from_url(redis_url, **options)
    logger.info(f"Redis pool created for {pool.connection_kwargs.get('host')}")
    return pool


redis_pool = create_redis_pool()

redis_client = redis.Redis(connection_pool=redis_pool)


def check_redis_health():
    """Check Redis connection health"""
    try:
        redis_client.ping()
        return True
    except redis.exceptions.RedisError as e:
        logger.error(f"Redis health check failed: {str(e)}")
        return False
