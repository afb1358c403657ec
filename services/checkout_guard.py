# services/checkout_guard.py

import hashlib
import json
import logging

import redis
from flask import current_app

from db.extensions import redis_client

logger = logging.getLogger(__name__)


class CheckoutGuard:
    """
    Short-lived Redis lock that rejects a second identical checkout
    (same customer, same cart) while the first is still fresh.
    """

    KEY_PREFIX = 'checkout_lock'

    @staticmethod
    def cart_fingerprint(items):
        normalized = sorted(
            (str(item.get('product_id')), int(item.get('quantity') or 0))
            for item in items
        )
        return hashlib.sha256(json.dumps(normalized).encode('utf-8')).hexdigest()[:32]

    @staticmethod
    def lock_key(customer_id, items):
        return f"{CheckoutGuard.KEY_PREFIX}:{customer_id}:{CheckoutGuard.cart_fingerprint(items)}"

    @staticmethod
    def acquire(customer_id, items):
        """
        Try to take the checkout lock.

        Returns the lock key when acquired (or when Redis is unreachable),
        ``None`` when an identical checkout already holds it.
        """
        key = CheckoutGuard.lock_key(customer_id, items)
        ttl = current_app.config.get('CHECKOUT_LOCK_TTL_SECONDS', 30)
        try:
            acquired = redis_client.set(key, '1', nx=True, ex=ttl)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Checkout guard unavailable, continuing without lock: {str(e)}")
            return key
        if not acquired:
            logger.info(f"Duplicate checkout rejected for customer {customer_id}")
            return None
        return key

    @staticmethod
    def release(key):
        if not key:
            return
        try:
            redis_client.delete(key)
        except redis.exceptions.RedisError as e:
            logger.warning(f"Failed to release checkout lock {key}: {str(e)}")
