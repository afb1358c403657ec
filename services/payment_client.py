# services/payment_client.py

import logging
import requests

logger = logging.getLogger(__name__)


class PaymentStatusClientError(Exception):
    pass


class PaymentStatusClient:
    """Reads a payment's status from the marketplace API."""

    def __init__(self, base_url, access_token=None, timeout=10, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        if access_token:
            self.session.headers.update({'Authorization': f'Bearer {access_token}'})

    def status_url(self, payment_id):
        return f"{self.base_url}/api/payments/{payment_id}/status"

    def check_status(self, payment_id):
        """
        Return the status payload for ``payment_id``.

        Raises PaymentStatusClientError on transport errors or non-2xx answers.
        """
        try:
            response = self.session.get(self.status_url(payment_id), timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Payment status request failed for {payment_id}: {str(e)}")
            raise PaymentStatusClientError(f"Failed to check payment status: {str(e)}") from e
        except ValueError as e:
            raise PaymentStatusClientError(f"Invalid payment status response for {payment_id}") from e

    def close(self):
        self.session.close()
