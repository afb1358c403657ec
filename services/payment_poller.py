# services/payment_poller.py
"""
Fixed-interval polling of a payment until it settles.

Used by clients waiting on a mobile-money payment: the status source is
asked every ``interval`` seconds until it reports a terminal status, the
poller is stopped, or ``timeout`` elapses.
"""

import logging
import threading
import time

from services.status_machine import is_terminal_payment_status

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0


class PaymentPollTimeout(Exception):
    def __init__(self, payment_id, last_status):
        super().__init__(f"Payment {payment_id} still '{last_status}' when polling timed out")
        self.payment_id = payment_id
        self.last_status = last_status


class PaymentStatusPoller:
    """
    Poll ``fetch_status(payment_id)`` (a callable returning a dict with a
    ``status`` key, e.g. ``PaymentStatusClient.check_status``).

    ``on_update`` receives every status payload, ``on_terminal`` the first
    terminal one. Fetch errors are logged and the poll continues.
    """

    def __init__(self, fetch_status, interval=DEFAULT_POLL_INTERVAL, timeout=None,
                 on_update=None, on_terminal=None, clock=time.monotonic):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.fetch_status = fetch_status
        self.interval = interval
        self.timeout = timeout
        self.on_update = on_update
        self.on_terminal = on_terminal
        self.clock = clock
        self._stop_event = threading.Event()
        self._thread = None
        self.result = None
        self.error = None

    @classmethod
    def from_config(cls, fetch_status, config, **kwargs):
        """Build a poller using PAYMENT_POLL_INTERVAL_SECONDS / PAYMENT_POLL_TIMEOUT_SECONDS."""
        kwargs.setdefault('interval', config.get('PAYMENT_POLL_INTERVAL_SECONDS', DEFAULT_POLL_INTERVAL))
        kwargs.setdefault('timeout', config.get('PAYMENT_POLL_TIMEOUT_SECONDS'))
        return cls(fetch_status, **kwargs)

    def poll_once(self, payment_id):
        try:
            payload = self.fetch_status(payment_id)
        except Exception as e:
            logger.error(f"Error checking payment status for {payment_id}: {str(e)}")
            return None
        if self.on_update:
            self.on_update(payload)
        return payload

    def wait_for_terminal(self, payment_id):
        """
        Block until the payment reaches a terminal status and return its payload.

        Returns None if ``stop()`` was called first; raises PaymentPollTimeout
        when ``timeout`` elapses.
        """
        deadline = self.clock() + self.timeout if self.timeout is not None else None
        last_status = None

        while not self._stop_event.is_set():
            payload = self.poll_once(payment_id)
            if payload is not None:
                last_status = payload.get('status')
                if is_terminal_payment_status(last_status):
                    self.result = payload
                    if self.on_terminal:
                        self.on_terminal(payload)
                    return payload

            if deadline is not None and self.clock() + self.interval > deadline:
                raise PaymentPollTimeout(payment_id, last_status)
            self._stop_event.wait(self.interval)

        logger.debug(f"Polling for payment {payment_id} stopped")
        return None

    def _run(self, payment_id):
        try:
            self.wait_for_terminal(payment_id)
        except PaymentPollTimeout as e:
            self.error = e
            logger.warning(str(e))

    def start(self, payment_id):
        """Poll in a background thread; returns immediately."""
        if self._thread and self._thread.is_alive():
            raise RuntimeError("Poller is already running")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, args=(payment_id,), daemon=True,
                                        name=f"payment-poll-{payment_id}")
        self._thread.start()
        return self._thread

    def stop(self, wait=True):
        self._stop_event.set()
        if wait and self._thread and self._thread is not threading.current_thread():
            self._thread.join(self.interval + 1)

    @property
    def running(self):
        return bool(self._thread and self._thread.is_alive())
