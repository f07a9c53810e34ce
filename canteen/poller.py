"""Repeating pull of a customer's orders while their order screen is open."""

import logging
import threading

from aws_config import STATUS_POLL_INTERVAL

from .errors import StoreUnavailable
from .queue_view import project_orders

log = logging.getLogger(__name__)


class StatusPoller:
    """
    Calls ``store.query_by_customer`` every ``interval`` seconds on a
    background thread and hands the projected list to ``on_update``.

    A failed pull is logged and skipped; ``latest`` keeps the last good
    list until the next successful tick. That holds for unexpected errors
    on the background thread too, not only for ``StoreUnavailable``. ``stop()`` must be called when
    the screen goes away (or use the poller as a context manager).
    """

    def __init__(self, store, customer_ref, on_update=None, interval=STATUS_POLL_INTERVAL,
                 projector=project_orders):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.store = store
        self.customer_ref = customer_ref
        self.on_update = on_update
        self.interval = interval
        self.projector = projector
        self.latest = None
        self.failures = 0
        self._stopped = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self):
        """One tick. Returns the fresh projection, or the last good one on failure."""
        try:
            orders = self.store.query_by_customer(self.customer_ref)
        except StoreUnavailable as e:
            self.failures += 1
            log.warning("Order refresh for %s failed (%s), keeping last result",
                        self.customer_ref, e)
            return self.latest

        self.latest = self.projector(orders)
        if self.on_update is not None:
            self.on_update(self.latest)
        return self.latest

    def _run(self):
        # first pull straight away, then on every interval until stopped
        while not self._stopped.is_set():
            try:
                self.poll_once()
            except Exception:
                # a bad document or a failing callback must not end the loop
                self.failures += 1
                log.exception("Order refresh for %s crashed, retrying next tick",
                              self.customer_ref)
            if self._stopped.wait(self.interval):
                break

    def start(self):
        if self.running:
            return self
        self._stopped.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"status-poller-{self.customer_ref}", daemon=True
        )
        self._thread.start()
        log.info("Polling orders for %s every %ss", self.customer_ref, self.interval)
        return self

    def stop(self, timeout=None):
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        log.info("Stopped polling orders for %s", self.customer_ref)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
