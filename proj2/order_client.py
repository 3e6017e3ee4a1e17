"""
Client side of "My Orders".

``HttpOrderService`` talks to the order service over HTTP. ``MyOrders`` keeps
the current list for one session, turns it into display rows with
``order_views`` and re-fetches whenever something changes: after a cancel,
or when the notification channel reports a cancellation.
"""
import logging
import threading
from datetime import datetime, timezone

import requests

import config
from models import OrderStatus
from notifications import ORDER_CANCELLED
from order_views import build_order_view, is_animating

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """The order service could not be reached or refused the request."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class HttpOrderService:
    """
    Thin wrapper over the order service's JSON endpoints.

    Every call sends the bearer token in a ``token`` header and expects the
    ``{"success": ..., "message": ..., "data": ...}`` envelope back.
    """

    def __init__(self, base_url=None, timeout=None, http=None):
        self.base_url = (base_url or config.ORDER_API_URL).rstrip("/")
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self.http = http or requests.Session()

    def _request(self, path, token, payload=None):
        try:
            resp = self.http.post(
                self.base_url + path,
                json=payload or {},
                headers={"token": token or ""},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ServiceError(f"Could not reach order service: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise ServiceError(f"Unexpected response ({resp.status_code})", resp.status_code) from e
        if not isinstance(body, dict):
            raise ServiceError(f"Unexpected response ({resp.status_code})", resp.status_code)
        return resp, body

    def _post(self, path, token, payload=None):
        resp, body = self._request(path, token, payload)
        if not resp.ok or not body.get("success"):
            raise ServiceError(body.get("message") or f"Request failed ({resp.status_code})", resp.status_code)
        return body

    def list_orders_for_user(self, token):
        return self._post("/api/order/userorders", token)["data"]

    def cancel_order(self, token, ord_id):
        """
        Ask the service to cancel ``ord_id``.

        A refusal the service answers in its envelope (for instance 409 on an
        order that is already delivered) is returned as
        ``{"success": False, "message": ...}`` for the caller to show.
        Unreachable service or a malformed reply raise ``ServiceError``.
        """
        resp, body = self._request("/api/order/cancel_order", token, {"orderId": ord_id})
        return {"success": bool(resp.ok and body.get("success")), "message": body.get("message")}

    def rate_order(self, token, ord_id, rating, feedback=None):
        body = self._post("/api/order/rate", token, {"orderId": ord_id, "rating": rating, "feedback": feedback})
        return body["data"]


def _log_notice(message):
    logger.warning(message)


class MyOrders:
    """
    State holder behind the "My Orders" page.

    Args:
        session (SessionContext): Token and viewer identity.
        service: Object with ``list_orders_for_user``, ``cancel_order`` and
            ``rate_order`` (``HttpOrderService`` in production). ``cancel_order``
            returns ``{"success": bool, "message": str | None}``; the others
            raise ``ServiceError`` on failure.
        channel (NotificationChannel | None): Source of ``orderCancelled``.
        notify (callable): Receives user-facing error messages.
        currency (str): Prefix for formatted amounts.
    """

    def __init__(self, session, service, channel=None, notify=None, currency=None):
        self.session = session
        self.service = service
        self.channel = channel
        self.notify = notify or _log_notice
        self.currency = currency or config.CURRENCY
        self.orders = []
        self.message = None
        self._mounted = False

    def _fail(self, message):
        self.message = message
        self.notify(message)

    # lifecycle

    def mount(self):
        """Subscribe to cancellations and load the list if logged in."""
        if self._mounted:
            return
        if self.channel is not None:
            self.channel.on(ORDER_CANCELLED, self._on_order_cancelled)
        self._mounted = True
        if self.session.token:
            self.fetch_orders()

    def unmount(self):
        if not self._mounted:
            return
        if self.channel is not None:
            self.channel.off(ORDER_CANCELLED, self._on_order_cancelled)
        self._mounted = False

    def _on_order_cancelled(self, payload):
        logger.info("Refreshing orders after cancellation of %s", (payload or {}).get("ord_id"))
        self.fetch_orders()

    # commands

    def fetch_orders(self):
        """
        Replace the local list with the service's; keep the old list on failure.
        Returns:
            bool: True if the list was refreshed.
        """
        try:
            self.orders = list(self.service.list_orders_for_user(self.session.token))
        except ServiceError as e:
            self._fail(e.message)
            return False
        self.message = None
        return True

    def find(self, ord_id):
        for order in self.orders:
            if str(order.get("ord_id")) == str(ord_id):
                return order
        return None

    def request_cancel(self, ord_id):
        try:
            result = self.service.cancel_order(self.session.token, ord_id)
        except ServiceError as e:
            self._fail(e.message or "Error cancelling order")
            return False
        if not result.get("success"):
            self._fail(result.get("message") or "Failed to cancel order")
            return False
        self.fetch_orders()
        return True

    def request_rating(self, ord_id, rating, feedback=None):
        """
        Rate a delivered, unrated order and swap the updated copy in by id.
        Returns:
            dict | None: The updated order, or None if refused or failed.
        """
        order = self.find(ord_id)
        if order is None:
            self._fail("Order not found")
            return None
        if order.get("status") != OrderStatus.DELIVERED or order.get("rating"):
            self._fail("Only delivered orders without a rating can be rated")
            return None
        try:
            updated = self.service.rate_order(self.session.token, ord_id, rating, feedback)
        except ServiceError as e:
            self._fail(e.message)
            return None
        self.orders = [updated if str(o.get("ord_id")) == str(updated.get("ord_id")) else o for o in self.orders]
        self.message = None
        return updated

    # rendering

    def render(self, now=None):
        now = now or datetime.now(timezone.utc)
        viewer = self.session.user_id
        return [build_order_view(o, viewer, now, self.currency) for o in self.orders]

    def needs_tick(self, now=None):
        return any(is_animating(v) for v in self.render(now))


class ProgressTicker:
    """
    Calls ``callback`` every ``interval`` seconds on a daemon thread until
    ``stop`` is called. Only drives re-rendering of progress bars.
    """

    def __init__(self, callback, interval=1.0):
        self.callback = callback
        self.interval = interval
        self._stop = threading.Event()
        self._thread = None

    def start(self):
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self):
        while not self._stop.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Progress tick failed")

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval * 2)
            self._thread = None
