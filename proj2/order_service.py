"""
Server-side order operations.

Each function takes an ``OrderStore`` and the already-verified caller
identity and writes through ``OrderStore.update``. Ownership and status
checks run on the document read inside that update, so two callers racing
for the same order cannot both pass them. Failures raise an ``OrderError``
subclass carrying the HTTP status the Flask layer should answer with.
"""
import logging

from models import OrderStatus, ValidationError, utc_now_iso
from notifications import ORDER_CANCELLED

logger = logging.getLogger(__name__)


class OrderError(Exception):
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class OrderForbidden(OrderError):
    status_code = 403


class OrderConflict(OrderError):
    status_code = 409


def _money(x) -> float:
    return round(float(x) + 1e-9, 2)


def _publish_cancelled(channel, order):
    if channel is not None:
        channel.emit(ORDER_CANCELLED, {"ord_id": order["ord_id"], "user_id": order["user_id"]})


def place_order(store, user_id, items, address, payment=False, user_name=None):
    """
    Create a new order in Food Processing.

    ``amount`` is computed from the items; each item must carry a positive
    integer ``quantity`` and a non-negative numeric ``price``.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items", "must be a non-empty list")
    lines = []
    amount = 0.0
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("items", "each item must be a mapping")
        try:
            qty = int(item.get("quantity") or 1)
            price = float(item.get("price"))
        except (TypeError, ValueError):
            raise ValidationError("items", "quantity and price must be numeric")
        if qty <= 0 or price < 0:
            raise ValidationError("items", "quantity must be positive and price non-negative")
        lines.append({"name": item.get("name"), "quantity": qty, "price": _money(price)})
        amount = _money(amount + price * qty)

    order = store.save({
        "user_id": user_id,
        "user_name": user_name,
        "items": lines,
        "amount": amount,
        "address": address,
        "payment": bool(payment),
    })
    logger.info("Order %s placed by %s (%.2f)", order["ord_id"], user_id, amount)
    return order


def list_user_orders(store, user_id):
    return store.list_for_user(user_id)


def list_claimable_orders(store, user_id):
    """Redistributed orders the caller could claim (not their own)."""
    return [o for o in store.list_all(OrderStatus.REDISTRIBUTE) if o["user_id"] != user_id]


def cancel_order(store, user_id, ord_id, channel=None):
    """
    Cancel an order on behalf of its current owner.
    Raises:
        OrderNotFound, OrderForbidden, OrderConflict
    """
    def cancel(order):
        if order["user_id"] != user_id:
            raise OrderForbidden("You can only cancel your own orders")
        if order["status"] in OrderStatus.NOT_CANCELLABLE:
            raise OrderConflict(f"Order cannot be cancelled once {order['status']}")
        return {"status": OrderStatus.CANCELLED}

    order = store.update(ord_id, cancel)
    logger.info("Order %s cancelled by %s", ord_id, user_id)
    _publish_cancelled(channel, order)
    return order


def rate_order(store, user_id, ord_id, rating, feedback=None):
    """
    Record a one-time rating on a delivered order.
    Raises:
        OrderNotFound, OrderForbidden, OrderConflict, ValidationError
    """
    if rating is None:
        raise ValidationError("rating", "is required")

    def rate(order):
        if order["user_id"] != user_id:
            raise OrderForbidden("You can only rate your own orders")
        if order["status"] != OrderStatus.DELIVERED:
            raise OrderConflict("Only delivered orders can be rated")
        if order.get("rating"):
            raise OrderConflict("Order already rated")
        changes = {"rating": rating, "rated_at": utc_now_iso()}
        if feedback:
            changes["feedback"] = feedback
        return changes

    return store.update(ord_id, rate)


def claim_order(store, claimer_id, claimer_name, ord_id, discount_rate):
    """
    Hand a redistributed order to a new owner at a discount.

    The first claim records who originally placed the order and what it
    cost; later claims keep those values so the discount is always shown
    against the original price.
    Raises:
        OrderNotFound, OrderForbidden, OrderConflict
    """
    def claim(order):
        if order["status"] != OrderStatus.REDISTRIBUTE:
            raise OrderConflict("Only redistributed orders can be claimed")
        if order["user_id"] == claimer_id:
            raise OrderForbidden("You cannot claim your own order")

        original_amount = order.get("original_amount")
        if original_amount is None:
            original_amount = order["amount"]
        changes = {
            "user_id": claimer_id,
            "user_name": claimer_name,
            "claimed_by": claimer_id,
            "claimed_by_name": claimer_name,
            "claimed_at": utc_now_iso(),
            "amount": _money(original_amount * (1 - discount_rate)),
            "original_amount": original_amount,
            "status": OrderStatus.OUT_FOR_DELIVERY,
        }
        if not order.get("original_user_id"):
            changes["original_user_id"] = order["user_id"]
            changes["original_user_name"] = order.get("user_name")
        return changes

    order = store.update(ord_id, claim)
    logger.info("Order %s claimed by %s", ord_id, claimer_id)
    return order


def update_status(store, ord_id, new_status, channel=None):
    """
    Admin/worker status move, checked against ``OrderStatus.TRANSITIONS``.
    Raises:
        ValidationError: Unknown status value.
        OrderNotFound, OrderConflict
    """
    if not OrderStatus.is_valid_status(new_status):
        raise ValidationError("status", f"Invalid status: {new_status}")

    def move(order):
        current = order["status"]
        if not OrderStatus.is_valid_transition(current, new_status):
            raise OrderConflict(f"Invalid transition from {current} to {new_status}")
        return {"status": new_status}

    order = store.update(ord_id, move)
    if new_status == OrderStatus.CANCELLED:
        _publish_cancelled(channel, order)
    return order
