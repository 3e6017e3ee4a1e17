"""
Presentation logic for the "My Orders" list.

Every function here is pure: it takes an order document (as returned by the
order service) plus the viewer's identity and/or the current time and returns
display values without touching the order. Timers and re-rendering belong to
the caller.
"""
from datetime import datetime, timezone

from models import OrderStatus, MAX_RATING

# Progress bar ramps linearly from the order date over two minutes
PROGRESS_WINDOW_MS = 2 * 60 * 1000
OUT_FOR_DELIVERY_THRESHOLD = 60

LABEL_DONATED = "Donated to shelter"
LABEL_DELIVERED = "Delivered"
LABEL_OUT_FOR_DELIVERY = "Out for Delivery"
LABEL_PREPARING = "Preparing Food"
LABEL_CANCELLED = "Order Cancelled"

FILLED_STAR = "★"
EMPTY_STAR = "☆"


def _same_id(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_date(value):
    """Return an aware datetime for ``value`` or None if it cannot be read."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def compute_cancellation_eligibility(order, viewer_id):
    """
    Decide whether the viewer should see this order as cancelled.

    Rules, first match wins:
        1. the viewer claimed the order -> not cancelled
        2. the viewer owns it and status is "Claimed" -> cancelled
        3. status is Redistribute -> cancelled
        4. otherwise -> not cancelled

    Rule 2 compares against a status the store never accepts, so it only
    fires for documents that did not come through ``validate_order``.
    A ``None`` viewer (no decodable token) never matches rules 1 and 2.
    Real cancellation (status Cancelled) is not part of this flag.
    """
    status = order.get("status")
    if _same_id(order.get("claimed_by"), viewer_id):
        return {"is_cancelled": False}
    if _same_id(order.get("user_id"), viewer_id) and status == OrderStatus.CLAIMED:
        return {"is_cancelled": True}
    if status == OrderStatus.REDISTRIBUTE:
        return {"is_cancelled": True}
    return {"is_cancelled": False}


def compute_progress(order, now):
    """
    Percentage of the progress bar to fill, in [0, 100].

    Args:
        order (dict): Order with an ISO ``date``.
        now (datetime): Current time; naive values are read as UTC.
    Returns:
        float: 100 for Delivered/Donated orders, otherwise elapsed time over
        the two-minute window, clamped to [0, 100]. Unreadable dates give 0.
    """
    if order.get("status") in OrderStatus.COMPLETED:
        return 100.0
    created = _parse_date(order.get("date"))
    current = _parse_date(now)
    if created is None or current is None:
        return 0.0
    elapsed_ms = (current - created).total_seconds() * 1000
    progress = min(elapsed_ms / PROGRESS_WINDOW_MS * 100, 100.0)
    return max(progress, 0.0)


def classify_progress_label(order, progress) -> str:
    status = order.get("status")
    if status == OrderStatus.DONATED:
        return LABEL_DONATED
    if status == OrderStatus.DELIVERED:
        return LABEL_DELIVERED
    if progress >= OUT_FOR_DELIVERY_THRESHOLD:
        return LABEL_OUT_FOR_DELIVERY
    return LABEL_PREPARING


def is_claimed_order(order) -> bool:
    original = order.get("original_user_id")
    return bool(original) and str(original) != str(order.get("user_id"))


def compute_pricing(order):
    """
    Price figures for the order row.

    Returns:
        dict: ``current_amount`` (``amount`` or 0 if not numeric),
        ``original_amount`` (falls back to the current amount),
        ``is_claimed``, ``has_discount`` (claimed and cheaper than the
        original) and ``savings`` (never negative, 0 without a discount).
    """
    amount = order.get("amount")
    current_amount = amount if _is_number(amount) else 0
    original = order.get("original_amount")
    original_amount = original if _is_number(original) else current_amount
    is_claimed = is_claimed_order(order)
    has_discount = is_claimed and original_amount > current_amount
    savings = max(original_amount - current_amount, 0) if has_discount else 0
    return {
        "current_amount": current_amount,
        "original_amount": original_amount,
        "is_claimed": is_claimed,
        "has_discount": has_discount,
        "savings": savings,
    }


def cancel_control_enabled(order, is_cancelled) -> bool:
    if is_cancelled:
        return False
    return order.get("status") not in (OrderStatus.DELIVERED, OrderStatus.DONATED)


def can_rate(order, is_cancelled) -> bool:
    return not is_cancelled and order.get("status") == OrderStatus.DELIVERED and not order.get("rating")


def rating_stars(rating) -> str:
    """``4`` -> four filled stars followed by one empty star."""
    filled = max(0, min(int(rating or 0), MAX_RATING))
    return (FILLED_STAR * filled).ljust(MAX_RATING, EMPTY_STAR)


def format_items(order) -> str:
    return ", ".join(f"{item.get('name')} x {item.get('quantity')}" for item in order.get("items") or [])


def _price_lines(pricing, currency):
    if pricing["has_discount"]:
        return {
            "original": f"{currency}{pricing['original_amount']:.2f}",
            "paid": f"{currency}{pricing['current_amount']:.2f}",
            "saved": f"{currency}{pricing['savings']:.2f}",
        }
    return {"main": f"{currency}{pricing['current_amount']:.2f}"}


def build_order_view(order, viewer_id, now, currency="$"):
    """
    Assemble everything one order row needs for display.

    Args:
        order (dict): Order document.
        viewer_id (str | None): Id decoded from the viewer's token.
        now (datetime): Current time for the progress bar.
        currency (str): Prefix for formatted amounts.
    Returns:
        dict: Display record; see keys below.
    """
    is_cancelled = compute_cancellation_eligibility(order, viewer_id)["is_cancelled"]
    pricing = compute_pricing(order)
    status = order.get("status")
    delivered = status == OrderStatus.DELIVERED

    if is_cancelled:
        progress = 100.0
        label = LABEL_CANCELLED
    else:
        progress = compute_progress(order, now)
        label = classify_progress_label(order, progress)

    rated = not is_cancelled and delivered and bool(order.get("rating"))

    return {
        "ord_id": order.get("ord_id"),
        "items_text": format_items(order),
        "item_count": len(order.get("items") or []),
        "pricing": pricing,
        "price_lines": _price_lines(pricing, currency),
        "is_cancelled": is_cancelled,
        "progress": progress,
        "progress_label": label,
        "is_donated": status == OrderStatus.DONATED,
        "show_claimed_badge": pricing["is_claimed"] and not is_cancelled,
        "show_rate_button": can_rate(order, is_cancelled),
        "rating_stars": rating_stars(order["rating"]) if rated else None,
        "feedback": order.get("feedback") if rated else None,
        "cancel_enabled": cancel_control_enabled(order, is_cancelled),
        "cancel_label": "Cancelled" if is_cancelled else "Cancel Order",
    }


def is_animating(view) -> bool:
    """True while a row's progress bar still has to move."""
    return not view["is_cancelled"] and view["progress"] < 100
