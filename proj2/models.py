"""
Data models for the food ordering and order redistribution application.

This module contains the order status vocabulary, the allowed status
transitions, and the validation boundary every order document passes
through before it is persisted.
"""
from datetime import datetime, timezone


class ValidationError(Exception):
    """
    Raised when an order document fails schema constraints.

    Attributes:
        field (str): Name of the offending field.
        message (str): Human readable reason.
    """

    status_code = 400

    def __init__(self, field, message):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class OrderStatus:
    """
    Represents valid order statuses and transitions.

    Status Flow:
        Food Processing -> Out for delivery -> Delivered
        Food Processing / Out for delivery -> Redistribute -> Donated
        Any non-terminal status -> Cancelled

    Claiming a redistributed order moves it back to Out for delivery; that
    move is performed by the claim operation, not by an admin transition.

    Attributes:
        FOOD_PROCESSING (str): Initial order status when order is placed
        OUT_FOR_DELIVERY (str): Status when the order is on its way
        DELIVERED (str): Final status when order is completed
        REDISTRIBUTE (str): Order offered to other users to claim
        CANCELLED (str): Order cancelled by its owner or an admin
        DONATED (str): Unclaimed order handed to a shelter
        VALID_STATUSES (list): List of all valid status values
        TRANSITIONS (dict): Mapping of current status to allowed next statuses
    """

    FOOD_PROCESSING = 'Food Processing'
    OUT_FOR_DELIVERY = 'Out for delivery'
    DELIVERED = 'Delivered'
    REDISTRIBUTE = 'Redistribute'
    CANCELLED = 'Cancelled'
    DONATED = 'Donated'

    # Not a stored status. The cancellation-eligibility rules still test for it.
    CLAIMED = 'Claimed'

    DEFAULT = FOOD_PROCESSING

    VALID_STATUSES = [FOOD_PROCESSING, OUT_FOR_DELIVERY, DELIVERED, REDISTRIBUTE, CANCELLED, DONATED]

    TRANSITIONS = {
        FOOD_PROCESSING: [OUT_FOR_DELIVERY, REDISTRIBUTE, CANCELLED],
        OUT_FOR_DELIVERY: [DELIVERED, REDISTRIBUTE, CANCELLED],
        REDISTRIBUTE: [DONATED, CANCELLED],
        DELIVERED: [],
        CANCELLED: [],
        DONATED: [],
    }

    # Statuses that end the progress animation at 100%
    COMPLETED = (DELIVERED, DONATED)

    # Statuses an owner may no longer cancel from
    NOT_CANCELLABLE = (DELIVERED, DONATED, CANCELLED)

    @classmethod
    def is_valid_status(cls, status):
        """
        Check if a status value is valid.

        Args:
            status (str): The status value to validate

        Returns:
            bool: True if the status is in the allowed set, False otherwise

        Example:
            >>> OrderStatus.is_valid_status('Food Processing')
            True
            >>> OrderStatus.is_valid_status('Claimed')
            False
        """
        return status in cls.VALID_STATUSES

    @classmethod
    def is_valid_transition(cls, current_status, new_status):
        """
        Check if a status transition is allowed.

        Args:
            current_status (str): The current order status
            new_status (str): The proposed new status

        Returns:
            bool: True if the transition is allowed, False otherwise

        Example:
            >>> OrderStatus.is_valid_transition('Food Processing', 'Out for delivery')
            True
            >>> OrderStatus.is_valid_transition('Delivered', 'Cancelled')
            False
        """
        if current_status not in cls.TRANSITIONS:
            return False
        return new_status in cls.TRANSITIONS[current_status]


MAX_FEEDBACK_LENGTH = 500
MIN_RATING = 1
MAX_RATING = 5

REQUIRED_FIELDS = ('user_id', 'items', 'amount', 'address')
OPTIONAL_STRING_FIELDS = ('user_name', 'original_user_id', 'original_user_name', 'claimed_by', 'claimed_by_name')


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_order(record):
    """
    Validate an order document and fill in schema defaults.

    The input is not mutated. Absent ``status`` becomes Food Processing,
    absent ``date`` becomes now, absent ``payment`` becomes False and
    ``feedback`` is stripped of surrounding whitespace.

    Args:
        record (dict): Candidate order document.

    Returns:
        dict: A normalized copy of the document.

    Raises:
        ValidationError: Naming the first field that violates a constraint.
    """
    if not isinstance(record, dict):
        raise ValidationError('order', 'must be a mapping')

    doc = dict(record)

    for field in REQUIRED_FIELDS:
        if doc.get(field) is None:
            raise ValidationError(field, 'is required')

    if not isinstance(doc['user_id'], str) or not doc['user_id'].strip():
        raise ValidationError('user_id', 'must be a non-empty string')

    items = doc['items']
    if not isinstance(items, list) or not items:
        raise ValidationError('items', 'must be a non-empty list')
    for item in items:
        if not isinstance(item, dict) or not item.get('name'):
            raise ValidationError('items', 'each item needs a name')

    if not _is_number(doc['amount']):
        raise ValidationError('amount', 'must be a number')
    if doc.get('original_amount') is not None and not _is_number(doc['original_amount']):
        raise ValidationError('original_amount', 'must be a number')

    if not isinstance(doc['address'], dict):
        raise ValidationError('address', 'must be a structured record')

    for field in OPTIONAL_STRING_FIELDS:
        if doc.get(field) is not None and not isinstance(doc[field], str):
            raise ValidationError(field, 'must be a string')

    if doc.get('status') is None:
        doc['status'] = OrderStatus.DEFAULT
    elif not OrderStatus.is_valid_status(doc['status']):
        raise ValidationError('status', f"`{doc['status']}` is not a valid status")

    rating = doc.get('rating')
    if rating is not None:
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError('rating', 'must be an integer')
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError('rating', f'must be between {MIN_RATING} and {MAX_RATING}')

    feedback = doc.get('feedback')
    if feedback is not None:
        if not isinstance(feedback, str):
            raise ValidationError('feedback', 'must be a string')
        feedback = feedback.strip()
        if len(feedback) > MAX_FEEDBACK_LENGTH:
            raise ValidationError('feedback', f'must be at most {MAX_FEEDBACK_LENGTH} characters')
        doc['feedback'] = feedback

    if not doc.get('date'):
        doc['date'] = utc_now_iso()
    if doc.get('payment') is None:
        doc['payment'] = False
    elif not isinstance(doc['payment'], bool):
        raise ValidationError('payment', 'must be a boolean')

    return doc
