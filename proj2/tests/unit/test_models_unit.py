import pytest

from conftest import make_order
from models import OrderStatus, ValidationError, validate_order


def test_order_status_constants():
    """Ensure stored status strings haven't drifted."""
    assert OrderStatus.FOOD_PROCESSING == 'Food Processing'
    assert OrderStatus.OUT_FOR_DELIVERY == 'Out for delivery'
    assert OrderStatus.DELIVERED == 'Delivered'
    assert OrderStatus.REDISTRIBUTE == 'Redistribute'
    assert OrderStatus.CANCELLED == 'Cancelled'
    assert OrderStatus.DONATED == 'Donated'
    assert len(OrderStatus.VALID_STATUSES) == 6


def test_is_valid_status_true():
    assert OrderStatus.is_valid_status('Food Processing') is True
    assert OrderStatus.is_valid_status('Donated') is True


def test_is_valid_status_false():
    assert OrderStatus.is_valid_status('Claimed') is False
    assert OrderStatus.is_valid_status('InvalidValue') is False
    assert OrderStatus.is_valid_status('') is False
    assert OrderStatus.is_valid_status(None) is False


def test_valid_transitions_forward():
    assert OrderStatus.is_valid_transition(OrderStatus.FOOD_PROCESSING, OrderStatus.OUT_FOR_DELIVERY) is True
    assert OrderStatus.is_valid_transition(OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED) is True
    assert OrderStatus.is_valid_transition(OrderStatus.OUT_FOR_DELIVERY, OrderStatus.REDISTRIBUTE) is True
    assert OrderStatus.is_valid_transition(OrderStatus.REDISTRIBUTE, OrderStatus.DONATED) is True


def test_terminal_statuses_have_no_transitions():
    for status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.DONATED):
        for target in OrderStatus.VALID_STATUSES:
            assert OrderStatus.is_valid_transition(status, target) is False


def test_invalid_transition_unknown_status():
    assert OrderStatus.is_valid_transition('AlienStatus', OrderStatus.DELIVERED) is False
    assert OrderStatus.is_valid_transition(OrderStatus.FOOD_PROCESSING, 'AlienStatus') is False


def test_validate_fills_defaults():
    doc = validate_order(make_order())
    assert doc['status'] == 'Food Processing'
    assert doc['payment'] is False
    assert doc['date']


def test_validate_does_not_mutate_input():
    record = make_order()
    validate_order(record)
    assert 'status' not in record


@pytest.mark.parametrize('field', ['user_id', 'items', 'amount', 'address'])
def test_validate_required_fields(field):
    record = make_order()
    del record[field]
    with pytest.raises(ValidationError) as exc:
        validate_order(record)
    assert exc.value.field == field


def test_validate_rejects_unknown_status():
    with pytest.raises(ValidationError) as exc:
        validate_order(make_order(status='InvalidValue'))
    assert exc.value.field == 'status'


def test_validate_rejects_claimed_status():
    with pytest.raises(ValidationError):
        validate_order(make_order(status=OrderStatus.CLAIMED))


def test_validate_rejects_empty_items():
    with pytest.raises(ValidationError) as exc:
        validate_order(make_order(items=[]))
    assert exc.value.field == 'items'


@pytest.mark.parametrize('rating', [0, 6, 4.5, True, '4'])
def test_validate_rating_bounds(rating):
    with pytest.raises(ValidationError) as exc:
        validate_order(make_order(status='Delivered', rating=rating))
    assert exc.value.field == 'rating'


def test_validate_accepts_rating_edges():
    assert validate_order(make_order(rating=1))['rating'] == 1
    assert validate_order(make_order(rating=5))['rating'] == 5


def test_validate_feedback_length():
    assert validate_order(make_order(feedback='x' * 500))['feedback'] == 'x' * 500
    with pytest.raises(ValidationError) as exc:
        validate_order(make_order(feedback='x' * 501))
    assert exc.value.field == 'feedback'


def test_validate_feedback_is_trimmed():
    assert validate_order(make_order(feedback='  Great  '))['feedback'] == 'Great'


def test_validate_amount_must_be_numeric():
    with pytest.raises(ValidationError) as exc:
        validate_order(make_order(amount='40'))
    assert exc.value.field == 'amount'
