import threading

import pytest

from conftest import ADDRESS, make_order
from models import OrderStatus, ValidationError
from notifications import ORDER_CANCELLED, NotificationChannel
from order_service import (
    OrderConflict,
    OrderForbidden,
    cancel_order,
    claim_order,
    place_order,
    rate_order,
    update_status,
)
from order_store import OrderNotFound, OrderStore


class InterleavingStore(OrderStore):
    """Runs ``competitor`` once, just before the first update is applied."""

    def __init__(self, db_file, competitor=None):
        super().__init__(db_file)
        self.competitor = competitor

    def update(self, ord_id, changes):
        competitor, self.competitor = self.competitor, None
        if competitor is not None:
            competitor(self)
        return super().update(ord_id, changes)


def test_place_order_defaults_quantity(store):
    order = place_order(store, 'U1', [{'name': 'Tea', 'price': 2.5}], ADDRESS)
    assert order['items'] == [{'name': 'Tea', 'quantity': 1, 'price': 2.5}]
    assert order['amount'] == 2.5


@pytest.mark.parametrize('item', [{'name': 'Tea', 'price': 'free'}, {'name': 'Tea', 'price': 1, 'quantity': -1}])
def test_place_order_rejects_bad_lines(store, item):
    with pytest.raises(ValidationError):
        place_order(store, 'U1', [item], ADDRESS)


def test_cancel_publishes_once(store):
    channel = NotificationChannel()
    seen = []
    channel.on(ORDER_CANCELLED, seen.append)
    order = store.save(make_order())
    cancel_order(store, 'U1', order['ord_id'], channel=channel)
    with pytest.raises(OrderConflict):
        cancel_order(store, 'U1', order['ord_id'], channel=channel)
    assert len(seen) == 1


def test_cancel_redistributed_order_allowed(store):
    order = store.save(make_order(status=OrderStatus.REDISTRIBUTE))
    assert cancel_order(store, 'U1', order['ord_id'])['status'] == OrderStatus.CANCELLED


def test_rate_unknown_order(store):
    with pytest.raises(OrderNotFound):
        rate_order(store, 'U1', 404, 5)


def test_rate_other_users_order(store):
    order = store.save(make_order(status=OrderStatus.DELIVERED))
    with pytest.raises(OrderForbidden):
        rate_order(store, 'U2', order['ord_id'], 5)


def test_reclaim_keeps_original_owner_and_price(store):
    order = store.save(make_order(user_id='U1', user_name='Alice', amount=50.0, status=OrderStatus.REDISTRIBUTE))
    first = claim_order(store, 'U2', 'Bob', order['ord_id'], 0.2)
    assert first['amount'] == 40.0
    assert first['original_user_id'] == 'U1'
    assert first['original_user_name'] == 'Alice'
    assert first['user_name'] == 'Bob'

    update_status(store, order['ord_id'], OrderStatus.REDISTRIBUTE)
    second = claim_order(store, 'U3', 'Cy', order['ord_id'], 0.2)

    assert second['user_id'] == 'U3'
    assert second['claimed_by'] == 'U3'
    assert second['original_user_id'] == 'U1'
    assert second['original_user_name'] == 'Alice'
    assert second['original_amount'] == 50.0
    assert second['amount'] == 40.0


def test_update_status_walks_delivery(store):
    order = store.save(make_order())
    update_status(store, order['ord_id'], OrderStatus.OUT_FOR_DELIVERY)
    assert update_status(store, order['ord_id'], OrderStatus.DELIVERED)['status'] == OrderStatus.DELIVERED
    with pytest.raises(OrderConflict):
        update_status(store, order['ord_id'], OrderStatus.REDISTRIBUTE)


def test_update_status_rejects_claimed_literal(store):
    order = store.save(make_order())
    with pytest.raises(ValidationError):
        update_status(store, order['ord_id'], OrderStatus.CLAIMED)


def test_place_order_records_placer_name(store):
    order = place_order(store, 'U1', [{'name': 'Tea', 'price': 2.5}], ADDRESS, user_name='Alice')
    assert store.get(order['ord_id'])['user_name'] == 'Alice'


def test_claim_loses_to_claim_landing_first(temp_db_path):
    order = OrderStore(temp_db_path).save(make_order(user_id='U1', status=OrderStatus.REDISTRIBUTE))
    store = InterleavingStore(
        temp_db_path,
        competitor=lambda s: claim_order(s, 'U3', 'Cy', order['ord_id'], 0.5),
    )

    with pytest.raises(OrderConflict):
        claim_order(store, 'U2', 'Bob', order['ord_id'], 0.5)

    stored = store.get(order['ord_id'])
    assert stored['user_id'] == 'U3'
    assert stored['claimed_by'] == 'U3'
    assert stored['amount'] == 10.0


def test_rating_is_set_only_once_under_interleaving(temp_db_path):
    order = OrderStore(temp_db_path).save(make_order(status=OrderStatus.DELIVERED))
    store = InterleavingStore(
        temp_db_path,
        competitor=lambda s: rate_order(s, 'U1', order['ord_id'], 5, 'Lovely'),
    )

    with pytest.raises(OrderConflict):
        rate_order(store, 'U1', order['ord_id'], 1)

    stored = store.get(order['ord_id'])
    assert stored['rating'] == 5
    assert stored['feedback'] == 'Lovely'


def test_concurrent_claims_have_one_winner(store):
    order = store.save(make_order(user_id='U1', status=OrderStatus.REDISTRIBUTE))
    claimers = ['U2', 'U3', 'U4', 'U5']
    start = threading.Barrier(len(claimers))
    won, lost = [], []

    def claim(claimer):
        start.wait()
        try:
            claim_order(store, claimer, claimer, order['ord_id'], 0.5)
            won.append(claimer)
        except OrderConflict:
            lost.append(claimer)

    threads = [threading.Thread(target=claim, args=(c,)) for c in claimers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(won) == 1
    assert sorted(won + lost) == claimers
    assert store.get(order['ord_id'])['claimed_by'] == won[0]
