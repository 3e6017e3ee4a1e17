"""
Script to seed demo orders covering every status.

Creates:
- orders for a demo user in Food Processing, Out for delivery,
  Delivered (one rated), Cancelled and Donated
- one Redistribute order from another user, claimed by the demo user
- prints tokens for the demo user, the other user and an admin
"""

import os
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import config  # noqa: E402
from auth import issue_token  # noqa: E402
from models import OrderStatus  # noqa: E402
from order_service import claim_order, place_order, rate_order, update_status  # noqa: E402
from order_store import OrderStore  # noqa: E402
from sqlQueries import create_tables  # noqa: E402

DEMO_USER = "demo-user"
OTHER_USER = "other-user"
ADDRESS = {"street": "2 Hillsborough St, Raleigh, NC", "lat": 35.7847, "lng": -78.6821}
ITEMS = [
    {"name": "Pad Thai", "quantity": 1, "price": 12.50},
    {"name": "Spring Rolls", "quantity": 2, "price": 4.25},
]


def _age(store, order, minutes):
    """Backdate an order so its progress bar is not at zero."""
    placed = datetime.now(timezone.utc) - timedelta(minutes=minutes)
    return store.update(order["ord_id"], {"date": placed.isoformat()})


def seed(store):
    created = []

    order = place_order(store, DEMO_USER, ITEMS, ADDRESS)
    created.append(order)

    order = _age(store, place_order(store, DEMO_USER, ITEMS, ADDRESS), 1.5)
    created.append(update_status(store, order["ord_id"], OrderStatus.OUT_FOR_DELIVERY))

    order = place_order(store, DEMO_USER, ITEMS, ADDRESS, payment=True)
    update_status(store, order["ord_id"], OrderStatus.OUT_FOR_DELIVERY)
    update_status(store, order["ord_id"], OrderStatus.DELIVERED)
    created.append(rate_order(store, DEMO_USER, order["ord_id"], 4, "Great"))

    order = place_order(store, DEMO_USER, ITEMS, ADDRESS)
    created.append(update_status(store, order["ord_id"], OrderStatus.CANCELLED))

    order = place_order(store, DEMO_USER, ITEMS, ADDRESS)
    update_status(store, order["ord_id"], OrderStatus.REDISTRIBUTE)
    created.append(update_status(store, order["ord_id"], OrderStatus.DONATED))

    order = place_order(store, OTHER_USER, ITEMS, ADDRESS, payment=True, user_name="Other User")
    update_status(store, order["ord_id"], OrderStatus.REDISTRIBUTE)
    created.append(claim_order(store, DEMO_USER, "Demo User", order["ord_id"], config.CLAIM_DISCOUNT_RATE))

    for o in created:
        print(f"✓ Order {o['ord_id']}: {o['status']} (user {o['user_id']}, {config.CURRENCY}{o['amount']:.2f})")
    return created


if __name__ == '__main__':
    db_path = os.path.abspath(config.DB_FILE)
    print(f"Seeding demo orders into: {db_path}")
    create_tables(db_path)
    seed(OrderStore(db_path))

    print("\nTokens:")
    print(f"  - {DEMO_USER}: {issue_token(DEMO_USER, name='Demo User')}")
    print(f"  - {OTHER_USER}: {issue_token(OTHER_USER, name='Other User')}")
    print(f"  - admin: {issue_token('admin', name='Admin', is_admin=True)}")
