import pytest

import Flask_app
from auth import issue_token
from models import OrderStatus
from notifications import NotificationChannel
from order_store import OrderStore
from sqlQueries import create_tables

ADDRESS = {"street": "1 Main St", "lat": 35.78, "lng": -78.64}


@pytest.fixture()
def temp_db_path(tmp_path):
    """Fresh SQLite file with the Order table created."""
    path = str(tmp_path / "orders_test.db")
    create_tables(path)
    return path


@pytest.fixture()
def store(temp_db_path):
    return OrderStore(temp_db_path)


@pytest.fixture()
def app(temp_db_path, monkeypatch):
    monkeypatch.setattr(Flask_app, "db_file", temp_db_path)
    monkeypatch.setattr(Flask_app, "channel", NotificationChannel())
    Flask_app.app.config.update(TESTING=True)
    return Flask_app.app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def user_token(app):
    return issue_token("U1", name="Alice", secret=app.config["SECRET_KEY"])


@pytest.fixture()
def other_token(app):
    return issue_token("U2", name="Bob", secret=app.config["SECRET_KEY"])


@pytest.fixture()
def admin_token(app):
    return issue_token("admin", name="Admin", is_admin=True, secret=app.config["SECRET_KEY"])


def make_order(**overrides):
    """Plain order document; persisted only if passed to a store."""
    order = {
        "user_id": "U1",
        "items": [{"name": "Burrito", "quantity": 2, "price": 10.0}],
        "amount": 20.0,
        "address": dict(ADDRESS),
    }
    order.update(overrides)
    return order


@pytest.fixture()
def seed_orders(store):
    """
    One order per status for U1 plus a redistributed order owned by U2.
    Returns a dict status -> stored order.
    """
    out = {}
    for status in OrderStatus.VALID_STATUSES:
        out[status] = store.save(make_order(status=status))
    out["other_redistribute"] = store.save(make_order(user_id="U2", status=OrderStatus.REDISTRIBUTE, amount=50.0))
    return out
