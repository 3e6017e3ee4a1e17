import argparse

from flask import Flask, jsonify, request

import config
from auth import AuthError, verify_token
from models import ValidationError
from notifications import NotificationChannel
from order_service import (
    OrderError,
    cancel_order,
    claim_order,
    list_claimable_orders,
    list_user_orders,
    place_order,
    rate_order,
    update_status,
)
from order_store import OrderNotFound, OrderStore
from sqlQueries import create_tables

app = Flask(__name__)
app.config['SECRET_KEY'] = config.SECRET_KEY

db_file = config.DB_FILE

# Cancellation events for in-process subscribers (e.g. MyOrders components)
channel = NotificationChannel()

# ---------------------- Helpers ----------------------

def _store() -> OrderStore:
    return OrderStore(db_file)


def _token() -> str:
    """
    Read the bearer token from the `token` header, or `Authorization: Bearer`.
    Returns:
        str: Raw token, empty if none was sent.
    """
    token = request.headers.get('token')
    if token:
        return token
    auth = request.headers.get('Authorization') or ''
    if auth.startswith('Bearer '):
        return auth[len('Bearer '):]
    return ''


def _claims() -> dict:
    return verify_token(_token(), app.config['SECRET_KEY'])


def _payload() -> dict:
    if not request.is_json:
        raise ValidationError('body', 'Request must be JSON')
    return request.get_json(silent=True) or {}


def _order_id(payload) -> int:
    try:
        ord_id = int(payload.get('orderId') or 0)
    except (ValueError, TypeError):
        ord_id = 0
    if ord_id <= 0:
        raise ValidationError('orderId', 'Invalid order ID')
    return ord_id


def _ok(data=None, message=None, status=200):
    body = {'success': True}
    if message:
        body['message'] = message
    if data is not None:
        body['data'] = data
    return jsonify(body), status


@app.errorhandler(AuthError)
@app.errorhandler(ValidationError)
@app.errorhandler(OrderNotFound)
@app.errorhandler(OrderError)
def _handle_order_error(e):
    app.logger.info("%s: %s", type(e).__name__, e)
    return jsonify({'success': False, 'message': str(e)}), e.status_code

# ---------------------- Order API ----------------------

@app.route('/api/order/place', methods=['POST'])
def api_place_order():
    """
    Place an order for the token's user.
    Request Body:
        {"items": [{"name": str, "quantity": int, "price": float}], "address": {...}, "payment": bool}
    Returns:
        Response: 201 with the stored order.
    """
    claims = _claims()
    payload = _payload()
    order = place_order(
        _store(),
        claims['id'],
        payload.get('items'),
        payload.get('address'),
        payment=payload.get('payment', False),
        user_name=claims.get('name'),
    )
    return _ok(order, status=201)


@app.route('/api/order/userorders', methods=['POST'])
def api_user_orders():
    """List the orders currently owned by the token's user, newest first."""
    claims = _claims()
    return _ok(list_user_orders(_store(), claims['id']))


@app.route('/api/order/cancel_order', methods=['POST'])
def api_cancel_order():
    """
    Cancel one of the caller's orders.
    Request Body:
        {"orderId": int}
    Returns:
        Response: {"success": true, "message": "Order cancelled"} or an error envelope.
    """
    claims = _claims()
    ord_id = _order_id(_payload())
    cancel_order(_store(), claims['id'], ord_id, channel=channel)
    return _ok(message='Order cancelled')


@app.route('/api/order/rate', methods=['POST'])
def api_rate_order():
    """
    Rate a delivered order once.
    Request Body:
        {"orderId": int, "rating": 1-5, "feedback": str (optional, max 500)}
    Returns:
        Response: The updated order.
    """
    claims = _claims()
    payload = _payload()
    order = rate_order(_store(), claims['id'], _order_id(payload), payload.get('rating'), payload.get('feedback'))
    return _ok(order, message='Thanks for your feedback')


@app.route('/api/order/redistribute', methods=['GET'])
def api_claimable_orders():
    """Orders in Redistribute the caller may claim."""
    claims = _claims()
    return _ok(list_claimable_orders(_store(), claims['id']))


@app.route('/api/order/claim', methods=['POST'])
def api_claim_order():
    """
    Claim a redistributed order at the configured discount.
    Request Body:
        {"orderId": int}
    Returns:
        Response: The order as now owned by the caller.
    """
    claims = _claims()
    ord_id = _order_id(_payload())
    order = claim_order(_store(), claims['id'], claims.get('name'), ord_id, config.CLAIM_DISCOUNT_RATE)
    return _ok(order, message='Order claimed')

# ---------------------- Admin ----------------------

@app.route('/admin/update_status', methods=['POST'])
def admin_update_status():
    """
    Move an order along the status workflow.

    Request Body:
        {
            "ord_id": int,
            "new_status": str
        }

    Response Body (Success):
        {
            "success": true,
            "data": {order}
        }

    Response Body (Error):
        {
            "success": false,
            "message": str
        }
    """
    claims = _claims()
    if not claims.get('admin'):
        return jsonify({'success': False, 'message': 'forbidden'}), 403

    payload = _payload()
    try:
        ord_id = int(payload.get('ord_id') or 0)
    except (ValueError, TypeError):
        ord_id = 0
    if ord_id <= 0:
        raise ValidationError('ord_id', 'Invalid order ID')

    new_status = payload.get('new_status')
    if not new_status:
        raise ValidationError('new_status', 'Missing new_status parameter')

    order = update_status(_store(), ord_id, new_status, channel=channel)
    return _ok(order)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Order service for the food ordering app")
    parser.add_argument('--host', type=str, default='127.0.0.1', help='Host to run the Flask app on')
    parser.add_argument('--port', type=int, default=5000, help='Port to run the Flask app on')
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_args()
    create_tables(db_file)
    app.run(host=args.host, port=args.port)
