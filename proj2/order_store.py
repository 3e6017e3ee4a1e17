"""
Persistence for order documents.

The store is a passive gatekeeper: every write goes through
``models.validate_order`` and either lands in the ``"Order"`` table or
raises ``ValidationError``. Business rules (who may cancel, when a rating
is allowed) live in ``order_service``.
"""
import json
import logging

from models import validate_order
from sqlQueries import create_connection, close_connection, execute_query, fetch_one, fetch_all

logger = logging.getLogger(__name__)


class OrderNotFound(Exception):
    status_code = 404

    def __init__(self, ord_id):
        super().__init__(f"Order {ord_id} not found")
        self.ord_id = ord_id
        self.message = str(self)


def _row_to_order(row):
    ord_id, details = row
    doc = json.loads(details)
    doc['ord_id'] = ord_id
    return doc


class OrderStore:
    """SQLite-backed document store for orders."""

    def __init__(self, db_file: str):
        self.db_file = db_file

    def save(self, record):
        """
        Validate and insert a new order document.
        Args:
            record (dict): Candidate order; ``ord_id`` is ignored if present.
        Returns:
            dict: The stored document including its new ``ord_id``.
        """
        doc = validate_order({k: v for k, v in record.items() if k != 'ord_id'})
        conn = create_connection(self.db_file)
        try:
            cur = execute_query(conn, '''
                INSERT INTO "Order" (usr_id, status, details)
                VALUES (?, ?, ?)
            ''', (doc['user_id'], doc['status'], json.dumps(doc)))
            doc['ord_id'] = cur.lastrowid
        finally:
            close_connection(conn)
        logger.info("Stored order %s for user %s", doc['ord_id'], doc['user_id'])
        return doc

    def get(self, ord_id):
        conn = create_connection(self.db_file)
        try:
            row = fetch_one(conn, 'SELECT ord_id, details FROM "Order" WHERE ord_id = ?', (ord_id,))
        finally:
            close_connection(conn)
        return _row_to_order(row) if row else None

    def update(self, ord_id, changes):
        """
        Merge ``changes`` into an existing order and write it back.

        The read and the write happen in one ``BEGIN IMMEDIATE`` transaction,
        so no other writer can slip in between. ``changes`` may be a dict or
        a callable that receives the freshly read document and returns the
        dict to merge; raising from the callable aborts the update. The
        merged document is re-validated as a whole.
        Args:
            ord_id (int): Order identifier.
            changes (dict | callable): Fields to set, or a function producing them.
        Returns:
            dict: The updated document.
        Raises:
            OrderNotFound: If no order has this id.
            ValidationError: If the merged document is invalid.
        """
        conn = create_connection(self.db_file)
        try:
            conn.execute('BEGIN IMMEDIATE')
            row = conn.execute('SELECT ord_id, details FROM "Order" WHERE ord_id = ?', (ord_id,)).fetchone()
            if row is None:
                raise OrderNotFound(ord_id)
            current = _row_to_order(row)
            if callable(changes):
                changes = changes(dict(current))
            current.pop('ord_id', None)
            current.update(changes)
            doc = validate_order(current)
            conn.execute('''
                UPDATE "Order"
                SET usr_id = ?, status = ?, details = ?, updated_at = CURRENT_TIMESTAMP
                WHERE ord_id = ?
            ''', (doc['user_id'], doc['status'], json.dumps(doc), row[0]))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            close_connection(conn)
        doc['ord_id'] = row[0]
        return doc

    def list_for_user(self, user_id):
        """Orders currently owned by ``user_id``, newest first."""
        conn = create_connection(self.db_file)
        try:
            rows = fetch_all(conn, '''
                SELECT ord_id, details FROM "Order"
                WHERE usr_id = ?
                ORDER BY ord_id DESC
            ''', (user_id,))
        finally:
            close_connection(conn)
        return [_row_to_order(r) for r in rows]

    def list_all(self, status=None):
        conn = create_connection(self.db_file)
        try:
            if status is None:
                rows = fetch_all(conn, 'SELECT ord_id, details FROM "Order" ORDER BY ord_id DESC')
            else:
                rows = fetch_all(conn, '''
                    SELECT ord_id, details FROM "Order"
                    WHERE status = ?
                    ORDER BY ord_id DESC
                ''', (status,))
        finally:
            close_connection(conn)
        return [_row_to_order(r) for r in rows]
