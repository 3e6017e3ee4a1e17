"""
Migration script to create the Order document table.

This migration adds:
- "Order" table holding each order as a JSON document in `details`
- usr_id and status columns mirrored from the document
- Database indexes for per-user listing and status filters
"""

import os
import sqlite3
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sqlQueries import ORDER_TABLE_SQL, ORDER_INDEX_SQL  # noqa: E402


def get_db_path():
    """Get the path to the database file."""
    db_file = os.environ.get('DB_FILE') or os.path.join(os.path.dirname(__file__), '..', 'orders.db')
    return os.path.abspath(db_file)


def create_order_table(conn):
    """Create the Order table unless it already exists."""
    cursor = conn.cursor()
    cursor.execute("""
        SELECT name FROM sqlite_master
        WHERE type='table' AND name='Order'
    """)
    if cursor.fetchone():
        print("⚠ Order table already exists. Skipping table creation.")
        return False

    cursor.execute(ORDER_TABLE_SQL)
    print("✓ Order table created successfully")
    return True


def create_indexes(conn):
    cursor = conn.cursor()
    for stmt in ORDER_INDEX_SQL:
        cursor.execute(stmt)
    print("✓ Indexes created: idx_order_usr_id, idx_order_status")


def run_migration(db_path=None):
    db_path = db_path or get_db_path()
    print(f"Running migration on: {db_path}")

    conn = sqlite3.connect(db_path)
    try:
        create_order_table(conn)
        create_indexes(conn)
        conn.commit()
        print("✓ Migration completed")
        return True
    except sqlite3.Error as e:
        conn.rollback()
        print(f"✗ Migration failed: {e}")
        return False
    finally:
        conn.close()


if __name__ == '__main__':
    sys.exit(0 if run_migration() else 1)
