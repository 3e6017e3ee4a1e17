import logging
import sqlite3

logger = logging.getLogger(__name__)

# Order documents live in `details` as JSON; usr_id and status are mirrored
# into their own columns so listing and admin filters can use the indexes.
ORDER_TABLE_SQL = '''
    CREATE TABLE IF NOT EXISTS "Order" (
        ord_id INTEGER PRIMARY KEY AUTOINCREMENT,
        usr_id TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'Food Processing',
        details TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
'''

ORDER_INDEX_SQL = [
    'CREATE INDEX IF NOT EXISTS idx_order_usr_id ON "Order"(usr_id)',
    'CREATE INDEX IF NOT EXISTS idx_order_status ON "Order"(status)',
]


def create_connection(db_file: str):
    """
    Create and return a connection to the specified SQLite database.
    Args:
        db_file (str): Path to the SQLite database file.
    Returns:
        sqlite3.Connection: Connection object.
    Raises:
        sqlite3.Error: Logged, then re-raised when the file cannot be opened.
    """
    try:
        return sqlite3.connect(db_file)
    except sqlite3.Error as e:
        logger.error("Could not open %s: %s", db_file, e)
        raise


def close_connection(conn):
    """
    Close an existing SQLite database connection.
    Args:
        conn (sqlite3.Connection): Connection object to close.
    Returns:
        None
    """
    if conn:
        conn.close()


def execute_query(conn, query: str, params=()):
    """
    Execute a single SQL query with optional parameters and commit.
    Args:
        conn (sqlite3.Connection): Active database connection.
        query (str): SQL query string to execute.
        params (tuple, optional): Parameters to safely substitute into the query.
    Returns:
        sqlite3.Cursor: Cursor of the executed statement.
    Raises:
        sqlite3.Error: Logged, then re-raised so callers never act on a failed write.
    """
    try:
        cur = conn.cursor()
        cur.execute(query, params)
        conn.commit()
        return cur
    except sqlite3.Error as e:
        logger.error("Query failed: %s", e)
        raise


def fetch_all(conn, query: str, params=()):
    """
    Execute a query and return all fetched rows.
    Args:
        conn (sqlite3.Connection): Active database connection.
        query (str): SQL query string to execute.
        params (tuple, optional): Parameters to safely substitute into the query.
    Returns:
        list: A list of result rows (each as a tuple).
    """
    return execute_query(conn, query, params).fetchall()


def fetch_one(conn, query: str, params=()):
    """
    Execute a query and return the first result row.
    Args:
        conn (sqlite3.Connection): Active database connection.
        query (str): SQL query string to execute.
        params (tuple, optional): Parameters to safely substitute into the query.
    Returns:
        tuple | None: The first row as a tuple, or None if no result.
    """
    return execute_query(conn, query, params).fetchone()


def create_tables(db_file: str):
    """
    Create the order document table and its indexes if they are missing.
    Args:
        db_file (str): Path to the SQLite database file.
    Returns:
        None
    """
    conn = create_connection(db_file)
    try:
        execute_query(conn, ORDER_TABLE_SQL)
        for stmt in ORDER_INDEX_SQL:
            execute_query(conn, stmt)
    finally:
        close_connection(conn)
