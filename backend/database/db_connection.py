"""
PostgreSQL connection helper.
Provides get_db() and the PostgresStore base used by the service stores.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

import psycopg2
from psycopg2.extras import DictCursor


def get_db(database_url: str):
    """
    Returns a new psycopg2 connection with dictionary-based row access.

    Usage:
        conn = get_db(settings.database_url)
        with conn:
            with conn.cursor() as cur:
                cur.execute(...)

    Returns:
        psycopg2.extensions.connection: A connection object with DictCursor factory.

    Raises:
        psycopg2.Error: If connection fails.
    """
    try:
        conn = psycopg2.connect(database_url)

        # Rows behave like dicts (e.g., {"user_id": 1, "email": "..."})
        conn.cursor_factory = DictCursor
        return conn
    except psycopg2.Error as e:
        logging.error(f"Error connecting to database: {e}")
        raise


class PostgresStore:
    """
    Base class for stores backed by PostgreSQL.

    Every operation runs in its own connection and transaction; nothing is
    shared between requests.
    """

    def __init__(self, database_url: str, connect: Optional[Callable] = None):
        self.database_url = database_url
        self._connect = connect or get_db

    @contextmanager
    def cursor(self) -> Iterator:
        """
        Yield a cursor inside a transaction.

        The transaction commits when the block exits cleanly and rolls back on
        error; the connection is always closed.
        """
        conn = self._connect(self.database_url)
        try:
            with conn:
                with conn.cursor() as cur:
                    yield cur
        finally:
            conn.close()
