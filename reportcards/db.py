import logging

import mysql.connector
from flask import current_app

logger = logging.getLogger(__name__)


class DBCursor:
    """mysql.connector cursor usable as a context manager."""
    def __init__(self, cursor):
        self._cursor = cursor

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __getattr__(self, name):
        return getattr(self._cursor, name)

    def close(self):
        try:
            self._cursor.close()
        except mysql.connector.Error as e:
            logger.warning(f"Failed to close cursor: {e}")


class DBConnection:
    """mysql.connector connection that rolls back and closes on ``with`` exit.

    ``cursor()`` hands out ``DBCursor`` wrappers so cursors can be used in
    ``with`` blocks too.
    """
    def __init__(self, conn):
        self._conn = conn

    def cursor(self, *args, **kwargs):
        return DBCursor(self._conn.cursor(*args, **kwargs))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type:
                self._conn.rollback()
        except mysql.connector.Error as e:
            logger.warning(f"Rollback failed: {e}")
        finally:
            self.close()

    def __getattr__(self, name):
        return getattr(self._conn, name)

    def close(self):
        try:
            self._conn.close()
        except mysql.connector.Error as e:
            logger.warning(f"Failed to close connection: {e}")


def get_db_connection():
    """Open a MySQL connection from the app config, wrapped in DBConnection."""
    connection = mysql.connector.connect(
        host=current_app.config['MYSQL_HOST'],
        user=current_app.config['MYSQL_USER'],
        password=current_app.config['MYSQL_PASSWORD'],
        database=current_app.config['MYSQL_DATABASE']
    )
    return DBConnection(connection)


def fetch_one(query, params=()):
    """Run a single-row query and return it as a dict (or None)."""
    with get_db_connection() as connection:
        with connection.cursor(dictionary=True) as cursor:
            cursor.execute(query, params)
            return cursor.fetchone()
