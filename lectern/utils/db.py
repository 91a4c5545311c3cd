import os
import sqlite3

from lectern.core import config


def get_db(path: str = None):
    """
    Return a sqlite3 connection to the shared document DB.
    """
    path = path or config.SHARED_DB_PATH
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path, timeout=10)
    conn.row_factory = sqlite3.Row
    return conn
