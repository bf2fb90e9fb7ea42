import os
import sqlite3
from typing import Dict, List, Optional

from .config import settings


def db_path() -> str:
    return os.path.join(settings.DB_DIR, settings.DB_FILE)


def get_db_connection():
    """Opens the event log database with name-addressable rows."""
    conn = sqlite3.connect(db_path())
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Creates the database directory and the ``logs`` table."""
    os.makedirs(settings.DB_DIR, exist_ok=True)
    conn = get_db_connection()
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT,
                logger TEXT,
                message TEXT
            );
        """
        )
    conn.close()


def recent_logs(limit: int = 50, level: Optional[str] = None) -> List[Dict[str, str]]:
    """Newest log rows first, optionally only one level."""
    query = "SELECT timestamp, level, logger, message FROM logs"
    params: tuple = ()
    if level:
        query += " WHERE level = ?"
        params = (level.upper(),)
    query += " ORDER BY id DESC LIMIT ?"
    conn = get_db_connection()
    try:
        rows = conn.execute(query, params + (limit,)).fetchall()
    finally:
        conn.close()
    return [dict(row) for row in rows]
