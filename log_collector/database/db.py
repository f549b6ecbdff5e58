"""
Database connection management.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional

from .schema import init_schema

class DBManager:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        # The watcher pool and the rescan timer share one connection;
        # every statement goes through this lock.
        self._lock = threading.RLock()

    def connect(self) -> sqlite3.Connection:
        """
        Connects to the SQLite database, creating the file and schema if absent.
        """
        with self._lock:
            if self._conn:
                return self._conn

            if str(self.db_path) != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            logging.info(f"Connecting to database: {self.db_path}")
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)

            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn.execute("PRAGMA busy_timeout=5000;")

            init_schema(self._conn)

            return self._conn

    def close(self):
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def lock(self) -> threading.RLock:
        """Returns the lock serializing access to the shared connection."""
        return self._lock
