import sqlite3
import threading
from datetime import datetime, UTC
from typing import Optional, List, Tuple

from ..exceptions import DatabaseError
from ..models import FileIdentity

class DBOperations:
    """
    Membership test and insert for copied file identities.
    Every write commits immediately so a record survives a crash right after the copy.
    """
    def __init__(self, conn: sqlite3.Connection, lock: Optional[threading.RLock] = None):
        self.conn = conn
        self.lock = lock or threading.RLock()

    def contains(self, identity: FileIdentity) -> bool:
        try:
            with self.lock:
                cur = self.conn.cursor()
                cur.execute(
                    """
                    SELECT 1 FROM copied_files
                    WHERE full_path = ? AND last_write_time_utc = ? AND length = ?
                    """,
                    (identity.full_path, identity.mtime_key, identity.length),
                )
                return cur.fetchone() is not None
        except sqlite3.Error as e:
            raise DatabaseError(f"Lookup failed for {identity.full_path}: {e}") from e

    def insert(self, identity: FileIdentity, target_path: Optional[str] = None) -> bool:
        """
        Records an identity as copied. Inserting an existing identity is a no-op.
        Returns True when a new row was written.
        """
        now_iso = datetime.now(UTC).isoformat()
        try:
            with self.lock:
                cur = self.conn.execute(
                    """
                    INSERT OR IGNORE INTO copied_files
                    (full_path, last_write_time_utc, length, target_path, copied_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (identity.full_path, identity.mtime_key, identity.length, target_path, now_iso),
                )
                self.conn.commit()
                return cur.rowcount == 1
        except sqlite3.Error as e:
            raise DatabaseError(f"Insert failed for {identity.full_path}: {e}") from e

    def reset(self) -> int:
        """Wipes the whole store. Returns the number of records removed."""
        try:
            with self.lock:
                cur = self.conn.execute("DELETE FROM copied_files")
                self.conn.commit()
                return cur.rowcount
        except sqlite3.Error as e:
            raise DatabaseError(f"Reset failed: {e}") from e

    def count(self) -> int:
        with self.lock:
            cur = self.conn.cursor()
            cur.execute("SELECT COUNT(*) FROM copied_files")
            return cur.fetchone()[0]

    def recent(self, limit: int = 20) -> List[Tuple[str, str, int, Optional[str], str]]:
        """Returns (full_path, last_write_time_utc, length, target_path, copied_at), newest first."""
        with self.lock:
            cur = self.conn.cursor()
            cur.execute(
                """
                SELECT full_path, last_write_time_utc, length, target_path, copied_at
                FROM copied_files
                ORDER BY id DESC
                LIMIT ?
                """,
                (limit,),
            )
            return cur.fetchall()

    def versions_of(self, full_path: str) -> List[Tuple[str, int, Optional[str], str]]:
        """Returns every recorded version of one source path as (mtime, length, target_path, copied_at)."""
        with self.lock:
            cur = self.conn.cursor()
            cur.execute(
                """
                SELECT last_write_time_utc, length, target_path, copied_at
                FROM copied_files
                WHERE full_path = ?
                ORDER BY id
                """,
                (full_path,),
            )
            return cur.fetchall()
