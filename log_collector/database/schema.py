"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the core schema to the database.
    Idempotent: safe to run on every startup.
    """
    with conn:
        # 1. Version Tracking (For future migrations)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. Copied Files
        # One row per (path, mtime, size) version that reached the target.
        # The UNIQUE constraint is what makes concurrent inserts idempotent.
        conn.execute("""
        CREATE TABLE IF NOT EXISTS copied_files (
            id                  INTEGER PRIMARY KEY AUTOINCREMENT,
            full_path           TEXT NOT NULL,
            last_write_time_utc TEXT NOT NULL,
            length              INTEGER NOT NULL,
            target_path         TEXT,
            copied_at           TEXT NOT NULL,
            UNIQUE(full_path, last_write_time_utc, length)
        );
        """)

        conn.execute("CREATE INDEX IF NOT EXISTS idx_copied_files_path ON copied_files(full_path);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_copied_files_copied_at ON copied_files(copied_at);")

    logging.debug("Database schema initialized.")
