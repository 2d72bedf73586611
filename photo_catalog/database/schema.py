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

        # Initialize version if missing
        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. Photo Catalog (append-only)
        # One row per file per scan; hashes and paths repeat freely.
        conn.execute("""
        CREATE TABLE IF NOT EXISTS photos (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            file_path       TEXT NOT NULL,
            content_hash    TEXT NOT NULL,
            captured_at     TEXT,                 -- ISO-8601, naive (camera local time)
            camera_model    TEXT,
            indexed_at      TEXT NOT NULL         -- ISO-8601, UTC
        );
        """)

        # 3. Indices for Lookups
        conn.execute("CREATE INDEX IF NOT EXISTS idx_photos_content_hash ON photos(content_hash);")
        # Expression index so date(captured_at) = ? does not full-scan
        conn.execute("CREATE INDEX IF NOT EXISTS idx_photos_captured_date ON photos(date(captured_at));")

    logging.debug("Database schema initialized.")
