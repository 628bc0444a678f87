"""
db/init_db.py
-------------
Creates the PostgreSQL schema for the `postgres` store backend.
Each row holds the same JSON document the Firebase backend keeps under
`users/<lineUserId>`. Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import transaction
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- One document per LINE user: {"linkedUsers": {...}, "lastUpdated": <ms>}
CREATE TABLE IF NOT EXISTS identity_records (
    line_user_id    TEXT PRIMARY KEY,
    data            JSONB NOT NULL DEFAULT '{}'::jsonb,
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);
"""


def create_tables() -> None:
    """
    Create the identity_records table.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    try:
        with transaction() as cur:
            cur.execute(SCHEMA_SQL)
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        logger.error(f"Failed to initialize schema: {e}")
        raise


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("✅ Database schema created successfully.")
