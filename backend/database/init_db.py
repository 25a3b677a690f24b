"""
Apply schema.sql to the configured database and check the result.

Usage:
    python -m backend.database.init_db
"""

import os
import sys

from backend.config import Settings
from backend.database.db_connection import get_db

SCHEMA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "schema.sql")
TABLES = ["users", "events"]


def init_db(database_url: str) -> None:
    """
    Create the tables and indexes if they do not exist yet.

    Raises:
        psycopg2.Error: If the schema cannot be applied.
    """
    with open(SCHEMA_PATH, encoding="utf-8") as f:
        schema = f.read()

    conn = get_db(database_url)
    try:
        with conn:
            with conn.cursor() as cur:
                cur.execute(schema)

                print("Checking if critical tables exist...")
                for t in TABLES:
                    cur.execute("SELECT to_regclass(%s);", (t,))
                    exists = cur.fetchone()[0]
                    print(f" - {t}: {'Found' if exists else 'MISSING'}")
    finally:
        conn.close()


def main() -> int:
    settings = Settings.from_env()
    if not settings.database_url:
        print("Error: DATABASE_URL is not set. Please set the environment variable.")
        return 1

    print("--- Applying database schema ---")
    init_db(settings.database_url)
    print("Schema applied successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
