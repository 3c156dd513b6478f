# backend\dal\init_db.py
# Database Initialization Script: Creates the SQLite database and initializes tables using schema.sql.

import logging
import os
import sqlite3

from backend.config import BASE_DIR, get_db_path

logger = logging.getLogger("InitDB")

SCHEMA_PATH = os.path.join(BASE_DIR, 'database', 'schema.sql')


def init_db(db_path=None, schema_path=SCHEMA_PATH):
    db_path = db_path or get_db_path()
    logger.info(f"Initializing SQLite database at: {db_path}")

    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        with open(schema_path, 'r') as f:
            conn.executescript(f.read())
        conn.commit()
    finally:
        conn.close()
    logger.info("SQLite database initialized and tables created.")
    return db_path


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    init_db()
