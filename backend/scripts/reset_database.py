#!/usr/bin/env python3
"""
Drop and recreate every table of the invoice processor.

Clears the transaction history, learned account mappings, the chart-of-accounts
cache, saved Zoho settings, the activity log and staged imports.

Usage:
    python scripts/reset_database.py [--yes] [--keep-settings]
"""

import argparse
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Load environment variables from .env file if it exists
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

from sqlalchemy import text
from app.database import engine, Base, SessionLocal
from app.models import AppSetting
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _row_counts():
    counts = {}
    with engine.connect() as conn:
        for table in Base.metadata.sorted_tables:
            try:
                counts[table.name] = conn.execute(text(f"SELECT COUNT(*) FROM {table.name}")).scalar()
            except Exception:
                counts[table.name] = None  # Table not created yet
                conn.rollback()
    return counts


def reset_database(assume_yes: bool = False, keep_settings: bool = False):
    counts = _row_counts()
    logger.warning(f"Resetting database: {engine.url.render_as_string(hide_password=True)}")
    for table, count in counts.items():
        logger.warning(f"  {table}: {'missing' if count is None else f'{count} rows'}")

    if not assume_yes:
        response = input("Delete ALL of this data? (yes/no): ")
        if response.lower() != "yes":
            logger.info("Aborted.")
            return

    saved_settings = []
    if keep_settings and counts.get(AppSetting.__tablename__):
        db = SessionLocal()
        try:
            saved_settings = [(row.key, row.value) for row in db.query(AppSetting).all()]
        finally:
            db.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with engine.connect() as conn:
        conn.execute(text("DROP TABLE IF EXISTS alembic_version"))
        conn.commit()

    if saved_settings:
        db = SessionLocal()
        try:
            db.add_all(AppSetting(key=key, value=value) for key, value in saved_settings)
            db.commit()
        finally:
            db.close()
        logger.info(f"Restored {len(saved_settings)} integration settings")

    logger.info("Database reset complete. Run 'alembic stamp head' to mark the schema as migrated.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Drop and recreate all tables")
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    parser.add_argument("--keep-settings", action="store_true", help="Keep the saved Zoho Books settings")
    args = parser.parse_args()
    reset_database(assume_yes=args.yes, keep_settings=args.keep_settings)
