# create_tables.py
import argparse
import logging

from app.database import Base, engine
import app.models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)

def create_tables(drop_existing: bool = False):
    """Create all tables, optionally dropping the existing ones first"""
    if drop_existing:
        Base.metadata.drop_all(bind=engine)
        logger.info("Dropped existing tables")

    Base.metadata.create_all(bind=engine)
    logger.info(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the task board database tables")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    create_tables(drop_existing=args.drop)
