#!/usr/bin/env python3
"""Script to initialize the PostgreSQL key-value store schema."""

import logging
import sys
import os

# Add the project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from repo_ranker.config import load_settings
from repo_ranker.infrastructure.storage import PostgresKeyValueStore

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Initialize key-value store schema."""
    try:
        store = PostgresKeyValueStore(load_settings().postgres_dsn)
        store.connect()
        store.initialize_schema()
        store.close()
        logger.info("Key-value store schema setup completed successfully")
        return 0
    except Exception as e:
        logger.error(f"Failed to setup key-value store schema: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
