#!/usr/bin/env python3
"""Script to initialize the local SQLite database schema."""

import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from omg.config import Settings
from omg.domain.errors import StoreError
from omg.infrastructure.database import RepositoryStore

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Initialize database schema."""
    try:
        settings = Settings.from_env()
        with RepositoryStore(settings.db_path) as db_repo:
            db_repo.initialize_schema()
        logger.info(f"Database schema setup completed successfully at {settings.db_path}")
        return 0
    except StoreError as e:
        logger.error(f"Failed to setup database schema: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
