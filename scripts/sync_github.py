#!/usr/bin/env python3
"""Script to sync the user's GitHub repositories and stars into the local store."""

import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from omg.config import Settings
from omg.domain.errors import OmgError
from omg.infrastructure.github_client import GitHubRestClient
from omg.infrastructure.database import RepositoryStore
from omg.application.sync_service import SyncService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Sync GitHub repositories and stars into the database."""
    settings = Settings.from_env()
    if not settings.github_token:
        logger.error("GITHUB_TOKEN not found. Syncing your repositories and stars needs a token.")
        return 1

    try:
        with GitHubRestClient(
            token=settings.github_token,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
        ) as github_client, RepositoryStore(settings.db_path) as db_repository:
            # Ensure schema is initialized
            db_repository.initialize_schema()

            syncer = SyncService(
                github_client,
                db_repository,
                page_size=settings.page_size,
                max_pages=settings.max_pages,
            )
            repos = syncer.sync_repos()
            stars = syncer.sync_stars()

            logger.info(
                f"Sync completed. {repos.synced} repos and {stars.synced} stars stored "
                f"({repos.failed + stars.failed} rows skipped). "
                f"Total repositories in database: {db_repository.get_repository_count()}"
            )
        return 0

    except OmgError as e:
        logger.error(f"Sync failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
