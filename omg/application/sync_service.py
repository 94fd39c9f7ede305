"""Application service for syncing GitHub repositories and stars into the local store."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, TypeVar

from omg.config import PER_PAGE
from omg.infrastructure.database import BatchResult, RepositoryStore
from omg.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SyncResult:
    """Totals for one sync run."""

    pages: int
    synced: int
    failed: int


class SyncService:
    """Service for paging through GitHub listings and storing them in the database."""

    def __init__(
        self,
        github_client: GitHubRestClient,
        database_repository: RepositoryStore,
        page_size: int = PER_PAGE,
        max_pages: Optional[int] = None,
    ):
        """
        Initialize sync service.

        Args:
            github_client: GitHub API client
            database_repository: Local store for repositories and stars
            page_size: Entities requested per page; a shorter page is the last one
            max_pages: Default cap on pages fetched per sync, None for no cap
        """
        self.github_client = github_client
        self.database_repository = database_repository
        self.page_size = page_size
        self.max_pages = max_pages

    def _paginate(
        self,
        kind: str,
        fetch_page: Callable[[int, int], List[T]],
        save_page: Callable[[Sequence[T]], BatchResult],
        max_pages: Optional[int],
    ) -> SyncResult:
        """
        Fetch, map and persist pages until a short page or the page cap.

        Errors from fetching or saving a page propagate immediately; pages
        saved before the failure stay committed.
        """
        if max_pages is None:
            max_pages = self.max_pages

        page_num = 1
        synced = 0
        failed = 0

        while max_pages is None or page_num <= max_pages:
            items = fetch_page(page_num, self.page_size)
            result = save_page(items)
            synced += result.saved
            failed += result.failed

            logger.info(f"Synced {kind} page {page_num}: {len(items)} fetched, {result.failed} failed")

            if len(items) < self.page_size:
                break
            page_num += 1
        else:
            logger.info(f"Reached page cap ({max_pages}) while syncing {kind}")
            page_num -= 1

        logger.info(f"{kind.capitalize()} sync completed. {synced} stored, {failed} failed over {page_num} pages")
        return SyncResult(pages=page_num, synced=synced, failed=failed)

    def sync_repos(self, max_pages: Optional[int] = None) -> SyncResult:
        """Sync the authenticated user's own repositories."""
        return self._paginate(
            "repos",
            self.github_client.fetch_repos_page,
            self.database_repository.save_my_repos,
            max_pages,
        )

    def sync_stars(self, max_pages: Optional[int] = None) -> SyncResult:
        """Sync the authenticated user's starred repositories."""
        return self._paginate(
            "stars",
            self.github_client.fetch_stars_page,
            self.database_repository.save_my_stars,
            max_pages,
        )
