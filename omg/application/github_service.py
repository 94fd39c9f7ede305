"""Application service for queries and one-off GitHub operations."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from omg.domain.commit import Commit
from omg.domain.errors import NotFoundError
from omg.domain.release import Release, ReleaseAsset
from omg.domain.repository import Repository, Star
from omg.domain.user import User
from omg.infrastructure.database import RepositoryStore
from omg.infrastructure.github_client import GitHubRestClient
from omg.infrastructure.trending import TrendingScraper

logger = logging.getLogger(__name__)


class GitHubService:
    """Reads from the local cache and performs the non-cached API calls."""

    def __init__(
        self,
        github_client: GitHubRestClient,
        database_repository: RepositoryStore,
        trending_scraper: Optional[TrendingScraper] = None,
    ):
        self.github_client = github_client
        self.database_repository = database_repository
        self.trending_scraper = trending_scraper or TrendingScraper()

    def query_repos(self, keyword: Optional[str] = None, language: Optional[str] = None) -> List[Repository]:
        return list(self.database_repository.query_repos(keyword, language))

    def query_stars(self, keyword: Optional[str] = None, language: Optional[str] = None) -> List[Star]:
        return list(self.database_repository.query_stars(keyword, language))

    def unstar(self, repo_id: int) -> str:
        """
        Unstar a repository on GitHub and drop its local star marker.

        The repository row stays in the store.

        Returns:
            Full name of the unstarred repository
        """
        full_name = self.database_repository.get_full_name(repo_id)
        logger.info(f"delete repo {full_name}")
        self.github_client.unstar(full_name)
        self.database_repository.delete_star(repo_id)
        return full_name

    def whoami(self, username: Optional[str] = None) -> User:
        return self.github_client.get_user(username)

    def query_commits(self, full_name: str, limit: int = 10) -> List[Commit]:
        return self.github_client.get_commits(full_name, limit)

    def query_releases(self, full_name: str, limit: int = 10) -> List[Release]:
        return self.github_client.get_releases(full_name, limit)

    def query_trending(self, language: str = "", since: str = "daily") -> List[Repository]:
        html = self.github_client.get_trending_html(language, since)
        return self.trending_scraper.parse(html)

    def download(self, url: str, filename: str):
        self.github_client.download(url, filename)

    def download_release_assets(
        self,
        full_name: str,
        output_dir: str,
        tag_name: Optional[str] = None,
        max_workers: int = 1,
    ) -> List[str]:
        """
        Download every asset of a release into ``output_dir``.

        Args:
            full_name: owner/repo
            output_dir: Directory the assets are written to
            tag_name: Release tag; the latest release when None
            max_workers: Parallel downloads

        Returns:
            Paths of the downloaded files

        Raises:
            NotFoundError: If the repository has no matching release
        """
        releases = self.github_client.get_releases(full_name, limit=1 if tag_name is None else 100)
        if tag_name is not None:
            releases = [release for release in releases if release.tag_name == tag_name]
        if not releases:
            raise NotFoundError(f"no release {tag_name or 'latest'} for {full_name}")

        release = releases[0]
        assets = [asset for asset in release.assets if asset.download_url and asset.name]
        if not assets:
            logger.info(f"Release {release.tag_name} of {full_name} has no assets")
            return []

        os.makedirs(output_dir, exist_ok=True)

        def fetch(asset: ReleaseAsset) -> str:
            path = os.path.join(output_dir, os.path.basename(asset.name))
            self.github_client.download(asset.download_url, path)
            return path

        logger.info(f"Downloading {len(assets)} assets of {full_name}@{release.tag_name}")
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            return list(executor.map(fetch, assets))
