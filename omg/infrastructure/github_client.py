"""GitHub REST API client with retry logic and buffered responses."""

import time
import logging
import os
from typing import List, Optional, Dict, Any, Tuple
import requests

from omg.config import (
    ACCEPT,
    API_ROOT,
    CONTENT_TYPE,
    TRENDING_ROOT,
    USER_AGENT,
)
from omg.domain.commit import Commit
from omg.domain.errors import (
    AuthenticationError,
    DecodeError,
    InternalError,
    NotFoundError,
    RateLimitExceeded,
    TransportError,
)
from omg.domain.release import Release
from omg.domain.repository import Repository, Star
from omg.domain.user import User
from omg.infrastructure.mappers import (
    commit_from_json,
    release_from_json,
    repo_from_json,
    star_from_json,
    user_from_json,
)
from omg.infrastructure.response_buffer import DEFAULT_MAX_SIZE, ResponseBuffer

logger = logging.getLogger(__name__)

NO_CONTENT = 204
NOT_MODIFIED = 304


class GitHubRestClient:
    """Client for the GitHub REST API and the public trending page."""

    RETRY_DELAY_SECONDS = 1
    CHUNK_SIZE = 16 * 1024

    def __init__(
        self,
        token: Optional[str] = None,
        api_root: str = API_ROOT,
        timeout: int = 30,
        max_retries: int = 3,
        max_response_size: int = DEFAULT_MAX_SIZE,
    ):
        """
        Initialize GitHub REST client.

        Args:
            token: GitHub personal access token. If None, uses GITHUB_TOKEN env var.
            api_root: Base URL of the REST API
            timeout: Per-request timeout in seconds
            max_retries: Attempts made for connection errors and timeouts
            max_response_size: Largest response body accepted, in bytes
        """
        if token is None:
            token = os.getenv("GITHUB_TOKEN")

        self.token = token
        self.api_root = api_root.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.max_response_size = max_response_size
        self.headers = {
            "Content-Type": CONTENT_TYPE,
            "Accept": ACCEPT,
            "User-Agent": USER_AGENT,
        }

        # Add authorization header if token is available
        if self.token:
            self.headers["Authorization"] = f"token {self.token}"

        self.session = requests.Session()
        self.session.headers.update(self.headers)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _perform(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        session: Optional[requests.Session] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, ResponseBuffer, Dict[str, str]]:
        """
        Issue a request and buffer the whole body, retrying transient failures.

        Returns:
            Tuple of (status code, buffered body, response headers)

        Raises:
            TransportError: If the request fails after retries
            OutOfMemoryError: If the body outgrows the response buffer
        """
        session = session or self.session

        for attempt in range(self.max_retries):
            try:
                with session.request(
                    method,
                    url,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                    stream=True,
                ) as response:
                    buffer = ResponseBuffer(self.max_response_size)
                    for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                        buffer.append(chunk)
                    return response.status_code, buffer, dict(response.headers)

            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                if attempt < self.max_retries - 1:
                    delay = self.RETRY_DELAY_SECONDS * (2 ** attempt)  # Exponential backoff
                    logger.warning(f"{method} {url} failed (attempt {attempt + 1}/{self.max_retries}): {e}. Retrying in {delay}s...")
                    time.sleep(delay)
                else:
                    raise TransportError(f"{method} {url} failed: {e}") from e
            except requests.exceptions.RequestException as e:
                raise TransportError(f"{method} {url} failed: {e}") from e

        raise TransportError("Max retries exceeded")

    @staticmethod
    def _error_message(buffer: ResponseBuffer) -> str:
        try:
            body = buffer.json()
        except DecodeError:
            return buffer.text()[:200]
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return str(body)[:200]

    def _raise_for_status(self, status: int, buffer: ResponseBuffer, headers: Dict[str, str], url: str):
        message = self._error_message(buffer)
        logger.error(f"GitHub API error {status} for {url}: {message}")

        if status == 401:
            raise AuthenticationError(f"GitHub PAT authentication failed: {message}")
        if status == 403 and str(headers.get("X-RateLimit-Remaining", "")) == "0":
            raise RateLimitExceeded(f"Rate limit exceeded: {message}", status)
        if status == 404:
            raise NotFoundError(f"Not Found: {url}")
        raise TransportError(f"HTTP {status}: {message}", status)

    def request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """
        Call the API and decode the JSON body.

        Returns:
            Decoded JSON document, or None for 204 No Content / 304 Not Modified
        """
        status, buffer, headers = self._perform(method, url, payload)

        if status in (NO_CONTENT, NOT_MODIFIED):
            return None
        if status >= 400:
            self._raise_for_status(status, buffer, headers, url)

        return buffer.json()

    def _get_list(self, url: str) -> List[Any]:
        data = self.request("GET", url)
        if data is None:
            return []
        if not isinstance(data, list):
            raise DecodeError(f"Expected a JSON array from {url}, got {type(data).__name__}")
        return data

    def fetch_repos_page(self, page: int, per_page: int) -> List[Repository]:
        """Fetch one page of the authenticated user's repositories."""
        url = f"{self.api_root}/user/repos?type=all&per_page={per_page}&page={page}&sort=created"
        return [repo_from_json(node) for node in self._get_list(url)]

    def fetch_stars_page(self, page: int, per_page: int) -> List[Star]:
        """Fetch one page of the authenticated user's stars."""
        url = f"{self.api_root}/user/starred?type=all&per_page={per_page}&page={page}"
        return [star_from_json(node) for node in self._get_list(url)]

    def get_user(self, username: Optional[str] = None) -> User:
        """
        Fetch a user profile.

        Args:
            username: Login to look up. If empty, the authenticated user is returned.

        Raises:
            NotFoundError: If the user does not exist
            AuthenticationError: If GitHub rejects the token
        """
        if username:
            url = f"{self.api_root}/users/{username}"
        else:
            url = f"{self.api_root}/user"

        try:
            data = self.request("GET", url)
        except NotFoundError as e:
            raise NotFoundError(f"User Not Found: {username}") from e

        if not isinstance(data, dict):
            raise DecodeError(f"Expected a JSON object from {url}")

        message = data.get("message")
        if message is not None:
            logger.error(f"get whoami({username}) failed: {data}")
            if message == "Not Found":
                raise NotFoundError(f"User Not Found: {username}")
            raise AuthenticationError("GitHub PAT authentication failed")

        return user_from_json(data)

    def get_commits(self, full_name: str, limit: int = 10) -> List[Commit]:
        url = f"{self.api_root}/repos/{full_name}/commits?per_page={limit}"
        return [commit_from_json(node) for node in self._get_list(url)]

    def get_releases(self, full_name: str, limit: int = 10) -> List[Release]:
        url = f"{self.api_root}/repos/{full_name}/releases?per_page={limit}"
        return [release_from_json(node) for node in self._get_list(url)]

    def unstar(self, full_name: str):
        self.request("DELETE", f"{self.api_root}/user/starred/{full_name}")

    def get_trending_html(self, language: str = "", since: str = "daily", trending_root: str = TRENDING_ROOT) -> str:
        """
        Fetch the trending page fragment for a language and period.

        Uses its own session so API credentials are never sent to github.com.
        """
        url = f"{trending_root.rstrip('/')}/{language}?since={since}"
        headers = {"X-PJAX": "true", "User-Agent": USER_AGENT}

        with requests.Session() as session:
            status, buffer, _ = self._perform("GET", url, session=session, headers=headers)

        if status != 200:
            logger.error(f"visit trending resp code: {status}")
            raise TransportError("get trending url not OK", status)
        return buffer.text()

    def download(self, url: str, filename: str):
        """
        Stream a URL to a file, overwriting it if it exists.

        Every call opens its own session, so downloads may run in parallel
        threads without sharing transport state.
        """
        with requests.Session() as session:
            session.headers["User-Agent"] = USER_AGENT
            try:
                with session.get(url, timeout=self.timeout, stream=True, allow_redirects=True) as response:
                    if response.status_code >= 400:
                        logger.error(f"Download {filename} failed with {response.status_code}")
                        raise TransportError("download file failed", response.status_code)
                    try:
                        with open(filename, "wb") as f:
                            for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                                f.write(chunk)
                    except OSError as e:
                        raise InternalError(f"open file failed: {filename}: {e}") from e
            except requests.exceptions.RequestException as e:
                raise TransportError(f"GET {url} failed: {e}") from e

        logger.info(f"Downloaded {url} to {filename}")
