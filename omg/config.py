"""Process-wide configuration for the omg client."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

API_ROOT = "https://api.github.com"
TRENDING_ROOT = "https://github.com/trending"

USER_AGENT = "omg-client/0.1.0"
ACCEPT = "application/vnd.github.v3.star+json"
CONTENT_TYPE = "application/json; charset=utf-8"

PER_PAGE = 100
SQL_BUFFER_LEN = 512
TRENDING_LIMIT = 25

DEFAULT_DB_PATH = str(Path.home() / ".omg.db")


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    return int(value)


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read from the environment."""

    github_token: Optional[str] = None
    db_path: str = DEFAULT_DB_PATH
    page_size: int = PER_PAGE
    max_pages: Optional[int] = None
    timeout: int = 30
    max_retries: int = 3

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """
        Build settings from environment variables.

        A ``.env`` file is loaded first; variables already set in the
        environment win over the file.
        """
        load_dotenv(dotenv_path)
        return cls(
            github_token=os.getenv("GITHUB_TOKEN"),
            db_path=os.getenv("OMG_DB_PATH", DEFAULT_DB_PATH),
            page_size=int(os.getenv("OMG_PAGE_SIZE", str(PER_PAGE))),
            max_pages=_optional_int(os.getenv("OMG_MAX_PAGES")),
            timeout=int(os.getenv("OMG_TIMEOUT", "30")),
            max_retries=int(os.getenv("OMG_MAX_RETRIES", "3")),
        )
