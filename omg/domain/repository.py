"""Domain entities for GitHub repositories and stars."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Repository:
    """
    Immutable repository entity.

    Trending entries reuse this type and only carry ``lang``, ``full_name``
    and ``stargazers_count``.
    """

    id: int = 0
    full_name: Optional[str] = None
    description: Optional[str] = None
    private: bool = False
    created_at: Optional[str] = None
    license: Optional[str] = None
    pushed_at: Optional[str] = None
    stargazers_count: int = 0
    watchers_count: int = 0
    forks_count: int = 0
    lang: Optional[str] = None
    homepage: Optional[str] = None
    size: int = 0


@dataclass(frozen=True)
class Star:
    """A starred repository together with the time it was starred."""

    repo: Repository
    starred_at: Optional[str] = None
