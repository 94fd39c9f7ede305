"""Domain entities for repository releases."""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class ReleaseAsset:
    id: int = 0
    name: Optional[str] = None
    size: int = 0
    download_count: int = 0
    download_url: Optional[str] = None


@dataclass(frozen=True)
class Release:
    """A published release and the assets attached to it."""

    id: int = 0
    login: Optional[str] = None
    name: Optional[str] = None
    tag_name: Optional[str] = None
    body: Optional[str] = None
    draft: bool = False
    prerelease: bool = False
    published_at: Optional[str] = None
    assets: Tuple[ReleaseAsset, ...] = field(default_factory=tuple)
