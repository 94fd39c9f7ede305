from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class User:
    """Profile snapshot returned by ``whoami``."""

    login: Optional[str] = None
    id: int = 0
    name: Optional[str] = None
    company: Optional[str] = None
    blog: Optional[str] = None
    location: Optional[str] = None
    email: Optional[str] = None
    hireable: bool = False
    bio: Optional[str] = None
    twitter_username: Optional[str] = None
    public_repos: int = 0
    public_gists: int = 0
    private_repos: int = 0
    private_gists: int = 0
    followers: int = 0
    following: int = 0
    created_at: Optional[str] = None
    disk_usage: int = 0
