"""
Map GitHub REST API JSON documents to domain entities.

All mappers are pure. A key that is missing and a key that is JSON null
map to the same absent value: None for strings, 0 for numbers and False
for flags.
"""

from typing import Any, Dict, Optional

from omg.domain.commit import Commit
from omg.domain.release import Release, ReleaseAsset
from omg.domain.repository import Repository, Star
from omg.domain.user import User


def _object(node: Any, key: str) -> Optional[Dict[str, Any]]:
    if not isinstance(node, dict):
        return None
    value = node.get(key)
    return value if isinstance(value, dict) else None


def _str(node: Optional[Dict[str, Any]], key: str) -> Optional[str]:
    if not node:
        return None
    value = node.get(key)
    if value is None:
        return None
    return str(value)


def _int(node: Optional[Dict[str, Any]], key: str) -> int:
    if not node:
        return 0
    value = node.get(key)
    # bool is an int subclass, but never a count
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def _bool(node: Optional[Dict[str, Any]], key: str) -> bool:
    if not node:
        return False
    return node.get(key) is True


def repo_from_json(node: Optional[Dict[str, Any]]) -> Repository:
    license_info = _object(node, "license")
    return Repository(
        id=_int(node, "id"),
        full_name=_str(node, "full_name"),
        description=_str(node, "description"),
        private=_bool(node, "private"),
        created_at=_str(node, "created_at"),
        license=_str(license_info, "key"),
        pushed_at=_str(node, "pushed_at"),
        stargazers_count=_int(node, "stargazers_count"),
        watchers_count=_int(node, "watchers_count"),
        forks_count=_int(node, "forks_count"),
        lang=_str(node, "language"),
        homepage=_str(node, "homepage"),
        size=_int(node, "size"),
    )


def star_from_json(node: Optional[Dict[str, Any]]) -> Star:
    """Map one element of ``/user/starred`` (star+json media type)."""
    return Star(
        repo=repo_from_json(_object(node, "repo")),
        starred_at=_str(node, "starred_at"),
    )


def user_from_json(node: Optional[Dict[str, Any]]) -> User:
    return User(
        login=_str(node, "login"),
        id=_int(node, "id"),
        name=_str(node, "name"),
        company=_str(node, "company"),
        blog=_str(node, "blog"),
        location=_str(node, "location"),
        email=_str(node, "email"),
        hireable=_bool(node, "hireable"),
        bio=_str(node, "bio"),
        twitter_username=_str(node, "twitter_username"),
        public_repos=_int(node, "public_repos"),
        public_gists=_int(node, "public_gists"),
        private_repos=_int(node, "total_private_repos"),
        private_gists=_int(node, "private_gists"),
        followers=_int(node, "followers"),
        following=_int(node, "following"),
        created_at=_str(node, "created_at"),
        disk_usage=_int(node, "disk_usage"),
    )


def commit_from_json(node: Optional[Dict[str, Any]]) -> Commit:
    commit_info = _object(node, "commit")
    author_info = _object(commit_info, "author")
    return Commit(
        sha=_str(node, "sha"),
        message=_str(commit_info, "message"),
        author=_str(author_info, "name"),
        email=_str(author_info, "email"),
        date=_str(author_info, "date"),
    )


def asset_from_json(node: Optional[Dict[str, Any]]) -> ReleaseAsset:
    return ReleaseAsset(
        id=_int(node, "id"),
        name=_str(node, "name"),
        size=_int(node, "size"),
        download_count=_int(node, "download_count"),
        download_url=_str(node, "browser_download_url"),
    )


def release_from_json(node: Optional[Dict[str, Any]]) -> Release:
    author_info = _object(node, "author")
    assets = node.get("assets") if isinstance(node, dict) else None
    if not isinstance(assets, list):
        assets = []
    return Release(
        id=_int(node, "id"),
        login=_str(author_info, "login"),
        name=_str(node, "name"),
        tag_name=_str(node, "tag_name"),
        body=_str(node, "body"),
        draft=_bool(node, "draft"),
        prerelease=_bool(node, "prerelease"),
        published_at=_str(node, "published_at"),
        assets=tuple(asset_from_json(asset) for asset in assets),
    )
