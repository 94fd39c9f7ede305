from unittest.mock import MagicMock

import pytest

from omg.infrastructure.database import RepositoryStore


@pytest.fixture
def store(tmp_path):
    """A schema-initialized store backed by a temporary SQLite file."""
    db = RepositoryStore(str(tmp_path / "omg.db"))
    db.connect()
    db.initialize_schema()
    yield db
    db.close()


@pytest.fixture
def repo_json():
    """Factory for GitHub REST repository documents."""

    def make(repo_id=1, **overrides):
        base = {
            "id": repo_id,
            "full_name": f"owner/repo-{repo_id}",
            "description": f"Repository number {repo_id}",
            "private": False,
            "created_at": "2021-03-04T05:06:07Z",
            "license": {"key": "mit", "name": "MIT License"},
            "pushed_at": "2023-01-02T03:04:05Z",
            "stargazers_count": 10,
            "watchers_count": 10,
            "forks_count": 2,
            "language": "Python",
            "homepage": "https://example.com",
            "size": 128,
        }
        base.update(overrides)
        return base

    return make


@pytest.fixture
def make_response():
    """Factory for streamed ``requests`` responses used as context managers."""

    def make(status=200, body=b"", headers=None, chunks=None):
        response = MagicMock()
        response.status_code = status
        response.headers = headers or {}
        if chunks is None:
            chunks = [body] if body else []
        response.iter_content.return_value = chunks
        response.__enter__.return_value = response
        response.__exit__.return_value = False
        return response

    return make
