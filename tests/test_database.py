import dataclasses
import types

import pytest

from omg.domain.errors import BufferTooSmall, NotFoundError, StoreError
from omg.domain.repository import Repository, Star
from omg.infrastructure.database import RepositoryStore
from omg.infrastructure.mappers import repo_from_json


def without_timestamps(repo):
    return dataclasses.replace(repo, created_at=None, pushed_at=None)


def fetch_repo_row(store, repo_id):
    cursor = store.conn.execute("SELECT * FROM omg_repo WHERE id = ?", (repo_id,))
    return cursor.fetchone()


def test_initialize_schema_is_idempotent(store):
    store.initialize_schema()

    assert store.get_repository_count() == 0


def test_upserting_same_repository_twice_keeps_latest_values(store, repo_json):
    first = repo_from_json(repo_json(1, stargazers_count=5, description="old"))
    second = repo_from_json(repo_json(1, stargazers_count=50, description="new", license=None, language="Go"))

    store.upsert_repositories([first])
    store.upsert_repositories([second])
    once = fetch_repo_row(store, 1)
    store.upsert_repositories([second])

    assert store.get_repository_count() == 1
    assert fetch_repo_row(store, 1) == once
    assert once[2] == "new"
    assert once[5] is None
    assert once[7] == 50
    assert once[10] == "Go"


def test_restarring_updates_timestamp_without_duplicating(store, repo_json):
    repo = repo_from_json(repo_json(9))

    store.save_my_stars([Star(repo=repo, starred_at="2024-01-01T00:00:00Z")])
    store.save_my_stars([Star(repo=repo, starred_at="2024-06-01T00:00:00Z")])

    rows = store.conn.execute("SELECT repo_id, starred_at FROM omg_my_star").fetchall()
    assert rows == [(9, "2024-06-01T00:00:00Z")]


def test_my_repo_marker_is_never_overwritten(store, repo_json):
    store.save_my_repos([repo_from_json(repo_json(3))])
    before = store.conn.execute("SELECT id, repo_id, created_at FROM omg_my_repo").fetchall()

    store.save_my_repos([repo_from_json(repo_json(3, description="changed"))])
    after = store.conn.execute("SELECT id, repo_id, created_at FROM omg_my_repo").fetchall()

    assert before == after
    assert store.get_my_repo_count() == 1


def test_failed_row_is_skipped_and_batch_continues(store, repo_json):
    repos = [
        repo_from_json(repo_json(1)),
        repo_from_json(repo_json(2, full_name=None)),
        repo_from_json(repo_json(3)),
    ]

    result = store.save_my_repos(repos)

    assert result.saved == 2
    assert result.failed == 1
    assert sorted(repo.id for repo in store.query_repos()) == [1, 3]
    assert store.get_my_repo_count() == 2


def test_empty_batch_is_a_no_op(store):
    result = store.save_my_stars([])

    assert (result.saved, result.failed) == (0, 0)


def test_round_trip_through_query(store, repo_json):
    node = repo_json(77, license=None, private=True)
    del node["homepage"]
    repo = repo_from_json(node)

    store.save_my_repos([repo])
    (loaded,) = list(store.query_repos())

    assert without_timestamps(loaded) == without_timestamps(repo)
    assert loaded.created_at is not None
    assert loaded.pushed_at is not None


def test_star_round_trip_through_query(store, repo_json):
    repo = repo_from_json(repo_json(12))

    store.save_my_stars([Star(repo=repo, starred_at="2024-02-02T02:02:02Z")])
    (star,) = list(store.query_stars())

    assert without_timestamps(star.repo) == without_timestamps(repo)
    assert star.starred_at is not None


def test_repos_are_sorted_newest_first(store, repo_json):
    store.save_my_repos(
        [
            repo_from_json(repo_json(1, created_at="2019-01-01T00:00:00Z")),
            repo_from_json(repo_json(2, created_at="2022-01-01T00:00:00Z")),
            repo_from_json(repo_json(3, created_at="2020-01-01T00:00:00Z")),
        ]
    )

    assert [repo.id for repo in store.query_repos()] == [2, 3, 1]


def test_stars_are_sorted_by_starred_at(store, repo_json):
    store.save_my_stars(
        [
            Star(repo=repo_from_json(repo_json(1)), starred_at="2023-05-01T00:00:00Z"),
            Star(repo=repo_from_json(repo_json(2)), starred_at="2024-05-01T00:00:00Z"),
            Star(repo=repo_from_json(repo_json(3)), starred_at="2022-05-01T00:00:00Z"),
        ]
    )

    assert [star.repo.id for star in store.query_stars()] == [2, 1, 3]


def test_keyword_matches_name_or_description_case_insensitively(store, repo_json):
    store.save_my_repos(
        [
            repo_from_json(repo_json(1, full_name="alice/FastParser", description="parsing")),
            repo_from_json(repo_json(2, full_name="alice/tool", description="A fast CLI")),
            repo_from_json(repo_json(3, full_name="alice/other", description="slow")),
        ]
    )

    assert sorted(repo.id for repo in store.query_repos(keyword="FAST")) == [1, 2]


def test_language_filter_is_exact_and_case_insensitive(store, repo_json):
    store.save_my_stars(
        [
            Star(repo=repo_from_json(repo_json(1, language="Go")), starred_at="2024-01-01T00:00:00Z"),
            Star(repo=repo_from_json(repo_json(2, language="Golang")), starred_at="2024-01-02T00:00:00Z"),
            Star(repo=repo_from_json(repo_json(3, language=None)), starred_at="2024-01-03T00:00:00Z"),
        ]
    )

    assert [star.repo.id for star in store.query_stars(language="go")] == [1]


def test_keyword_with_quotes_and_wildcards_is_literal(store, repo_json):
    store.save_my_repos(
        [
            repo_from_json(repo_json(1, description="it's 100% done")),
            repo_from_json(repo_json(2, description="it is 100 done")),
        ]
    )

    assert [repo.id for repo in store.query_repos(keyword="it's 100%")] == [1]
    assert [repo.id for repo in store.query_repos(keyword="%")] == [1]


def test_repos_and_stars_are_separate_sets(store, repo_json):
    store.save_my_repos([repo_from_json(repo_json(1))])
    store.save_my_stars([Star(repo=repo_from_json(repo_json(2)), starred_at="2024-01-01T00:00:00Z")])

    assert [repo.id for repo in store.query_repos()] == [1]
    assert [star.repo.id for star in store.query_stars()] == [2]
    assert store.get_repository_count() == 2


def test_query_returns_lazy_iterator(store, repo_json):
    store.save_my_repos([repo_from_json(repo_json(1))])

    rows = store.query_repos()

    assert isinstance(rows, types.GeneratorType)
    assert next(rows).id == 1


def test_query_overflow_raises_before_touching_the_store(store):
    with pytest.raises(BufferTooSmall):
        store.query_stars(keyword="k" * 600)


def test_query_without_schema_raises_store_error(tmp_path):
    with RepositoryStore(str(tmp_path / "empty.db")) as empty:
        with pytest.raises(StoreError):
            empty.query_repos()


def test_delete_star_keeps_repository_row(store, repo_json):
    store.save_my_stars([Star(repo=repo_from_json(repo_json(4)), starred_at="2024-01-01T00:00:00Z")])

    assert store.get_full_name(4) == "owner/repo-4"
    assert store.delete_star(4) is True
    assert store.delete_star(4) is False
    assert store.get_star_count() == 0
    assert store.get_repository_count() == 1


def test_get_full_name_of_unknown_repository(store):
    with pytest.raises(NotFoundError):
        store.get_full_name(404)


def test_database_path_defaults_to_environment(monkeypatch, tmp_path):
    path = str(tmp_path / "env.db")
    monkeypatch.setenv("OMG_DB_PATH", path)

    assert RepositoryStore().db_path == path


def test_oversized_integer_is_a_row_level_failure(store):
    result = store.upsert_repositories(
        [
            Repository(id=1, full_name="a/ok"),
            Repository(id=2, full_name="a/huge", size=2 ** 70),
        ]
    )

    assert (result.saved, result.failed) == (1, 1)
    assert store.get_repository_count() == 1
