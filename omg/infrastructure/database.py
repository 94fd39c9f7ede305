"""SQLite connection and repository/star storage implementation."""

import logging
import os
import sqlite3
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, TypeVar

from omg.config import DEFAULT_DB_PATH, SQL_BUFFER_LEN
from omg.domain.errors import NotFoundError, StoreError
from omg.domain.repository import Repository, Star
from omg.infrastructure.query_builder import build_query

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS omg_repo (
        id INTEGER PRIMARY KEY,
        full_name TEXT NOT NULL,
        description TEXT,
        private INTEGER NOT NULL DEFAULT 0,
        created_at TEXT,
        license TEXT,
        pushed_at TEXT,
        stargazers_count INTEGER NOT NULL DEFAULT 0,
        watchers_count INTEGER NOT NULL DEFAULT 0,
        forks_count INTEGER NOT NULL DEFAULT 0,
        lang TEXT,
        homepage TEXT,
        `size` INTEGER NOT NULL DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS omg_my_repo (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        repo_id INTEGER NOT NULL UNIQUE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS omg_my_star (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        repo_id INTEGER NOT NULL UNIQUE,
        starred_at TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_omg_repo_full_name ON omg_repo(full_name);
    CREATE INDEX IF NOT EXISTS idx_omg_my_star_starred_at ON omg_my_star(starred_at);

    CREATE VIEW IF NOT EXISTS omg_my_repo_view AS
        SELECT r.id, r.full_name, r.description, r.private, r.created_at,
               r.license, r.pushed_at, r.stargazers_count, r.watchers_count,
               r.forks_count, r.lang, r.homepage, r.`size`
        FROM omg_my_repo m JOIN omg_repo r ON r.id = m.repo_id;

    CREATE VIEW IF NOT EXISTS omg_my_star_view AS
        SELECT s.starred_at, r.id, r.full_name, r.description, r.private,
               r.created_at, r.license, r.pushed_at, r.stargazers_count,
               r.watchers_count, r.forks_count, r.lang, r.homepage, r.`size`
        FROM omg_my_star s JOIN omg_repo r ON r.id = s.repo_id;
"""

UPSERT_REPO_SQL = """
    INSERT INTO omg_repo (
        id, full_name, description, private, created_at, license, pushed_at,
        stargazers_count, watchers_count, forks_count, lang, homepage, `size`
    ) VALUES (?1, ?2, ?3, ?4, ?5, ?6, ?7, ?8, ?9, ?10, ?11, ?12, ?13)
    ON CONFLICT (id)
    DO UPDATE SET
        full_name = ?2, description = ?3, private = ?4,
        created_at = ?5, license = ?6, pushed_at = ?7,
        stargazers_count = ?8, watchers_count = ?9, forks_count = ?10,
        lang = ?11, homepage = ?12, `size` = ?13
"""

INSERT_MY_REPO_SQL = "INSERT OR IGNORE INTO omg_my_repo (repo_id) VALUES (?1)"

UPSERT_STAR_SQL = """
    INSERT INTO omg_my_star (starred_at, repo_id) VALUES (?1, ?2)
    ON CONFLICT (repo_id)
    DO UPDATE SET starred_at = ?1
"""

# Errors caused by the data of a single row; anything else fails the batch.
ROW_ERRORS = (sqlite3.IntegrityError, sqlite3.InterfaceError, sqlite3.DataError, OverflowError)


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one page write: rows stored and rows skipped."""

    saved: int
    failed: int


def repo_from_row(row, offset: int = 1) -> Repository:
    """Map a view row back to a Repository, starting at column ``offset``."""
    values = row[offset:offset + 13]
    return Repository(
        id=values[0] or 0,
        full_name=values[1],
        description=values[2],
        private=bool(values[3]),
        created_at=values[4],
        license=values[5],
        pushed_at=values[6],
        stargazers_count=values[7] or 0,
        watchers_count=values[8] or 0,
        forks_count=values[9] or 0,
        lang=values[10],
        homepage=values[11],
        size=values[12] or 0,
    )


def star_from_row(row) -> Star:
    return Star(repo=repo_from_row(row, 1), starred_at=row[0])


def _repo_params(repo: Repository) -> tuple:
    return (
        repo.id,
        repo.full_name,
        repo.description,
        int(repo.private),
        repo.created_at,
        repo.license,
        repo.pushed_at,
        repo.stargazers_count,
        repo.watchers_count,
        repo.forks_count,
        repo.lang,
        repo.homepage,
        repo.size,
    )


class RepositoryStore:
    """Local SQLite cache of the user's repositories and stars."""

    def __init__(self, db_path: Optional[str] = None, sql_buffer_len: int = SQL_BUFFER_LEN):
        """
        Initialize the store.

        Args:
            db_path: SQLite database file. If None, uses OMG_DB_PATH env var.
            sql_buffer_len: Ceiling for composed query text, in bytes
        """
        if db_path is None:
            db_path = os.getenv("OMG_DB_PATH", DEFAULT_DB_PATH)

        self.db_path = db_path
        self.sql_buffer_len = sql_buffer_len
        self.conn: Optional[sqlite3.Connection] = None
        # Serializes write batches when the store is shared between threads
        self._write_lock = threading.Lock()

    def connect(self):
        """Open the database connection."""
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            logger.info(f"Opened database {self.db_path}")
        except sqlite3.Error as e:
            logger.error(f"Error opening database {self.db_path}: {e}")
            raise StoreError(f"open {self.db_path} failed: {e}") from e

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Database connection closed")

    def __enter__(self):
        self._get_connection()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _get_connection(self) -> sqlite3.Connection:
        if not self.conn:
            self.connect()
        return self.conn

    def initialize_schema(self):
        """Create tables and views if they don't exist."""
        conn = self._get_connection()
        try:
            conn.executescript(SCHEMA_SQL)
            logger.info("Database schema initialized")
        except sqlite3.Error as e:
            logger.error(f"Error initializing schema: {e}")
            raise StoreError(f"exec create table sql failed: {e}") from e

    def _write_batch(self, items: Iterable[T], statements: List[Callable[[sqlite3.Connection, T], None]], label: Callable[[T], str]) -> BatchResult:
        """
        Run each statement for each item in one transaction.

        A row whose write fails is logged and skipped, along with the
        statements that follow it for the same item; the batch continues.
        """
        items = list(items)
        if not items:
            return BatchResult(saved=0, failed=0)

        conn = self._get_connection()
        failed = 0
        with self._write_lock:
            try:
                for item in items:
                    try:
                        for statement in statements:
                            statement(conn, item)
                    except ROW_ERRORS as e:
                        failed += 1
                        logger.warning(f"insert {label(item)} failed: {e}")
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error(f"Error writing batch: {e}")
                raise StoreError(str(e)) from e

        result = BatchResult(saved=len(items) - failed, failed=failed)
        logger.info(f"Upserted {result.saved} rows ({result.failed} failed)")
        return result

    @staticmethod
    def _upsert_repo(conn: sqlite3.Connection, repo: Repository):
        conn.execute(UPSERT_REPO_SQL, _repo_params(repo))

    def upsert_repositories(self, repositories: Iterable[Repository]) -> BatchResult:
        """Insert or update repositories; every mutable field is overwritten."""
        return self._write_batch(repositories, [self._upsert_repo], lambda repo: repo.full_name)

    def save_my_repos(self, repositories: Iterable[Repository]) -> BatchResult:
        """Upsert repositories and mark them as the user's own (insert-or-ignore)."""

        def mark_mine(conn: sqlite3.Connection, repo: Repository):
            conn.execute(INSERT_MY_REPO_SQL, (repo.id,))

        return self._write_batch(repositories, [self._upsert_repo, mark_mine], lambda repo: repo.full_name)

    def save_my_stars(self, stars: Iterable[Star]) -> BatchResult:
        """Upsert starred repositories; re-starring only refreshes starred_at."""

        def upsert_repo(conn: sqlite3.Connection, star: Star):
            self._upsert_repo(conn, star.repo)

        def upsert_star(conn: sqlite3.Connection, star: Star):
            conn.execute(UPSERT_STAR_SQL, (star.starred_at, star.repo.id))

        return self._write_batch(stars, [upsert_repo, upsert_star], lambda star: star.repo.full_name)

    def _select(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        conn = self._get_connection()
        try:
            return conn.execute(sql, params)
        except sqlite3.Error as e:
            logger.error(f"Error preparing query {sql}: {e}")
            raise StoreError(str(e)) from e

    @staticmethod
    def _iter_rows(cursor: sqlite3.Cursor, mapper: Callable[[tuple], T]) -> Iterator[T]:
        try:
            for row in cursor:
                yield mapper(row)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        finally:
            cursor.close()

    def query_repos(self, keyword: Optional[str] = None, language: Optional[str] = None) -> Iterator[Repository]:
        """
        Query the user's own repositories, newest first.

        The query is built and prepared immediately; rows are read lazily.

        Raises:
            BufferTooSmall: If the filters do not fit into the query buffer
            StoreError: If the query cannot be prepared
        """
        sql = build_query(False, keyword, language, self.sql_buffer_len)
        return self._iter_rows(self._select(sql), repo_from_row)

    def query_stars(self, keyword: Optional[str] = None, language: Optional[str] = None) -> Iterator[Star]:
        """Query starred repositories, most recently starred first."""
        sql = build_query(True, keyword, language, self.sql_buffer_len)
        return self._iter_rows(self._select(sql), star_from_row)

    def get_full_name(self, repo_id: int) -> str:
        """
        Look up a cached repository's full name.

        Raises:
            NotFoundError: If the repository is not in the store
        """
        cursor = self._select("SELECT full_name FROM omg_repo WHERE id = ?", (repo_id,))
        try:
            row = cursor.fetchone()
        finally:
            cursor.close()
        if row is None:
            raise NotFoundError(f"repository {repo_id} not found in local store")
        return row[0]

    def delete_star(self, repo_id: int) -> bool:
        """Delete the star marker for a repository; the repository row is kept."""
        conn = self._get_connection()
        with self._write_lock:
            try:
                cursor = conn.execute("DELETE FROM omg_my_star WHERE repo_id = ?", (repo_id,))
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error(f"Error deleting star {repo_id}: {e}")
                raise StoreError(str(e)) from e
        return cursor.rowcount > 0

    def _count(self, table: str) -> int:
        cursor = self._select(f"SELECT COUNT(*) FROM {table}")
        try:
            return cursor.fetchone()[0]
        finally:
            cursor.close()

    def get_repository_count(self) -> int:
        """Get the total number of repositories in the database."""
        return self._count("omg_repo")

    def get_star_count(self) -> int:
        return self._count("omg_my_star")

    def get_my_repo_count(self) -> int:
        return self._count("omg_my_repo")
