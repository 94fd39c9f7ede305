"""Compose filtered read queries over the cached repositories and stars."""

import logging
from typing import List, Optional

from omg.config import SQL_BUFFER_LEN
from omg.domain.errors import BufferTooSmall

logger = logging.getLogger(__name__)

# Shared by both views; readers map columns back in this order.
REPO_COLUMNS = (
    "id,full_name,description,private,"
    "datetime(created_at, 'localtime'),"
    "license,"
    "datetime(pushed_at, 'localtime'),"
    "stargazers_count,watchers_count,forks_count,lang,homepage,`size`"
)


class SqlBuffer:
    """Append-only SQL text with a hard ceiling, measured in UTF-8 bytes."""

    def __init__(self, capacity: int = SQL_BUFFER_LEN):
        self.capacity = capacity
        self._parts: List[str] = []
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def append(self, text: str, what: str = "text"):
        size = len(text.encode("utf-8"))
        if self._size + size > self.capacity:
            logger.error(f"sql:{self.getvalue()}, appending {what} needs {self._size + size} > {self.capacity}")
            raise BufferTooSmall(f"buffer not enough when append {what}")
        self._parts.append(text)
        self._size += size

    def getvalue(self) -> str:
        return "".join(self._parts)


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def like_contains(value: str) -> str:
    """Quoted LIKE pattern matching ``value`` anywhere, wildcards escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return quote_literal(f"%{escaped}%")


def build_query(
    is_star: bool,
    keyword: Optional[str] = None,
    language: Optional[str] = None,
    capacity: int = SQL_BUFFER_LEN,
) -> str:
    """
    Build the SELECT for "my stars" or "my repos".

    The first column is ``starred_at`` for stars and a placeholder for
    repositories, so both views share the same repository column offsets.

    Raises:
        BufferTooSmall: If the query would not fit into ``capacity`` bytes
    """
    first_column = "datetime(starred_at, 'localtime') as starred_at" if is_star else "1"
    table_name = "omg_my_star_view" if is_star else "omg_my_repo_view"

    sql = SqlBuffer(capacity)
    sql.append(f"select {first_column},{REPO_COLUMNS} from {table_name} where 1", "select")

    if keyword:
        pattern = like_contains(keyword)
        sql.append(
            f" and (full_name like {pattern} escape '\\'"
            f" or description like {pattern} escape '\\')",
            "keyword",
        )

    if language:
        sql.append(f" and lang={quote_literal(language)} COLLATE NOCASE", "language")

    sort_column = "starred_at" if is_star else "created_at"
    sql.append(f" order by {sort_column} desc", "order_by")

    query = sql.getvalue()
    logger.debug(f"query sql: {query}")
    return query
