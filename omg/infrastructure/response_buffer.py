"""Growable byte buffer that collects a streamed HTTP response body."""

import json
import logging
from typing import Any

from omg.domain.errors import DecodeError, OutOfMemoryError

logger = logging.getLogger(__name__)

# 64 MiB is far beyond any single GitHub API page
DEFAULT_MAX_SIZE = 64 * 1024 * 1024


class ResponseBuffer:
    """Accumulates chunks in arrival order, up to ``max_size`` bytes."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        self.max_size = max_size
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    def append(self, chunk: bytes) -> int:
        """
        Append a chunk to the buffer.

        Returns:
            Number of bytes appended

        Raises:
            OutOfMemoryError: If the chunk would grow the buffer past max_size
        """
        if len(self._data) + len(chunk) > self.max_size:
            logger.error(
                f"Response exceeds {self.max_size} bytes "
                f"(have {len(self._data)}, chunk {len(chunk)})"
            )
            raise OutOfMemoryError("not enough memory for response body")
        self._data.extend(chunk)
        return len(chunk)

    def getvalue(self) -> bytes:
        return bytes(self._data)

    def text(self, encoding: str = "utf-8") -> str:
        return self._data.decode(encoding, errors="replace")

    def json(self) -> Any:
        """Decode the buffered body as JSON."""
        try:
            return json.loads(self.text())
        except ValueError as e:
            raise DecodeError(f"Invalid JSON response: {e}") from e

    def clear(self):
        self._data = bytearray()
