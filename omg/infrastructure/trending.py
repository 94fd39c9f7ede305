"""Extract trending repositories from the GitHub trending page."""

import logging
import re
from itertools import islice
from typing import Iterator, List

from omg.config import TRENDING_LIMIT
from omg.domain.errors import DecodeError
from omg.domain.repository import Repository

logger = logging.getLogger(__name__)

# groups: language, full name, stars in the period
TRENDING_PATTERN = (
    r'<span itemprop="programmingLanguage">(\S+)</span>'
    r'.*?<a href="/(\S+/\S+)/stargazers.*?([\d,]+) stars this'
)

_LEADING_DIGITS = re.compile(r"\d+")


def parse_star_count(text: str) -> int:
    """Parse a star count such as ``1,234``; anything non-numeric is 0."""
    match = _LEADING_DIGITS.match(text.replace(",", "").strip())
    return int(match.group()) if match else 0


class TrendingScraper:
    """Narrow pattern extractor for the trending page layout."""

    def __init__(self, pattern: str = TRENDING_PATTERN, limit: int = TRENDING_LIMIT):
        try:
            self.pattern = re.compile(pattern, re.DOTALL)
        except re.error as e:
            raise DecodeError(f"init trending regexp: {e}") from e
        if self.pattern.groups < 3:
            raise DecodeError("init trending regexp: expected 3 capture groups")
        self.limit = limit

    def iter_entries(self, html: str) -> Iterator[Repository]:
        """
        Lazily yield partial repositories, one per match.

        Each search resumes after the previous match; the sequence simply
        ends when the pattern stops matching.
        """
        for match in self.pattern.finditer(html):
            language, full_name, stars = match.group(1, 2, 3)
            yield Repository(
                full_name=full_name,
                lang=language,
                stargazers_count=parse_star_count(stars),
            )

    def parse(self, html: str) -> List[Repository]:
        entries = list(islice(self.iter_entries(html), self.limit))
        logger.info(f"Parsed {len(entries)} trending repositories")
        return entries
