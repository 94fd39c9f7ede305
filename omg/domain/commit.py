from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Commit:
    sha: Optional[str] = None
    message: Optional[str] = None
    author: Optional[str] = None
    email: Optional[str] = None
    date: Optional[str] = None
