from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

TAG_SEPARATOR = ", "
CHOICE_PREFIX = "nub:"
CHOICE_NAME_MAX_LEN = 100


@dataclass(frozen=True)
class Item:
    """One catalog record: a media locator plus free-form keywords."""

    source: str
    tags: Tuple[str, ...] = ()

    @classmethod
    def create(cls, source: str, tags: Iterable[str]) -> "Item":
        return cls(source=source, tags=tuple(tags))

    def keywords(self, separator: str = TAG_SEPARATOR) -> str:
        return separator.join(self.tags)


@dataclass(frozen=True)
class SearchHit:
    source: str
    tags: str
    score: float = 0.0

    def as_pair(self) -> Tuple[str, str]:
        return (self.source, self.tags)


@dataclass(frozen=True)
class Choice:
    """An autocomplete option: a display name and the value sent back on pick."""

    name: str
    value: str

    @classmethod
    def from_hit(cls, hit: SearchHit, max_len: int = CHOICE_NAME_MAX_LEN) -> "Choice":
        return cls(name=truncate(hit.tags or hit.source, max_len), value=CHOICE_PREFIX + hit.source)


def truncate(text: str, max_len: int = CHOICE_NAME_MAX_LEN) -> str:
    """Return ``text`` cut to at most ``max_len`` characters.

    Longer text keeps its head and ends with ``...``. If max_len <= 3 the
    leading max_len characters are returned without an ellipsis.
    """
    s = text or ""
    if len(s) <= max_len:
        return s
    if max_len <= 3:
        return s[:max_len]
    return s[: max_len - 3] + "..."


def format_search_hit(hit: SearchHit, max_len: int = 160) -> str:
    """Create a compact string representation for logs/printing.

    Example: "source=<url>; score=1.2345; tags=<keywords>"
    """
    return f"source={hit.source}; score={hit.score:.4f}; tags={truncate(hit.tags, max_len)}"
