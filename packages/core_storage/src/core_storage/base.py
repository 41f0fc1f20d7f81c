from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from core_config.constants import LABEL_SLOTS, WILDCARD

DEFAULT_PAGE_SIZE = 100

Page = Dict[str, Any]


class KeyValueStore(ABC):
    """
    Async key-value store with up to five label indexes per record.

    Listing calls (``get`` with a ``*`` pattern, ``get_by_label``) return a
    page ``{"items": [{"key", "value"}], "last_key", "next"}``. ``last_key``
    is set only when more results remain; pass it back as ``options["start"]``
    to continue. ``options["limit"]`` caps the page size.
    """

    page_size: int = DEFAULT_PAGE_SIZE

    @abstractmethod
    async def get(self, key: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        """Point value (or None) for a plain key; a page for a ``*`` pattern."""

    @abstractmethod
    async def set(self, key: str, value: Any, labels: Optional[Mapping[str, str]] = None) -> Any:
        """Store *value*; each ``slot → label value`` replaces that slot's previous entry. Returns the stored value."""

    @abstractmethod
    async def get_by_label(self, label_number: str, label_value: str, options: Optional[Mapping[str, Any]] = None) -> Page:
        """Page of records whose *label_number* entry matches *label_value* (trailing ``*`` = prefix)."""

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Drop a record and its label entries; True when it existed."""

    async def close(self) -> None:
        return None

    def _limit(self, options: Optional[Mapping[str, Any]]) -> int:
        limit = (options or {}).get("limit")
        return int(limit) if limit else self.page_size


def is_pattern(key: str) -> bool:
    return WILDCARD in key


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """``*`` matches any run of characters; everything else is literal."""
    return re.compile(".*".join(re.escape(part) for part in pattern.split(WILDCARD)), re.DOTALL)


def check_labels(labels: Optional[Mapping[str, str]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for slot, value in (labels or {}).items():
        if slot not in LABEL_SLOTS:
            raise ValueError(f"Unknown label slot '{slot}' (expected one of {', '.join(LABEL_SLOTS)})")
        out[slot] = str(value)
    return out


def paginate(entries: Iterable[Tuple[str, Any]], start: Optional[str], limit: int) -> Page:
    """Slice key-sorted ``(key, value)`` pairs after the *start* cursor."""
    page: list[Dict[str, Any]] = []
    more = False
    for key, value in entries:
        if start is not None and key <= start:
            continue
        if len(page) == limit:
            more = True
            break
        page.append({"key": key, "value": value})
    last_key = page[-1]["key"] if more and page else None
    return {"items": page, "last_key": last_key, "next": more}


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "KeyValueStore",
    "Page",
    "check_labels",
    "glob_to_regex",
    "is_pattern",
    "paginate",
]
