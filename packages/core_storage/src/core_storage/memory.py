from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Optional

from core_logging import get_logger

from .base import DEFAULT_PAGE_SIZE, KeyValueStore, Page, check_labels, glob_to_regex, is_pattern, paginate

logger = get_logger("labelkv.store")


class MemoryStore(KeyValueStore):
    """
    In-process store for tests and local runs.

    Values are deep-copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE):
        self.page_size = page_size
        self._items: Dict[str, Any] = {}
        self._labels: Dict[str, Dict[str, str]] = {}

    def __len__(self) -> int:
        return len(self._items)

    async def get(self, key: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        if not is_pattern(key):
            return copy.deepcopy(self._items.get(key))
        rx = glob_to_regex(key)
        entries = ((k, copy.deepcopy(self._items[k])) for k in sorted(self._items) if rx.fullmatch(k))
        return paginate(entries, (options or {}).get("start"), self._limit(options))

    async def set(self, key: str, value: Any, labels: Optional[Mapping[str, str]] = None) -> Any:
        slots = check_labels(labels)
        self._items[key] = copy.deepcopy(value)
        self._labels.setdefault(key, {}).update(slots)
        if slots:
            logger.debug("labels_written", key=key, slots=sorted(slots))
        return copy.deepcopy(value)

    async def get_by_label(self, label_number: str, label_value: str, options: Optional[Mapping[str, Any]] = None) -> Page:
        rx = glob_to_regex(label_value)
        matches = sorted(
            key for key, slots in self._labels.items()
            if key in self._items and label_number in slots and rx.fullmatch(slots[label_number])
        )
        entries = ((k, copy.deepcopy(self._items[k])) for k in matches)
        return paginate(entries, (options or {}).get("start"), self._limit(options))

    async def remove(self, key: str) -> bool:
        self._labels.pop(key, None)
        return self._items.pop(key, _MISSING) is not _MISSING


_MISSING = object()

__all__ = ["MemoryStore"]
