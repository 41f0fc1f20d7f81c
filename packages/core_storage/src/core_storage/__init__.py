from __future__ import annotations

from typing import Optional

from core_config import Settings, get_settings
from core_logging import get_logger, log_once_process

from .base import DEFAULT_PAGE_SIZE, KeyValueStore, Page
from .memory import MemoryStore
from .redis_store import RedisStore, get_redis_client

logger = get_logger("labelkv.store")


def get_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Build the store selected by ``STORE_BACKEND`` (``memory`` or ``redis``)."""
    s = settings or get_settings()
    backend = s.store_backend
    if backend == "memory":
        store: KeyValueStore = MemoryStore(page_size=s.store_page_size)
    elif backend == "redis":
        store = RedisStore(get_redis_client(s), namespace=s.store_namespace, page_size=s.store_page_size)
    else:
        raise ValueError(f"Unknown STORE_BACKEND '{backend}' (expected 'memory' or 'redis')")
    log_once_process(logger, f"store_backend:{backend}", event="store_selected", backend=backend)
    return store


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "KeyValueStore",
    "MemoryStore",
    "Page",
    "RedisStore",
    "get_redis_client",
    "get_store",
]
