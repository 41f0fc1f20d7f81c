from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from redis import asyncio as aioredis

from core_config import Settings, get_settings
from core_config.constants import WILDCARD
from core_logging import get_logger, log_stage
from core_utils import jsonx

from .base import DEFAULT_PAGE_SIZE, KeyValueStore, Page, check_labels, is_pattern, paginate

logger = get_logger("labelkv.store")

# Label members are "<label value>\x00<record key>" so one sorted set per slot
# answers both exact and prefix lookups with ZRANGEBYLEX.
_SEP = "\x00"
_LEX_TOP = b"\xff"
_GLOB_SPECIAL = re.compile(r"([?\[\]\\])")


def get_redis_client(settings: Optional[Settings] = None) -> Any:
    """Build an asyncio Redis client from settings (``REDIS_URL``, ``REDIS_MAX_CONNECTIONS``)."""
    s = settings or get_settings()
    client = aioredis.from_url(
        s.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=s.redis_max_connections,
    )
    log_stage(logger, "store", "redis_client_init",
              namespace=s.store_namespace, max_connections=s.redis_max_connections)
    return client


def _escape_glob(text: str) -> str:
    return _GLOB_SPECIAL.sub(r"\\\1", text)


class RedisStore(KeyValueStore):
    """
    Store on a redis.asyncio client.

    Physical layout under ``namespace``:
      ``<ns>:item:<key>``    JSON value
      ``<ns>:labels:<key>``  hash slot → label value (so rewrites drop stale entries)
      ``<ns>:label:<slot>``  sorted set of ``<label value>\\x00<key>`` members

    Label lookups support exact values and a single trailing ``*`` (prefix).
    """

    def __init__(self, client: Any, namespace: str = "labelkv", page_size: int = DEFAULT_PAGE_SIZE):
        if client is None:
            raise ValueError("RedisStore requires a valid redis client")
        self._r = client
        self._ns = namespace
        self.page_size = page_size

    # ── key layout ───────────────────────────────────────────────────────────

    def _item(self, key: str) -> str:
        return f"{self._ns}:item:{key}"

    def _label_hash(self, key: str) -> str:
        return f"{self._ns}:labels:{key}"

    def _label_index(self, slot: str) -> str:
        return f"{self._ns}:label:{slot}"

    # ── KeyValueStore ────────────────────────────────────────────────────────

    async def get(self, key: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        if not is_pattern(key):
            raw = await self._r.get(self._item(key))
            return None if raw is None else jsonx.loads(raw)

        prefix = self._item("")
        match = _escape_glob(prefix) + "*".join(_escape_glob(p) for p in key.split(WILDCARD))
        keys: List[str] = []
        async for physical in self._r.scan_iter(match=match, count=max(self.page_size, 100)):
            keys.append(physical[len(prefix):])
        keys.sort()

        start = (options or {}).get("start")
        limit = self._limit(options)
        wanted = [k for k in keys if start is None or k > start][: limit + 1]
        values = await self._r.mget([self._item(k) for k in wanted]) if wanted else []
        entries = [(k, jsonx.loads(v)) for k, v in zip(wanted, values) if v is not None]
        return paginate(entries, None, limit)

    async def set(self, key: str, value: Any, labels: Optional[Mapping[str, str]] = None) -> Any:
        slots = check_labels(labels)
        previous: Dict[str, str] = await self._r.hgetall(self._label_hash(key)) if slots else {}

        pipe = self._r.pipeline(transaction=True)
        pipe.set(self._item(key), jsonx.dumps(value))
        for slot, label_value in slots.items():
            old = previous.get(slot)
            if old is not None and old != label_value:
                pipe.zrem(self._label_index(slot), f"{old}{_SEP}{key}")
            pipe.zadd(self._label_index(slot), {f"{label_value}{_SEP}{key}": 0})
        if slots:
            pipe.hset(self._label_hash(key), mapping=slots)
        await pipe.execute()

        if slots:
            logger.debug("labels_written", key=key, slots=sorted(slots))
        return value

    async def get_by_label(self, label_number: str, label_value: str, options: Optional[Mapping[str, Any]] = None) -> Page:
        lo = label_value[:-1] if label_value.endswith(WILDCARD) else f"{label_value}{_SEP}"
        lo_bytes = lo.encode("utf-8")
        lower = b"[" + lo_bytes
        upper = b"[" + lo_bytes + _LEX_TOP

        start = (options or {}).get("start")
        if start is not None:
            # Resume after the cursor record's own member.
            current = await self._r.hget(self._label_hash(start), label_number)
            if current is not None:
                member = f"{current}{_SEP}{start}".encode("utf-8")
                if member >= lo_bytes:
                    lower = b"(" + member

        limit = self._limit(options)
        members = await self._r.zrangebylex(self._label_index(label_number), lower, upper, start=0, num=limit + 1)
        keys = [m.partition(_SEP)[2] for m in members]
        values = await self._r.mget([self._item(k) for k in keys]) if keys else []

        items = [{"key": k, "value": jsonx.loads(v)} for k, v in zip(keys, values) if v is not None]
        more = len(members) > limit
        page = items[:limit]
        last_key = page[-1]["key"] if more and page else None
        return {"items": page, "last_key": last_key, "next": more}

    async def remove(self, key: str) -> bool:
        previous: Dict[str, str] = await self._r.hgetall(self._label_hash(key))
        pipe = self._r.pipeline(transaction=True)
        pipe.delete(self._item(key))
        pipe.delete(self._label_hash(key))
        for slot, label_value in previous.items():
            pipe.zrem(self._label_index(slot), f"{label_value}{_SEP}{key}")
        results = await pipe.execute()
        return bool(results[0])

    async def close(self) -> None:
        await self._r.aclose()


__all__ = ["RedisStore", "get_redis_client"]
