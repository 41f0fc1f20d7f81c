from __future__ import annotations

import time
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from core_config import Settings, get_settings
from core_config.constants import ID_SEGMENT_JOINER, ID_SEPARATOR, WILDCARD
from core_labels import LabelIndexer
from core_logging import get_logger, log_stage
from core_storage import KeyValueStore, get_store
from core_utils import generate_date, generate_suffix, jsonx
from core_validator import ValidationError, ValidationResult, compile_schema, make_validator
from core_validator.validator import ACTION_GET, ACTION_SET

from .errors import CollectionIdError, DuplicateValueError, ItemNotFoundError, UniqueLabelError

logger = get_logger("labelkv.collection")

NameTemplate = Union[str, Sequence[str]]
Filter = Union[None, str, Mapping[str, Any]]


def _elapsed_ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000


def _is_empty(response: Any) -> bool:
    if response is None:
        return True
    if isinstance(response, Mapping):
        return not response or not response.get("items")
    if isinstance(response, (list, tuple)):
        return not response
    return False


class Collection:
    """
    Validated records plus label indexes on top of a KeyValueStore.

    ``name`` is either a plain collection name or ``[base, *props]``, in which
    case record ids are ``base-<props[0]>-<props[1]>...`` built from the record
    (``:`` in values becomes ``-``). ``schema_config`` holds field rules and
    may embed ``label1``..``label5`` slots; ``labels`` adds more slots.
    """

    def __init__(
        self,
        name: NameTemplate,
        schema_config: Mapping[str, Any],
        global_config: Optional[Mapping[str, Any]] = None,
        *,
        labels: Optional[Mapping[str, Any]] = None,
        store: Optional[KeyValueStore] = None,
        lang: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        if isinstance(name, str):
            self.name = name
        elif isinstance(name, (list, tuple)) and name and all(isinstance(p, str) for p in name):
            self.name = ",".join(name)
        else:
            raise CollectionIdError("Collection name must be a string or array of strings")
        self.template: NameTemplate = name if isinstance(name, str) else tuple(name)

        s = settings or get_settings()
        self.lang = lang or s.error_language
        self.global_config: Dict[str, Any] = dict(global_config or {})

        label_config = {k: v for k, v in schema_config.items() if LabelIndexer.is_label(k)}
        label_config.update(labels or {})
        self.labels = LabelIndexer(self.name, label_config)

        self.schema = compile_schema({k: v for k, v in schema_config.items() if not LabelIndexer.is_label(k)})
        self._validator = make_validator(self.schema)
        self.store: KeyValueStore = store if store is not None else get_store(s)

    def __repr__(self) -> str:
        return f"Collection({self.name!r})"

    # ── ids ──────────────────────────────────────────────────────────────────

    def build_id(self, context: Optional[Mapping[str, Any]] = None, include_suffix: bool = False) -> str:
        """
        Composite id for *context*. With ``include_suffix`` a
        ``:<UTC timestamp>-<random hex>`` tail makes the id unique.
        """
        suffix = (
            f"{ID_SEPARATOR}{generate_date()}{ID_SEGMENT_JOINER}{generate_suffix()}"
            if include_suffix else ""
        )
        if isinstance(self.template, str):
            return f"{self.template}{suffix}"

        base, *props = self.template
        context = context or {}
        segments = [base]
        try:
            for prop in props:
                if prop not in context:
                    raise CollectionIdError(f"Error building _id: Property '{prop}' does not exist in context..")
                value = context[prop]
                segments.append(("" if value is None else str(value)).replace(ID_SEPARATOR, ID_SEGMENT_JOINER))
        except CollectionIdError as exc:
            raise CollectionIdError(f"Error building schema_id for {self.name}: {exc}") from exc
        return ID_SEGMENT_JOINER.join(segments) + suffix

    def _listing_pattern(self) -> str:
        if isinstance(self.template, str):
            return f"{self.template}{ID_SEPARATOR}{WILDCARD}"
        return f"{self.template[0]}{ID_SEGMENT_JOINER}{WILDCARD}"

    # ── validation ───────────────────────────────────────────────────────────

    async def validate(self, value: Any, action: Optional[str] = None) -> ValidationResult:
        config = {
            "action": action,
            "global_config": self.global_config,
            "lang": self.lang,
            "metadata": {"collection": self.name, "action": action},
        }
        try:
            return await self._validator(value, config)
        except ValidationError as exc:
            logger.warning(
                "validation_failed",
                collection=self.name,
                action=action,
                field=exc.field,
                error_code=exc.code.value,
            )
            raise

    async def _validate_items(self, entries: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for entry in entries:
            result = await self.validate(entry["value"], ACTION_GET)
            validated = result.validated
            if not isinstance(validated, dict):
                items.append({"_id": entry["key"], "value": validated})
                continue
            for ref in result.refs:
                validated[ref] = await self._fetch_ref(validated.get(ref))
            items.append({"_id": entry["key"], **validated})
        return items

    async def _fetch_ref(self, ref_key: Any) -> Any:
        if isinstance(ref_key, str):
            return await self.store.get(ref_key)
        return ref_key

    async def _check_duplicate(self, validated: Mapping[str, Any], field: str, own_id: Optional[str]) -> None:
        if not self.labels.has_label(field):
            raise UniqueLabelError(f"Unique field '{field}' for '{self.name}' must be labeled in a labelsConfig...")

        value = validated.get(field)
        # Label lookups match by prefix; compare stored values, not the get view.
        async for key, stored in self._label_entries({field: value, **validated}):
            if key != own_id and isinstance(stored, Mapping) and stored.get(field) == value:
                raise DuplicateValueError(f"Duplicate value for '{field}' exists in collection '{self.name}'")

    async def _label_entries(self, filter: Mapping[str, Any]) -> AsyncIterator[Tuple[str, Any]]:
        """Raw ``(key, stored value)`` pairs for a label filter, across every page."""
        lookup = self.labels.get_arguments_for_get_by_label(self.build_id(filter), filter)
        options: Dict[str, Any] = {}
        while True:
            response = await self.store.get_by_label(lookup.label_number, lookup.label_value, options)
            for entry in response.get("items") or []:
                yield entry["key"], entry["value"]
            if not response.get("last_key"):
                return
            options = {"start": response["last_key"]}

    # ── operations ───────────────────────────────────────────────────────────

    async def save(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate (``set``), check unique fields, write with label keys, return the ``get`` view."""
        if not isinstance(record, Mapping):
            raise TypeError("Record must be an object")
        t0 = time.perf_counter()

        result = await self.validate(record, ACTION_SET)
        validated = result.validated
        own_id = record.get("_id")

        for field in result.unique_fields_to_check:
            await self._check_duplicate(validated, field, own_id)

        record_id = own_id or self.build_id(validated, include_suffix=True)
        collection_id = record_id.split(ID_SEPARATOR)[0]

        label_keys = await self.labels.create_label_keys(collection_id, validated)
        saved = await self.store.set(record_id, validated, label_keys)
        view = await self.validate(saved, ACTION_GET)

        log_stage(logger, "collection", "save",
                  collection=self.name, record_id=record_id,
                  labels=sorted(label_keys), latency_ms=_elapsed_ms(t0))
        return {"_id": record_id, **view.validated}

    async def update(self, filter: Filter, patch: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Merge *patch* over the one record matching *filter* and rewrite it.

        The merged record is validated without an action, so getter-only
        fields are skipped: they keep their stored value and label entries.
        """
        t0 = time.perf_counter()
        existing = await self.find_one(filter)
        if existing is None:
            raise ItemNotFoundError(f"No item found with filter '{jsonx.dumps(filter, sort_keys=False)}'")

        record_id = existing["_id"]
        stored = await self.store.get(record_id)
        if not isinstance(stored, Mapping):
            stored = {k: v for k, v in existing.items() if k != "_id"}
        merged = {**stored, **patch}

        result = await self.validate(merged)
        for field in result.unique_fields_to_check:
            await self._check_duplicate(result.validated, field, record_id)

        collection_id = record_id.split(ID_SEPARATOR)[0]
        label_keys = await self.labels.create_label_keys(collection_id, result.validated, result.skipped)

        to_store = dict(result.validated)
        for field in result.skipped:
            if field in stored:
                to_store[field] = stored[field]
        updated = await self.store.set(record_id, to_store, label_keys)
        view = await self.validate(updated, ACTION_GET)

        log_stage(logger, "collection", "update",
                  collection=self.name, record_id=record_id,
                  labels=sorted(label_keys), skipped=list(result.skipped), latency_ms=_elapsed_ms(t0))
        return {"_id": record_id, **view.validated}

    async def find(self, filter: Filter = None, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Look records up by key, key pattern or labelled field.

        * ``None`` / empty: every record of the collection.
        * ``str``: a literal key, or a ``*`` pattern over keys.
        * mapping: the first labelled field in it, matched by prefix.

        Returns ``{"items", "last_key", "next"}``; items carry ``_id``.
        """
        t0 = time.perf_counter()
        if filter is None or (isinstance(filter, (str, Mapping)) and len(filter) == 0):
            filter = self._listing_pattern()

        if isinstance(filter, str):
            response = await self.store.get(filter, options)
            if WILDCARD in filter:
                if _is_empty(response):
                    page: Dict[str, Any] = {"items": [], "last_key": None, "next": False}
                else:
                    page = {
                        "items": await self._validate_items(response["items"]),
                        "last_key": response.get("last_key"),
                        "next": response.get("next"),
                    }
            elif response is None:
                page = {"items": [], "last_key": None, "next": False}
            else:
                page = {
                    "items": await self._validate_items([{"key": filter, "value": response}]),
                    "last_key": None,
                    "next": False,
                }
            log_stage(logger, "collection", "find", collection=self.name, mode="key",
                      count=len(page["items"]), latency_ms=_elapsed_ms(t0))
            return page

        if not isinstance(filter, Mapping):
            raise TypeError("Filter must be an object or string")

        collection_id = self.build_id(filter)
        lookup = self.labels.get_arguments_for_get_by_label(collection_id, filter)
        response = await self.store.get_by_label(lookup.label_number, lookup.label_value, options)
        page = {
            "items": await self._validate_items(response.get("items") or []),
            "last_key": response.get("last_key"),
            "next": response.get("next"),
        }
        log_stage(logger, "collection", "find", collection=self.name, mode="label",
                  label=lookup.label_number, count=len(page["items"]), latency_ms=_elapsed_ms(t0))
        return page

    async def find_all(self, filter: Filter = None, options: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """Follow ``last_key`` until the store has no more pages."""
        response = await self.find(filter, options)
        items = list(response["items"])
        while response.get("last_key"):
            response = await self.find(filter, {**(options or {}), "start": response["last_key"]})
            items.extend(response["items"])
        return items

    async def find_one(self, filter: Filter = None) -> Optional[Dict[str, Any]]:
        items = (await self.find(filter))["items"]
        return items[0] if items else None

    async def erase(self, filter: Filter) -> Dict[str, bool]:
        """Remove by literal key, or the first record a filter finds. Returns ``{"removed": bool}``."""
        if isinstance(filter, str):
            record_id = filter
        else:
            found = await self.find_one(filter)
            if not found:
                raise ItemNotFoundError(
                    f"Item not found when trying to perform erase in collection '{self.name}'"
                    f" for filter '{jsonx.dumps(filter, sort_keys=False)}'"
                )
            record_id = found["_id"]

        removed = await self.store.remove(record_id)
        log_stage(logger, "collection", "erase", collection=self.name, record_id=record_id, removed=removed)
        return {"removed": removed}


__all__ = ["Collection"]
