from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, NamedTuple, Optional

from core_config.constants import CONCAT_JOINER, ID_SEPARATOR, LABEL_SLOTS, LABEL_VALUE_JOINER, WILDCARD
from core_utils import jsonx
from core_utils.invoke import call_user_fn


_VALID_SLOTS = frozenset(LABEL_SLOTS)


class LabelError(ValueError):
    """Label configuration or derivation failure for one collection."""

    def __init__(self, collection_name: str, message: str):
        self.collection_name = collection_name
        self.reason = message
        super().__init__(f"LabelMap Error for collection '{collection_name}': {message}")


class LabelLookup(NamedTuple):
    label_number: str
    label_value: str


def _s(x: object | None) -> str:
    return "" if x is None else str(x)


def label_key(collection_id: str, label_name: str, value: object | None = None) -> str:
    """``<collection_id>:<label_name>_<value>``"""
    return f"{collection_id}{ID_SEPARATOR}{label_name}{LABEL_VALUE_JOINER}{_s(value)}"


def _label_name(slot: str, rule: Any) -> str:
    if isinstance(rule, str):
        return rule
    if isinstance(rule, Mapping) and rule.get("name"):
        return str(rule["name"])
    return slot


class LabelIndexer:
    """
    Derives secondary-index keys for one collection.

    Built once from the ``label1``..``label5`` entries of a config mapping;
    any other keys are ignored so a full schema config may be passed in.
    """

    def __init__(self, collection_name: Any, config: Optional[Mapping[str, Any]] = None):
        self.collection_name = collection_name
        labels: Dict[str, Any] = {}
        names: Dict[str, str] = {}

        for slot, rule in (config or {}).items():
            if not self.is_label(slot):
                continue
            name = _label_name(slot, rule)
            if name in names:
                self._fail(f"Label name '{name}' is declared by both '{names[name]}' and '{slot}'")
            labels[slot] = rule
            names[name] = slot

        self._labels_config: Mapping[str, Any] = MappingProxyType(labels)
        self._label_names: Mapping[str, str] = MappingProxyType(names)

    # ── introspection ────────────────────────────────────────────────────────

    @property
    def labels_config(self) -> Mapping[str, Any]:
        """slot → label rule"""
        return self._labels_config

    @property
    def label_names(self) -> Mapping[str, str]:
        """label name → slot"""
        return self._label_names

    @staticmethod
    def is_label(slot: Any) -> bool:
        return isinstance(slot, str) and slot in _VALID_SLOTS

    def has_label(self, field_name: str) -> bool:
        return field_name in self._label_names

    def get_label_number(self, label_name: str) -> str:
        slot = self._label_names.get(label_name)
        if not slot:
            self._fail(f"No label for '{label_name}'")
        return slot

    # ── derivation ───────────────────────────────────────────────────────────

    async def create_label_keys(
        self,
        collection_id: str,
        record: Mapping[str, Any],
        skipped: Optional[Iterable[str]] = None,
    ) -> Dict[str, str]:
        """Return ``{slot: key}`` for every label not named in *skipped*."""
        skip = set(skipped or ())
        keys: Dict[str, str] = {}
        for name, slot in self._label_names.items():
            if name in skip:
                continue
            keys[slot] = await self._create_label_key(collection_id, name, slot, record)
        return keys

    async def _create_label_key(self, collection_id: str, name: str, slot: str, record: Mapping[str, Any]) -> str:
        rule = self._labels_config[slot]

        if isinstance(rule, Mapping) and "concat" in rule:
            concat = rule["concat"]
            if not isinstance(concat, (list, tuple)):
                self._fail(f"concat must be an array for '{name}'")
            if not all(key in record for key in concat):
                self._fail(f"Concat key is missing for '{name}'")
            joined = CONCAT_JOINER.join(_s(record[key]) for key in concat)
            return label_key(collection_id, name, joined)

        if rule == name:
            return label_key(collection_id, name, record.get(name))

        fn = rule
        if isinstance(rule, Mapping):
            fn = rule.get("computed") or rule.get("value")

        if callable(fn):
            try:
                value = await call_user_fn(fn, record, {"item": record, "label_name": name})
            except Exception as exc:
                self._fail(f"Error in {name} : {exc}")
            return label_key(collection_id, name, value)

        return f"{collection_id}{ID_SEPARATOR}{slot}"

    def get_arguments_for_get_by_label(self, collection_id: str, filter: Mapping[str, Any]) -> LabelLookup:
        """
        Resolve the first labelled key of *filter* into the slot and the lookup
        value for ``KeyValueStore.get_by_label``. The value always ends in ``*``
        so the store matches by prefix.
        """
        for key, value in filter.items():
            if key in self._label_names:
                label_value = _s(value)
                if WILDCARD not in label_value:
                    label_value += WILDCARD
                return LabelLookup(self.get_label_number(key), label_key(collection_id, key, label_value))

        self._fail(
            f"No mapped label found for filter '{jsonx.dumps(dict(filter), sort_keys=False)}'"
            f" for collection '{self.collection_name}'"
        )

    def _fail(self, message: str) -> None:
        raise LabelError(str(self.collection_name), message)


__all__ = ["LabelError", "LabelIndexer", "LabelLookup", "label_key"]
