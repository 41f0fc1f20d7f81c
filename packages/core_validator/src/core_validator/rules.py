"""
Field rule compilation.

A schema is a mapping of field name → rule, where a rule may be written as
a Python type, a callable, a list, a type-name string, or an options
mapping. ``compile_schema`` classifies each rule once into one of four
frozen variants so validation never has to re-inspect raw rule shapes.
"""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from functools import cached_property
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union

from core_config.constants import RESERVED_RULE_KEYS, WILDCARD

# Option keys accepted in snake_case; camelCase spellings are accepted as aliases.
_OPTION_ALIASES = {
    "maxLength": "max_length",
    "minLength": "min_length",
}

PRIMITIVE_TYPES: tuple[type, ...] = (
    str, int, float, bool, dict, list, set, frozenset, tuple, bytes,
    Decimal, _dt.date, _dt.datetime,
)

TYPE_NAMES: Mapping[str, tuple[type, ...]] = MappingProxyType({
    "string": (str,),
    "str": (str,),
    "number": (int, float, Decimal),
    "int": (int,),
    "integer": (int,),
    "float": (float,),
    "boolean": (bool,),
    "bool": (bool,),
    "object": (dict,),
    "dict": (dict,),
    "array": (list,),
    "list": (list,),
})


@dataclass(frozen=True)
class ScalarRule:
    """Leaf rule carrying option keys (type, default, enum, get/set, …)."""
    options: Mapping[str, Any]

    @property
    def type(self) -> Any:
        return self.options.get("type")

    @property
    def strict(self) -> bool:
        return bool(self.options.get("strict"))

    @property
    def unique(self) -> bool:
        return bool(self.options.get("unique"))

    @property
    def ref(self) -> bool:
        return bool(self.options.get("ref"))


@dataclass(frozen=True)
class TransformRule:
    """Bare callable rule. ``is_type`` marks primitive type constructors."""
    fn: Callable[..., Any]
    is_type: bool = False


@dataclass(frozen=True)
class NestedObjectRule:
    """
    Mapping without reserved keys: a sub-schema when the value is a record.

    Validated against a scalar, the same mapping reads as a bag of leaf
    options (``{"lowercase": True}``), so child rules compile on first use.
    """
    raw: Mapping[str, Any] = field(default_factory=dict)

    @cached_property
    def fields(self) -> Mapping[str, "FieldRule"]:
        return MappingProxyType({k: compile_rule(v, k) for k, v in self.raw.items()})

    def as_scalar(self) -> "ScalarRule":
        return ScalarRule(_normalise_options(self.raw))


_NO_DEFAULT = object()


@dataclass(frozen=True)
class NestedArrayRule:
    element: "FieldRule"
    default: Any = _NO_DEFAULT
    strict: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not _NO_DEFAULT


FieldRule = Union[ScalarRule, TransformRule, NestedObjectRule, NestedArrayRule]

WILDCARD_RULE = ScalarRule(MappingProxyType({"type": WILDCARD}))


def _normalise_options(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType({_OPTION_ALIASES.get(k, k): v for k, v in raw.items()})


def is_nested_array(rule: Any) -> bool:
    if rule is list or isinstance(rule, list):
        return True
    if isinstance(rule, Mapping):
        declared = rule.get("type")
        return declared is list or isinstance(declared, list)
    return False


def is_nested_object(rule: Any) -> bool:
    return isinstance(rule, Mapping) and not any(k in rule for k in RESERVED_RULE_KEYS)


def is_primitive_type(fn: Any) -> bool:
    return isinstance(fn, type) and fn in PRIMITIVE_TYPES


def _element_rule(raw: Any) -> FieldRule:
    if isinstance(raw, list):
        return compile_rule(raw[0]) if raw else WILDCARD_RULE
    return WILDCARD_RULE


def compile_rule(rule: Any, name: Optional[str] = None) -> FieldRule:
    """Classify one raw rule into its FieldRule variant."""
    if isinstance(rule, (ScalarRule, TransformRule, NestedObjectRule, NestedArrayRule)):
        return rule

    if is_nested_array(rule):
        if isinstance(rule, Mapping):
            return NestedArrayRule(
                element=_element_rule(rule.get("type")),
                default=rule.get("default", _NO_DEFAULT),
                strict=bool(rule.get("strict")),
            )
        return NestedArrayRule(element=_element_rule(rule))

    if isinstance(rule, type):
        return TransformRule(rule, is_type=is_primitive_type(rule))

    if callable(rule):
        return TransformRule(rule)

    if is_nested_object(rule):
        return NestedObjectRule(MappingProxyType(dict(rule)))

    if isinstance(rule, Mapping):
        return ScalarRule(_normalise_options(rule))

    if isinstance(rule, str):
        return ScalarRule(MappingProxyType({"type": rule}))

    where = f" for field '{name}'" if name else ""
    raise TypeError(f"Unsupported rule{where}: {rule!r}")


def compile_schema(schema: Any) -> FieldRule:
    """
    Compile a whole schema. A mapping with no reserved keys becomes the
    record-level NestedObjectRule; anything else is a single field rule.
    """
    return compile_rule(schema)


__all__ = [
    "ScalarRule",
    "TransformRule",
    "NestedObjectRule",
    "NestedArrayRule",
    "FieldRule",
    "WILDCARD_RULE",
    "PRIMITIVE_TYPES",
    "TYPE_NAMES",
    "compile_rule",
    "compile_schema",
    "is_nested_array",
    "is_nested_object",
    "is_primitive_type",
]
