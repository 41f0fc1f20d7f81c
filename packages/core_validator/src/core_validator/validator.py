from __future__ import annotations

import copy
from collections.abc import Mapping as _MappingABC
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Mapping, Optional

from core_config.constants import WILDCARD
from core_utils.invoke import call_user_fn

from .error_codes import DEFAULT_LANGUAGE
from .errors import (
    ArrayError,
    CustomComputeError,
    CustomValidationError,
    EnumError,
    FieldTypeError,
    MaxError,
    MaxLengthError,
    MinError,
    MinLengthError,
    ObjectError,
    RequiredError,
    ValidationError,
)
from .rules import (
    TYPE_NAMES,
    FieldRule,
    NestedArrayRule,
    NestedObjectRule,
    ScalarRule,
    TransformRule,
    _normalise_options,
    compile_schema,
)


ACTION_GET = "get"
ACTION_SET = "set"

# Leaf steps run in this order, and only when the key is present in the
# merged (global config + rule) option set.
STEP_ORDER: tuple[str, ...] = (
    "default",
    "enum",
    "lowercase",
    "proper",
    "trim",
    "uppercase",
    "max",
    "min",
    "max_length",
    "min_length",
    "required",
    "type",
    "validate",
    "computed",
    "get",
    "set",
)


@dataclass
class ValidationResult:
    validated: Any
    unique_fields_to_check: List[str] = field(default_factory=list)
    refs: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class RuleContext(_MappingABC):
    """
    Second argument handed to ``computed``/``get``/``set``/transform callbacks.

    Attribute access gives the call details; item access reads the working
    record, so ``ctx["name"]`` sees sibling fields already processed.
    """

    __slots__ = ("value", "item", "field", "metadata")

    def __init__(self, value: Any, item: Any, field: Optional[str], metadata: Mapping[str, Any]):
        self.value = value
        self.item = item
        self.field = field
        self.metadata = metadata

    def _record(self) -> Mapping[str, Any]:
        return self.item if isinstance(self.item, Mapping) else {}

    def __getitem__(self, key: str) -> Any:
        return self._record()[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._record())

    def __len__(self) -> int:
        return len(self._record())

    def __repr__(self) -> str:
        return f"RuleContext(field={self.field!r}, value={self.value!r})"


@dataclass(frozen=True)
class _Pass:
    """Per-call validation settings, threaded through the recursion."""
    action: Optional[str] = None
    global_config: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)
    parent_field: Optional[str] = None
    lang: str = DEFAULT_LANGUAGE

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> "_Pass":
        config = config or {}
        return cls(
            action=config.get("action"),
            global_config=dict(_normalise_options(config.get("global_config") or {})),
            metadata=dict(config.get("metadata") or {}),
            parent_field=config.get("parent_field"),
            lang=config.get("lang") or DEFAULT_LANGUAGE,
        )

    def child(self, parent_field: str) -> "_Pass":
        return _Pass(self.action, self.global_config, self.metadata, parent_field, self.lang)


# ── public API ────────────────────────────────────────────────────────────────

async def validate(schema: Any, value: Any = None, config: Optional[Mapping[str, Any]] = None) -> ValidationResult:
    """
    Validate and transform *value* against *schema*.

    ``config`` keys: ``action`` (``"get"``/``"set"``/None), ``global_config``
    (rule options applied to every leaf), ``metadata`` (exposed to callbacks
    as ``ctx.metadata``), ``lang`` (error message language).
    Any failure raises a ``ValidationError`` subclass; no partial record is returned.
    """
    return await _validate(compile_schema(schema), value, _Pass.from_config(config))


def make_validator(schema: Any) -> Callable[..., Awaitable[ValidationResult]]:
    """Compile *schema* once and return ``async (value=None, config=None) -> ValidationResult``."""
    compiled = compile_schema(schema)

    async def _bound(value: Any = None, config: Optional[Mapping[str, Any]] = None) -> ValidationResult:
        return await _validate(compiled, value, _Pass.from_config(config))

    return _bound


# ── recursion ────────────────────────────────────────────────────────────────

async def _validate(rule: FieldRule, value: Any, cfg: _Pass) -> ValidationResult:
    if isinstance(rule, TransformRule):
        return ValidationResult(validated=await _run_schema_transform(rule, value, cfg))

    if not isinstance(value, Mapping):
        scalar = rule.as_scalar() if isinstance(rule, NestedObjectRule) else rule
        return ValidationResult(validated=await _validate_value(scalar, value, None, cfg.parent_field, cfg))

    if not isinstance(rule, NestedObjectRule):
        return ValidationResult(validated=await _validate_value(rule, value, None, cfg.parent_field, cfg))

    working: Dict[str, Any] = dict(value)
    result = ValidationResult(validated={})

    for name, field_rule in rule.fields.items():
        if isinstance(field_rule, ScalarRule) and _skip_on_pass(field_rule, cfg.action):
            result.skipped.append(name)
            continue

        validated = await _validate_value(field_rule, working.get(name), working, name, cfg)
        working[name] = validated
        result.validated[name] = validated

        if isinstance(field_rule, ScalarRule):
            if field_rule.unique:
                result.unique_fields_to_check.append(name)
            if field_rule.ref:
                result.refs.append(name)

    return result


def _skip_on_pass(rule: ScalarRule, action: Optional[str]) -> bool:
    # Getter-backed fields are virtual unless this pass reads (get) or the
    # rule can also write itself (set on a set pass).
    options = rule.options
    if "get" not in options or options.get("computed"):
        return False
    if action is None:
        return True
    return action == ACTION_SET and "set" not in options


async def _validate_value(
    rule: FieldRule,
    value: Any,
    record: Optional[Dict[str, Any]],
    name: Optional[str],
    cfg: _Pass,
) -> Any:
    if isinstance(rule, NestedArrayRule):
        return await _validate_array(rule, value, name, cfg)

    if isinstance(rule, NestedObjectRule):
        if not isinstance(value, Mapping):
            raise ObjectError(name, f"Field: {name}", lang=cfg.lang)
        nested = await _validate(rule, value, cfg.child(name) if name else cfg)
        return nested.validated

    return await _run_leaf(rule, value, record, name, cfg)


async def _validate_array(rule: NestedArrayRule, value: Any, name: Optional[str], cfg: _Pass) -> List[Any]:
    if value is None and rule.has_default:
        value = copy.deepcopy(rule.default)

    if rule.strict and not isinstance(value, list):
        raise ArrayError(name, f"Field: {name}", lang=cfg.lang)

    if value is None:
        value = []
    elif not isinstance(value, (list, tuple)):
        value = [value]

    element_cfg = cfg.child(name) if name else cfg
    out: List[Any] = []
    for element in value:
        res = await _validate(rule.element, element, element_cfg)
        out.append(res.validated)
    return out


async def _run_schema_transform(rule: TransformRule, value: Any, cfg: _Pass) -> Any:
    if rule.is_type:
        return _coerce(rule.fn, value, cfg.parent_field, cfg)
    try:
        return await call_user_fn(rule.fn, "" if value is None else value)
    except ValidationError:
        raise
    except Exception as exc:
        raise FieldTypeError(cfg.parent_field, f"Field: {cfg.parent_field} - {exc}", lang=cfg.lang) from exc


# ── leaf pipeline ─────────────────────────────────────────────────────────────

async def _run_leaf(
    rule: ScalarRule | TransformRule,
    value: Any,
    record: Optional[Dict[str, Any]],
    name: Optional[str],
    cfg: _Pass,
) -> Any:
    field_name = name or cfg.parent_field
    local = rule.options if isinstance(rule, ScalarRule) else {}
    options: Dict[str, Any] = {**cfg.global_config, **local}

    for step in STEP_ORDER:
        if step not in options:
            continue
        if step == "computed" and cfg.action == ACTION_GET:
            continue
        value = await _apply_step(step, options, value, record, field_name, cfg)
        if record is not None and name is not None:
            record[name] = value

    if isinstance(rule, TransformRule):
        if rule.is_type:
            return _coerce(rule.fn, value, field_name, cfg)
        return await _call_custom(rule.fn, value, record, field_name, cfg)

    return value


async def _apply_step(
    step: str,
    options: Mapping[str, Any],
    value: Any,
    record: Optional[Dict[str, Any]],
    name: Optional[str],
    cfg: _Pass,
) -> Any:
    lang = cfg.lang
    option = options[step]

    if step == "default":
        return copy.deepcopy(option) if value is None else value

    if step == "enum":
        allowed = list(option or [])
        if value is not None and value not in allowed:
            raise EnumError(name, f"Field: {name} - Value: {value} - Enum: {', '.join(map(str, allowed))}", lang=lang)
        return value

    if step in ("lowercase", "proper", "trim", "uppercase"):
        if not option or not isinstance(value, str):
            return value
        if step == "lowercase":
            return value.lower()
        if step == "uppercase":
            return value.upper()
        if step == "trim":
            return value.strip()
        return value[:1].upper() + value[1:]

    if step == "max":
        number = _as_number(value)
        if option is not None and number is not None and number > option:
            raise MaxError(name, f"Field: {name} - Value: {value} - Max: {option}", lang=lang)
        return value

    if step == "min":
        number = _as_number(value)
        if option is not None and number is not None and number < option:
            raise MinError(name, f"Field: {name} - Value: {value} - Min: {option}", lang=lang)
        return value

    if step == "max_length":
        if option is not None and hasattr(value, "__len__") and len(value) > option:
            raise MaxLengthError(name, f"Field: {name} - Value: {value} - Max Length: {option}", lang=lang)
        return value

    if step == "min_length":
        if option is not None and hasattr(value, "__len__") and len(value) < option:
            raise MinLengthError(name, f"Field: {name} - Value: {value} - Min Length: {option}", lang=lang)
        return value

    if step == "required":
        if option and value is None:
            raise RequiredError(name, f"Field: {name}", lang=lang)
        return value

    if step == "type":
        return _check_type(option, options, value, name, cfg)

    if step == "validate":
        try:
            ok = await call_user_fn(option, value)
        except ValidationError:
            raise
        except Exception as exc:
            raise CustomValidationError(name, f"Field: {name} - Value: {value} - {exc}", lang=lang) from exc
        if not ok:
            raise CustomValidationError(name, f"Field: {name} - Value: {value}", lang=lang)
        return value

    if step == "computed":
        return await _call_custom(option, value, record, name, cfg)

    if step in (ACTION_GET, ACTION_SET):
        if cfg.action != step:
            return value
        return await _call_custom(option, value, record, name, cfg)

    return value


def _check_type(declared: Any, options: Mapping[str, Any], value: Any, name: Optional[str], cfg: _Pass) -> Any:
    if declared is None or declared == WILDCARD or _matches_type(declared, value):
        return value
    if options.get("strict"):
        raise FieldTypeError(name, f"Field: {name} - Value: {value} - Type: {_type_name(declared)}", lang=cfg.lang)
    if isinstance(declared, type):
        return _coerce(declared, value, name, cfg)
    return value


def _matches_type(declared: Any, value: Any) -> bool:
    if isinstance(declared, type):
        accepted: tuple[type, ...] = (declared,)
    else:
        accepted = TYPE_NAMES.get(str(declared).lower(), ())
        if not accepted:
            return type(value).__name__.lower() == str(declared).lower()
    if isinstance(value, bool) and bool not in accepted:
        return False
    return isinstance(value, accepted)


def _type_name(declared: Any) -> str:
    return declared.__name__.lower() if isinstance(declared, type) else str(declared)


def _coerce(declared: type, value: Any, name: Optional[str], cfg: _Pass) -> Any:
    """Coerce by calling the type; a missing value becomes the type's zero value."""
    try:
        return declared() if value is None else declared(value)
    except (TypeError, ValueError, ArithmeticError, InvalidOperation) as exc:
        raise FieldTypeError(name, f"Field: {name} - {exc}", lang=cfg.lang) from exc


def _as_number(value: Any) -> Optional[float | Decimal]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


async def _call_custom(
    fn: Callable[..., Any],
    value: Any,
    record: Optional[Dict[str, Any]],
    name: Optional[str],
    cfg: _Pass,
) -> Any:
    item = record if record is not None else value
    ctx = RuleContext(value, item, name, cfg.metadata)
    try:
        return await call_user_fn(fn, value, ctx)
    except ValidationError:
        raise
    except Exception as exc:
        raise CustomComputeError(name, f"Field: {name} - {exc}", lang=cfg.lang) from exc


__all__ = [
    "ACTION_GET",
    "ACTION_SET",
    "STEP_ORDER",
    "RuleContext",
    "ValidationResult",
    "make_validator",
    "validate",
]
