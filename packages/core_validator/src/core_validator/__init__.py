"""
Public API for the core_validator package.

Schema-driven validation and transformation of records. Import from here
in core_collection and callers to avoid drift.
"""

from .error_codes import ErrorCode, get_error_message  # noqa: F401
from .errors import (  # noqa: F401
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
from .rules import compile_schema  # noqa: F401
from .validator import (  # noqa: F401
    RuleContext,
    ValidationResult,
    make_validator,
    validate,
)

__all__ = [
    "validate",
    "make_validator",
    "compile_schema",
    "ValidationResult",
    "RuleContext",
    "ErrorCode",
    "get_error_message",
    "ValidationError",
    "ArrayError",
    "ObjectError",
    "CustomComputeError",
    "EnumError",
    "MaxError",
    "MinError",
    "MaxLengthError",
    "MinLengthError",
    "RequiredError",
    "FieldTypeError",
    "CustomValidationError",
]
