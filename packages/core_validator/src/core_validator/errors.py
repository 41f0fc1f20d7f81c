from __future__ import annotations
from typing import Optional

from .error_codes import DEFAULT_LANGUAGE, ErrorCode, get_error_message


class ValidationError(ValueError):
    """Base class for field validation failures; ``code`` is the catalogue key."""

    code: ErrorCode

    def __init__(self, field: Optional[str] = None, context: Optional[str] = None, *, lang: str = DEFAULT_LANGUAGE):
        self.field = field
        self.context = context
        self.lang = lang
        super().__init__(get_error_message(self.code, context, lang))


class ArrayError(ValidationError):
    code = ErrorCode.array_error

class ObjectError(ValidationError):
    code = ErrorCode.object_error

class CustomComputeError(ValidationError):
    code = ErrorCode.custom_compute_error

class EnumError(ValidationError):
    code = ErrorCode.enum_error

class MaxError(ValidationError):
    code = ErrorCode.max_error

class MinError(ValidationError):
    code = ErrorCode.min_error

class MaxLengthError(ValidationError):
    code = ErrorCode.max_length_error

class MinLengthError(ValidationError):
    code = ErrorCode.min_length_error

class RequiredError(ValidationError):
    code = ErrorCode.required_error

class FieldTypeError(ValidationError, TypeError):
    code = ErrorCode.type_error

class CustomValidationError(ValidationError):
    code = ErrorCode.custom_validation_error


ERRORS_BY_CODE: dict[str, type[ValidationError]] = {
    cls.code.value: cls
    for cls in (
        ArrayError, ObjectError, CustomComputeError, EnumError, MaxError, MinError,
        MaxLengthError, MinLengthError, RequiredError, FieldTypeError, CustomValidationError,
    )
}

__all__ = [
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
    "ERRORS_BY_CODE",
]
