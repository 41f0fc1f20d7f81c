from enum import Enum
from typing import Any, Dict, Optional

class ErrorCode(str, Enum):
    """Stable codes for field validation failures."""
    array_error             = "1001"
    object_error            = "1002"
    custom_compute_error    = "1003"
    enum_error              = "1004"
    max_error               = "1005"
    min_error               = "1006"
    max_length_error        = "1007"
    min_length_error        = "1008"
    required_error          = "1009"
    type_error              = "1010"
    custom_validation_error = "1011"

DEFAULT_LANGUAGE = "en"
UNKNOWN_ERROR = "Unknown error"

ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "1001": {
        "en": "Validation Error: Field must be an array",
        "es": "Error de validación: El campo debe ser un array",
    },
    "1002": {
        "en": "Validation Error: Field must be an object",
        "es": "Error de validación: El campo debe ser un objeto",
    },
    "1003": {
        "en": "Validation Error: Validation failed for custom compute function.",
        "es": "Error de validación: Falló la validación para la función personalizada de cálculo.",
    },
    "1004": {
        "en": "Validation Error: Field must be one of the specified values",
        "es": "Error de validación: El campo debe ser uno de los valores especificados",
    },
    "1005": {
        "en": "Validation Error: Field exceeds the maximum allowed value",
        "es": "Error de validación: El campo supera el valor máximo permitido",
    },
    "1006": {
        "en": "Validation Error: Field falls below the minimum allowed value",
        "es": "Error de validación: El campo está por debajo del valor mínimo permitido",
    },
    "1007": {
        "en": "Validation Error: Field exceeds the maximum allowed length",
        "es": "Error de validación: El campo supera la longitud máxima permitida",
    },
    "1008": {
        "en": "Validation Error: Field falls below the minimum allowed length",
        "es": "Error de validación: El campo está por debajo de la longitud mínima permitida",
    },
    "1009": {
        "en": "Validation Error: Field is required",
        "es": "Error de validación: El campo es obligatorio",
    },
    "1010": {
        "en": "Validation Error: Field has an invalid type",
        "es": "Error de validación: El campo tiene un tipo no válido",
    },
    "1011": {
        "en": "Validation Error: Custom validation failed",
        "es": "Error de validación: Falló la validación personalizada",
    },
}

def get_error_message(code: Any, context: Optional[str] = None, lang: str = DEFAULT_LANGUAGE) -> str:
    """
    Resolve *code* to a message in *lang*, falling back to English and then
    to ``"Unknown error"``. A context string is appended as `` : '<context>'``.
    """
    key = code.value if isinstance(code, ErrorCode) else str(code) if code is not None else ""
    messages = ERROR_MESSAGES.get(key, {})
    message = messages.get(lang) or messages.get(DEFAULT_LANGUAGE) or UNKNOWN_ERROR
    if context is not None:
        return f"{message} : '{context}'"
    return message

__all__ = ["ErrorCode", "ERROR_MESSAGES", "get_error_message", "DEFAULT_LANGUAGE", "UNKNOWN_ERROR"]
