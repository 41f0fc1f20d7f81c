from .ids import generate_date, generate_request_id, generate_suffix, valid_date
from .invoke import call_user_fn
from . import jsonx

__all__ = [
    "generate_date",
    "generate_request_id",
    "generate_suffix",
    "valid_date",
    "call_user_fn",
    "jsonx",
]
