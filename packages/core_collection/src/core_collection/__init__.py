from .collection import Collection
from .errors import (
    CollectionError,
    CollectionIdError,
    DuplicateValueError,
    ItemNotFoundError,
    UniqueLabelError,
)

__all__ = [
    "Collection",
    "CollectionError",
    "CollectionIdError",
    "DuplicateValueError",
    "ItemNotFoundError",
    "UniqueLabelError",
]
