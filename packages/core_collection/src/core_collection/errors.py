class CollectionError(RuntimeError):
    """Base class for collection-level failures (outside the field validation taxonomy)."""


class CollectionIdError(CollectionError):
    """Malformed collection-name template or a composite-id property missing from context."""


class UniqueLabelError(CollectionError):
    """A ``unique`` field has no label to look duplicates up by."""


class DuplicateValueError(CollectionError):
    pass


class ItemNotFoundError(CollectionError):
    pass


__all__ = [
    "CollectionError",
    "CollectionIdError",
    "UniqueLabelError",
    "DuplicateValueError",
    "ItemNotFoundError",
]
