from .labels import LabelError, LabelIndexer, LabelLookup, label_key

__all__ = ["LabelError", "LabelIndexer", "LabelLookup", "label_key"]
