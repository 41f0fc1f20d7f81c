# Label slots a collection may declare; anything else in a schema config is a field.
LABEL_SLOTS: tuple[str, ...] = ("label1", "label2", "label3", "label4", "label5")
MAX_LABELS = len(LABEL_SLOTS)

# <base>[:<timestamp>-<suffix>]
ID_SEPARATOR = ":"
ID_SEGMENT_JOINER = "-"

# <collection>:<labelName>_<value>
LABEL_VALUE_JOINER = "_"
CONCAT_JOINER = ":"

WILDCARD = "*"

# Keys that turn a mapping rule into a leaf rule instead of a nested object.
RESERVED_RULE_KEYS: frozenset[str] = frozenset({"type", "get", "set", "computed", "ref", "unique"})
