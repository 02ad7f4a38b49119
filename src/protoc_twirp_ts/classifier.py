"""Field categorization with an explicit precedence table.

A map is encoded in the schema as a repeated synthetic entry message, so the
map rule must run before the repeated rule or every map would come out as a
repeated message.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Tuple

from protoc_twirp_ts.models import MESSAGE_TYPES, Field
from protoc_twirp_ts.schema_index import SchemaIndex

TIMESTAMP_TYPE_NAME = ".google.protobuf.Timestamp"


class FieldKind(Enum):
    TIMESTAMP = "timestamp"
    MAP = "map"
    REPEATED = "repeated"
    MESSAGE = "message"
    SCALAR = "scalar"


Rule = Callable[[Field, SchemaIndex], bool]

# Evaluated top to bottom, first match wins.
CLASSIFICATION_RULES: Tuple[Tuple[FieldKind, Rule], ...] = (
    (FieldKind.TIMESTAMP, lambda f, index: f.type_name == TIMESTAMP_TYPE_NAME),
    (FieldKind.MAP, lambda f, index: bool(f.type_name) and index.is_map_entry(f.type_name)),
    (FieldKind.REPEATED, lambda f, index: f.is_repeated),
    (FieldKind.MESSAGE, lambda f, index: f.type in MESSAGE_TYPES),
)


def classify(field: Field, index: SchemaIndex) -> FieldKind:
    for kind, rule in CLASSIFICATION_RULES:
        if rule(field, index):
            return kind
    return FieldKind.SCALAR
