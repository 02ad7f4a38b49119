from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class FieldType(Enum):
    DOUBLE = "double"
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    SINT32 = "sint32"
    SINT64 = "sint64"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"
    MESSAGE = "message"
    ENUM = "enum"
    GROUP = "group"


NUMERIC_TYPES = frozenset({
    FieldType.DOUBLE, FieldType.FLOAT,
    FieldType.INT32, FieldType.INT64,
    FieldType.UINT32, FieldType.UINT64,
    FieldType.SINT32, FieldType.SINT64,
    FieldType.FIXED32, FieldType.FIXED64,
    FieldType.SFIXED32, FieldType.SFIXED64,
})

MESSAGE_TYPES = frozenset({FieldType.MESSAGE, FieldType.GROUP})


def qualify(parent: str, name: str) -> str:
    """Join a parent scope and a name into a qualified name with a leading dot.

    The parent is either a package ("trpc", "" for none) or an already
    qualified type name (".trpc.Outer").
    """
    if not parent:
        return f".{name}"
    if parent.startswith("."):
        return f"{parent}.{name}"
    return f".{parent}.{name}"


def short_name(qualified_name: str) -> str:
    """Last path segment of a qualified name: .trpc.Outer.Inner -> Inner."""
    return qualified_name.rsplit(".", 1)[-1]


@dataclass
class Field:
    name: str
    type: FieldType
    type_name: str = ""
    is_repeated: bool = False


@dataclass
class ProtoEnum:
    name: str
    full_name: str
    values: List[str] = field(default_factory=list)


@dataclass
class Message:
    name: str
    full_name: str
    fields: List[Field] = field(default_factory=list)
    nested_messages: List[Message] = field(default_factory=list)
    nested_enums: List[ProtoEnum] = field(default_factory=list)
    map_entry: bool = False


@dataclass
class Method:
    name: str
    input_type: str
    output_type: str
    client_streaming: bool = False
    server_streaming: bool = False


@dataclass
class Service:
    name: str
    full_name: str
    methods: List[Method] = field(default_factory=list)


@dataclass
class ProtoFile:
    name: str
    package: str = ""
    messages: List[Message] = field(default_factory=list)
    enums: List[ProtoEnum] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)


@dataclass
class Binding:
    name: str
    input_type: str
    output_type: str
    path: str
    body: str


@dataclass
class GeneratedArtifact:
    name: str
    content: str
