from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Union

from protoc_twirp_ts.classifier import TIMESTAMP_TYPE_NAME
from protoc_twirp_ts.models import FieldType, Message, ProtoEnum, ProtoFile, short_name
from protoc_twirp_ts.schema_index import SchemaIndex
from protoc_twirp_ts.type_resolver import resolve_type

logger = logging.getLogger(__name__)


@dataclass
class InterfaceDeclaration:
    name: str
    full_name: str
    fields: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class EnumDeclaration:
    name: str
    full_name: str
    values: List[str] = field(default_factory=list)


TypeDeclaration = Union[InterfaceDeclaration, EnumDeclaration]


def _walk_messages(messages: List[Message]) -> Iterator[Message]:
    """Depth first: each message, then its nested messages."""
    for message in messages:
        yield message
        yield from _walk_messages(message.nested_messages)


def _walk_enums(proto_file: ProtoFile) -> Iterator[ProtoEnum]:
    yield from proto_file.enums
    for message in _walk_messages(proto_file.messages):
        yield from message.nested_enums


class DeclarationCollector:
    """Collects every message and enum a generated file needs to declare.

    That is everything defined in the file itself plus every type reachable
    from it through fields or method signatures, minus map entries and the
    configured built-in names.
    """

    def __init__(self, index: SchemaIndex, builtin_types: FrozenSet[str]) -> None:
        self.index = index
        self.builtin_types = builtin_types
        self._seen: Dict[str, str] = {}
        self._declarations: List[TypeDeclaration] = []

    def collect(self, proto_file: ProtoFile) -> List[TypeDeclaration]:
        self._seen = {}
        self._declarations = []

        for message in _walk_messages(proto_file.messages):
            self._visit_message(message.full_name)
        for enum in _walk_enums(proto_file):
            self._visit_enum(enum.full_name)
        for service in proto_file.services:
            for method in service.methods:
                self._visit_message(method.input_type)
                self._visit_message(method.output_type)

        return self._declarations

    def _claim(self, full_name: str) -> bool:
        """Reserve the short name for ``full_name``; False if already handled."""
        if full_name in self._seen.values():
            return False
        if full_name in self.builtin_types:
            return False
        name = short_name(full_name)
        if name in self._seen:
            logger.warning(
                "Skipping declaration of '%s': name '%s' is already declared by '%s'",
                full_name, name, self._seen[name],
            )
            return False
        self._seen[name] = full_name
        return True

    def _visit_message(self, full_name: str) -> None:
        if full_name == TIMESTAMP_TYPE_NAME:
            return
        message = self.index.message(full_name)
        if self.index.is_map_entry(full_name):
            self._visit_fields(message)
            return
        if not self._claim(full_name):
            return
        declaration = InterfaceDeclaration(name=message.name, full_name=full_name)
        self._declarations.append(declaration)
        for f in message.fields:
            declaration.fields.append({
                "name": f.name,
                "type": resolve_type(message, f, self.index),
            })
        self._visit_fields(message)

    def _visit_enum(self, full_name: str) -> None:
        enum = self.index.enum(full_name)
        if not self._claim(full_name):
            return
        self._declarations.append(
            EnumDeclaration(name=enum.name, full_name=full_name, values=list(enum.values))
        )

    def _visit_fields(self, message: Message) -> None:
        for f in message.fields:
            if not f.type_name:
                continue
            if f.type is FieldType.ENUM:
                self._visit_enum(f.type_name)
            else:
                self._visit_message(f.type_name)
