"""Global lookup of message and enum definitions by fully qualified name."""

from __future__ import annotations

import logging
from typing import Dict, Iterable

from protoc_twirp_ts.errors import SchemaResolutionError
from protoc_twirp_ts.models import Message, ProtoEnum, ProtoFile

logger = logging.getLogger(__name__)

# Naming convention protoc uses for synthetic map entry messages.
MAP_ENTRY_SUFFIX = "Entry"


class SchemaIndex:
    """Write-once registry of every message and enum in a request.

    Built once per generation run and then only read. Lookups of names that
    were never registered raise SchemaResolutionError at the point of use.
    """

    def __init__(self) -> None:
        self._messages: Dict[str, Message] = {}
        self._enums: Dict[str, ProtoEnum] = {}

    @classmethod
    def build(cls, files: Iterable[ProtoFile]) -> SchemaIndex:
        index = cls()
        for proto_file in files:
            for message in proto_file.messages:
                index._add_message(message)
            for enum in proto_file.enums:
                index._add_enum(enum)
        logger.debug(
            "Indexed %d message(s) and %d enum(s)",
            len(index._messages), len(index._enums),
        )
        return index

    def _add_message(self, message: Message) -> None:
        if message.full_name in self._messages:
            raise SchemaResolutionError(
                f"Duplicate message type '{message.full_name}'"
            )
        self._messages[message.full_name] = message
        for nested in message.nested_messages:
            self._add_message(nested)
        for enum in message.nested_enums:
            self._add_enum(enum)

    def _add_enum(self, enum: ProtoEnum) -> None:
        if enum.full_name in self._enums:
            raise SchemaResolutionError(f"Duplicate enum type '{enum.full_name}'")
        self._enums[enum.full_name] = enum

    def message(self, full_name: str) -> Message:
        try:
            return self._messages[full_name]
        except KeyError:
            raise SchemaResolutionError(
                f"Unresolved message type '{full_name}'"
            ) from None

    def enum(self, full_name: str) -> ProtoEnum:
        try:
            return self._enums[full_name]
        except KeyError:
            raise SchemaResolutionError(f"Unresolved enum type '{full_name}'") from None

    def is_map_entry(self, full_name: str) -> bool:
        """Whether ``full_name`` names a synthetic map entry message.

        Unregistered names are not map entries; resolving them is left to the
        caller that actually needs the definition.
        """
        message = self._messages.get(full_name)
        if message is None:
            return False
        if message.map_entry:
            return True
        return (
            full_name.endswith(MAP_ENTRY_SUFFIX)
            and [f.name for f in message.fields] == ["key", "value"]
        )
