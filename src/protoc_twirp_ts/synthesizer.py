"""Build the emission tree that reconstructs a typed value from parsed JSON.

Each field becomes one node describing *what* to emit: where the value is
read from (its access path) and which default applies when it is absent.
``renderer.render_fields`` decides how the nodes look as TypeScript.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from protoc_twirp_ts.classifier import TIMESTAMP_TYPE_NAME, FieldKind, classify
from protoc_twirp_ts.models import NUMERIC_TYPES, Field, FieldType, Message
from protoc_twirp_ts.schema_index import SchemaIndex
from protoc_twirp_ts.type_resolver import map_type

AccessPath = Tuple[str, ...]

ZERO_VALUES: Dict[FieldType, str] = {
    **{t: "0" for t in NUMERIC_TYPES},
    FieldType.BOOL: "false",
    FieldType.STRING: '""',
}
EMPTY_OBJECT = "{}"


def zero_value(field_type: FieldType) -> str:
    return ZERO_VALUES.get(field_type, EMPTY_OBJECT)


@dataclass
class ScalarNode:
    name: str
    path: AccessPath
    default: str


@dataclass
class TimestampNode:
    name: str
    path: AccessPath


@dataclass
class MapNode:
    """Entry reduction into a fresh keyed object.

    ``value_fields`` is None when the value is a scalar (or a message that is
    already being expanded higher up); ``value_default`` applies then.
    """

    name: str
    path: AccessPath
    map_type: str
    key_var: str
    value_var: str
    acc_var: str
    numeric_key: bool = False
    value_fields: Optional[List[EmissionNode]] = None
    value_default: str = EMPTY_OBJECT


@dataclass
class RepeatedNode:
    name: str
    path: AccessPath
    loop_var: str
    element_fields: Optional[List[EmissionNode]] = None
    element_default: str = EMPTY_OBJECT


@dataclass
class MessageNode:
    name: str
    path: AccessPath
    children: List[EmissionNode] = field(default_factory=list)


EmissionNode = Union[ScalarNode, TimestampNode, MapNode, RepeatedNode, MessageNode]


def _loop_names(depth: int) -> Tuple[str, str, str]:
    suffix = str(depth) if depth else ""
    return f"v{suffix}", f"k{suffix}", f"a{suffix}"


class Synthesizer:
    """Walks the message graph and produces emission nodes.

    A message that is already being expanded on the current path is not
    expanded again: the field falls back to its plain default so that
    self-referential types terminate.
    """

    def __init__(self, index: SchemaIndex) -> None:
        self.index = index

    def synthesize_message(self, message: Message, root: str = "data") -> List[EmissionNode]:
        return self.synthesize(
            message.fields, (root,), expanding=frozenset({message.full_name})
        )

    def synthesize(
        self,
        fields: List[Field],
        access_path: AccessPath,
        expanding: FrozenSet[str] = frozenset(),
        depth: int = 0,
    ) -> List[EmissionNode]:
        return [self._node(f, access_path, expanding, depth) for f in fields]

    def _node(
        self,
        f: Field,
        access_path: AccessPath,
        expanding: FrozenSet[str],
        depth: int,
    ) -> EmissionNode:
        path = access_path + (f.name,)
        kind = classify(f, self.index)

        if kind is FieldKind.TIMESTAMP:
            if f.is_repeated:
                loop_var, _, _ = _loop_names(depth)
                return RepeatedNode(
                    name=f.name, path=path, loop_var=loop_var, element_default='""'
                )
            return TimestampNode(name=f.name, path=path)

        if kind is FieldKind.MAP:
            return self._map_node(f, path, expanding, depth)

        if kind is FieldKind.REPEATED:
            loop_var, _, _ = _loop_names(depth)
            node = RepeatedNode(
                name=f.name,
                path=path,
                loop_var=loop_var,
                element_default=zero_value(f.type),
            )
            if f.type is FieldType.ENUM:
                self.index.enum(f.type_name)
            elif f.type_name:
                element = self.index.message(f.type_name)
                if element.fields and element.full_name not in expanding:
                    node.element_fields = self.synthesize(
                        element.fields,
                        (loop_var,),
                        expanding | {element.full_name},
                        depth + 1,
                    )
            return node

        if kind is FieldKind.MESSAGE:
            nested = self.index.message(f.type_name)
            if nested.full_name in expanding:
                return ScalarNode(name=f.name, path=path, default=EMPTY_OBJECT)
            return MessageNode(
                name=f.name,
                path=path,
                children=self.synthesize(
                    nested.fields, path, expanding | {nested.full_name}, depth
                ),
            )

        if f.type is FieldType.ENUM:
            self.index.enum(f.type_name)
        return ScalarNode(name=f.name, path=path, default=zero_value(f.type))

    def _map_node(
        self,
        f: Field,
        path: AccessPath,
        expanding: FrozenSet[str],
        depth: int,
    ) -> MapNode:
        entry = self.index.message(f.type_name)
        value_field = entry.fields[1]
        value_var, key_var, acc_var = _loop_names(depth)
        node = MapNode(
            name=f.name,
            path=path,
            map_type=map_type(f, self.index),
            key_var=key_var,
            value_var=value_var,
            acc_var=acc_var,
            numeric_key=entry.fields[0].type in NUMERIC_TYPES,
            value_default=zero_value(value_field.type),
        )
        if value_field.type_name == TIMESTAMP_TYPE_NAME:
            node.value_default = '""'
        elif value_field.type_name and value_field.type is not FieldType.ENUM:
            value_message = self.index.message(value_field.type_name)
            if value_message.full_name not in expanding:
                node.value_fields = self.synthesize(
                    value_message.fields,
                    (value_var,),
                    expanding | {value_message.full_name},
                    depth + 1,
                )
        return node
