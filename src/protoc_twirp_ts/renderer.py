"""Render emission nodes as TypeScript object-literal members."""

from __future__ import annotations

from typing import List

from protoc_twirp_ts.synthesizer import (
    AccessPath,
    EmissionNode,
    MapNode,
    MessageNode,
    RepeatedNode,
    ScalarNode,
    TimestampNode,
)

INDENT = "  "


def access(path: AccessPath) -> str:
    """Render an access path; segments below the first field use ``?.``.

    The root (``data`` or a loop variable) is always defined, its direct
    members may be absent, and anything deeper must not throw on an absent
    parent: ("data", "loc", "lat") -> data.loc?.lat
    """
    if len(path) <= 2:
        return ".".join(path)
    return ".".join(path[:2]) + "".join(f"?.{p}" for p in path[2:])


def render_fields(nodes: List[EmissionNode], level: int = 0) -> str:
    """Render ``nodes`` as comma separated members, one field per block.

    The last member carries no trailing comma. Returns an empty string for
    an empty node list.
    """
    lines: List[str] = []
    for i, node in enumerate(nodes):
        block = _render_node(node, level)
        if i < len(nodes) - 1:
            block[-1] += ","
        lines.extend(block)
    return "\n".join(lines)


def _object_literal(nodes: List[EmissionNode], level: int) -> List[str]:
    """Lines of an object literal whose opening brace ends the caller's line."""
    if not nodes:
        return []
    return render_fields(nodes, level + 1).split("\n")


def _render_node(node: EmissionNode, level: int) -> List[str]:
    pad = INDENT * level

    if isinstance(node, ScalarNode):
        return [f"{pad}{node.name}: {access(node.path)} || {node.default}"]

    if isinstance(node, TimestampNode):
        return [f'{pad}{node.name}: {access(node.path)} || ""']

    if isinstance(node, MessageNode):
        if not node.children:
            return [f"{pad}{node.name}: {{}}"]
        return (
            [f"{pad}{node.name}: {{"]
            + _object_literal(node.children, level)
            + [f"{pad}}}"]
        )

    if isinstance(node, RepeatedNode):
        head = f"{pad}{node.name}: ({access(node.path)} || []).map(({node.loop_var}: any) =>"
        if node.element_fields is None:
            return [f"{head} {node.loop_var} || {node.element_default})"]
        return (
            [f"{head} ({{"]
            + _object_literal(node.element_fields, level)
            + [f"{pad}}}))"]
        )

    if isinstance(node, MapNode):
        inner = pad + INDENT
        key = f"Number({node.key_var})" if node.numeric_key else node.key_var
        target = f"{node.acc_var}[{key}]"
        lines = [
            f"{pad}{node.name}: Object.entries({access(node.path)} || {{}})"
            f".reduce(({node.acc_var}, [{node.key_var}, {node.value_var}]) => {{"
        ]
        if node.value_fields is None:
            lines.append(f"{inner}{target} = {node.value_var} || {node.value_default}")
        elif not node.value_fields:
            lines.append(f"{inner}{target} = {{}}")
        else:
            lines.append(f"{inner}{target} = {{")
            lines.extend(_object_literal(node.value_fields, level + 1))
            lines.append(f"{inner}}}")
        lines.append(f"{inner}return {node.acc_var}")
        lines.append(f"{pad}}}, {{}} as {node.map_type})")
        return lines

    raise TypeError(f"Unknown emission node: {type(node).__name__}")
