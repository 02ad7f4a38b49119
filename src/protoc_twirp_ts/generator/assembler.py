from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader

from protoc_twirp_ts.config import SCHEMA_EXTENSION, TARGET_EXTENSION
from protoc_twirp_ts.generator.declaration_generator import EnumDeclaration, TypeDeclaration
from protoc_twirp_ts.models import Binding, GeneratedArtifact


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def output_file_name(source_file_name: str) -> str:
    """Swap the schema extension for the target one: api/user.proto -> api/user.ts"""
    if source_file_name.endswith(SCHEMA_EXTENSION):
        return source_file_name[: -len(SCHEMA_EXTENSION)] + TARGET_EXTENSION
    return source_file_name + TARGET_EXTENSION


def _declaration_context(declaration: TypeDeclaration) -> Dict:
    if isinstance(declaration, EnumDeclaration):
        return {"kind": "enum", "name": declaration.name, "values": declaration.values}
    return {"kind": "interface", "name": declaration.name, "fields": declaration.fields}


def assemble(
    declarations: List[TypeDeclaration],
    bindings: List[Binding],
    source_file_name: str,
) -> GeneratedArtifact:
    """Render declarations, bindings and the export manifest into one file."""
    template = _get_template_env().get_template("client.ts.j2")
    content = template.render(
        source=source_file_name,
        declarations=[_declaration_context(d) for d in declarations],
        bindings=bindings,
        exports=[b.name for b in bindings],
    )
    return GeneratedArtifact(name=output_file_name(source_file_name), content=content)
