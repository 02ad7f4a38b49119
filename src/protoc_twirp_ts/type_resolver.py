from __future__ import annotations

from typing import Dict

from protoc_twirp_ts.classifier import TIMESTAMP_TYPE_NAME, FieldKind, classify
from protoc_twirp_ts.errors import SchemaResolutionError
from protoc_twirp_ts.models import NUMERIC_TYPES, Field, FieldType, Message, short_name
from protoc_twirp_ts.schema_index import SchemaIndex

# Proto scalar type -> TypeScript type
PRIMITIVE_TYPE_MAP: Dict[FieldType, str] = {
    **{t: "number" for t in NUMERIC_TYPES},
    FieldType.BOOL: "boolean",
    FieldType.STRING: "string",
    FieldType.BYTES: "string",
}

TIMESTAMP_TS_TYPE = "string"


def resolve_type(owner: Message, field: Field, index: SchemaIndex) -> str:
    """Return the TypeScript type annotation for ``field`` of ``owner``.

    Pure: repeated calls for the same field return the same text. An
    unresolved reference names the owning field in the raised error.
    """
    kind = classify(field, index)
    if kind is FieldKind.TIMESTAMP:
        return f"{TIMESTAMP_TS_TYPE}[]" if field.is_repeated else TIMESTAMP_TS_TYPE
    try:
        if kind is FieldKind.MAP:
            return map_type(field, index)
        element = _element_type(field, index)
    except SchemaResolutionError as e:
        raise SchemaResolutionError(f"{e} in field '{owner.full_name}.{field.name}'") from None
    if kind is FieldKind.REPEATED:
        return f"{element}[]"
    return element


def map_type(field: Field, index: SchemaIndex) -> str:
    """Keyed object type for a map field, e.g. ``{ [key: string]: Info }``."""
    entry = index.message(field.type_name)
    key_field, value_field = entry.fields[0], entry.fields[1]
    key = "number" if key_field.type in NUMERIC_TYPES else "string"
    value = resolve_type(entry, value_field, index)
    return f"{{ [key: {key}]: {value} }}"


def _element_type(field: Field, index: SchemaIndex) -> str:
    if field.type_name == TIMESTAMP_TYPE_NAME:
        return TIMESTAMP_TS_TYPE
    if field.type is FieldType.ENUM:
        return short_name(index.enum(field.type_name).full_name)
    if field.type_name:
        return short_name(index.message(field.type_name).full_name)
    return PRIMITIVE_TYPE_MAP[field.type]
