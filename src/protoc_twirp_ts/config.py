"""Generator options, parsed from the protoc plugin parameter string.

Example: ``protoc --twirp-ts_out=prefix=rpc,csrf=false:out api.proto``
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet

from protoc_twirp_ts.errors import ConfigError

DEFAULT_PREFIX = "twirp"
SCHEMA_EXTENSION = ".proto"
TARGET_EXTENSION = ".ts"

# Well-known types assumed to exist in the target runtime; no declaration is
# generated for them. Qualified, so a package-local `Empty` is still declared.
DEFAULT_BUILTIN_TYPES: FrozenSet[str] = frozenset(
    f".google.protobuf.{name}"
    for name in (
        "Timestamp", "Duration", "Empty", "Any", "FieldMask",
        "Struct", "Value", "ListValue", "NullValue",
        "DoubleValue", "FloatValue", "Int64Value", "UInt64Value",
        "Int32Value", "UInt32Value", "BoolValue", "StringValue", "BytesValue",
    )
)

# Output types returned exactly as parsed instead of being reconstructed.
DEFAULT_PASSTHROUGH_TYPES: FrozenSet[str] = frozenset({
    ".google.protobuf.Struct",
    ".google.protobuf.Value",
    ".google.protobuf.ListValue",
})

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class GeneratorConfig:
    prefix: str = DEFAULT_PREFIX
    csrf: bool = True
    builtin_types: FrozenSet[str] = field(default=DEFAULT_BUILTIN_TYPES)
    passthrough_types: FrozenSet[str] = field(default=DEFAULT_PASSTHROUGH_TYPES)
    verbose: bool = False


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE or lowered == "":
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"Option '{key}' expects a boolean, got '{value}'")


def _parse_names(value: str) -> FrozenSet[str]:
    """Colon separated type names, each with a leading dot."""
    return frozenset(
        n if n.startswith(".") else f".{n}" for n in value.split(":") if n
    )


def _split_parameter(parameter: str) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for part in parameter.split(","):
        part = part.strip()
        if not part:
            continue
        if "=" in part:
            k, v = part.split("=", 1)
            result[k.strip()] = v.strip()
        else:
            result[part] = ""
    return result


def parse_parameter(parameter: str, base: GeneratorConfig = GeneratorConfig()) -> GeneratorConfig:
    """Apply a comma separated ``key=value`` parameter string on top of ``base``.

    Recognized keys: prefix, csrf, builtins, passthrough, verbose. List values
    are colon separated qualified type names and extend the defaults.
    """
    config = base
    for key, value in _split_parameter(parameter).items():
        if key == "prefix":
            if not value.strip("/"):
                raise ConfigError("Option 'prefix' must not be empty")
            config = replace(config, prefix=value.strip("/"))
        elif key == "csrf":
            config = replace(config, csrf=_parse_bool(key, value))
        elif key == "verbose":
            config = replace(config, verbose=_parse_bool(key, value))
        elif key == "builtins":
            config = replace(config, builtin_types=config.builtin_types | _parse_names(value))
        elif key == "passthrough":
            config = replace(config, passthrough_types=config.passthrough_types | _parse_names(value))
        else:
            raise ConfigError(f"Unknown option '{key}'")
    return config
