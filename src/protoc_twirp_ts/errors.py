from __future__ import annotations


class GeneratorError(Exception):
    """Base class for errors that abort a generation run."""


class SchemaResolutionError(GeneratorError):
    """Raised when a field or method references a type missing from the schema."""


class MalformedInputError(GeneratorError):
    """Raised when the code generator request cannot be decoded."""


class ConfigError(GeneratorError):
    """Raised when a plugin parameter is unknown or has an invalid value."""
