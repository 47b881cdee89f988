"""Errors raised while building index mappings.

Only caller-side modeling mistakes are errors. Fields and documents that are
not indexable (unsupported leaf types, excluded tags, policy opt-outs) are
omitted from the mapping instead.
"""

from __future__ import annotations


class MappingError(Exception):
    """Base error for mapping construction."""


class DuplicateTypeNameError(MappingError):
    """Raised when two records in one build resolve to the same type name."""

    def __init__(self, type_name: str) -> None:
        super().__init__(f"duplicate document type: {type_name}")
        self.type_name = type_name


class NotAStructError(MappingError, TypeError):
    """Raised when a record is not a composite record type."""

    def __init__(self, value_type: object) -> None:
        name = getattr(value_type, "__name__", repr(value_type))
        super().__init__(f"document must be a record type, got {name}")
        self.value_type = value_type


class MappingValidationError(MappingError, ValueError):
    """Raised when an assembled or deserialized mapping is inconsistent."""
