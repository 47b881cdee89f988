"""
Index mapping model.

Describes how an external index engine should analyze, store and query each
field of a document type. The model mirrors the mapping layout used by
bleve-style engines:

- FieldMapping: leaf options for one field (type, analyzer, storage flags)
- DocumentMapping: one record or sub-record, holding field mappings and
  nested sub-document mappings
- IndexMapping: the root container with one DocumentMapping per type name

Mappings only describe analysis; enforcing it is the engine's job.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import orjson

from docmapper.errors import MappingValidationError


class Classification(str, Enum):
    """Inferred kind of a field, used to pick default indexing behavior."""

    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    TEXT = "text"
    DATETIME = "datetime"
    NONE = "none"

    @property
    def is_indexable(self) -> bool:
        return self is not Classification.NONE


# Field type names understood by the index engine
TEXT_TYPE = "text"
NUMERIC_TYPE = "number"
BOOLEAN_TYPE = "boolean"
DATETIME_TYPE = "datetime"

FIELD_TYPES = frozenset({TEXT_TYPE, NUMERIC_TYPE, BOOLEAN_TYPE, DATETIME_TYPE})

BUILTIN_ANALYZERS = frozenset(
    {
        "standard",
        "simple",
        "keyword",
        "web",
        "ar",
        "cjk",
        "da",
        "de",
        "en",
        "es",
        "fa",
        "fi",
        "fr",
        "hi",
        "hu",
        "it",
        "nl",
        "no",
        "pt",
        "ro",
        "ru",
        "sv",
        "tr",
    }
)


@dataclass(frozen=True)
class FieldMapping:
    """
    Leaf-level indexing options for one field.

    Instances are immutable; field policies derive variants with
    ``dataclasses.replace``.

    Args:
        field_type: Engine field type ("text", "number", "boolean", "datetime")
        name: Alternate name the engine stores the field under (default: path)
        analyzer: Analyzer name for text fields (default: "" = index default)
        store: Store the raw value for retrieval
        index: Make the field searchable
        include_term_vectors: Keep term positions (phrase queries, highlighting)
        include_in_all: Include the field in the composite default field
        doc_values: Keep column values for sorting and faceting
        date_format: Parser name for datetime fields (default: index default)
    """

    field_type: str
    name: str = ""
    analyzer: str = ""
    store: bool = True
    index: bool = True
    include_term_vectors: bool = False
    include_in_all: bool = True
    doc_values: bool = True
    date_format: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize field mapping to dict."""
        data: dict[str, Any] = {
            "type": self.field_type,
            "store": self.store,
            "index": self.index,
            "include_term_vectors": self.include_term_vectors,
            "include_in_all": self.include_in_all,
            "docvalues": self.doc_values,
        }
        if self.name:
            data["name"] = self.name
        if self.analyzer:
            data["analyzer"] = self.analyzer
        if self.date_format:
            data["date_format"] = self.date_format
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldMapping:
        """Deserialize field mapping from dict."""
        field_type = data.get("type")
        if field_type not in FIELD_TYPES:
            msg = f"Unknown field type: {field_type!r}"
            raise MappingValidationError(msg)
        return cls(
            field_type=field_type,
            name=data.get("name", ""),
            analyzer=data.get("analyzer", ""),
            store=data.get("store", True),
            index=data.get("index", True),
            include_term_vectors=data.get("include_term_vectors", False),
            include_in_all=data.get("include_in_all", True),
            doc_values=data.get("docvalues", True),
            date_format=data.get("date_format", ""),
        )


def new_text_field_mapping() -> FieldMapping:
    return FieldMapping(field_type=TEXT_TYPE, include_term_vectors=True)


def new_numeric_field_mapping() -> FieldMapping:
    return FieldMapping(field_type=NUMERIC_TYPE)


def new_boolean_field_mapping() -> FieldMapping:
    return FieldMapping(field_type=BOOLEAN_TYPE)


def new_datetime_field_mapping() -> FieldMapping:
    return FieldMapping(field_type=DATETIME_TYPE)


_FIELD_FACTORIES = {
    Classification.BOOLEAN: new_boolean_field_mapping,
    Classification.NUMERIC: new_numeric_field_mapping,
    Classification.TEXT: new_text_field_mapping,
    Classification.DATETIME: new_datetime_field_mapping,
}


def default_field_mapping(classification: Classification) -> FieldMapping | None:
    """Return the default field mapping for a classification, None for NONE."""
    factory = _FIELD_FACTORIES.get(classification)
    return factory() if factory is not None else None


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


@dataclass
class DocumentMapping:
    """
    Mapping for one record or nested sub-record.

    ``fields`` is keyed by the path the builder attached each leaf at; for a
    sub-document that path starts with the sub-document's own name (a field
    ``X`` of sub-document ``Inner`` lives at ``"Inner.X"``). ``properties``
    holds nested sub-document mappings keyed by their resolved name.

    Example:
        doc = new_document_static_mapping()
        doc.add_field_mapping_at("title", new_text_field_mapping())
        doc.add_sub_document_mapping("author", new_document_static_mapping())
    """

    enabled: bool = True
    dynamic: bool = True
    default_analyzer: str = ""
    struct_tag_key: str = ""
    properties: dict[str, DocumentMapping] = field(default_factory=dict)
    fields: dict[str, FieldMapping] = field(default_factory=dict)

    def add_field_mapping_at(self, path: str, mapping: FieldMapping) -> None:
        """Attach a leaf field mapping at a dotted path."""
        self.fields[path] = mapping

    def add_sub_document_mapping(self, name: str, mapping: DocumentMapping) -> None:
        """Attach a nested document mapping under name."""
        self.properties[name] = mapping

    def field_at(self, path: str) -> FieldMapping | None:
        return self.fields.get(path)

    @property
    def is_empty(self) -> bool:
        return not self.fields and not self.properties

    def iter_fields(self) -> Iterator[tuple[str, FieldMapping]]:
        """Yield (fully qualified dotted path, field mapping) for every leaf."""
        return self._walk("", "")

    def _walk(self, parent: str, own: str) -> Iterator[tuple[str, FieldMapping]]:
        # Field keys already carry this mapping's name, so they resolve against the parent path.
        for path, mapping in self.fields.items():
            yield _join(parent, path), mapping
        for name, sub in self.properties.items():
            yield from sub._walk(own, _join(own, name))

    def field_paths(self) -> list[str]:
        """Return every leaf reachable from this mapping as a dotted path."""
        return [path for path, _ in self.iter_fields()]

    def analyzers(self) -> set[str]:
        """Return every analyzer name referenced in this mapping tree."""
        names = {self.default_analyzer} if self.default_analyzer else set()
        names.update(m.analyzer for m in self.fields.values() if m.analyzer)
        for sub in self.properties.values():
            names |= sub.analyzers()
        return names

    def to_dict(self) -> dict[str, Any]:
        """Serialize document mapping to dict."""
        data: dict[str, Any] = {
            "enabled": self.enabled,
            "dynamic": self.dynamic,
        }
        if self.default_analyzer:
            data["default_analyzer"] = self.default_analyzer
        if self.struct_tag_key:
            data["struct_tag_key"] = self.struct_tag_key
        if self.properties:
            data["properties"] = {name: sub.to_dict() for name, sub in self.properties.items()}
        if self.fields:
            data["fields"] = {path: fm.to_dict() for path, fm in self.fields.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DocumentMapping:
        """Deserialize document mapping from dict."""
        if not isinstance(data, dict):
            msg = f"Document mapping must be an object, got {type(data).__name__}"
            raise MappingValidationError(msg)
        return cls(
            enabled=data.get("enabled", True),
            dynamic=data.get("dynamic", True),
            default_analyzer=data.get("default_analyzer", ""),
            struct_tag_key=data.get("struct_tag_key", ""),
            properties={name: cls.from_dict(sub) for name, sub in data.get("properties", {}).items()},
            fields={path: FieldMapping.from_dict(fm) for path, fm in data.get("fields", {}).items()},
        )


def new_document_mapping() -> DocumentMapping:
    """Return a dynamic document mapping (unknown fields are indexed)."""
    return DocumentMapping()


def new_document_static_mapping() -> DocumentMapping:
    """Return a static document mapping (only mapped fields are indexed)."""
    return DocumentMapping(dynamic=False)


def new_document_disabled_mapping() -> DocumentMapping:
    return DocumentMapping(enabled=False)


@dataclass
class IndexMapping:
    """
    Root mapping for an index: one document mapping per type name.

    Documents whose type has no entry fall back to ``default_mapping``.

    Example:
        index = new_index_mapping()
        index.add_document_mapping("User", user_mapping)
        index.validate()
        payload = index.dumps()
    """

    types: dict[str, DocumentMapping] = field(default_factory=dict)
    default_mapping: DocumentMapping = field(default_factory=new_document_mapping)
    type_field: str = "_type"
    default_type: str = "_default"
    default_analyzer: str = "standard"
    default_datetime_parser: str = "dateTimeOptional"
    default_field: str = "_all"
    store_dynamic: bool = True
    index_dynamic: bool = True
    doc_values_dynamic: bool = True
    analysis: dict[str, Any] = field(default_factory=dict)

    def add_document_mapping(self, type_name: str, mapping: DocumentMapping) -> None:
        self.types[type_name] = mapping

    def mapping_for_type(self, type_name: str) -> DocumentMapping:
        """Return the mapping for a type name, or the default mapping."""
        return self.types.get(type_name, self.default_mapping)

    def __contains__(self, type_name: str) -> bool:
        return type_name in self.types

    def __len__(self) -> int:
        return len(self.types)

    def field_paths(self) -> dict[str, list[str]]:
        """Return the dotted leaf paths of every registered type."""
        return {name: mapping.field_paths() for name, mapping in self.types.items()}

    def custom_analyzers(self) -> set[str]:
        return set(self.analysis.get("analyzers", {}))

    def validate(self, known_analyzers: Iterable[str] = ()) -> None:
        """
        Check that every referenced analyzer is available to the engine.

        Analyzers are available when built in, declared under
        ``analysis["analyzers"]`` or passed in ``known_analyzers``.

        Raises:
            MappingValidationError: If an analyzer reference cannot be resolved
        """
        available = BUILTIN_ANALYZERS | self.custom_analyzers() | set(known_analyzers)
        referenced = {self.default_analyzer} if self.default_analyzer else set()
        referenced |= self.default_mapping.analyzers()
        for mapping in self.types.values():
            referenced |= mapping.analyzers()
        unknown = referenced - available
        if unknown:
            msg = f"Unknown analyzer(s) {sorted(unknown)}. Available: {sorted(available)}"
            raise MappingValidationError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize index mapping to dict."""
        return {
            "types": {name: mapping.to_dict() for name, mapping in self.types.items()},
            "default_mapping": self.default_mapping.to_dict(),
            "type_field": self.type_field,
            "default_type": self.default_type,
            "default_analyzer": self.default_analyzer,
            "default_datetime_parser": self.default_datetime_parser,
            "default_field": self.default_field,
            "store_dynamic": self.store_dynamic,
            "index_dynamic": self.index_dynamic,
            "docvalues_dynamic": self.doc_values_dynamic,
            "analysis": self.analysis,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexMapping:
        """Deserialize index mapping from dict."""
        if not isinstance(data, dict):
            msg = f"Index mapping must be an object, got {type(data).__name__}"
            raise MappingValidationError(msg)
        return cls(
            types={name: DocumentMapping.from_dict(dm) for name, dm in data.get("types", {}).items()},
            default_mapping=DocumentMapping.from_dict(data.get("default_mapping", {})),
            type_field=data.get("type_field", "_type"),
            default_type=data.get("default_type", "_default"),
            default_analyzer=data.get("default_analyzer", "standard"),
            default_datetime_parser=data.get("default_datetime_parser", "dateTimeOptional"),
            default_field=data.get("default_field", "_all"),
            store_dynamic=data.get("store_dynamic", True),
            index_dynamic=data.get("index_dynamic", True),
            doc_values_dynamic=data.get("docvalues_dynamic", True),
            analysis=data.get("analysis", {}),
        )

    def dumps(self) -> bytes:
        """Serialize index mapping to JSON bytes."""
        return orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2)

    @classmethod
    def loads(cls, payload: bytes | str) -> IndexMapping:
        """Deserialize index mapping from JSON."""
        try:
            data = orjson.loads(payload)
        except orjson.JSONDecodeError as exc:
            msg = f"Invalid index mapping JSON: {exc}"
            raise MappingValidationError(msg) from exc
        return cls.from_dict(data)


def new_index_mapping() -> IndexMapping:
    return IndexMapping()
