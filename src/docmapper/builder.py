"""
Index mapping inference from record types.

The builder walks each record's fields depth first, classifies every leaf,
expands nested records into sub-document mappings and consults the optional
index, document and field policies along the way.

Example:
    @dataclass
    class Sample:
        Name: str
        Age: int
        Tags: list[str]
        Created: datetime

    mapping = SchemaBuilder().build_schema(Sample)
    mapping.types["Sample"].fields
    # {"Name": text, "Age": number, "Tags": text, "Created": datetime}
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import logging
from typing import Any

from docmapper.classifier import TypeClassifier, default_classifier, unwrap_reference
from docmapper.config import Settings
from docmapper.descriptors import (
    FieldDescriptor,
    describe_record,
    doc_type,
    is_record_type,
    record_name,
    record_type_of,
)
from docmapper.errors import DuplicateTypeNameError, MappingError, NotAStructError
from docmapper.mapping import (
    Classification,
    DocumentMapping,
    FieldMapping,
    IndexMapping,
    default_field_mapping,
    new_document_static_mapping,
)
from docmapper.observability.context import bound_context
from docmapper.observability.metrics import BUILD_COUNT, BUILD_LATENCY, FIELDS_MAPPED, FIELDS_SKIPPED, track_latency
from docmapper.observability.tracing import create_span
from docmapper.policies import (
    DocumentPolicy,
    FieldPolicy,
    IndexPolicy,
    as_document_policy,
    as_field_policy,
    as_index_policy,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldPath:
    """Location of a record inside the document being built."""

    segments: tuple[str, ...] = ()

    def child(self, name: str) -> FieldPath:
        return FieldPath((*self.segments, name))

    @property
    def dotted(self) -> str:
        return ".".join(self.segments)

    def leaf_key(self, name: str) -> str:
        """Key a leaf is attached under: prefixed by the enclosing sub-document's name."""
        if not self.segments:
            return name
        return f"{self.segments[-1]}.{name}"


class SchemaBuilder:
    """
    Builds index mappings from record types.

    Policies are fixed at construction; a builder holds no state between
    calls and can be reused for any number of independent builds.

    Args:
        index_policy: Adjusts the assembled index mapping once per build
        document_policy: Keeps, replaces or opts out each document mapping
        field_policy: Keeps, replaces or opts out each leaf field mapping
        classifier: Type classification table (default: built-in rules)
        settings: Naming and index defaults (default: read from environment)
    """

    def __init__(
        self,
        index_policy: IndexPolicy | Callable[[IndexMapping], IndexMapping] | None = None,
        document_policy: DocumentPolicy | Callable[..., Any] | None = None,
        field_policy: FieldPolicy | Callable[..., Any] | None = None,
        *,
        classifier: TypeClassifier | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.index_policy = as_index_policy(index_policy)
        self.document_policy = as_document_policy(document_policy)
        self.field_policy = as_field_policy(field_policy)
        self.classifier = classifier or default_classifier
        self.settings = settings or Settings()

    def build_schema(self, *records: Any) -> IndexMapping:
        """
        Build one index mapping covering every record.

        Raises:
            DuplicateTypeNameError: If two records resolve to the same type name
            NotAStructError: If a record is not a record type
        """
        with create_span("docmapper.build_schema", attributes={"docmapper.records": len(records)}) as span:
            try:
                with track_latency(BUILD_LATENCY):
                    mapping = self._build_schema(records)
            except MappingError as exc:
                BUILD_COUNT.labels(status="error").inc()
                logger.warning("Index mapping build failed: %s", exc)
                raise
            field_count = sum(len(paths) for paths in mapping.field_paths().values())
            span.set_attribute("docmapper.types", sorted(mapping.types))
            span.set_attribute("docmapper.fields", field_count)
        BUILD_COUNT.labels(status="ok").inc()
        logger.info("Built index mapping for %d type(s) with %d field(s)", len(mapping), field_count)
        return mapping

    def _build_schema(self, records: Sequence[Any]) -> IndexMapping:
        names = self._unique_type_names(records)
        mapping = self._new_index_mapping()
        for name, record in zip(names, records):
            with bound_context(record_type=name):
                mapping.add_document_mapping(name, self.build_document_mapping(record))
        if self.index_policy is not None:
            mapping = self.index_policy.apply(mapping)
        return mapping

    def _unique_type_names(self, records: Sequence[Any]) -> list[str]:
        names: list[str] = []
        seen: set[str] = set()
        for record in records:
            name = doc_type(record)
            if name in seen:
                raise DuplicateTypeNameError(name)
            seen.add(name)
            names.append(name)
        return names

    def _new_index_mapping(self) -> IndexMapping:
        s = self.settings
        return IndexMapping(
            type_field=s.type_field,
            default_type=s.default_type,
            default_analyzer=s.default_analyzer,
            default_datetime_parser=s.default_datetime_parser,
            default_field=s.default_field,
            store_dynamic=s.store_dynamic,
            index_dynamic=s.index_dynamic,
            doc_values_dynamic=s.doc_values_dynamic,
        )

    def build_document_mapping(self, record: Any) -> DocumentMapping:
        """
        Build the document mapping of a single record.

        Raises:
            NotAStructError: If record is not a record type
        """
        record_type = record_type_of(record)
        if not is_record_type(record_type):
            raise NotAStructError(record_type)
        return self._document_mapping(record_type, FieldPath(), ())

    def _document_mapping(self, record_type: type, location: FieldPath, stack: tuple[type, ...]) -> DocumentMapping:
        default = new_document_static_mapping()
        mapping = default
        if self.document_policy is not None:
            mapping = self.document_policy.decide(record_type, default).resolve(default)
            if mapping is None:
                logger.debug("Document mapping for %s suppressed by policy", record_name(record_type))
                return default
        self._visit_fields(record_type, mapping, location, (*stack, record_type))
        return mapping

    def _visit_fields(
        self,
        record_type: type,
        mapping: DocumentMapping,
        location: FieldPath,
        stack: tuple[type, ...],
    ) -> None:
        descriptor = describe_record(record_type, self.settings.tag_key)
        for field in descriptor.fields:
            if not field.is_exported:
                self._skip(field, location, "unexported")
                continue
            name = field.resolve_name(empty_tag_fallback=self.settings.empty_tag_fallback)
            if name is None:
                self._skip(field, location, "excluded")
                continue

            classification = self.classifier.classify(field.annotation)
            target = unwrap_reference(field.annotation)
            if classification is Classification.NONE and is_record_type(target):
                if target in stack:
                    self._skip(field, location, "recursive")
                    continue
                sub = self._document_mapping(target, location.child(name), stack)
                mapping.add_sub_document_mapping(name, sub)
                continue
            if classification is Classification.NONE:
                self._skip(field, location, "unsupported")
                continue

            field_mapping = self._field_mapping(field, classification)
            if field_mapping is None:
                self._skip(field, location, "opted_out")
                continue
            key = location.leaf_key(name)
            if key in mapping.fields:
                logger.warning("Field %r of %s overrides an earlier field with the same name", key, descriptor.name)
            mapping.add_field_mapping_at(key, field_mapping)
            FIELDS_MAPPED.labels(field_type=field_mapping.field_type).inc()
            logger.debug("Added mapping for field %r: %s", key, field_mapping.field_type)

    def _field_mapping(self, field: FieldDescriptor, classification: Classification) -> FieldMapping | None:
        default = default_field_mapping(classification)
        if default is None or self.field_policy is None:
            return default
        return self.field_policy.decide(field.annotation, default).resolve(default)

    def _skip(self, field: FieldDescriptor, location: FieldPath, reason: str) -> None:
        FIELDS_SKIPPED.labels(reason=reason).inc()
        logger.debug("Skipped field %r at %r: %s", field.name, location.dotted, reason)


def build_schema(
    *records: Any,
    index_policy: IndexPolicy | Callable[[IndexMapping], IndexMapping] | None = None,
    document_policy: DocumentPolicy | Callable[..., Any] | None = None,
    field_policy: FieldPolicy | Callable[..., Any] | None = None,
    settings: Settings | None = None,
) -> IndexMapping:
    """Build an index mapping for records with a one-off SchemaBuilder."""
    builder = SchemaBuilder(index_policy, document_policy, field_policy, settings=settings)
    return builder.build_schema(*records)


def build_document_mapping(
    record: Any,
    *,
    document_policy: DocumentPolicy | Callable[..., Any] | None = None,
    field_policy: FieldPolicy | Callable[..., Any] | None = None,
    settings: Settings | None = None,
) -> DocumentMapping:
    """Build the document mapping of one record with a one-off SchemaBuilder."""
    builder = SchemaBuilder(document_policy=document_policy, field_policy=field_policy, settings=settings)
    return builder.build_document_mapping(record)
