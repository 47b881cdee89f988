"""
Index mapping inference for typed Python records.

This package derives search-index mappings from record types:
- classifier: Leaf type to field classification rules
- descriptors: Field lists and naming tags of record types
- policies: Index, document and field override strategies
- mapping: Field, document and index mapping model
- builder: Depth-first mapping builder
- engine: Protocol for the external index engine
"""

from docmapper.builder import FieldPath, SchemaBuilder, build_document_mapping, build_schema
from docmapper.classifier import TypeClassifier, classify
from docmapper.config import Settings
from docmapper.descriptors import Tag, doc_type, tag
from docmapper.engine import IndexEngine, IndexHandle, build
from docmapper.errors import DuplicateTypeNameError, MappingError, MappingValidationError, NotAStructError
from docmapper.mapping import Classification, DocumentMapping, FieldMapping, IndexMapping
from docmapper.policies import (
    Decision,
    DocumentPolicy,
    FieldPolicy,
    IndexPolicy,
    StaticIndexPolicy,
    TextAnalyzerPolicy,
)


__all__ = [
    "Classification",
    "Decision",
    "DocumentMapping",
    "DocumentPolicy",
    "DuplicateTypeNameError",
    "FieldMapping",
    "FieldPath",
    "FieldPolicy",
    "IndexEngine",
    "IndexHandle",
    "IndexMapping",
    "IndexPolicy",
    "MappingError",
    "MappingValidationError",
    "NotAStructError",
    "SchemaBuilder",
    "Settings",
    "StaticIndexPolicy",
    "Tag",
    "TextAnalyzerPolicy",
    "TypeClassifier",
    "build",
    "build_document_mapping",
    "build_schema",
    "classify",
    "doc_type",
    "tag",
]
