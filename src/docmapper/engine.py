"""Boundary to the external index engine.

docmapper only describes indexes. Storing documents and answering queries
belong to an engine that can create an index from an IndexMapping; any
object satisfying IndexEngine can be handed to build().
"""

from __future__ import annotations

from collections.abc import Callable
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from docmapper.builder import SchemaBuilder
from docmapper.config import Settings
from docmapper.mapping import IndexMapping
from docmapper.policies import DocumentPolicy, FieldPolicy, IndexPolicy


logger = logging.getLogger(__name__)


@runtime_checkable
class IndexHandle(Protocol):
    """Open index returned by an engine."""

    def index(self, doc_id: str, document: Any) -> None:  # pragma: no cover - Protocol only
        """Add or replace a document."""

    def search(self, query: Any) -> Any:  # pragma: no cover - Protocol only
        """Run a query and return the engine's result object."""

    def close(self) -> None:  # pragma: no cover - Protocol only
        """Release the index."""


@runtime_checkable
class IndexEngine(Protocol):
    """Engine able to create an index at a path from a mapping."""

    def create(self, path: str | Path, mapping: IndexMapping) -> IndexHandle:  # pragma: no cover - Protocol only
        """Create a new index at path; raise if it cannot be created."""


def build(
    index_path: str | Path,
    *records: Any,
    engine: IndexEngine,
    index_policy: IndexPolicy | Callable[[IndexMapping], IndexMapping] | None = None,
    document_policy: DocumentPolicy | Callable[..., Any] | None = None,
    field_policy: FieldPolicy | Callable[..., Any] | None = None,
    settings: Settings | None = None,
) -> IndexHandle:
    """
    Build a mapping for records and create a new index at index_path.

    Mapping errors are raised before the engine is touched; engine errors
    propagate unchanged.

    Returns:
        The open index handle returned by the engine
    """
    builder = SchemaBuilder(index_policy, document_policy, field_policy, settings=settings)
    mapping = builder.build_schema(*records)
    logger.info("Creating index at %s for types %s", index_path, sorted(mapping.types))
    return engine.create(index_path, mapping)
