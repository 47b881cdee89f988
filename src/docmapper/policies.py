"""Override policies consulted while a mapping is built.

Three optional strategies adjust the inferred defaults:

- IndexPolicy: called once per build with the assembled index mapping
- DocumentPolicy: called for every record and sub-record type
- FieldPolicy: called for every indexable leaf field

Document and field policies answer with a Decision: keep the default,
replace it, or opt out. Opting out drops the field, or leaves the document
mapping empty; it is never an error.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from docmapper.errors import MappingValidationError
from docmapper.mapping import TEXT_TYPE, DocumentMapping, FieldMapping, IndexMapping


T = TypeVar("T")


class Action(str, Enum):
    KEEP = "keep"
    REPLACE = "replace"
    OPT_OUT = "opt_out"


@dataclass(frozen=True)
class Decision(Generic[T]):
    """Outcome of a document or field policy."""

    action: Action
    value: T | None = None

    def __post_init__(self) -> None:
        if self.action is Action.REPLACE and self.value is None:
            msg = "Decision.replace requires a value"
            raise ValueError(msg)

    @classmethod
    def keep(cls) -> Decision[Any]:
        return cls(Action.KEEP)

    @classmethod
    def replace(cls, value: T) -> Decision[T]:
        return cls(Action.REPLACE, value)

    @classmethod
    def opt_out(cls) -> Decision[Any]:
        return cls(Action.OPT_OUT)

    @property
    def opted_out(self) -> bool:
        return self.action is Action.OPT_OUT

    def resolve(self, default: T) -> T | None:
        """Return the adopted value, or None when the policy opted out."""
        if self.action is Action.OPT_OUT:
            return None
        if self.action is Action.REPLACE:
            return self.value
        return default


@runtime_checkable
class IndexPolicy(Protocol):
    def apply(self, mapping: IndexMapping) -> IndexMapping:  # pragma: no cover - Protocol only
        """Return the final index mapping given the assembled default."""


@runtime_checkable
class DocumentPolicy(Protocol):
    def decide(  # pragma: no cover - Protocol only
        self, record_type: type, default: DocumentMapping
    ) -> Decision[DocumentMapping]:
        """Decide the document mapping for record_type."""


@runtime_checkable
class FieldPolicy(Protocol):
    def decide(self, annotation: Any, default: FieldMapping) -> Decision[FieldMapping]:  # pragma: no cover
        """Decide the field mapping for a leaf, given its declared (pre-unwrap) annotation."""


def _decision_from_result(result: Any, default: Any, label: str) -> Decision[Any]:
    # Callback convention: return the default to keep it, another value to replace, None to opt out.
    if isinstance(result, Decision):
        decision = result
    elif result is None:
        decision = Decision.opt_out()
    elif result is default:
        decision = Decision.keep()
    else:
        decision = Decision.replace(result)
    expected = type(default)
    if decision.action is Action.REPLACE and not isinstance(decision.value, expected):
        msg = (
            f"{label} policy must return a {expected.__name__}, Decision or None, "
            f"got {type(decision.value).__name__}"
        )
        raise MappingValidationError(msg)
    return decision


class _CallableIndexPolicy:
    def __init__(self, func: Callable[[IndexMapping], IndexMapping]) -> None:
        self._func = func

    def apply(self, mapping: IndexMapping) -> IndexMapping:
        result = self._func(mapping)
        if not isinstance(result, IndexMapping):
            msg = f"Index policy must return an IndexMapping, got {type(result).__name__}"
            raise MappingValidationError(msg)
        return result


class _CallableDocumentPolicy:
    def __init__(self, func: Callable[[type, DocumentMapping], Any]) -> None:
        self._func = func

    def decide(self, record_type: type, default: DocumentMapping) -> Decision[DocumentMapping]:
        return _decision_from_result(self._func(record_type, default), default, "Document")


class _CallableFieldPolicy:
    def __init__(self, func: Callable[[Any, FieldMapping], Any]) -> None:
        self._func = func

    def decide(self, annotation: Any, default: FieldMapping) -> Decision[FieldMapping]:
        return _decision_from_result(self._func(annotation, default), default, "Field")


def index_policy_from_callable(func: Callable[[IndexMapping], IndexMapping]) -> IndexPolicy:
    return _CallableIndexPolicy(func)


def document_policy_from_callable(func: Callable[[type, DocumentMapping], Any]) -> DocumentPolicy:
    """Adapt ``func(record_type, default) -> DocumentMapping | Decision | None``."""
    return _CallableDocumentPolicy(func)


def field_policy_from_callable(func: Callable[[Any, FieldMapping], Any]) -> FieldPolicy:
    """Adapt ``func(annotation, default) -> FieldMapping | Decision | None``."""
    return _CallableFieldPolicy(func)


def as_index_policy(policy: IndexPolicy | Callable[[IndexMapping], IndexMapping] | None) -> IndexPolicy | None:
    if policy is None or isinstance(policy, IndexPolicy):
        return policy
    if callable(policy):
        return index_policy_from_callable(policy)
    msg = f"Unsupported index policy: {policy!r}"
    raise TypeError(msg)


def as_document_policy(policy: DocumentPolicy | Callable[..., Any] | None) -> DocumentPolicy | None:
    if policy is None or isinstance(policy, DocumentPolicy):
        return policy
    if callable(policy):
        return document_policy_from_callable(policy)
    msg = f"Unsupported document policy: {policy!r}"
    raise TypeError(msg)


def as_field_policy(policy: FieldPolicy | Callable[..., Any] | None) -> FieldPolicy | None:
    if policy is None or isinstance(policy, FieldPolicy):
        return policy
    if callable(policy):
        return field_policy_from_callable(policy)
    msg = f"Unsupported field policy: {policy!r}"
    raise TypeError(msg)


class TextAnalyzerPolicy:
    """Field policy assigning an analyzer to every field of the given types."""

    def __init__(self, analyzer: str, field_types: Iterable[str] = (TEXT_TYPE,)) -> None:
        self.analyzer = analyzer
        self.field_types = frozenset(field_types)

    def decide(self, annotation: Any, default: FieldMapping) -> Decision[FieldMapping]:
        if default.field_type not in self.field_types:
            return Decision.keep()
        return Decision.replace(dataclasses.replace(default, analyzer=self.analyzer))


class StaticIndexPolicy:
    """Index policy that stops the engine from mapping unknown fields."""

    def apply(self, mapping: IndexMapping) -> IndexMapping:
        mapping.store_dynamic = False
        mapping.index_dynamic = False
        mapping.doc_values_dynamic = False
        mapping.default_mapping.dynamic = False
        return mapping
