"""Field descriptors resolved from record types.

A record type is any composite the builder can expand field by field:

- dataclasses (tag taken from field metadata, e.g. ``field(metadata=tag("id"))``)
- pydantic models (tag taken from the serialization alias or alias; ``exclude=True`` excludes)
- NamedTuples and TypedDicts (no native tag source)

Any record kind may also carry a tag as ``Annotated[T, Tag("name,omitempty")]``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from functools import lru_cache
import types
from typing import (
    Annotated,
    Any,
    NotRequired,
    Required,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    is_typeddict,
)

from pydantic import BaseModel

from docmapper.classifier import unwrap_reference


TAG_KEY = "json"
EXCLUDE_TAG = "-"


@dataclass(frozen=True)
class Tag:
    """Serialization tag attached through ``Annotated`` metadata."""

    value: str


def tag(value: str, key: str = TAG_KEY) -> dict[str, str]:
    """Return dataclass field metadata carrying a serialization tag."""
    return {key: value}


@dataclass(frozen=True)
class FieldDescriptor:
    """One field of a record type, in declaration order."""

    name: str
    annotation: Any
    tag: str | None = None
    position: int = 0

    @property
    def is_exported(self) -> bool:
        # Leading underscore marks a private attribute; covers "_" itself.
        return not self.name.startswith("_")

    def resolve_name(self, *, empty_tag_fallback: bool = True) -> str | None:
        """
        Return the name the field is indexed under, or None when excluded.

        The first comma-delimited tag segment wins when it is non-empty and
        not "-". A tag of exactly "-" always excludes the field. Any other
        tag whose first segment is empty or "-" falls back to the identifier,
        or excludes the field when empty_tag_fallback is False.
        """
        if self.tag is None:
            return self.name
        if self.tag == EXCLUDE_TAG:
            return None
        head, _, _ = self.tag.partition(",")
        if head and head != EXCLUDE_TAG:
            return head
        return self.name if empty_tag_fallback else None


@dataclass(frozen=True)
class RecordDescriptor:
    """Pre-resolved field list of one record type."""

    record_type: type
    fields: tuple[FieldDescriptor, ...]

    @property
    def name(self) -> str:
        return self.record_type.__name__


def record_type_of(value: Any) -> Any:
    """Resolve an instance, class or typing wrapper to its underlying type."""
    if isinstance(value, type):
        return value
    unwrapped = unwrap_reference(value)
    if unwrapped is not value:
        return record_type_of(unwrapped)
    if is_record_type(value):
        # parametrized generic record, e.g. Box[int]
        return value
    return type(value)


def record_name(record_type: Any) -> str:
    """Return the class name of a record type, ignoring generic parameters."""
    return (get_origin(record_type) or record_type).__name__


def doc_type(value: Any) -> str:
    """Return the type name a record is registered under."""
    return record_name(record_type_of(value))


def _is_named_tuple(cls: type) -> bool:
    return issubclass(cls, tuple) and hasattr(cls, "_fields")


def is_record_type(annotation: Any) -> bool:
    """Return True when annotation is a composite the builder can expand."""
    cls = unwrap_reference(annotation)
    cls = get_origin(cls) or cls
    if not isinstance(cls, type):
        return False
    return (
        dataclasses.is_dataclass(cls)
        or issubclass(cls, BaseModel)
        or _is_named_tuple(cls)
        or is_typeddict(cls)
    )


def _annotated_tag(annotation: Any) -> str | None:
    # Look through Optional and Required/NotRequired down to the Annotated layer.
    while get_origin(annotation) is not Annotated:
        origin = get_origin(annotation)
        if origin in (Required, NotRequired):
            annotation = get_args(annotation)[0]
        elif origin in (Union, types.UnionType):
            members = [arg for arg in get_args(annotation) if arg is not type(None)]
            if len(members) != 1:
                return None
            annotation = members[0]
        else:
            return None
    return _tag_in(get_args(annotation)[1:])


def _substitute(annotation: Any, bindings: dict[Any, Any]) -> Any:
    if isinstance(annotation, TypeVar):
        return bindings.get(annotation, annotation)
    params = getattr(annotation, "__parameters__", ())
    if get_origin(annotation) is None or not params:
        return annotation
    return annotation[tuple(bindings.get(param, param) for param in params)]


def _tag_in(metadata: Any) -> str | None:
    for item in metadata:
        if isinstance(item, Tag):
            return item.value
    return None


def _dataclass_fields(cls: type, tag_key: str) -> list[FieldDescriptor]:
    hints = get_type_hints(cls, include_extras=True)
    descriptors = []
    for position, f in enumerate(dataclasses.fields(cls)):
        annotation = hints.get(f.name, f.type)
        field_tag = f.metadata.get(tag_key)
        if field_tag is None:
            field_tag = _annotated_tag(annotation)
        descriptors.append(FieldDescriptor(f.name, annotation, field_tag, position))
    return descriptors


def _model_fields(cls: type[BaseModel]) -> list[FieldDescriptor]:
    descriptors = []
    for position, (name, info) in enumerate(cls.model_fields.items()):
        if info.exclude is True:
            field_tag: str | None = EXCLUDE_TAG
        else:
            field_tag = _tag_in(info.metadata) or info.serialization_alias or info.alias
        descriptors.append(FieldDescriptor(name, info.annotation, field_tag, position))
    return descriptors


def _hinted_fields(cls: type, names: Any) -> list[FieldDescriptor]:
    hints = get_type_hints(cls, include_extras=True)
    return [
        FieldDescriptor(name, hints.get(name, Any), _annotated_tag(hints.get(name)), position)
        for position, name in enumerate(names)
    ]


@lru_cache(maxsize=512)
def describe_record(record_type: Any, tag_key: str = TAG_KEY) -> RecordDescriptor:
    """
    Resolve the ordered field descriptors of a record type.

    For a parametrized generic record such as ``Box[int]`` the type
    variables in field annotations are replaced by the concrete arguments.

    Raises:
        TypeError: If record_type is not a record type
        NameError: If a forward reference in the annotations cannot be resolved
    """
    alias = unwrap_reference(record_type)
    if not is_record_type(alias):
        msg = f"{alias!r} is not a record type"
        raise TypeError(msg)
    cls = get_origin(alias) or alias

    if dataclasses.is_dataclass(cls):
        fields = _dataclass_fields(cls, tag_key)
    elif issubclass(cls, BaseModel):
        fields = _model_fields(cls)
    elif _is_named_tuple(cls):
        fields = _hinted_fields(cls, cls._fields)
    else:
        fields = _hinted_fields(cls, get_type_hints(cls))

    bindings = dict(zip(getattr(cls, "__parameters__", ()), get_args(alias)))
    if bindings:
        fields = [dataclasses.replace(f, annotation=_substitute(f.annotation, bindings)) for f in fields]
    return RecordDescriptor(cls, tuple(fields))
