"""Default field classification for Python type annotations.

The classifier answers one question: given the annotation of a leaf value,
which kind of field should index it? Containers are unwrapped to their
element (or mapping value) type first, reference wrappers such as
``Optional`` and ``Annotated`` are looked through, and anything that is not a
recognised leaf classifies as ``Classification.NONE``. Record types also
classify as NONE; the builder expands those into sub-documents instead.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime
import types
from typing import Annotated, Any, Literal, NotRequired, Required, Union, get_args, get_origin

import numpy as np

from docmapper.mapping import Classification


_NONE_TYPE = type(None)
_UNION_ORIGINS = (Union, types.UnionType)
_QUALIFIER_ORIGINS = (Annotated, Required, NotRequired)


def unwrap_reference(annotation: Any) -> Any:
    """Strip ``Annotated``, ``NewType`` and single-member ``Optional`` wrappers."""
    while True:
        origin = get_origin(annotation)
        if origin in _QUALIFIER_ORIGINS:
            annotation = get_args(annotation)[0]
        elif hasattr(annotation, "__supertype__"):
            annotation = annotation.__supertype__
        elif origin in _UNION_ORIGINS:
            members = [arg for arg in get_args(annotation) if arg is not _NONE_TYPE]
            if len(members) != 1:
                return annotation
            annotation = members[0]
        else:
            return annotation


def _element_type(origin: type, args: tuple[Any, ...]) -> Any | None:
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        if args and all(arg == args[0] for arg in args):
            return args[0]
        return None
    if issubclass(origin, tuple):
        # parametrized NamedTuple, a record rather than a container
        return None
    if issubclass(origin, Counter):
        return int
    if issubclass(origin, Mapping):
        return args[1] if len(args) == 2 else None
    if issubclass(origin, Iterable):
        return args[0] if len(args) == 1 else None
    return None


class TypeClassifier:
    """
    Registration table from annotation to Classification.

    Explicit registrations win over the default rules, which are:

    - bool (and numpy.bool_) -> BOOLEAN
    - int, float and numpy integer/floating scalars of any width -> NUMERIC
    - str -> TEXT
    - datetime and its subclasses -> DATETIME
    - sequences, sets, tuples and iterables -> classification of the element
    - mappings -> classification of the value type (keys are irrelevant);
      Counter[K] counts are NUMERIC
    - everything else, including record types -> NONE

    Example:
        classifier = TypeClassifier()
        classifier.register(uuid.UUID, Classification.TEXT)
        classifier.classify(list[uuid.UUID])  # Classification.TEXT
    """

    def __init__(self, registrations: Mapping[Any, Classification] | None = None) -> None:
        self._registry: dict[Any, Classification] = dict(registrations or {})

    def register(self, annotation: Any, classification: Classification) -> None:
        """Classify annotation (matched exactly) as classification."""
        self._registry[annotation] = Classification(classification)

    def registered(self, annotation: Any) -> Classification | None:
        try:
            return self._registry.get(annotation)
        except TypeError:  # unhashable annotation
            return None

    def classify(self, annotation: Any) -> Classification:
        """Return the default classification for annotation."""
        registered = self.registered(annotation)
        if registered is not None:
            return registered

        unwrapped = unwrap_reference(annotation)
        if unwrapped is not annotation:
            return self.classify(unwrapped)

        origin = get_origin(annotation)
        if origin is Literal:
            return self._classify_literal(get_args(annotation))
        if isinstance(origin, type):
            element = _element_type(origin, get_args(annotation))
            if element is not None:
                return self.classify(element)
            return Classification.NONE
        if isinstance(annotation, type):
            return self._classify_class(annotation)
        return Classification.NONE

    def _classify_class(self, cls: type) -> Classification:
        if issubclass(cls, (bool, np.bool_)):
            return Classification.BOOLEAN
        if issubclass(cls, (int, float, np.integer, np.floating)):
            return Classification.NUMERIC
        if issubclass(cls, str):
            return Classification.TEXT
        if issubclass(cls, datetime):
            return Classification.DATETIME
        return Classification.NONE

    def _classify_literal(self, values: tuple[Any, ...]) -> Classification:
        kinds = {self._classify_class(type(value)) for value in values}
        if len(kinds) == 1:
            return kinds.pop()
        return Classification.NONE


default_classifier = TypeClassifier()


def classify(annotation: Any) -> Classification:
    """Classify annotation with the default rule set."""
    return default_classifier.classify(annotation)
