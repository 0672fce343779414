"""Property introspection — the boundary between entity classes and the mapper.

Given an entity type, an introspector returns an *ordered* list of
:class:`PropertyDescriptor`. Order matters: it becomes column order in the
derived table, and rows are mapped back positionally in that same order.

Two strategies are provided and :func:`properties_of` picks one per type:

* dataclasses → one descriptor per field, definition order, markers from
  ``field(metadata=...)``;
* any other class → one descriptor per ``property`` (base classes first,
  definition order), markers from decorators on the getter, type from the
  getter's return annotation.

Names starting with an underscore are never exposed, so no synthetic
type-metadata property (``__class__``) ever reaches the schema deriver.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Protocol, runtime_checkable

from rowspine.core.markers import markers_of


@dataclass(frozen=True)
class PropertyDescriptor:
    """One named, typed attribute of an entity type."""

    name: str
    value_type: Any
    getter: Callable[[Any], Any] = field(compare=False)
    setter: Callable[[Any, Any], None] | None = field(default=None, compare=False)
    annotations: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def annotation(self, key: str) -> Any:
        """Value of marker ``key``, or ``None`` when absent."""
        return self.annotations.get(key)

    def has_annotation(self, key: str) -> bool:
        return key in self.annotations

    @property
    def writable(self) -> bool:
        return self.setter is not None


@runtime_checkable
class PropertyIntrospector(Protocol):
    """Strategy producing the ordered properties of an entity type."""

    def properties_of(self, entity_type: type) -> list[PropertyDescriptor]:
        ...


def unwrap_optional(value_type: Any) -> tuple[Any, bool]:
    """Split ``X | None`` / ``Optional[X]`` into ``(X, True)``.

    Any other type is returned as ``(value_type, False)``. A union of more
    than one non-``None`` member is returned unchanged (and will not map).
    """
    origin = typing.get_origin(value_type)
    if origin is typing.Union or origin is types.UnionType:
        members = [arg for arg in typing.get_args(value_type) if arg is not type(None)]
        if len(members) == 1:
            return members[0], True
    return value_type, False


def _attribute_setter(name: str, frozen: bool = False) -> Callable[[Any, Any], None]:
    # Frozen dataclasses assign their fields the same way in __init__.
    assign = object.__setattr__ if frozen else setattr

    def setter(instance: Any, value: Any) -> None:
        assign(instance, name, value)

    setter.__name__ = f"set_{name}"
    return setter


class DataclassIntrospector:
    """Introspects the fields of a dataclass."""

    def properties_of(self, entity_type: type) -> list[PropertyDescriptor]:
        if not dataclasses.is_dataclass(entity_type):
            raise TypeError(f"{entity_type.__name__} is not a dataclass")
        hints = typing.get_type_hints(entity_type)
        frozen = entity_type.__dataclass_params__.frozen  # type: ignore[attr-defined]
        return [
            PropertyDescriptor(
                name=f.name,
                value_type=hints.get(f.name, f.type),
                getter=attrgetter(f.name),
                setter=_attribute_setter(f.name, frozen),
                annotations=dict(f.metadata),
            )
            for f in dataclasses.fields(entity_type)
            if not f.name.startswith("_")
        ]


class BeanIntrospector:
    """Introspects the ``property`` objects of a plain class."""

    def properties_of(self, entity_type: type) -> list[PropertyDescriptor]:
        found: dict[str, property] = {}
        for klass in reversed(entity_type.__mro__):
            if klass is object:
                continue
            for name, attr in vars(klass).items():
                if isinstance(attr, property) and not name.startswith("_"):
                    found[name] = attr

        descriptors = []
        for name, prop in found.items():
            if prop.fget is None:
                continue
            hints = typing.get_type_hints(prop.fget)
            descriptors.append(
                PropertyDescriptor(
                    name=name,
                    value_type=hints.get("return", Any),
                    getter=prop.fget,
                    setter=prop.fset,
                    annotations=markers_of(prop.fget),
                )
            )
        return descriptors


class DefaultIntrospector:
    """Dataclass introspection for dataclasses, property introspection otherwise."""

    def __init__(self) -> None:
        self._dataclasses = DataclassIntrospector()
        self._beans = BeanIntrospector()

    def properties_of(self, entity_type: type) -> list[PropertyDescriptor]:
        if dataclasses.is_dataclass(entity_type):
            return self._dataclasses.properties_of(entity_type)
        return self._beans.properties_of(entity_type)


_introspector: PropertyIntrospector = DefaultIntrospector()


def get_introspector() -> PropertyIntrospector:
    return _introspector


def set_introspector(introspector: PropertyIntrospector) -> None:
    """Replace the process-wide introspector.

    Call before any schema is derived: derived schemas are cached.
    """
    global _introspector
    _introspector = introspector


def properties_of(entity_type: type) -> list[PropertyDescriptor]:
    """Ordered properties of ``entity_type`` using the configured introspector."""
    return _introspector.properties_of(entity_type)


__all__ = [
    "PropertyDescriptor",
    "PropertyIntrospector",
    "DataclassIntrospector",
    "BeanIntrospector",
    "DefaultIntrospector",
    "get_introspector",
    "set_introspector",
    "properties_of",
    "unwrap_optional",
]
