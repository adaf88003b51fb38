"""Algebraic descriptions of the shapes a Value may take.

Types are immutable and compared structurally. ``is_()`` only looks at the
outer kind (any ``List`` is a ``List``); ``==`` compares every nested type.
Codecs branch on ``is_()``, value construction relies on ``usable_as()``.

Compact JSON form::

    "string" | "number" | "bool" | "dynamic"
    ["list", T] | ["set", T] | ["map", T]
    ["tuple", [T, ...]]
    ["object", {"name": T, ...}]             # optionally a third element:
    ["object", {"name": T, ...}, ["name"]]   # the optional attribute names
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from provider_wire.errors import ProviderWireError, UnknownTypeError


class Type:
    """Base class for every type. Concrete kinds override the hooks below."""

    kind: str = ""

    def is_(self, other: Type) -> bool:
        """True when ``other`` has the same outer kind as this type."""
        return isinstance(other, Type) and self.kind == other.kind

    def usable_as(self, other: Type) -> bool:
        """True when values of this type may sit where ``other`` is declared."""
        if other == DynamicPseudoType:
            return True
        return self == other

    def to_json_obj(self) -> Any:
        raise NotImplementedError

    def to_json(self) -> bytes:
        """Serialise to the compact JSON form (no whitespace)."""
        return json.dumps(self.to_json_obj(), separators=(",", ":"), sort_keys=True).encode("utf-8")

    def __repr__(self) -> str:
        return str(self)


class PrimitiveType(Type):
    def __init__(self, kind: str, json_name: str) -> None:
        self.kind = kind
        self._json_name = json_name

    def to_json_obj(self) -> Any:
        return self._json_name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PrimitiveType) and other.kind == self.kind

    def __hash__(self) -> int:
        return hash(("primitive", self.kind))

    def __str__(self) -> str:
        return self.kind


String = PrimitiveType("String", "string")
Number = PrimitiveType("Number", "number")
Bool = PrimitiveType("Bool", "bool")
DynamicPseudoType = PrimitiveType("DynamicPseudoType", "dynamic")

_PRIMITIVES_BY_JSON = {
    "string": String,
    "number": Number,
    "bool": Bool,
    "dynamic": DynamicPseudoType,
}


class _ElementType(Type):
    """Shared behaviour of List, Set and Map: one element type."""

    _json_tag = ""

    def __init__(self, element_type: Type | None = None) -> None:
        # A kind-only instance (no element type) is only useful with is_().
        self.element_type = element_type

    def usable_as(self, other: Type) -> bool:
        if other == DynamicPseudoType:
            return True
        if type(other) is not type(self):
            return False
        if self.element_type is None or other.element_type is None:
            return self.element_type is None and other.element_type is None
        return self.element_type.usable_as(other.element_type)

    def to_json_obj(self) -> Any:
        if self.element_type is None:
            raise UnknownTypeError(None, f"{self.kind} has no element type")
        return [self._json_tag, self.element_type.to_json_obj()]

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.element_type == self.element_type  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((self.kind, self.element_type))

    def __str__(self) -> str:
        if self.element_type is None:
            return self.kind
        return f"{self.kind}[{self.element_type}]"


class List(_ElementType):
    kind = "List"
    _json_tag = "list"


class Set(_ElementType):
    kind = "Set"
    _json_tag = "set"


class Map(_ElementType):
    kind = "Map"
    _json_tag = "map"


class Tuple(Type):
    kind = "Tuple"

    def __init__(self, element_types: Iterable[Type] | None = None) -> None:
        self.element_types: tuple[Type, ...] = tuple(element_types or ())

    def usable_as(self, other: Type) -> bool:
        if other == DynamicPseudoType:
            return True
        if not isinstance(other, Tuple) or len(other.element_types) != len(self.element_types):
            return False
        return all(mine.usable_as(theirs) for mine, theirs in zip(self.element_types, other.element_types))

    def to_json_obj(self) -> Any:
        return ["tuple", [t.to_json_obj() for t in self.element_types]]

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Tuple) and other.element_types == self.element_types

    def __hash__(self) -> int:
        return hash((self.kind, self.element_types))

    def __str__(self) -> str:
        return f"Tuple[{', '.join(str(t) for t in self.element_types)}]"


class Object(Type):
    kind = "Object"

    def __init__(
        self,
        attribute_types: Mapping[str, Type] | None = None,
        optional_attributes: Iterable[str] | None = None,
    ) -> None:
        self._attribute_types = dict(sorted((attribute_types or {}).items()))
        self.optional_attributes = frozenset(optional_attributes or ())
        missing = self.optional_attributes - self._attribute_types.keys()
        if missing:
            raise ProviderWireError(
                f"optional attributes {sorted(missing)} are not declared attributes of the object"
            )

    @property
    def attribute_types(self) -> dict[str, Type]:
        return dict(self._attribute_types)

    def attribute_type(self, name: str) -> Type | None:
        return self._attribute_types.get(name)

    def usable_as(self, other: Type) -> bool:
        if other == DynamicPseudoType:
            return True
        if not isinstance(other, Object):
            return False
        if self._attribute_types.keys() != other._attribute_types.keys():
            return False
        if self.optional_attributes != other.optional_attributes:
            return False
        return all(t.usable_as(other._attribute_types[name]) for name, t in self._attribute_types.items())

    def to_json_obj(self) -> Any:
        attrs = {name: t.to_json_obj() for name, t in self._attribute_types.items()}
        if self.optional_attributes:
            return ["object", attrs, sorted(self.optional_attributes)]
        return ["object", attrs]

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Object)
            and other._attribute_types == self._attribute_types
            and other.optional_attributes == self.optional_attributes
        )

    def __hash__(self) -> int:
        return hash((self.kind, tuple(self._attribute_types.items()), self.optional_attributes))

    def __str__(self) -> str:
        attrs = ", ".join(f'"{name}":{t}' for name, t in self._attribute_types.items())
        if self.optional_attributes:
            optional = ", ".join(f'"{name}"' for name in sorted(self.optional_attributes))
            return f"Object[{attrs}]?[{optional}]"
        return f"Object[{attrs}]"


# ---------------------------------------------------------------------------
# JSON type parsing
# ---------------------------------------------------------------------------

def type_from_json(data: bytes | str) -> Type:
    """Parse a type from its compact JSON form."""
    try:
        raw = json.loads(data)
    except ValueError as exc:
        raise UnknownTypeError(None, f"invalid type description: {exc}") from exc
    return type_from_json_obj(raw)


def type_from_json_obj(raw: Any) -> Type:
    """Parse a type from an already-decoded JSON structure (also used for YAML)."""
    if isinstance(raw, Type):
        return raw
    if isinstance(raw, str):
        primitive = _PRIMITIVES_BY_JSON.get(raw)
        if primitive is None:
            raise UnknownTypeError(None, f"invalid primitive type name {raw!r}")
        return primitive
    if not isinstance(raw, (list, tuple)) or not raw:
        raise UnknownTypeError(None, f"invalid type description {raw!r}")

    tag = raw[0]
    if tag in ("list", "set", "map"):
        if len(raw) != 2:
            raise UnknownTypeError(None, f"unexpected extra data in {tag} type description")
        element = type_from_json_obj(raw[1])
        return {"list": List, "set": Set, "map": Map}[tag](element)
    if tag == "tuple":
        if len(raw) != 2 or not isinstance(raw[1], (list, tuple)):
            raise UnknownTypeError(None, "tuple type description must list its element types")
        return Tuple([type_from_json_obj(item) for item in raw[1]])
    if tag == "object":
        if len(raw) not in (2, 3) or not isinstance(raw[1], Mapping):
            raise UnknownTypeError(None, "object type description must map attribute names to types")
        attrs = {str(name): type_from_json_obj(item) for name, item in raw[1].items()}
        optional: list[str] = []
        if len(raw) == 3:
            if not isinstance(raw[2], (list, tuple)) or not all(isinstance(n, str) for n in raw[2]):
                raise UnknownTypeError(None, "object optional attributes must be a list of names")
            optional = list(raw[2])
        try:
            return Object(attrs, optional)
        except ProviderWireError as exc:
            raise UnknownTypeError(None, str(exc)) from exc
    raise UnknownTypeError(None, f"invalid complex type kind name {tag!r}")
