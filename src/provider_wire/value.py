"""In-memory, type-tagged values.

A ``Value`` pairs a ``Type`` with one of:

- ``None`` (null),
- ``UNKNOWN`` (present, content not yet computed),
- a primitive payload (``str``, ``Decimal``, ``bool``),
- a tuple of child Values (List, Set, Tuple),
- a mapping of names to child Values (Map, Object),
- a nested Value, only when the type is ``DynamicPseudoType``.

Values are immutable. Numbers are stored as ``Decimal`` so that anything the
host sends survives a round-trip, however many digits it has.
"""

from __future__ import annotations

import json
import math
from decimal import Decimal
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Sequence

from provider_wire.errors import InvalidStepError, ProviderWireError, TypeMismatchError
from provider_wire.path import (
    AttributeName,
    AttributePath,
    AttributePathStep,
    ElementKeyInt,
    ElementKeyString,
    ElementKeyValue,
)
from provider_wire.type_system import (
    Bool,
    DynamicPseudoType,
    List,
    Map,
    Number,
    Object,
    Set,
    String,
    Tuple,
    Type,
)

if TYPE_CHECKING:
    from provider_wire.diff import ValueDiff


class _Unknown:
    """Sentinel payload for values that are not known yet."""

    _instance: _Unknown | None = None

    def __new__(cls) -> _Unknown:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __copy__(self) -> _Unknown:
        return self

    def __deepcopy__(self, memo: dict) -> _Unknown:
        return self


UNKNOWN = _Unknown()


# ---------------------------------------------------------------------------
# Payload validation
# ---------------------------------------------------------------------------

def _to_decimal(payload: Any, path: AttributePath) -> Decimal:
    if isinstance(payload, bool):
        raise TypeMismatchError(path, "can't use bool as Number")
    if isinstance(payload, Decimal):
        if payload.is_nan():
            raise TypeMismatchError(path, "NaN is not a valid Number")
        return payload
    if isinstance(payload, int):
        return Decimal(payload)
    if isinstance(payload, float):
        if math.isnan(payload):
            raise TypeMismatchError(path, "NaN is not a valid Number")
        # repr() gives the shortest text that reads back as the same double.
        return Decimal(repr(payload))
    raise TypeMismatchError(path, f"can't use {type(payload).__name__} as Number")


def _check_child(child: Any, expected: Type, path: AttributePath) -> Value:
    if not isinstance(child, Value):
        raise TypeMismatchError(path, f"expected a Value, got {type(child).__name__}")
    if not child.type.usable_as(expected):
        raise TypeMismatchError(path, f"can't use {child.type} as {expected}")
    return child


def _normalise(typ: Type, payload: Any, path: AttributePath) -> Any:
    if not isinstance(typ, Type):
        raise TypeMismatchError(path, f"{typ!r} is not a Type")
    if payload is None or payload is UNKNOWN:
        return payload

    if typ == DynamicPseudoType:
        if isinstance(payload, Value):
            # Nested wrappers collapse to the innermost concrete value.
            inner = payload.unwrap()
            if inner.type == DynamicPseudoType:
                return inner._payload
            return inner
        raise TypeMismatchError(
            path, "DynamicPseudoType values must be null, unknown, or wrap a concretely typed Value"
        )
    if isinstance(payload, Value):
        raise TypeMismatchError(path, f"only DynamicPseudoType values can wrap a Value, not {typ}")

    if typ == String:
        if not isinstance(payload, str):
            raise TypeMismatchError(path, f"can't use {type(payload).__name__} as String")
        return payload
    if typ == Number:
        return _to_decimal(payload, path)
    if typ == Bool:
        if not isinstance(payload, bool):
            raise TypeMismatchError(path, f"can't use {type(payload).__name__} as Bool")
        return payload

    if isinstance(typ, (List, Set)):
        if typ.element_type is None:
            raise TypeMismatchError(path, f"{typ.kind} values need an element type")
        if isinstance(payload, (str, bytes, Mapping)) or not isinstance(payload, Iterable):
            raise TypeMismatchError(path, f"can't use {type(payload).__name__} as {typ}")
        children = []
        for index, child in enumerate(payload):
            if isinstance(typ, Set) and isinstance(child, Value):
                step_path = path.with_element_key_value(child)
            else:
                step_path = path.with_element_key_int(index)
            children.append(_check_child(child, typ.element_type, step_path))
        return tuple(children)

    if isinstance(typ, Tuple):
        if isinstance(payload, (str, bytes, Mapping)) or not isinstance(payload, Iterable):
            raise TypeMismatchError(path, f"can't use {type(payload).__name__} as {typ}")
        children = list(payload)
        if len(children) != len(typ.element_types):
            raise TypeMismatchError(
                path, f"can't use {len(children)} elements as a tuple of {len(typ.element_types)} elements"
            )
        return tuple(
            _check_child(child, expected, path.with_element_key_int(index))
            for index, (child, expected) in enumerate(zip(children, typ.element_types))
        )

    if isinstance(typ, Map):
        if typ.element_type is None:
            raise TypeMismatchError(path, "Map values need an element type")
        if not isinstance(payload, Mapping):
            raise TypeMismatchError(path, f"can't use {type(payload).__name__} as {typ}")
        result = {}
        for key in sorted(payload):
            if not isinstance(key, str):
                raise TypeMismatchError(path, f"map keys must be strings, got {type(key).__name__}")
            result[key] = _check_child(payload[key], typ.element_type, path.with_element_key_string(key))
        return result

    if isinstance(typ, Object):
        if typ.optional_attributes:
            raise TypeMismatchError(path, "can't create a Value of an Object type with optional attributes")
        if not isinstance(payload, Mapping):
            raise TypeMismatchError(path, f"can't use {type(payload).__name__} as {typ}")
        declared = typ.attribute_types
        for key in payload:
            if key not in declared:
                raise TypeMismatchError(path, f"unsupported attribute {key!r}")
        result = {}
        for key, expected in declared.items():
            if key not in payload:
                raise TypeMismatchError(path.with_attribute_name(key), "missing attribute value")
            result[key] = _check_child(payload[key], expected, path.with_attribute_name(key))
        return result

    raise TypeMismatchError(path, f"unknown type {typ}")


def validate_value(typ: Type, payload: Any) -> None:
    """Run the Value constructor checks without building a Value."""
    _normalise(typ, payload, AttributePath())


def type_from_elements(values: Sequence[Value]) -> Type:
    """Return the single type shared by ``values``.

    An empty sequence yields ``DynamicPseudoType``; mixed types are an error.
    """
    found: Type | None = None
    for value in values:
        if found is None:
            found = value.type
        elif found != value.type:
            raise TypeMismatchError(None, f"elements do not all have the same type, saw {found} and {value.type}")
    return found if found is not None else DynamicPseudoType


# ---------------------------------------------------------------------------
# Value
# ---------------------------------------------------------------------------

class Value:
    """An immutable, type-tagged datum."""

    def __init__(self, typ: Type, payload: Any = None) -> None:
        self._type = typ
        self._payload = _normalise(typ, payload, AttributePath())

    @classmethod
    def _trusted(cls, typ: Type, payload: Any) -> Value:
        # Skip validation for payloads the caller has already normalised.
        value = cls.__new__(cls)
        value._type = typ
        value._payload = payload
        return value

    @property
    def type(self) -> Type:
        return self._type

    @property
    def payload(self) -> Any:
        """The stored payload, read-only.

        Maps and objects come back as a read-only mapping.
        """
        if isinstance(self._payload, dict):
            return MappingProxyType(self._payload)
        return self._payload

    def is_(self, typ: Type) -> bool:
        """True when this value's type has the same outer kind as ``typ``."""
        return self._type.is_(typ)

    def is_null(self) -> bool:
        if isinstance(self._payload, Value):
            return self._payload.is_null()
        return self._payload is None

    def is_known(self) -> bool:
        if isinstance(self._payload, Value):
            return self._payload.is_known()
        return self._payload is not UNKNOWN

    def is_fully_known(self) -> bool:
        if not self.is_known():
            return False
        payload = self._payload
        if isinstance(payload, Value):
            return payload.is_fully_known()
        if isinstance(payload, tuple):
            return all(child.is_fully_known() for child in payload)
        if isinstance(payload, dict):
            return all(child.is_fully_known() for child in payload.values())
        return True

    def is_wrapped(self) -> bool:
        """True for a DynamicPseudoType value carrying a concrete Value."""
        return isinstance(self._payload, Value)

    def unwrap(self) -> Value:
        """The concrete value behind a DynamicPseudoType wrapper, else self."""
        if isinstance(self._payload, Value):
            return self._payload
        return self

    def children(self) -> list[tuple[AttributePathStep, Value]]:
        """Direct children with the path step that reaches each one.

        Object and Map children come in key order; Set children are keyed by
        their own value.
        """
        inner = self.unwrap()
        payload = inner._payload
        if payload is None or payload is UNKNOWN:
            return []
        typ = inner._type
        if isinstance(typ, Set):
            return [(ElementKeyValue(child), child) for child in payload]
        if isinstance(typ, (List, Tuple)):
            return [(ElementKeyInt(index), child) for index, child in enumerate(payload)]
        if isinstance(typ, Map):
            return [(ElementKeyString(key), payload[key]) for key in sorted(payload)]
        if isinstance(typ, Object):
            return [(AttributeName(key), payload[key]) for key in sorted(payload)]
        return []

    def apply_path_step(self, step: AttributePathStep) -> Value:
        """Return the child addressed by ``step``.

        Raises InvalidStepError when the step does not apply to this value.
        """
        inner = self.unwrap()
        payload = inner._payload
        typ = inner._type
        if payload is None or payload is UNKNOWN:
            raise InvalidStepError(None, f"can't apply {step} to a null or unknown value")
        if isinstance(step, AttributeName) and isinstance(typ, Object):
            if step.name in payload:
                return payload[step.name]
        elif isinstance(step, ElementKeyString) and isinstance(typ, Map):
            if step.key in payload:
                return payload[step.key]
        elif isinstance(step, ElementKeyInt) and isinstance(typ, (List, Tuple)):
            if 0 <= step.index < len(payload):
                return payload[step.index]
        elif isinstance(step, ElementKeyValue) and isinstance(typ, Set):
            for child in payload:
                if child.equal(step.value):
                    return child
        raise InvalidStepError(None, f"can't apply {step} to {typ}")

    # -- conversion -------------------------------------------------------

    def as_(self, target: type) -> Any:
        """Convert into a native Python form.

        ``target`` is one of ``str``, ``Decimal``, ``int``, ``float``,
        ``bool``, ``list`` or ``dict``. Null converts to ``None``; unknown
        values cannot be converted.
        """
        inner = self.unwrap()
        if not inner.is_known():
            raise ProviderWireError("unmarshaling unknown values is not supported")
        if inner.is_null():
            return None
        typ, payload = inner._type, inner._payload
        if target is str and typ == String:
            return payload
        if target is Decimal and typ == Number:
            return payload
        if target is int and typ == Number:
            if payload.is_infinite() or payload != payload.to_integral_value():
                raise TypeMismatchError(None, f"{format(payload, 'f')} is not an integer")
            return int(payload)
        if target is float and typ == Number:
            return float(payload)
        if target is bool and typ == Bool:
            return payload
        if target is list and isinstance(typ, (List, Set, Tuple)):
            return list(payload)
        if target is dict and isinstance(typ, (Map, Object)):
            return dict(payload)
        target_name = getattr(target, "__name__", repr(target))
        raise TypeMismatchError(None, f"can't unmarshal {typ} into {target_name}")

    def copy(self) -> Value:
        """A deep copy; composites are rebuilt child by child."""
        payload = self._payload
        if isinstance(payload, Value):
            payload = payload.copy()
        elif isinstance(payload, tuple):
            payload = tuple(child.copy() for child in payload)
        elif isinstance(payload, dict):
            payload = {key: child.copy() for key, child in payload.items()}
        return Value._trusted(self._type, payload)

    # -- traversal --------------------------------------------------------

    def walk(self, callback: Callable[[AttributePath, Value], bool]) -> None:
        from provider_wire.walk import walk

        walk(self, callback)

    def transform(self, callback: Callable[[AttributePath, Value], Value]) -> Value:
        from provider_wire.walk import transform

        return transform(self, callback)

    def diff(self, other: Value) -> list[ValueDiff]:
        from provider_wire.diff import diff

        return diff(self, other)

    # -- comparison -------------------------------------------------------

    def equal(self, other: object) -> bool:
        if not isinstance(other, Value):
            return False
        if self._type != other._type:
            return False
        return _payload_equal(self._type, self._payload, other._payload)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.equal(other)

    def __hash__(self) -> int:
        return hash((self._type, _payload_key(self._type, self._payload)))

    def __str__(self) -> str:
        payload = self._payload
        if isinstance(payload, Value):
            return str(payload)
        if payload is None:
            return f"{self._type}<null>"
        if payload is UNKNOWN:
            return f"{self._type}<unknown>"
        if self._type == String:
            return f"{self._type}<{json.dumps(payload)}>"
        if self._type == Number:
            return f"{self._type}<{format(payload, 'f')}>"
        if self._type == Bool:
            return f"{self._type}<{'true' if payload else 'false'}>"
        if isinstance(payload, tuple):
            return f"{self._type}<{', '.join(str(child) for child in payload)}>"
        rendered = ", ".join(f'"{key}":{payload[key]}' for key in sorted(payload))
        return f"{self._type}<{rendered}>"

    __repr__ = __str__


def _payload_equal(typ: Type, left: Any, right: Any) -> bool:
    if left is None or right is None or left is UNKNOWN or right is UNKNOWN:
        return left is right
    if isinstance(left, Value) or isinstance(right, Value):
        return isinstance(left, Value) and isinstance(right, Value) and left.equal(right)
    if isinstance(typ, Set):
        if len(left) != len(right):
            return False
        unmatched = list(right)
        for child in left:
            for index, candidate in enumerate(unmatched):
                if child.equal(candidate):
                    del unmatched[index]
                    break
            else:
                return False
        return True
    if isinstance(left, tuple):
        return len(left) == len(right) and all(a.equal(b) for a, b in zip(left, right))
    if isinstance(left, dict):
        return left.keys() == right.keys() and all(left[key].equal(right[key]) for key in left)
    return left == right


def _payload_key(typ: Type, payload: Any) -> Any:
    if isinstance(payload, tuple):
        if isinstance(typ, Set):
            return tuple(sorted(hash(child) for child in payload))
        return payload
    if isinstance(payload, dict):
        return tuple(sorted(payload.items()))
    return payload


def new_value(typ: Type, payload: Any = None) -> Value:
    """Functional spelling of ``Value(typ, payload)``."""
    return Value(typ, payload)
