"""Depth-first traversal, rebuilding transforms, and path resolution."""

from __future__ import annotations

from typing import Callable

from provider_wire.errors import InvalidStepError, TypeMismatchError
from provider_wire.path import (
    AttributeName,
    AttributePath,
    AttributePathStep,
    ElementKeyInt,
    ElementKeyString,
    ElementKeyValue,
)
from provider_wire.type_system import DynamicPseudoType, List, Map, Object, Set, Tuple, Type
from provider_wire.value import Value, type_from_elements

WalkCallback = Callable[[AttributePath, Value], bool]
TransformCallback = Callable[[AttributePath, Value], Value]


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------

def walk(value: Value, callback: WalkCallback) -> None:
    """Visit ``value`` and its descendants in pre-order.

    The callback returns ``True`` to descend into the node's children and
    ``False`` to skip them. Exceptions raised by the callback propagate.
    """
    _walk(AttributePath(), value, callback)


def _walk(path: AttributePath, value: Value, callback: WalkCallback) -> None:
    if not callback(path, value):
        return
    for step, child in value.children():
        _walk(path.with_step(step), child, callback)


# ---------------------------------------------------------------------------
# Transform
# ---------------------------------------------------------------------------

def transform(value: Value, callback: TransformCallback) -> Value:
    """Rebuild ``value`` bottom-up, passing every node through ``callback``.

    Children are transformed first; the parent is then rebuilt from the new
    children and handed to the callback at its own path. When the new
    children no longer fit the parent's declared type, the parent type is
    re-derived from them.
    """
    return _transform(AttributePath(), value, callback)


def _transform(path: AttributePath, value: Value, callback: TransformCallback) -> Value:
    children = value.children()
    rebuilt = value
    if children:
        new_children = [
            (step, _transform(path.with_step(step), child, callback)) for step, child in children
        ]
        rebuilt = _rebuild(value.unwrap(), new_children)
        if value.is_wrapped():
            rebuilt = Value(DynamicPseudoType, rebuilt)

    result = callback(path, rebuilt)
    if not isinstance(result, Value):
        raise TypeMismatchError(path, f"transform callback returned {type(result).__name__}, not a Value")
    return result


def _rebuild(original: Value, children: list[tuple[AttributePathStep, Value]]) -> Value:
    typ = original.type
    values = [child for _, child in children]

    if isinstance(typ, (List, Set)):
        try:
            return Value(typ, values)
        except TypeMismatchError:
            return Value(type(typ)(type_from_elements(values)), values)

    if isinstance(typ, Tuple):
        try:
            return Value(typ, values)
        except TypeMismatchError:
            return Value(Tuple([child.type for child in values]), values)

    if isinstance(typ, Map):
        mapping = {step.key: child for step, child in children}
        try:
            return Value(typ, mapping)
        except TypeMismatchError:
            return Value(Map(type_from_elements(values)), mapping)

    if isinstance(typ, Object):
        mapping = {step.name: child for step, child in children}
        try:
            return Value(typ, mapping)
        except TypeMismatchError:
            return Value(Object({name: child.type for name, child in mapping.items()}), mapping)

    raise TypeMismatchError(None, f"can't rebuild children of {typ}")


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

def walk_attribute_path(value: Value, path: AttributePath) -> tuple[Value, AttributePath]:
    """Follow ``path`` from ``value``.

    Returns the value reached and the steps that could not be followed
    because a null or unknown value was reached first. The remainder is the
    empty path when the whole path resolved. A step that does not apply to
    a known, non-null value raises ``InvalidStepError`` at that step.
    """
    current = value
    taken = AttributePath()
    steps = path.steps
    for index, step in enumerate(steps):
        if current.is_null() or not current.is_known():
            return current, AttributePath(steps[index:])
        try:
            current = current.apply_path_step(step)
        except InvalidStepError as exc:
            raise InvalidStepError(taken.with_step(step), exc.message) from exc
        taken = taken.with_step(step)
    return current, AttributePath()


def walk_type_path(typ: Type, path: AttributePath) -> Type:
    """Follow ``path`` through a type, returning the type found at its end.

    A ``DynamicPseudoType`` position accepts any further step.
    """
    current = typ
    taken = AttributePath()
    for step in path:
        taken = taken.with_step(step)
        if current == DynamicPseudoType:
            continue
        if isinstance(step, AttributeName) and isinstance(current, Object):
            found = current.attribute_type(step.name)
            if found is None:
                raise InvalidStepError(taken, f"{current} has no attribute {step.name!r}")
            current = found
        elif isinstance(step, ElementKeyString) and isinstance(current, Map):
            current = current.element_type
        elif isinstance(step, ElementKeyInt) and isinstance(current, (List, Set)):
            # Decoders report set elements by their position on the wire.
            current = current.element_type
        elif isinstance(step, ElementKeyInt) and isinstance(current, Tuple):
            if not 0 <= step.index < len(current.element_types):
                raise InvalidStepError(taken, f"{current} has no element {step.index}")
            current = current.element_types[step.index]
        elif isinstance(step, ElementKeyValue) and isinstance(current, Set):
            current = current.element_type
        else:
            raise InvalidStepError(taken, f"can't apply {step} to {current}")
    return current
