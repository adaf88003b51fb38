"""Structural differences between two values of the same type."""

from __future__ import annotations

from typing import cast

from loguru import logger
from pydantic import BaseModel, ConfigDict

from provider_wire.errors import InvalidStepError, TypeMismatchError
from provider_wire.path import AttributePath
from provider_wire.type_system import List, Map, Object, Set, Tuple
from provider_wire.value import Value
from provider_wire.walk import walk, walk_attribute_path


class ValueDiff(BaseModel):
    """One difference: the path and the value found there on each side.

    ``value1`` is ``None`` when the path only exists in the second value,
    ``value2`` is ``None`` when it only exists in the first.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: AttributePath
    value1: Value | None = None
    value2: Value | None = None

    def equal(self, other: ValueDiff) -> bool:
        if not self.path.equal(other.path):
            return False
        return _same(self.value1, other.value1) and _same(self.value2, other.value2)

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.value1} => {self.value2}"


def _same(left: Value | None, right: Value | None) -> bool:
    if left is None or right is None:
        return left is None and right is None
    return left.equal(right)


_MISSING = object()
_BLOCKED = object()


def _lookup(root: Value, path: AttributePath) -> object:
    """Resolve ``path`` in ``root``.

    Returns the Value, ``_MISSING`` when a step does not exist, or
    ``_BLOCKED`` when a null or unknown ancestor hides the position (the
    difference is then reported at that ancestor).
    """
    try:
        found, remaining = walk_attribute_path(root, path)
    except InvalidStepError:
        return _MISSING
    if len(remaining):
        return _BLOCKED
    return found


def _is_composite(value: Value) -> bool:
    return isinstance(value.unwrap().type, (List, Set, Tuple, Map, Object))


def _descendable(left: Value, right: Value) -> bool:
    left, right = left.unwrap(), right.unwrap()
    return (
        left.type == right.type
        and left.is_known()
        and right.is_known()
        and not left.is_null()
        and not right.is_null()
    )


def diff(value1: Value, value2: Value) -> list[ValueDiff]:
    """Compute the differences between ``value1`` and ``value2``.

    Positions only present on one side produce an entry with the other side
    set to ``None`` and are not descended into. Set elements are addressed by
    their value, so a changed set element shows up as one removal and one
    addition. A composite whose length changed gets an entry of its own in
    addition to the entries for its elements.
    """
    if value1.type != value2.type:
        raise TypeMismatchError(None, f"can't diff value of type {value1.type} with value of type {value2.type}")

    diffs: list[ValueDiff] = []

    def compare(path: AttributePath, left: Value) -> bool:
        right = _lookup(value2, path)
        if right is _BLOCKED:
            return False
        if right is _MISSING:
            diffs.append(ValueDiff(path=path, value1=left, value2=None))
            return False
        right = cast(Value, right)

        left_inner, right_inner = left.unwrap(), right.unwrap()
        if left_inner.type != right_inner.type:
            diffs.append(ValueDiff(path=path, value1=left, value2=right))
            return False
        if not left_inner.is_known() and not right_inner.is_known():
            return False
        if left_inner.is_known() != right_inner.is_known() or left_inner.is_null() != right_inner.is_null():
            diffs.append(ValueDiff(path=path, value1=left, value2=right))
            return False
        if left_inner.is_null():
            return False

        if not _is_composite(left_inner):
            if not left_inner.equal(right_inner):
                diffs.append(ValueDiff(path=path, value1=left, value2=right))
            return False
        if len(left_inner.children()) != len(right_inner.children()):
            diffs.append(ValueDiff(path=path, value1=left, value2=right))
        return True

    def added(path: AttributePath, right: Value) -> bool:
        left = _lookup(value1, path)
        if left is _MISSING:
            diffs.append(ValueDiff(path=path, value1=None, value2=right))
            return False
        return isinstance(left, Value) and _descendable(left, right)

    walk(value1, compare)
    walk(value2, added)
    logger.debug(f"diff found {len(diffs)} differences")
    return diffs
