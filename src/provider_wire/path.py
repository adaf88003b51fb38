"""Addressing into nested values.

An ``AttributePath`` is an immutable sequence of steps. Each ``with_*`` call
returns a new path; the original is never modified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Union

from provider_wire.errors import AttributePathError

if TYPE_CHECKING:
    from provider_wire.value import Value


class AttributeName:
    """Step into an Object attribute."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AttributeName) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("AttributeName", self.name))

    def __str__(self) -> str:
        return f'AttributeName("{self.name}")'

    __repr__ = __str__


class ElementKeyString:
    """Step into a Map element."""

    def __init__(self, key: str) -> None:
        self.key = key

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ElementKeyString) and other.key == self.key

    def __hash__(self) -> int:
        return hash(("ElementKeyString", self.key))

    def __str__(self) -> str:
        return f'ElementKeyString("{self.key}")'

    __repr__ = __str__


class ElementKeyInt:
    """Step into a List or Tuple element by position."""

    def __init__(self, index: int) -> None:
        self.index = int(index)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ElementKeyInt) and other.index == self.index

    def __hash__(self) -> int:
        return hash(("ElementKeyInt", self.index))

    def __str__(self) -> str:
        return f"ElementKeyInt({self.index})"

    __repr__ = __str__


class ElementKeyValue:
    """Step into a Set element, identified by the element's own value."""

    def __init__(self, value: Value) -> None:
        self.value = value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ElementKeyValue) and other.value.equal(self.value)

    def __hash__(self) -> int:
        return hash(("ElementKeyValue", self.value))

    def __str__(self) -> str:
        return f"ElementKeyValue({self.value})"

    __repr__ = __str__


AttributePathStep = Union[AttributeName, ElementKeyString, ElementKeyInt, ElementKeyValue]


class AttributePath:
    """Ordered sequence of steps pointing at a location inside a value."""

    def __init__(self, steps: Iterable[AttributePathStep] = ()) -> None:
        self._steps: tuple[AttributePathStep, ...] = tuple(steps)

    @property
    def steps(self) -> tuple[AttributePathStep, ...]:
        return self._steps

    def with_step(self, step: AttributePathStep) -> AttributePath:
        return AttributePath(self._steps + (step,))

    def with_attribute_name(self, name: str) -> AttributePath:
        return self.with_step(AttributeName(name))

    def with_element_key_string(self, key: str) -> AttributePath:
        return self.with_step(ElementKeyString(key))

    def with_element_key_int(self, index: int) -> AttributePath:
        return self.with_step(ElementKeyInt(index))

    def with_element_key_value(self, value: Value) -> AttributePath:
        return self.with_step(ElementKeyValue(value))

    def parent(self) -> AttributePath:
        """The path without its last step. The root is its own parent."""
        return AttributePath(self._steps[:-1])

    def last_step(self) -> AttributePathStep | None:
        return self._steps[-1] if self._steps else None

    def new_error(self, message: str, error_class: type[AttributePathError] = AttributePathError) -> AttributePathError:
        """Build an error of ``error_class`` anchored at this path."""
        return error_class(self, message)

    def equal(self, other: AttributePath | None) -> bool:
        if other is None:
            return not self._steps
        return self._steps == other._steps

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributePath):
            return NotImplemented
        return self.equal(other)

    def __hash__(self) -> int:
        return hash(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self):
        return iter(self._steps)

    def __str__(self) -> str:
        return ".".join(str(step) for step in self._steps)

    def __repr__(self) -> str:
        return f"AttributePath({self})"
