"""Exception hierarchy for the value codec, type system, and schema layers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from provider_wire.path import AttributePath


class ProviderWireError(RuntimeError):
    """Base class for every error raised by provider_wire."""


class AttributePathError(ProviderWireError):
    """An error attached to the location inside a value where it happened.

    ``path`` is always set; the root path renders as just the message.
    """

    def __init__(self, path: AttributePath | None, message: str) -> None:
        from provider_wire.path import AttributePath

        self.path = path if path is not None else AttributePath()
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        rendered = str(self.path)
        if not rendered:
            return self.message
        return f"{rendered}: {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributePathError):
            return NotImplemented
        return type(self) is type(other) and self.path == other.path and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.path, self.message))


class EmptyEnvelopeError(ProviderWireError):
    """A DynamicValue, RawState or RawIdentity carried no bytes at all."""


class DecodeShapeError(AttributePathError):
    """Wire bytes did not match the declared type (token, arity, attribute)."""


class DecodeValueError(AttributePathError):
    """A well-shaped token could not be parsed (malformed number, bad JSON)."""


class TypeMismatchError(AttributePathError, TypeError):
    """A value payload disagrees with its declared type.

    Raised by the Value constructor; always a programming error.
    """


class UnknownTypeError(AttributePathError):
    """The declared type is not one the codecs understand."""


class InvalidStepError(AttributePathError):
    """A path step cannot be applied to the value it was applied to."""


class InvalidNestingModeError(ProviderWireError):
    """A schema block or nested attribute declares an unusable nesting mode."""


class FlatmapNotSupportedError(ProviderWireError):
    """Legacy flatmap state is carried as opaque bytes and is never decoded."""


class StopRequested(ProviderWireError):
    """The consumer of a stream asked the producer to stop."""
