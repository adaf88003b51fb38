"""Diagnostics returned to the host alongside RPC results.

Providers turn errors into ``Diagnostic`` records instead of raising across
the RPC boundary. ``validate_schema_document`` applies the same idea to YAML
schema documents: it never raises and reports every problem as a
diagnostic.
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path
from typing import Iterable

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from provider_wire.errors import (
    AttributePathError,
    DecodeShapeError,
    DecodeValueError,
    EmptyEnvelopeError,
    InvalidNestingModeError,
    ProviderWireError,
    TypeMismatchError,
    UnknownTypeError,
)
from provider_wire.path import AttributePath


class DiagnosticSeverity(IntEnum):
    INVALID = 0
    ERROR = 1
    WARNING = 2


class Diagnostic(BaseModel):
    """A severity-tagged message, optionally pointing into a value."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    severity: DiagnosticSeverity
    summary: str
    detail: str = ""
    attribute: AttributePath | None = None

    def __str__(self) -> str:
        where = f" at {self.attribute}" if self.attribute is not None and len(self.attribute) else ""
        text = f"{self.severity.name}{where}: {self.summary}"
        return f"{text}: {self.detail}" if self.detail else text


class FunctionError(BaseModel):
    """Error result of a provider-defined function call.

    ``function_argument`` is the zero-based index of the argument at fault,
    when a single argument is to blame.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    function_argument: int | None = None


def error_diagnostic(summary: str, detail: str = "", attribute: AttributePath | None = None) -> Diagnostic:
    return Diagnostic(severity=DiagnosticSeverity.ERROR, summary=summary, detail=detail, attribute=attribute)


def warning_diagnostic(summary: str, detail: str = "", attribute: AttributePath | None = None) -> Diagnostic:
    return Diagnostic(severity=DiagnosticSeverity.WARNING, summary=summary, detail=detail, attribute=attribute)


def has_error(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(diagnostic.severity == DiagnosticSeverity.ERROR for diagnostic in diagnostics)


_SUMMARIES: list[tuple[type[Exception], str]] = [
    (EmptyEnvelopeError, "Empty value envelope"),
    (DecodeShapeError, "Unexpected value shape"),
    (DecodeValueError, "Invalid value"),
    (TypeMismatchError, "Value type mismatch"),
    (UnknownTypeError, "Unknown type"),
    (InvalidNestingModeError, "Invalid schema nesting mode"),
]


def diagnostic_from_error(exc: Exception, summary: str | None = None) -> Diagnostic:
    """Convert an error into an error diagnostic, keeping its path."""
    if summary is None:
        summary = next((text for kind, text in _SUMMARIES if isinstance(exc, kind)), "Provider error")
    if isinstance(exc, AttributePathError):
        return error_diagnostic(summary, exc.message, exc.path)
    return error_diagnostic(summary, str(exc))


# ---------------------------------------------------------------------------
# Schema document validation
# ---------------------------------------------------------------------------

def _path_from_loc(loc: Iterable[int | str]) -> AttributePath:
    path = AttributePath()
    for part in loc:
        if isinstance(part, int):
            path = path.with_element_key_int(part)
        else:
            path = path.with_attribute_name(str(part))
    return path


def validate_schema_document(path: Path | str) -> list[Diagnostic]:
    """Check a YAML schema document and report problems as diagnostics.

    Loads the document the way ``load_schema_file`` does, then derives its
    value type so that nesting-mode problems surface too. Never raises; an
    empty list means the document is usable.
    """
    from provider_wire.schema import load_schema_file

    try:
        schema = load_schema_file(Path(path))
    except yaml.YAMLError as exc:
        return [error_diagnostic("Invalid schema document", f"YAML parse failed: {exc}")]
    except ValidationError as exc:
        return [
            error_diagnostic("Invalid schema document", error["msg"], _path_from_loc(error["loc"]))
            for error in exc.errors()
        ]
    except (OSError, ProviderWireError) as exc:
        return [error_diagnostic("Invalid schema document", str(exc))]

    try:
        schema.value_type()
    except ProviderWireError as exc:
        return [diagnostic_from_error(exc)]
    return []
