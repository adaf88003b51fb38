"""Tests for diagnostics and schema document validation."""

from __future__ import annotations

from pathlib import Path

from provider_wire.diagnostics import (
    Diagnostic,
    DiagnosticSeverity,
    FunctionError,
    diagnostic_from_error,
    error_diagnostic,
    has_error,
    validate_schema_document,
    warning_diagnostic,
)
from provider_wire.errors import DecodeShapeError, EmptyEnvelopeError, ProviderWireError
from provider_wire.path import AttributePath


class TestDiagnostic:
    def test_constructors(self) -> None:
        error = error_diagnostic("Broken", "details")
        warning = warning_diagnostic("Careful")
        assert error.severity == DiagnosticSeverity.ERROR
        assert warning.severity == DiagnosticSeverity.WARNING
        assert has_error([warning, error])
        assert not has_error([warning])

    def test_str_includes_path(self) -> None:
        path = AttributePath().with_attribute_name("size")
        assert str(error_diagnostic("Bad size", "must be positive", path)) == (
            'ERROR at AttributeName("size"): Bad size: must be positive'
        )
        assert str(warning_diagnostic("Deprecated")) == "WARNING: Deprecated"

    def test_from_path_error_keeps_path(self) -> None:
        path = AttributePath().with_attribute_name("tags").with_element_key_int(0)
        diagnostic = diagnostic_from_error(DecodeShapeError(path, "expected string"))
        assert diagnostic.summary == "Unexpected value shape"
        assert diagnostic.detail == "expected string"
        assert diagnostic.attribute == path

    def test_from_plain_error(self) -> None:
        diagnostic = diagnostic_from_error(EmptyEnvelopeError("no data"))
        assert diagnostic.summary == "Empty value envelope"
        assert diagnostic.attribute is None

    def test_summary_override_and_fallback(self) -> None:
        assert diagnostic_from_error(ProviderWireError("x"), "Custom").summary == "Custom"
        assert diagnostic_from_error(ValueError("x")).summary == "Provider error"

    def test_function_error(self) -> None:
        error = FunctionError(text="argument must be positive", function_argument=1)
        assert error.function_argument == 1
        assert FunctionError(text="failed").function_argument is None


class TestValidateSchemaDocument:
    def _write(self, tmp_path: Path, text: str) -> Path:
        path = tmp_path / "schema.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_valid_document(self, tmp_path: Path) -> None:
        path = self._write(tmp_path, "block:\n  attributes:\n    - name: id\n      type: string\n")
        assert validate_schema_document(path) == []

    def test_yaml_error(self, tmp_path: Path) -> None:
        diagnostics = validate_schema_document(self._write(tmp_path, "block: [unclosed\n"))
        assert len(diagnostics) == 1
        assert "YAML parse failed" in diagnostics[0].detail

    def test_validation_errors_carry_paths(self, tmp_path: Path) -> None:
        path = self._write(tmp_path, "block:\n  attributes:\n    - type: string\n")
        diagnostics = validate_schema_document(path)
        assert diagnostics
        assert all(isinstance(d, Diagnostic) and d.severity == DiagnosticSeverity.ERROR for d in diagnostics)
        expected = (
            AttributePath()
            .with_attribute_name("block")
            .with_attribute_name("attributes")
            .with_element_key_int(0)
            .with_attribute_name("name")
        )
        assert any(d.attribute == expected for d in diagnostics)

    def test_missing_file(self, tmp_path: Path) -> None:
        diagnostics = validate_schema_document(tmp_path / "missing.yaml")
        assert len(diagnostics) == 1
        assert "not found" in diagnostics[0].detail

    def test_invalid_nesting_mode(self, tmp_path: Path) -> None:
        path = self._write(tmp_path, "block:\n  block_types:\n    - type_name: rule\n      nesting: invalid\n")
        diagnostics = validate_schema_document(path)
        assert [d.summary for d in diagnostics] == ["Invalid schema nesting mode"]
