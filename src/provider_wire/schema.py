"""Schema declarations and the value types derived from them."""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path
from typing import Any, Literal, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from provider_wire.errors import InvalidNestingModeError, ProviderWireError, UnknownTypeError
from provider_wire.type_system import List, Map, Object, Set, Type, type_from_json_obj


class NestingMode(IntEnum):
    """How a nested block repeats inside its parent block."""

    INVALID = 0
    SINGLE = 1
    LIST = 2
    SET = 3
    MAP = 4
    GROUP = 5


class ObjectNestingMode(IntEnum):
    """How a nested-object attribute repeats."""

    INVALID = 0
    SINGLE = 1
    LIST = 2
    SET = 3
    MAP = 4


class StringKind(IntEnum):
    PLAIN = 0
    MARKDOWN = 1


def _coerce_mode(value: Any, enum: type[IntEnum]) -> Any:
    # YAML documents spell modes by name; the wire uses the numbers.
    if isinstance(value, str):
        try:
            return enum[value.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown {enum.__name__} {value!r}") from None
    return value


def _resolve_mode(value: int, enum: type[IntEnum], owner: str) -> IntEnum:
    try:
        mode = enum(value)
    except ValueError:
        raise InvalidNestingModeError(f"{owner} has unrecognised nesting mode {value!r}") from None
    if mode == 0:
        raise InvalidNestingModeError(f"{owner} has nesting mode INVALID")
    return mode


def _coerce_type(value: Any) -> Any:
    if value is None or isinstance(value, Type):
        return value
    try:
        return type_from_json_obj(value)
    except UnknownTypeError as exc:
        raise ValueError(str(exc)) from exc


def _wrap(mode: IntEnum, element: Object) -> Type:
    if mode in (NestingMode.SINGLE, NestingMode.GROUP):
        return element
    if mode == NestingMode.LIST:
        return List(element)
    if mode == NestingMode.SET:
        return Set(element)
    return Map(element)


# ---------------------------------------------------------------------------
# Resource, data source, and provider schemas
# ---------------------------------------------------------------------------

class SchemaObject(BaseModel):
    """The object type of a nested-object attribute."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    attributes: list[SchemaAttribute] = Field(default_factory=list)
    nesting: ObjectNestingMode | int = Field(default=ObjectNestingMode.SINGLE, union_mode="left_to_right")

    @field_validator("nesting", mode="before")
    @classmethod
    def _nesting_by_name(cls, value: Any) -> Any:
        return _coerce_mode(value, ObjectNestingMode)

    def value_type(self) -> Type:
        mode = _resolve_mode(self.nesting, ObjectNestingMode, "nested attribute object")
        element = Object({attribute.name: attribute.value_type() for attribute in self.attributes})
        return _wrap(NestingMode(int(mode)), element)


class SchemaAttribute(BaseModel):
    """A single attribute: either a flat type or a nested object, never both."""
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    type: Type | None = None
    nested_type: SchemaObject | None = None
    description: str = ""
    description_kind: StringKind = StringKind.PLAIN
    required: bool = False
    optional: bool = False
    computed: bool = False
    sensitive: bool = False
    write_only: bool = False
    deprecated: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        return _coerce_type(value)

    @field_validator("description_kind", mode="before")
    @classmethod
    def _kind_by_name(cls, value: Any) -> Any:
        return _coerce_mode(value, StringKind)

    @model_validator(mode="after")
    def _exactly_one_type(self) -> SchemaAttribute:
        if (self.type is None) == (self.nested_type is None):
            raise ValueError(f"attribute {self.name!r} must declare exactly one of type or nested_type")
        return self

    def value_type(self) -> Type:
        if self.nested_type is not None:
            return self.nested_type.value_type()
        return cast(Type, self.type)


class SchemaNestedBlock(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type_name: str = Field(..., min_length=1)
    block: SchemaBlock | None = None
    nesting: NestingMode | int = Field(default=NestingMode.SINGLE, union_mode="left_to_right")
    min_items: int = Field(default=0, ge=0)
    max_items: int = Field(default=0, ge=0)

    @field_validator("nesting", mode="before")
    @classmethod
    def _nesting_by_name(cls, value: Any) -> Any:
        return _coerce_mode(value, NestingMode)

    def value_type(self) -> Type:
        mode = _resolve_mode(self.nesting, NestingMode, f"block {self.type_name!r}")
        element = self.block.value_type() if self.block is not None else Object({})
        return _wrap(mode, element)


class SchemaBlock(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    version: int = 0
    attributes: list[SchemaAttribute] = Field(default_factory=list)
    block_types: list[SchemaNestedBlock] = Field(default_factory=list)
    description: str = ""
    description_kind: StringKind = StringKind.PLAIN
    deprecated: bool = False

    @field_validator("description_kind", mode="before")
    @classmethod
    def _kind_by_name(cls, value: Any) -> Any:
        return _coerce_mode(value, StringKind)

    @model_validator(mode="after")
    def _unique_names(self) -> SchemaBlock:
        seen: set[str] = set()
        for name in [a.name for a in self.attributes] + [b.type_name for b in self.block_types]:
            if name in seen:
                raise ValueError(f"duplicate attribute or block name {name!r}")
            seen.add(name)
        return self

    def value_type(self) -> Object:
        attributes: dict[str, Type] = {}
        for attribute in self.attributes:
            attributes[attribute.name] = attribute.value_type()
        for block in self.block_types:
            attributes[block.type_name] = block.value_type()
        return Object(attributes)


class Schema(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    version: int = 0
    block: SchemaBlock | None = None

    def value_type(self) -> Object:
        if self.block is None:
            return Object({})
        return self.block.value_type()


# ---------------------------------------------------------------------------
# Identity and action schemas
# ---------------------------------------------------------------------------

class ResourceIdentitySchemaAttribute(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    type: Type
    required_for_import: bool = False
    optional_for_import: bool = False
    description: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        return _coerce_type(value)

    @model_validator(mode="after")
    def _import_flags(self) -> ResourceIdentitySchemaAttribute:
        if self.required_for_import and self.optional_for_import:
            raise ValueError(
                f"identity attribute {self.name!r} can't be both required_for_import and optional_for_import"
            )
        return self


class ResourceIdentitySchema(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    identity_version: int = 0
    identity_attributes: list[ResourceIdentitySchemaAttribute] = Field(default_factory=list)

    def value_type(self) -> Object:
        return Object({attribute.name: attribute.type for attribute in self.identity_attributes})


class ActionSchema(BaseModel):
    """Schema of an action; only unlinked actions exist today."""
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    schema_: Schema = Field(..., alias="schema")
    type: Literal["unlinked"] = "unlinked"

    def value_type(self) -> Object:
        return self.schema_.value_type()


SchemaObject.model_rebuild()
SchemaAttribute.model_rebuild()
SchemaNestedBlock.model_rebuild()
SchemaBlock.model_rebuild()


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

_SCHEMA_KINDS: dict[str, type[BaseModel]] = {
    "schema": Schema,
    "identity": ResourceIdentitySchema,
    "action": ActionSchema,
}


def load_schema_file(path: Path) -> Schema | ResourceIdentitySchema | ActionSchema:
    """Load a schema document from YAML.

    The document is a mapping; an optional top-level ``kind`` selects
    ``schema`` (the default), ``identity`` or ``action``. Attribute types use
    the compact type form, e.g. ``[list, string]``.
    """
    if not path.exists():
        raise ProviderWireError(f"Schema file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ProviderWireError(f"Schema file must be a mapping: {path}")

    raw = dict(raw)
    kind = raw.pop("kind", "schema")
    model = _SCHEMA_KINDS.get(kind)
    if model is None:
        raise ProviderWireError(f"Unknown schema kind {kind!r} in {path}")
    return model.model_validate(raw)
