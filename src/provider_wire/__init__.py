"""Public API for provider-wire."""

from loguru import logger

from provider_wire.adapters.servers import (
    ActionServer,
    DataSourceServer,
    EphemeralResourceServer,
    FunctionServer,
    ListResourceServer,
    ProviderServer,
    ResourceServer,
    StateStoreServer,
)
from provider_wire.config import WireConfig, load_wire_config
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
from provider_wire.diff import ValueDiff, diff
from provider_wire.dynamic_value import DynamicValue, new_dynamic_value
from provider_wire.errors import (
    AttributePathError,
    DecodeShapeError,
    DecodeValueError,
    EmptyEnvelopeError,
    FlatmapNotSupportedError,
    InvalidNestingModeError,
    InvalidStepError,
    ProviderWireError,
    StopRequested,
    TypeMismatchError,
    UnknownTypeError,
)
from provider_wire.events import (
    ActionEventStream,
    CancelledActionEvent,
    CancelType,
    DiagnosticsActionEvent,
    FinishedActionEvent,
    InvokeActionEvent,
    ProgressActionEvent,
    StartedActionEvent,
    StopSignal,
)
from provider_wire.json_codec import UnmarshalOpts, value_from_json, value_to_json
from provider_wire.msgpack_codec import value_from_msgpack, value_to_msgpack
from provider_wire.path import (
    AttributeName,
    AttributePath,
    AttributePathStep,
    ElementKeyInt,
    ElementKeyString,
    ElementKeyValue,
)
from provider_wire.raw_state import RawIdentity, RawState
from provider_wire.schema import (
    ActionSchema,
    NestingMode,
    ObjectNestingMode,
    ResourceIdentitySchema,
    ResourceIdentitySchemaAttribute,
    Schema,
    SchemaAttribute,
    SchemaBlock,
    SchemaNestedBlock,
    SchemaObject,
    StringKind,
    load_schema_file,
)
from provider_wire.state_bytes import (
    DEFAULT_CHUNK_SIZE,
    StateByteChunk,
    StateByteRange,
    assemble_state_bytes,
    chunk_state_bytes,
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
    type_from_json,
)
from provider_wire.value import UNKNOWN, Value, new_value, type_from_elements, validate_value
from provider_wire.walk import transform, walk, walk_attribute_path, walk_type_path

# Library logging stays silent until the application opts in.
logger.disable("provider_wire")

__all__ = [
    # Types
    "Type",
    "String",
    "Number",
    "Bool",
    "DynamicPseudoType",
    "List",
    "Set",
    "Map",
    "Tuple",
    "Object",
    "type_from_json",
    # Values
    "UNKNOWN",
    "Value",
    "new_value",
    "validate_value",
    "type_from_elements",
    # Paths
    "AttributeName",
    "AttributePath",
    "AttributePathStep",
    "ElementKeyInt",
    "ElementKeyString",
    "ElementKeyValue",
    # Traversal and diff
    "walk",
    "transform",
    "walk_attribute_path",
    "walk_type_path",
    "ValueDiff",
    "diff",
    # Codecs and envelopes
    "value_from_msgpack",
    "value_to_msgpack",
    "value_from_json",
    "value_to_json",
    "UnmarshalOpts",
    "DynamicValue",
    "new_dynamic_value",
    "RawState",
    "RawIdentity",
    # Schemas
    "ActionSchema",
    "NestingMode",
    "ObjectNestingMode",
    "ResourceIdentitySchema",
    "ResourceIdentitySchemaAttribute",
    "Schema",
    "SchemaAttribute",
    "SchemaBlock",
    "SchemaNestedBlock",
    "SchemaObject",
    "StringKind",
    "load_schema_file",
    # Diagnostics
    "Diagnostic",
    "DiagnosticSeverity",
    "FunctionError",
    "diagnostic_from_error",
    "error_diagnostic",
    "warning_diagnostic",
    "has_error",
    "validate_schema_document",
    # Actions
    "ActionEventStream",
    "CancelType",
    "CancelledActionEvent",
    "DiagnosticsActionEvent",
    "FinishedActionEvent",
    "InvokeActionEvent",
    "ProgressActionEvent",
    "StartedActionEvent",
    "StopSignal",
    # State bytes
    "DEFAULT_CHUNK_SIZE",
    "StateByteChunk",
    "StateByteRange",
    "assemble_state_bytes",
    "chunk_state_bytes",
    # Servers
    "ActionServer",
    "DataSourceServer",
    "EphemeralResourceServer",
    "FunctionServer",
    "ListResourceServer",
    "ProviderServer",
    "ResourceServer",
    "StateStoreServer",
    # Config
    "WireConfig",
    "load_wire_config",
    # Errors
    "AttributePathError",
    "DecodeShapeError",
    "DecodeValueError",
    "EmptyEnvelopeError",
    "FlatmapNotSupportedError",
    "InvalidNestingModeError",
    "InvalidStepError",
    "ProviderWireError",
    "StopRequested",
    "TypeMismatchError",
    "UnknownTypeError",
]
