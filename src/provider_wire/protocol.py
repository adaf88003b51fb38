"""Request and response records exchanged with the host.

Configuration, state and plan fields are ``DynamicValue`` envelopes; the
provider decodes them with the types derived from its registered schemas.
The transport layer converts these records to and from the RPC messages.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from provider_wire.diagnostics import Diagnostic, FunctionError
from provider_wire.dynamic_value import DynamicValue
from provider_wire.events import ActionEventStream, CancelType
from provider_wire.path import AttributePath
from provider_wire.raw_state import RawIdentity, RawState
from provider_wire.schema import ActionSchema, ResourceIdentitySchema, Schema
from provider_wire.state_bytes import DEFAULT_CHUNK_SIZE, StateByteChunk


class DeferredReason(IntEnum):
    UNKNOWN = 0
    RESOURCE_CONFIG_UNKNOWN = 1
    PROVIDER_CONFIG_UNKNOWN = 2
    ABSENT_PREREQ = 3


class Deferred(BaseModel):
    """Signals that the host should retry the operation in a later round."""
    model_config = ConfigDict(frozen=True)

    reason: DeferredReason = DeferredReason.UNKNOWN


class _Response(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    diagnostics: list[Diagnostic] = Field(default_factory=list)


class _TypedRequest(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type_name: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class GetProviderSchemaRequest(BaseModel):
    model_config = ConfigDict(frozen=True)


class GetProviderSchemaResponse(_Response):
    provider: Schema | None = None
    provider_meta: Schema | None = None
    resource_schemas: dict[str, Schema] = Field(default_factory=dict)
    data_source_schemas: dict[str, Schema] = Field(default_factory=dict)
    ephemeral_resource_schemas: dict[str, Schema] = Field(default_factory=dict)
    list_resource_schemas: dict[str, Schema] = Field(default_factory=dict)
    action_schemas: dict[str, ActionSchema] = Field(default_factory=dict)
    state_store_schemas: dict[str, Schema] = Field(default_factory=dict)
    identity_schemas: dict[str, ResourceIdentitySchema] = Field(default_factory=dict)


class ValidateProviderConfigRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    config: DynamicValue | None = None


class ValidateProviderConfigResponse(_Response):
    pass


class ConfigureProviderRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    terraform_version: str = ""
    config: DynamicValue | None = None


class ConfigureProviderResponse(_Response):
    pass


class StopProviderRequest(BaseModel):
    model_config = ConfigDict(frozen=True)


class StopProviderResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    error: str = ""


# ---------------------------------------------------------------------------
# Managed resources
# ---------------------------------------------------------------------------

class ValidateResourceConfigRequest(_TypedRequest):
    config: DynamicValue | None = None


class ValidateResourceConfigResponse(_Response):
    pass


class ReadResourceRequest(_TypedRequest):
    current_state: DynamicValue | None = None
    current_identity: DynamicValue | None = None
    private: bytes = b""
    provider_meta: DynamicValue | None = None


class ReadResourceResponse(_Response):
    new_state: DynamicValue | None = None
    new_identity: DynamicValue | None = None
    private: bytes = b""
    deferred: Deferred | None = None


class PlanResourceChangeRequest(_TypedRequest):
    prior_state: DynamicValue | None = None
    proposed_new_state: DynamicValue | None = None
    config: DynamicValue | None = None
    prior_private: bytes = b""
    provider_meta: DynamicValue | None = None


class PlanResourceChangeResponse(_Response):
    planned_state: DynamicValue | None = None
    requires_replace: list[AttributePath] = Field(default_factory=list)
    planned_private: bytes = b""
    deferred: Deferred | None = None


class ApplyResourceChangeRequest(_TypedRequest):
    prior_state: DynamicValue | None = None
    planned_state: DynamicValue | None = None
    config: DynamicValue | None = None
    planned_private: bytes = b""
    provider_meta: DynamicValue | None = None


class ApplyResourceChangeResponse(_Response):
    new_state: DynamicValue | None = None
    private: bytes = b""


class ImportedResource(BaseModel):
    model_config = ConfigDict(frozen=True)

    type_name: str
    state: DynamicValue | None = None
    private: bytes = b""


class ImportResourceStateRequest(_TypedRequest):
    id: str = ""
    identity: DynamicValue | None = None


class ImportResourceStateResponse(_Response):
    imported_resources: list[ImportedResource] = Field(default_factory=list)
    deferred: Deferred | None = None


class UpgradeResourceStateRequest(_TypedRequest):
    version: int = 0
    raw_state: RawState | None = None


class UpgradeResourceStateResponse(_Response):
    upgraded_state: DynamicValue | None = None


class UpgradeResourceIdentityRequest(_TypedRequest):
    version: int = 0
    raw_identity: RawIdentity | None = None


class UpgradeResourceIdentityResponse(_Response):
    upgraded_identity: DynamicValue | None = None


# ---------------------------------------------------------------------------
# Data sources, functions, ephemeral resources
# ---------------------------------------------------------------------------

class ValidateDataResourceConfigRequest(_TypedRequest):
    config: DynamicValue | None = None


class ValidateDataResourceConfigResponse(_Response):
    pass


class ReadDataSourceRequest(_TypedRequest):
    config: DynamicValue | None = None
    provider_meta: DynamicValue | None = None


class ReadDataSourceResponse(_Response):
    state: DynamicValue | None = None
    deferred: Deferred | None = None


class CallFunctionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    arguments: list[DynamicValue] = Field(default_factory=list)


class CallFunctionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    result: DynamicValue | None = None
    error: FunctionError | None = None


class OpenEphemeralResourceRequest(_TypedRequest):
    config: DynamicValue | None = None


class OpenEphemeralResourceResponse(_Response):
    result: DynamicValue | None = None
    private: bytes = b""
    renew_at: datetime | None = None
    deferred: Deferred | None = None


class CloseEphemeralResourceRequest(_TypedRequest):
    private: bytes = b""


class CloseEphemeralResourceResponse(_Response):
    pass


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class PlanActionRequest(_TypedRequest):
    config: DynamicValue | None = None


class PlanActionResponse(_Response):
    planned_resource_changes: dict[str, DynamicValue] = Field(default_factory=dict)


class InvokeActionRequest(_TypedRequest):
    config: DynamicValue | None = None


class InvokeActionResponse(_Response):
    cancellation_token: str = ""
    events: ActionEventStream | None = None


class CancelActionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    cancellation_token: str
    cancellation_type: CancelType = CancelType.SOFT


class CancelActionResponse(_Response):
    pass


# ---------------------------------------------------------------------------
# State stores
# ---------------------------------------------------------------------------

class ValidateStateStoreRequest(_TypedRequest):
    config: DynamicValue | None = None


class ValidateStateStoreResponse(_Response):
    pass


class ConfigureStateStoreRequest(_TypedRequest):
    config: DynamicValue | None = None
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)


class ConfigureStateStoreResponse(_Response):
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)


class GetStatesRequest(_TypedRequest):
    pass


class GetStatesResponse(_Response):
    state_ids: list[str] = Field(default_factory=list)


class DeleteStateRequest(_TypedRequest):
    state_id: str


class DeleteStateResponse(_Response):
    pass


class ReadStateBytesRequest(_TypedRequest):
    state_id: str


class ReadStateByteChunk(_Response):
    chunk: StateByteChunk | None = None


class WriteStateChunkMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    type_name: str
    state_id: str


class WriteStateBytesChunk(BaseModel):
    """One chunk of a write; only the first chunk carries ``meta``."""
    model_config = ConfigDict(frozen=True)

    meta: WriteStateChunkMeta | None = None
    chunk: StateByteChunk | None = None


class WriteStateBytesResponse(_Response):
    pass


# ---------------------------------------------------------------------------
# List resources
# ---------------------------------------------------------------------------

class ListResourceRequest(_TypedRequest):
    config: DynamicValue | None = None
    include_resource: bool = False
    limit: int = Field(default=0, ge=0)


class ListResourceResult(_Response):
    display_name: str = ""
    identity: DynamicValue | None = None
    resource: DynamicValue | None = None
