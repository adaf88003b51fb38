"""Host-facing server interfaces, one per kind of provider capability.

A provider implements ``ProviderServer`` plus whichever capability protocols
it supports. Each method takes a request record from ``provider_wire.protocol``
and returns the matching response; streaming RPCs use iterators.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Protocol, runtime_checkable

from provider_wire.protocol import (
    ApplyResourceChangeRequest,
    ApplyResourceChangeResponse,
    CallFunctionRequest,
    CallFunctionResponse,
    CancelActionRequest,
    CancelActionResponse,
    CloseEphemeralResourceRequest,
    CloseEphemeralResourceResponse,
    ConfigureProviderRequest,
    ConfigureProviderResponse,
    ConfigureStateStoreRequest,
    ConfigureStateStoreResponse,
    DeleteStateRequest,
    DeleteStateResponse,
    GetProviderSchemaRequest,
    GetProviderSchemaResponse,
    GetStatesRequest,
    GetStatesResponse,
    ImportResourceStateRequest,
    ImportResourceStateResponse,
    InvokeActionRequest,
    InvokeActionResponse,
    ListResourceRequest,
    ListResourceResult,
    OpenEphemeralResourceRequest,
    OpenEphemeralResourceResponse,
    PlanActionRequest,
    PlanActionResponse,
    PlanResourceChangeRequest,
    PlanResourceChangeResponse,
    ReadDataSourceRequest,
    ReadDataSourceResponse,
    ReadResourceRequest,
    ReadResourceResponse,
    ReadStateByteChunk,
    ReadStateBytesRequest,
    StopProviderRequest,
    StopProviderResponse,
    UpgradeResourceIdentityRequest,
    UpgradeResourceIdentityResponse,
    UpgradeResourceStateRequest,
    UpgradeResourceStateResponse,
    ValidateDataResourceConfigRequest,
    ValidateDataResourceConfigResponse,
    ValidateProviderConfigRequest,
    ValidateProviderConfigResponse,
    ValidateResourceConfigRequest,
    ValidateResourceConfigResponse,
    ValidateStateStoreRequest,
    ValidateStateStoreResponse,
    WriteStateBytesChunk,
    WriteStateBytesResponse,
)


@runtime_checkable
class ProviderServer(Protocol):
    """Provider-wide RPCs every provider answers."""

    def get_provider_schema(self, request: GetProviderSchemaRequest) -> GetProviderSchemaResponse: ...

    def validate_provider_config(self, request: ValidateProviderConfigRequest) -> ValidateProviderConfigResponse: ...

    def configure_provider(self, request: ConfigureProviderRequest) -> ConfigureProviderResponse: ...

    def stop_provider(self, request: StopProviderRequest) -> StopProviderResponse: ...


@runtime_checkable
class ResourceServer(Protocol):
    def validate_resource_config(self, request: ValidateResourceConfigRequest) -> ValidateResourceConfigResponse: ...

    def upgrade_resource_state(self, request: UpgradeResourceStateRequest) -> UpgradeResourceStateResponse: ...

    def upgrade_resource_identity(
        self, request: UpgradeResourceIdentityRequest
    ) -> UpgradeResourceIdentityResponse: ...

    def read_resource(self, request: ReadResourceRequest) -> ReadResourceResponse: ...

    def plan_resource_change(self, request: PlanResourceChangeRequest) -> PlanResourceChangeResponse: ...

    def apply_resource_change(self, request: ApplyResourceChangeRequest) -> ApplyResourceChangeResponse: ...

    def import_resource_state(self, request: ImportResourceStateRequest) -> ImportResourceStateResponse: ...


@runtime_checkable
class DataSourceServer(Protocol):
    def validate_data_resource_config(
        self, request: ValidateDataResourceConfigRequest
    ) -> ValidateDataResourceConfigResponse: ...

    def read_data_source(self, request: ReadDataSourceRequest) -> ReadDataSourceResponse: ...


@runtime_checkable
class FunctionServer(Protocol):
    def call_function(self, request: CallFunctionRequest) -> CallFunctionResponse: ...


@runtime_checkable
class EphemeralResourceServer(Protocol):
    def open_ephemeral_resource(self, request: OpenEphemeralResourceRequest) -> OpenEphemeralResourceResponse: ...

    def close_ephemeral_resource(self, request: CloseEphemeralResourceRequest) -> CloseEphemeralResourceResponse: ...


@runtime_checkable
class ActionServer(Protocol):
    """Actions; ``invoke_action`` returns an ``ActionEventStream`` in its response."""

    def plan_action(self, request: PlanActionRequest) -> PlanActionResponse: ...

    def invoke_action(self, request: InvokeActionRequest) -> InvokeActionResponse: ...

    def cancel_action(self, request: CancelActionRequest) -> CancelActionResponse: ...


@runtime_checkable
class StateStoreServer(Protocol):
    """Pluggable state storage.

    ``read_state_bytes`` yields the stored state in chunks no larger than the
    negotiated chunk size; ``write_state_bytes`` consumes chunks in order.
    """

    def validate_state_store(self, request: ValidateStateStoreRequest) -> ValidateStateStoreResponse: ...

    def configure_state_store(self, request: ConfigureStateStoreRequest) -> ConfigureStateStoreResponse: ...

    def get_states(self, request: GetStatesRequest) -> GetStatesResponse: ...

    def delete_state(self, request: DeleteStateRequest) -> DeleteStateResponse: ...

    def read_state_bytes(self, request: ReadStateBytesRequest) -> Iterator[ReadStateByteChunk]: ...

    def write_state_bytes(self, chunks: Iterable[WriteStateBytesChunk]) -> WriteStateBytesResponse: ...


@runtime_checkable
class ListResourceServer(Protocol):
    def list_resource(self, request: ListResourceRequest) -> Iterator[ListResourceResult]: ...
