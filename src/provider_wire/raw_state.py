"""Undecoded state handed to providers for upgrading.

The host keeps no copy of previous schemas, so during an upgrade it passes
the stored state as raw JSON and leaves decoding to the provider, which
knows which schema version produced it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from provider_wire.errors import EmptyEnvelopeError, FlatmapNotSupportedError
from provider_wire.json_codec import UnmarshalOpts, value_from_json
from provider_wire.type_system import Type
from provider_wire.value import Value


class RawState(BaseModel):
    """Stored resource state in JSON, or in the legacy flatmap layout."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    json_data: bytes | None = None
    flatmap: dict[str, str] | None = None

    def unmarshal(self, typ: Type, opts: UnmarshalOpts | None = None) -> Value:
        if not self.json_data:
            raise EmptyEnvelopeError("RawState had no JSON data set")
        return value_from_json(self.json_data, typ, opts)

    def unmarshal_flatmap(self, typ: Type) -> Value:
        # Flatmap state is kept as-is for providers that parse it themselves.
        raise FlatmapNotSupportedError(
            f"decoding flatmap state as {typ} is not supported; read RawState.flatmap directly"
        )


class RawIdentity(BaseModel):
    """Stored resource identity in JSON."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    json_data: bytes | None = None

    def unmarshal(self, typ: Type, opts: UnmarshalOpts | None = None) -> Value:
        if not self.json_data:
            raise EmptyEnvelopeError("RawIdentity had no JSON data set")
        return value_from_json(self.json_data, typ, opts)
