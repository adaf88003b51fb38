"""The DynamicValue wire envelope.

A DynamicValue carries an encoded value but no type; the receiver supplies
the type it expects when it unmarshals. Exactly one of the two byte fields
should be set. Values produced here are always msgpack-encoded, since JSON
cannot carry unknown values.
"""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, ConfigDict

from provider_wire.errors import EmptyEnvelopeError
from provider_wire.json_codec import value_from_json, value_to_json
from provider_wire.msgpack_codec import value_from_msgpack, value_to_msgpack
from provider_wire.type_system import Type
from provider_wire.value import Value

_MSGPACK_NIL = 0xC0


class DynamicValue(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    msgpack_data: bytes | None = None
    json_data: bytes | None = None

    @classmethod
    def from_json(cls, typ: Type, value: Value) -> DynamicValue:
        """Build a JSON-form envelope; ``value`` must be fully known."""
        return cls(json_data=value_to_json(value, typ))

    def unmarshal(self, typ: Type) -> Value:
        """Decode the envelope as a value of ``typ``.

        JSON wins when both encodings are present.
        """
        if self.json_data:
            if self.msgpack_data:
                logger.warning("DynamicValue carries both JSON and msgpack data; decoding JSON")
            logger.debug(f"unmarshaling DynamicValue from JSON as {typ}")
            return value_from_json(self.json_data, typ)
        if self.msgpack_data:
            logger.debug(f"unmarshaling DynamicValue from msgpack as {typ}")
            return value_from_msgpack(self.msgpack_data, typ)
        raise EmptyEnvelopeError("DynamicValue had no JSON or msgpack data set")

    def is_null(self) -> bool:
        """Whether the envelope holds a top-level null, without decoding it."""
        if self.json_data:
            return self.json_data.strip() == b"null"
        if self.msgpack_data:
            return self.msgpack_data[0] == _MSGPACK_NIL
        raise EmptyEnvelopeError("DynamicValue had no JSON or msgpack data set")


def new_dynamic_value(typ: Type, value: Value) -> DynamicValue:
    """Encode ``value`` for a position declared as ``typ``."""
    return DynamicValue(msgpack_data=value_to_msgpack(value, typ))
