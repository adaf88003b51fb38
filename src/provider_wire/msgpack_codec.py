"""MessagePack encoding of values.

Unknown values travel as the extension token ``d4 00 00`` whatever their
type; the decoder treats every extension token as unknown and never looks
inside it. A ``DynamicPseudoType`` position carrying a concrete value is
written as ``[type-json, value]``.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any

import msgpack
from loguru import logger

from provider_wire.errors import (
    AttributePathError,
    DecodeShapeError,
    DecodeValueError,
    TypeMismatchError,
    UnknownTypeError,
)
from provider_wire.path import AttributePath
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
from provider_wire.value import UNKNOWN, Value, type_from_elements

UNKNOWN_EXT_CODE = 0
UNKNOWN_EXT = msgpack.ExtType(UNKNOWN_EXT_CODE, b"\x00")

_INT64_MIN = -(2**63)
_UINT64_MAX = 2**64 - 1


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def value_to_msgpack(value: Value, typ: Type) -> bytes:
    """Encode ``value`` as it sits at a position declared as ``typ``."""
    packer = msgpack.Packer(use_bin_type=True)
    chunks: list[bytes] = []
    _encode(value, typ, AttributePath(), packer, chunks)
    return b"".join(chunks)


def _encode(value: Value, typ: Type, path: AttributePath, packer: msgpack.Packer, out: list[bytes]) -> None:
    inner = value.unwrap()
    if not inner.type.usable_as(typ):
        raise TypeMismatchError(path, f"can't encode {inner.type} where {typ} is expected")

    if not inner.is_known():
        out.append(packer.pack(UNKNOWN_EXT))
        return

    if typ == DynamicPseudoType and inner.type != DynamicPseudoType:
        out.append(packer.pack_array_header(2))
        out.append(packer.pack(inner.type.to_json()))
        _encode(inner, inner.type, path, packer, out)
        return

    if inner.is_null():
        out.append(packer.pack(None))
        return

    payload = inner.payload
    if typ == String:
        out.append(_pack_text(packer, payload, path))
    elif typ == Bool:
        out.append(packer.pack(payload))
    elif typ == Number:
        out.append(packer.pack(_number_token(payload)))
    elif isinstance(typ, List):
        out.append(packer.pack_array_header(len(payload)))
        for index, child in enumerate(payload):
            _encode(child, typ.element_type, path.with_element_key_int(index), packer, out)
    elif isinstance(typ, Set):
        out.append(packer.pack_array_header(len(payload)))
        for child in payload:
            _encode(child, typ.element_type, path.with_element_key_value(child), packer, out)
    elif isinstance(typ, Tuple):
        out.append(packer.pack_array_header(len(typ.element_types)))
        for index, (child, child_type) in enumerate(zip(payload, typ.element_types)):
            _encode(child, child_type, path.with_element_key_int(index), packer, out)
    elif isinstance(typ, Map):
        out.append(packer.pack_map_header(len(payload)))
        for key in sorted(payload):
            out.append(_pack_text(packer, key, path))
            _encode(payload[key], typ.element_type, path.with_element_key_string(key), packer, out)
    elif isinstance(typ, Object):
        out.append(packer.pack_map_header(len(payload)))
        for name in sorted(payload):
            out.append(_pack_text(packer, name, path))
            _encode(payload[name], typ.attribute_types[name], path.with_attribute_name(name), packer, out)
    else:
        raise UnknownTypeError(path, f"unsupported type {typ}")


def _pack_text(packer: msgpack.Packer, text: str, path: AttributePath) -> bytes:
    try:
        return packer.pack(text)
    except UnicodeEncodeError as exc:
        raise AttributePathError(path, f"string is not valid UTF-8: {exc.reason}") from exc


def _number_token(number: Decimal) -> Any:
    """Pick the narrowest token that holds ``number`` exactly."""
    if number.is_infinite():
        return math.inf if number > 0 else -math.inf
    # 20 or more integer digits is already past the uint64 range.
    if number.adjusted() < 20 and number == number.to_integral_value():
        integer = int(number)
        if _INT64_MIN <= integer <= _UINT64_MAX:
            return integer
    as_float = float(number)
    if math.isfinite(as_float) and Decimal(repr(as_float)) == number:
        return as_float
    return format(number, "f")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def value_from_msgpack(data: bytes, typ: Type) -> Value:
    """Decode MessagePack ``data`` as a value of ``typ``."""
    try:
        raw = msgpack.unpackb(data, raw=False, strict_map_key=False)
    except (ValueError, TypeError, msgpack.UnpackException) as exc:
        raise DecodeValueError(None, f"error decoding msgpack: {exc}") from exc
    return _decode(raw, typ, AttributePath())


def _decode(raw: Any, typ: Type, path: AttributePath) -> Value:
    if isinstance(raw, msgpack.ExtType):
        if raw.code != UNKNOWN_EXT_CODE:
            logger.debug(f"treating msgpack extension {raw.code} at {path or '<root>'} as unknown")
        return Value(typ, UNKNOWN)
    if raw is None:
        return Value(typ, None)

    if typ == DynamicPseudoType:
        return _decode_dynamic(raw, path)
    if typ == String:
        return Value(String, _decode_string(raw, path, "string"))
    if typ == Number:
        return Value(Number, _decode_number(raw, path))
    if typ == Bool:
        if not isinstance(raw, bool):
            raise DecodeShapeError(path, f"couldn't decode bool from {_token_name(raw)}")
        return Value(Bool, raw)

    if isinstance(typ, (List, Set)):
        items = _expect_array(raw, path, typ.kind.lower())
        children = [
            _decode(item, typ.element_type, path.with_element_key_int(index)) for index, item in enumerate(items)
        ]
        element_type = typ.element_type
        if isinstance(typ, Set) or element_type == DynamicPseudoType:
            if children:
                element_type = _common_type(children, path)
        return Value(type(typ)(element_type), children)

    if isinstance(typ, Tuple):
        items = _expect_array(raw, path, "tuple")
        if len(items) != len(typ.element_types):
            raise DecodeShapeError(
                path, f"error decoding tuple; expected {len(typ.element_types)} items, got {len(items)}"
            )
        children = [
            _decode(item, child_type, path.with_element_key_int(index))
            for index, (item, child_type) in enumerate(zip(items, typ.element_types))
        ]
        return Value(typ, children)

    if isinstance(typ, Map):
        entries = _expect_map(raw, path, "map")
        children = {}
        for key, item in entries.items():
            key = _decode_string(key, path, "map key")
            children[key] = _decode(item, typ.element_type, path.with_element_key_string(key))
        if typ.element_type == DynamicPseudoType and children:
            return Value(Map(_common_type(list(children.values()), path)), children)
        return Value(typ, children)

    if isinstance(typ, Object):
        entries = _expect_map(raw, path, "object")
        declared = typ.attribute_types
        children = {}
        for key, item in entries.items():
            key = _decode_string(key, path, "object key")
            if key not in declared:
                raise DecodeShapeError(path, f"unknown attribute {key!r}")
            children[key] = _decode(item, declared[key], path.with_attribute_name(key))
        for name, attribute_type in declared.items():
            if name not in children:
                children[name] = Value(attribute_type, None)
        return Value(typ, children)

    raise UnknownTypeError(path, f"unsupported type {typ}")


def _decode_dynamic(raw: Any, path: AttributePath) -> Value:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        length = len(raw) if isinstance(raw, (list, tuple)) else _token_name(raw)
        raise DecodeShapeError(path, f"expected 2 elements in DynamicPseudoType array, got {length}")
    type_json, payload = raw
    if not isinstance(type_json, (bytes, str)):
        raise DecodeShapeError(path, f"expected type information, got {_token_name(type_json)}")
    try:
        concrete = type_from_json(type_json)
    except UnknownTypeError as exc:
        raise UnknownTypeError(path, f"error parsing type information: {exc.message}") from exc
    return _decode(payload, concrete, path)


def _decode_string(raw: Any, path: AttributePath, what: str) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeValueError(path, f"error decoding {what}: {exc}") from exc
    raise DecodeShapeError(path, f"error decoding {what}: got {_token_name(raw)}")


def _decode_number(raw: Any, path: AttributePath) -> Decimal:
    if isinstance(raw, bool):
        raise DecodeShapeError(path, "couldn't decode number from bool")
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        if math.isnan(raw):
            raise DecodeValueError(path, "NaN is not a valid number")
        return Decimal(repr(raw))
    text = _decode_string(raw, path, "number")
    try:
        number = Decimal(text)
    except InvalidOperation as exc:
        raise DecodeValueError(path, f"error parsing {text!r} as number") from exc
    if number.is_nan():
        raise DecodeValueError(path, f"error parsing {text!r} as number")
    return number


def _expect_array(raw: Any, path: AttributePath, what: str) -> list:
    if not isinstance(raw, (list, tuple)):
        raise DecodeShapeError(path, f"error decoding {what}: expected array, got {_token_name(raw)}")
    return list(raw)


def _expect_map(raw: Any, path: AttributePath, what: str) -> dict:
    if not isinstance(raw, dict):
        raise DecodeShapeError(path, f"error decoding {what}: expected map, got {_token_name(raw)}")
    return raw


def _common_type(children: list[Value], path: AttributePath) -> Type:
    try:
        return type_from_elements(children)
    except AttributePathError as exc:
        raise DecodeShapeError(path, exc.message) from exc


def _token_name(raw: Any) -> str:
    if isinstance(raw, bool):
        return "bool"
    if isinstance(raw, (int, float)):
        return "number"
    if isinstance(raw, (str, bytes)):
        return "string"
    if isinstance(raw, (list, tuple)):
        return "array"
    if isinstance(raw, dict):
        return "map"
    return type(raw).__name__
