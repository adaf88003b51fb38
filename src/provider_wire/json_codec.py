"""JSON encoding of values.

Numbers are read without ever going through ``float`` so that every digit
the host sent is kept. Decoding is lenient in the ways the host has always
relied on: numbers and bools are accepted as strings, numeric strings as
numbers, and ``"true"``/``"1"``/``1`` (and their false forms) as bools.
Unknown values have no JSON form.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict

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
    type_from_json_obj,
)
from provider_wire.value import Value, type_from_elements


class UnmarshalOpts(BaseModel):
    """Options for decoding JSON state."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    ignore_undefined_attributes: bool = False


class JSONNumber(str):
    """The literal text of a JSON number, exactly as it appeared."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON number")


_TRUE_STRINGS = frozenset({"true", "1"})
_FALSE_STRINGS = frozenset({"false", "0"})


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def value_from_json(data: bytes | str, typ: Type, opts: UnmarshalOpts | None = None) -> Value:
    """Decode JSON ``data`` as a value of ``typ``."""
    opts = opts or UnmarshalOpts()
    try:
        raw = json.loads(
            data,
            parse_int=JSONNumber,
            parse_float=JSONNumber,
            parse_constant=_reject_constant,
        )
    except ValueError as exc:
        raise DecodeValueError(None, f"error decoding JSON: {exc}") from exc
    return _decode(raw, typ, AttributePath(), opts)


def _decode(raw: Any, typ: Type, path: AttributePath, opts: UnmarshalOpts) -> Value:
    if raw is None:
        return Value(typ, None)

    if typ == DynamicPseudoType:
        return _decode_dynamic(raw, path, opts)
    if typ == String:
        if isinstance(raw, bool):
            return Value(String, "true" if raw else "false")
        if isinstance(raw, str):
            return Value(String, _decode_text(str(raw), path, "string"))
        raise DecodeShapeError(path, f"unsupported type {_json_kind(raw)} sent as String")
    if typ == Number:
        return Value(Number, _decode_number(raw, path))
    if typ == Bool:
        return Value(Bool, _decode_bool(raw, path))

    if isinstance(typ, (List, Set)):
        items = _expect(raw, list, path)
        children = [
            _decode(item, typ.element_type, path.with_element_key_int(index), opts)
            for index, item in enumerate(items)
        ]
        element_type = typ.element_type
        if element_type == DynamicPseudoType and children:
            element_type = _common_type(children, path)
        return Value(type(typ)(element_type), children)

    if isinstance(typ, Tuple):
        items = _expect(raw, list, path)
        if len(items) != len(typ.element_types):
            raise DecodeShapeError(
                path, f"expected {len(typ.element_types)} tuple elements, got {len(items)}"
            )
        return Value(
            typ,
            [
                _decode(item, child_type, path.with_element_key_int(index), opts)
                for index, (item, child_type) in enumerate(zip(items, typ.element_types))
            ],
        )

    if isinstance(typ, Map):
        entries = _expect(raw, dict, path)
        children = {}
        for key, item in entries.items():
            key = _decode_text(key, path, "map key")
            children[key] = _decode(item, typ.element_type, path.with_element_key_string(key), opts)
        if typ.element_type == DynamicPseudoType and children:
            return Value(Map(_common_type(list(children.values()), path)), children)
        return Value(typ, children)

    if isinstance(typ, Object):
        entries = _expect(raw, dict, path)
        declared = typ.attribute_types
        children = {}
        for key, item in entries.items():
            if key not in declared:
                if opts.ignore_undefined_attributes:
                    logger.warning(f"dropping undefined attribute {key!r} at {path or '<root>'}")
                    continue
                raise DecodeShapeError(path, f"unsupported attribute {key!r}")
            children[key] = _decode(item, declared[key], path.with_attribute_name(key), opts)
        for name, attribute_type in declared.items():
            if name not in children:
                children[name] = Value(attribute_type, None)
        return Value(typ, children)

    raise UnknownTypeError(path, f"unsupported type {typ}")


def _decode_dynamic(raw: Any, path: AttributePath, opts: UnmarshalOpts) -> Value:
    entries = _expect(raw, dict, path)
    for key in entries:
        if key not in ("type", "value"):
            raise DecodeShapeError(path, f"invalid key {key!r} in dynamically-typed value")
    if "type" not in entries:
        raise DecodeShapeError(path, "missing type in dynamically-typed value")
    if "value" not in entries:
        raise DecodeShapeError(path, "missing value in dynamically-typed value")
    try:
        concrete = type_from_json_obj(entries["type"])
    except UnknownTypeError as exc:
        raise UnknownTypeError(path, f"error decoding type information: {exc.message}") from exc
    return _decode(entries["value"], concrete, path, opts)


def _decode_number(raw: Any, path: AttributePath) -> Decimal:
    if isinstance(raw, bool) or not isinstance(raw, str):
        raise DecodeShapeError(path, f"unsupported type {_json_kind(raw)} sent as Number")
    try:
        number = Decimal(raw)
    except InvalidOperation as exc:
        raise DecodeValueError(path, f"error parsing {str(raw)!r} as number") from exc
    if number.is_nan() or (number.is_infinite() and isinstance(raw, JSONNumber)):
        raise DecodeValueError(path, f"error parsing {str(raw)!r} as number")
    return number


def _decode_bool(raw: Any, path: AttributePath) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, JSONNumber):
        try:
            number = Decimal(raw)
        except InvalidOperation as exc:
            raise DecodeValueError(path, f"error parsing {str(raw)!r} as bool") from exc
        if number == 1:
            return True
        if number == 0:
            return False
        raise DecodeValueError(path, f"can't use number {str(raw)} as Bool")
    if isinstance(raw, str):
        if raw in _TRUE_STRINGS:
            return True
        if raw in _FALSE_STRINGS:
            return False
        raise DecodeValueError(path, f"can't use string {raw!r} as Bool")
    raise DecodeShapeError(path, f"unsupported type {_json_kind(raw)} sent as Bool")


def _decode_text(text: str, path: AttributePath, what: str) -> str:
    # json.loads lets lone surrogate escapes such as "\ud800" through.
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise DecodeValueError(path, f"{what} is not valid UTF-8: {exc.reason}") from exc
    return text


def _expect(raw: Any, kind: type, path: AttributePath) -> Any:
    if not isinstance(raw, kind):
        expected = "array" if kind is list else "object"
        raise DecodeShapeError(path, f"invalid JSON, expected {expected}, got {_json_kind(raw)}")
    return raw


def _common_type(children: list[Value], path: AttributePath) -> Type:
    try:
        return type_from_elements(children)
    except AttributePathError as exc:
        raise DecodeShapeError(path, exc.message) from exc


def _json_kind(raw: Any) -> str:
    if raw is None:
        return "null"
    if isinstance(raw, bool):
        return "bool"
    if isinstance(raw, JSONNumber):
        return "number"
    if isinstance(raw, str):
        return "string"
    if isinstance(raw, list):
        return "array"
    if isinstance(raw, dict):
        return "object"
    return type(raw).__name__


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def value_to_json(value: Value, typ: Type) -> bytes:
    """Encode ``value`` as compact JSON for a position declared as ``typ``.

    Raises ``AttributePathError`` when the value, or anything inside it, is
    unknown.
    """
    out: list[str] = []
    _emit(value, typ, AttributePath(), out)
    return "".join(out).encode("utf-8")


def _emit(value: Value, typ: Type, path: AttributePath, out: list[str]) -> None:
    inner = value.unwrap()
    if not inner.type.usable_as(typ):
        raise TypeMismatchError(path, f"can't encode {inner.type} where {typ} is expected")
    if not inner.is_known():
        raise AttributePathError(path, "unknown values can't be serialised to JSON")

    if typ == DynamicPseudoType and inner.type != DynamicPseudoType:
        out.append('{"type":')
        out.append(inner.type.to_json().decode("utf-8"))
        out.append(',"value":')
        _emit(inner, inner.type, path, out)
        out.append("}")
        return

    if inner.is_null():
        out.append("null")
        return

    payload = inner.payload
    if typ == String:
        out.append(_quote(payload, path))
    elif typ == Number:
        if payload.is_infinite():
            raise AttributePathError(path, "infinite numbers can't be serialised to JSON")
        out.append(format(payload, "f"))
    elif typ == Bool:
        out.append("true" if payload else "false")
    elif isinstance(typ, (List, Set)):
        out.append("[")
        for index, child in enumerate(payload):
            if index:
                out.append(",")
            step = path.with_element_key_int(index) if isinstance(typ, List) else path.with_element_key_value(child)
            _emit(child, typ.element_type, step, out)
        out.append("]")
    elif isinstance(typ, Tuple):
        out.append("[")
        for index, (child, child_type) in enumerate(zip(payload, typ.element_types)):
            if index:
                out.append(",")
            _emit(child, child_type, path.with_element_key_int(index), out)
        out.append("]")
    elif isinstance(typ, (Map, Object)):
        out.append("{")
        for index, key in enumerate(sorted(payload)):
            if index:
                out.append(",")
            out.append(_quote(key, path))
            out.append(":")
            if isinstance(typ, Map):
                _emit(payload[key], typ.element_type, path.with_element_key_string(key), out)
            else:
                _emit(payload[key], typ.attribute_types[key], path.with_attribute_name(key), out)
        out.append("}")
    else:
        raise UnknownTypeError(path, f"unsupported type {typ}")


def _quote(text: str, path: AttributePath) -> str:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise AttributePathError(path, f"string is not valid UTF-8: {exc.reason}") from exc
    return json.dumps(text, ensure_ascii=False)
