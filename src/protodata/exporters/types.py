from typing import Any

from protodata.errors import InvariantViolationError
from protodata.exporters.entities import build_ref
from protodata.exporters.models import FieldType, FieldTypeElem
from protodata.schema.graph import ProtoField, ProtoType, WireKind

PROTO_SCALAR_TYPES: dict[WireKind, str] = {
    WireKind.DOUBLE: "double",
    WireKind.FLOAT: "float",
    WireKind.INT64: "int64",
    WireKind.UINT64: "uint64",
    WireKind.INT32: "int32",
    WireKind.FIXED64: "fixed64",
    WireKind.FIXED32: "fixed32",
    WireKind.BOOL: "bool",
    WireKind.STRING: "string",
    WireKind.BYTES: "bytes",
    WireKind.UINT32: "uint32",
    WireKind.SFIXED32: "sfixed32",
    WireKind.SFIXED64: "sfixed64",
    WireKind.SINT32: "sint32",
    WireKind.SINT64: "sint64",
}

PROTO_SCALAR_DEFAULTS: dict[WireKind, Any] = {
    WireKind.DOUBLE: 0.0,
    WireKind.FLOAT: 0.0,
    WireKind.INT64: 0,
    WireKind.UINT64: 0,
    WireKind.INT32: 0,
    WireKind.FIXED64: 0,
    WireKind.FIXED32: 0,
    WireKind.BOOL: False,
    WireKind.STRING: "",
    WireKind.BYTES: b"",
    WireKind.UINT32: 0,
    WireKind.SFIXED32: 0,
    WireKind.SFIXED64: 0,
    WireKind.SINT32: 0,
    WireKind.SINT64: 0,
}

WELL_KNOWN_DEFAULTS: dict[str, Any] = {
    "Any": None,
    "Duration": "0s",
    "Timestamp": "0001-01-01T00:00:00Z",
}


def proto_type_string(kind: WireKind) -> str:
    """Name of a scalar wire kind.

    Raises:
        InvariantViolationError: If the kind is not a protobuf scalar (e.g. ``group``).
    """
    try:
        return PROTO_SCALAR_TYPES[kind]
    except KeyError:
        raise InvariantViolationError(f"Unexpected proto type {kind.value!r}") from None


def proto_type_default(kind: WireKind) -> Any:
    """Zero value of a scalar wire kind.

    Raises:
        InvariantViolationError: If the kind is not a protobuf scalar (e.g. ``group``).
    """
    try:
        return PROTO_SCALAR_DEFAULTS[kind]
    except KeyError:
        raise InvariantViolationError(f"Unexpected proto type {kind.value!r}") from None


def build_field_type_elem(proto_type: ProtoType) -> FieldTypeElem:
    if proto_type.enum is not None:
        return FieldTypeElem(enum=build_ref(proto_type.enum))
    if proto_type.message is not None:
        return FieldTypeElem(message=build_ref(proto_type.message))
    return FieldTypeElem(type=proto_type_string(proto_type.kind))


def build_field_type(field: ProtoField) -> FieldType:
    if field.is_map:
        assert field.key is not None and field.element is not None
        return FieldType(map_key=build_field_type_elem(field.key), map_value=build_field_type_elem(field.element))
    if field.is_repeated:
        return FieldType(repeated=build_field_type_elem(field.type))

    elem = build_field_type_elem(field.type)
    return FieldType(type=elem.type, enum=elem.enum, message=elem.message)


def build_field_default(field: ProtoField) -> Any:
    """Zero value of a field as it appears in the proto JSON mapping."""
    if field.is_map:
        return {}
    if field.is_repeated:
        return []

    if field.type.enum is not None:
        return field.type.enum.values[0].name

    message = field.type.message
    if message is not None:
        well_known_type = message.well_known_type
        if well_known_type is None:
            return {}
        if well_known_type.endswith("Value"):
            return None
        return WELL_KNOWN_DEFAULTS.get(well_known_type, {})

    return proto_type_default(field.type.kind)
