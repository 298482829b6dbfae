"""Builders turning schema graph nodes into data file models."""

from protodata.exporters.entities import build_entity, build_ref, short_name
from protodata.exporters.field_rules import add_field_rules
from protodata.exporters.http_rules import build_http_rules
from protodata.exporters.models import Enum, EnumValue, Field, Message, Method, OneOf, Service, Stream
from protodata.exporters.types import build_field_default, build_field_type
from protodata.schema.graph import (
    ProtoEnum,
    ProtoEnumValue,
    ProtoField,
    ProtoMessage,
    ProtoMethod,
    ProtoOneOf,
    ProtoService,
)


def build_enum_value(src: ProtoEnumValue) -> EnumValue:
    return EnumValue(entity=build_entity(src), value=src.number)


def build_enum(src: ProtoEnum) -> Enum:
    return Enum(
        entity=build_entity(src, short_name(src)),
        values=[build_enum_value(value) for value in src.values],
    )


def build_field(src: ProtoField) -> Field:
    """Build a field with its resolved type, zero value and validation rules."""
    field = Field(
        entity=build_entity(src),
        field_type=build_field_type(src),
        default=build_field_default(src),
    )
    add_field_rules(field, src)
    return field


def build_oneof(src: ProtoOneOf) -> OneOf:
    return OneOf(entity=build_entity(src), field_names=[field.name for field in src.fields])


def build_message(src: ProtoMessage) -> Message:
    return Message(
        entity=build_entity(src, short_name(src)),
        fields=[build_field(field) for field in src.fields],
        oneofs=[build_oneof(oneof) for oneof in src.oneofs],
    )


def build_method(src: ProtoMethod) -> Method:
    return Method(
        entity=build_entity(src),
        input=Stream(ref=build_ref(src.input), stream=src.client_streaming),
        output=Stream(ref=build_ref(src.output), stream=src.server_streaming),
        http=build_http_rules(src),
    )


def build_service(src: ProtoService) -> Service:
    """Build a service; methods keep their declaration order."""
    service = Service(entity=build_entity(src, short_name(src)))
    for method in src.methods:
        service.methods.append(method.name, build_method(method))
    return service
