from dataclasses import dataclass
from typing import Any

import pytest
from google.api import annotations_pb2
from google.protobuf import descriptor_pb2, duration_pb2, timestamp_pb2
from hypothesis import strategies as st
from hypothesis.strategies import composite
from validate import validate_pb2

from protodata.schema.extensions import FieldRulesExtension, HttpRuleExtension
from protodata.schema.graph import (
    ProtoEnum,
    ProtoEnumValue,
    ProtoField,
    ProtoFile,
    ProtoMessage,
    ProtoMethod,
    ProtoOneOf,
    ProtoPackage,
    ProtoService,
    ProtoType,
    SourceComments,
    WireKind,
)

FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto

WELL_KNOWN_NAMES = ["Any", "Duration", "Empty", "Int64Value", "StringValue", "Timestamp"]


def scalar(kind: WireKind) -> ProtoType:
    return ProtoType(kind)


def enum_type(enum: ProtoEnum) -> ProtoType:
    return ProtoType(WireKind.ENUM, enum=enum)


def message_type(message: ProtoMessage) -> ProtoType:
    return ProtoType(WireKind.MESSAGE, message=message)


def make_field(
    parent: str,
    name: str,
    proto_type: ProtoType,
    repeated: bool = False,
    rules: dict[str, Any] | None = None,
    comments: SourceComments | None = None,
) -> ProtoField:
    """Build a field of the message ``parent`` (a fully-qualified name)."""
    return ProtoField(
        name=name,
        fully_qualified_name=f"{parent}.{name}",
        comments=comments or SourceComments(),
        type=proto_type,
        repeated=repeated,
        rules=FieldRulesExtension.model_validate(rules) if rules is not None else None,
    )


def make_enum(fully_qualified_name: str, *names: str) -> ProtoEnum:
    scope = fully_qualified_name.rsplit(".", 1)[0]
    return ProtoEnum(
        name=fully_qualified_name.rsplit(".", 1)[1],
        fully_qualified_name=fully_qualified_name,
        values=[
            ProtoEnumValue(name=name, fully_qualified_name=f"{scope}.{name}", number=number)
            for number, name in enumerate(names)
        ],
    )


def make_map_entry(parent: str, name: str, key: ProtoType, value: ProtoType) -> ProtoMessage:
    fully_qualified_name = f"{parent}.{name}"
    return ProtoMessage(
        name=name,
        fully_qualified_name=fully_qualified_name,
        map_entry=True,
        fields=[make_field(fully_qualified_name, "key", key), make_field(fully_qualified_name, "value", value)],
    )


def make_method(
    service: str,
    name: str,
    input: ProtoMessage,
    output: ProtoMessage,
    http: dict[str, Any] | None = None,
    client_streaming: bool = False,
    server_streaming: bool = False,
) -> ProtoMethod:
    return ProtoMethod(
        name=name,
        fully_qualified_name=f"{service}.{name}",
        input=input,
        output=output,
        client_streaming=client_streaming,
        server_streaming=server_streaming,
        http=HttpRuleExtension.model_validate(http) if http is not None else None,
    )


def make_well_known_file() -> ProtoFile:
    """Imported-only file holding a few google.protobuf messages."""
    return ProtoFile(
        name="google/protobuf/well_known.proto",
        package="google.protobuf",
        build_target=False,
        messages=[ProtoMessage(name=name, fully_qualified_name=f".google.protobuf.{name}") for name in WELL_KNOWN_NAMES],
    )


@dataclass
class DeviceSchema:
    """A small schema in package ``acme.v1`` importing well-known types."""

    well_known: ProtoFile
    file: ProtoFile
    status: ProtoEnum
    kind: ProtoEnum
    device: ProtoMessage
    part: ProtoMessage
    labels_entry: ProtoMessage
    request: ProtoMessage
    service: ProtoService

    @property
    def packages(self) -> list[ProtoPackage]:
        return [ProtoPackage("google.protobuf", [self.well_known]), ProtoPackage("acme.v1", [self.file])]

    def well_known_type(self, name: str) -> ProtoMessage:
        return next(message for message in self.well_known.messages if message.name == name)

    def field(self, name: str) -> ProtoField:
        return next(field for field in self.device.fields if field.name == name)


def build_device_schema() -> DeviceSchema:
    well_known = make_well_known_file()
    wkt = {message.name: message for message in well_known.messages}

    status = make_enum(".acme.v1.Status", "STATUS_UNSPECIFIED", "STATUS_ON")
    status.comments = SourceComments(leading=" Power state.\n")
    status.values[1].comments = SourceComments(trailing=" Powered on.\n")
    kind = make_enum(".acme.v1.Device.Kind", "KIND_UNSPECIFIED", "KIND_SENSOR")

    part = ProtoMessage(
        name="Part",
        fully_qualified_name=".acme.v1.Device.Part",
        fields=[make_field(".acme.v1.Device.Part", "serial", scalar(WireKind.STRING))],
    )
    labels_entry = make_map_entry(".acme.v1.Device", "LabelsEntry", scalar(WireKind.STRING), scalar(WireKind.INT32))

    parent = ".acme.v1.Device"
    sensor_id = make_field(parent, "sensor_id", scalar(WireKind.STRING))
    gateway_id = make_field(parent, "gateway_id", scalar(WireKind.STRING))
    device = ProtoMessage(
        name="Device",
        fully_qualified_name=parent,
        comments=SourceComments(leading=" A managed device.\n Reports telemetry.\n"),
        enums=[kind],
        messages=[part, labels_entry],
        fields=[
            make_field(parent, "id", scalar(WireKind.STRING), comments=SourceComments(trailing=" Unique id.\n")),
            make_field(parent, "status", enum_type(status)),
            make_field(parent, "kind", enum_type(kind)),
            make_field(parent, "tags", scalar(WireKind.STRING), repeated=True),
            make_field(parent, "labels", message_type(labels_entry), repeated=True),
            make_field(parent, "timeout", message_type(wkt["Duration"])),
            make_field(parent, "seen_at", message_type(wkt["Timestamp"])),
            make_field(parent, "parts", message_type(part), repeated=True),
            make_field(parent, "main_part", message_type(part)),
            make_field(parent, "nickname", message_type(wkt["StringValue"])),
            sensor_id,
            gateway_id,
        ],
        oneofs=[ProtoOneOf(name="source", fully_qualified_name=f"{parent}.source", fields=[sensor_id, gateway_id])],
    )

    request = ProtoMessage(
        name="GetDeviceRequest",
        fully_qualified_name=".acme.v1.GetDeviceRequest",
        fields=[make_field(".acme.v1.GetDeviceRequest", "id", scalar(WireKind.STRING))],
    )
    service = ProtoService(
        name="DeviceService",
        fully_qualified_name=".acme.v1.DeviceService",
        methods=[
            make_method(
                ".acme.v1.DeviceService",
                "GetDevice",
                request,
                device,
                http={"get": "/v1/devices/{id}", "additional_bindings": [{"post": "/v1/devices:get", "body": "*"}]},
            ),
            make_method(".acme.v1.DeviceService", "WatchDevices", wkt["Empty"], device, server_streaming=True),
        ],
    )

    file = ProtoFile(
        name="acme/v1/device.proto",
        package="acme.v1",
        enums=[status],
        messages=[device, request],
        services=[service],
    )
    return DeviceSchema(well_known, file, status, kind, device, part, labels_entry, request, service)


@pytest.fixture
def device_schema() -> DeviceSchema:
    return build_device_schema()


def device_file_proto() -> descriptor_pb2.FileDescriptorProto:
    """Descriptor of ``acme/v1/device.proto`` as protoc would hand it to a plugin."""
    proto = descriptor_pb2.FileDescriptorProto(
        name="acme/v1/device.proto",
        package="acme.v1",
        syntax="proto3",
        dependency=["google/protobuf/duration.proto", "google/protobuf/timestamp.proto"],
    )

    status = proto.enum_type.add(name="Status")
    status.value.add(name="STATUS_UNSPECIFIED", number=0)
    status.value.add(name="STATUS_ON", number=1)

    device = proto.message_type.add(name="Device")
    kind = device.enum_type.add(name="Kind")
    kind.value.add(name="KIND_UNSPECIFIED", number=0)
    entry = device.nested_type.add(name="LabelsEntry")
    entry.options.map_entry = True
    entry.field.add(name="key", number=1, type=FieldDescriptorProto.TYPE_STRING)
    entry.field.add(name="value", number=2, type=FieldDescriptorProto.TYPE_INT32)

    device_id = device.field.add(name="id", number=1, type=FieldDescriptorProto.TYPE_STRING)
    device_id.options.Extensions[validate_pb2.rules].string.min_len = 1

    status_field = device.field.add(
        name="status", number=2, type=FieldDescriptorProto.TYPE_ENUM, type_name=".acme.v1.Status"
    )
    status_field.options.Extensions[validate_pb2.rules].enum.defined_only = True

    tags = device.field.add(
        name="tags", number=3, label=FieldDescriptorProto.LABEL_REPEATED, type=FieldDescriptorProto.TYPE_STRING
    )
    tags_rules = tags.options.Extensions[validate_pb2.rules].repeated
    tags_rules.min_items = 1
    tags_rules.items.string.max_len = 10

    labels = device.field.add(
        name="labels",
        number=4,
        label=FieldDescriptorProto.LABEL_REPEATED,
        type=FieldDescriptorProto.TYPE_MESSAGE,
        type_name=".acme.v1.Device.LabelsEntry",
    )
    labels.options.Extensions[validate_pb2.rules].map.values.int32.gte = 0

    timeout = device.field.add(
        name="timeout", number=5, type=FieldDescriptorProto.TYPE_MESSAGE, type_name=".google.protobuf.Duration"
    )
    timeout.options.Extensions[validate_pb2.rules].duration.gt.FromMilliseconds(1500)

    priority = device.field.add(name="priority", number=6, type=FieldDescriptorProto.TYPE_INT32)
    getattr(priority.options.Extensions[validate_pb2.rules].int32, "in").extend([1, 2, 3])

    device.field.add(
        name="nickname", number=7, type=FieldDescriptorProto.TYPE_STRING, oneof_index=0, proto3_optional=True
    )
    device.field.add(name="sensor_id", number=8, type=FieldDescriptorProto.TYPE_STRING, oneof_index=1)
    device.field.add(name="gateway_id", number=9, type=FieldDescriptorProto.TYPE_STRING, oneof_index=1)
    device.oneof_decl.add(name="_nickname")
    device.oneof_decl.add(name="source")

    device.field.add(
        name="seen_at", number=10, type=FieldDescriptorProto.TYPE_MESSAGE, type_name=".google.protobuf.Timestamp"
    )

    request = proto.message_type.add(name="GetDeviceRequest")
    request.field.add(name="id", number=1, type=FieldDescriptorProto.TYPE_STRING)

    service = proto.service.add(name="DeviceService")
    get_device = service.method.add(
        name="GetDevice", input_type=".acme.v1.GetDeviceRequest", output_type=".acme.v1.Device"
    )
    http = get_device.options.Extensions[annotations_pb2.http]
    http.get = "/v1/devices/{id}"
    http.additional_bindings.add(post="/v1/devices:get", body="*")
    service.method.add(
        name="WatchDevices",
        input_type=".acme.v1.GetDeviceRequest",
        output_type=".acme.v1.Device",
        server_streaming=True,
    )

    locations = proto.source_code_info.location
    locations.add(path=[5, 0], leading_comments=" Power state.\n")
    locations.add(path=[5, 0, 2, 1], trailing_comments=" Powered on.\n")
    locations.add(path=[4, 0], leading_comments=" A managed device.\n")
    locations.add(path=[4, 0, 2, 0], trailing_comments=" Unique id.\n")
    locations.add(path=[4, 0, 8, 1], leading_comments=" Where readings come from.\n")
    locations.add(path=[6, 0, 2, 0], leading_comments=" Fetch one device.\n")
    return proto


def well_known_file_protos() -> list[descriptor_pb2.FileDescriptorProto]:
    protos = []
    for module in (duration_pb2, timestamp_pb2):
        proto = descriptor_pb2.FileDescriptorProto()
        module.DESCRIPTOR.CopyToProto(proto)
        protos.append(proto)
    return protos


@pytest.fixture
def file_protos() -> list[descriptor_pb2.FileDescriptorProto]:
    return [*well_known_file_protos(), device_file_proto()]


@composite
def http_binding_tree(draw: st.DrawFn, depth: int = 0) -> dict[str, Any]:
    """An HTTP binding dict with up to three levels of additional bindings."""
    method = draw(st.sampled_from(["get", "put", "post", "delete", "patch"]))
    path = "/" + draw(st.text(alphabet="abcxyz", min_size=1, max_size=6))
    binding: dict[str, Any] = {method: path}
    if depth < 3:
        binding["additional_bindings"] = draw(st.lists(http_binding_tree(depth=depth + 1), max_size=3))
    return binding
