"""Build the schema graph from compiled ``FileDescriptorProto`` messages."""

from collections.abc import Collection, Iterable
from dataclasses import dataclass

from google.api import annotations_pb2
from google.protobuf import descriptor_pb2, json_format
from validate import validate_pb2

from protodata import log
from protodata.errors import InvariantViolationError
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

WIRE_KINDS: dict[int, WireKind] = {
    FieldDescriptorProto.TYPE_DOUBLE: WireKind.DOUBLE,
    FieldDescriptorProto.TYPE_FLOAT: WireKind.FLOAT,
    FieldDescriptorProto.TYPE_INT64: WireKind.INT64,
    FieldDescriptorProto.TYPE_UINT64: WireKind.UINT64,
    FieldDescriptorProto.TYPE_INT32: WireKind.INT32,
    FieldDescriptorProto.TYPE_FIXED64: WireKind.FIXED64,
    FieldDescriptorProto.TYPE_FIXED32: WireKind.FIXED32,
    FieldDescriptorProto.TYPE_BOOL: WireKind.BOOL,
    FieldDescriptorProto.TYPE_STRING: WireKind.STRING,
    FieldDescriptorProto.TYPE_GROUP: WireKind.GROUP,
    FieldDescriptorProto.TYPE_MESSAGE: WireKind.MESSAGE,
    FieldDescriptorProto.TYPE_BYTES: WireKind.BYTES,
    FieldDescriptorProto.TYPE_UINT32: WireKind.UINT32,
    FieldDescriptorProto.TYPE_ENUM: WireKind.ENUM,
    FieldDescriptorProto.TYPE_SFIXED32: WireKind.SFIXED32,
    FieldDescriptorProto.TYPE_SFIXED64: WireKind.SFIXED64,
    FieldDescriptorProto.TYPE_SINT32: WireKind.SINT32,
    FieldDescriptorProto.TYPE_SINT64: WireKind.SINT64,
}

# Field numbers used in SourceCodeInfo location paths.
FILE_MESSAGE_TYPE = 4
FILE_ENUM_TYPE = 5
FILE_SERVICE = 6
MESSAGE_FIELD = 2
MESSAGE_NESTED_TYPE = 3
MESSAGE_ENUM_TYPE = 4
MESSAGE_ONEOF_DECL = 8
ENUM_VALUE = 2
SERVICE_METHOD = 2

LocationPath = tuple[int, ...]


def read_field_rules(options: descriptor_pb2.FieldOptions) -> FieldRulesExtension | None:
    """Return the ``validate.rules`` extension of a field, if set."""
    if not options.HasExtension(validate_pb2.rules):
        return None
    data = json_format.MessageToDict(options.Extensions[validate_pb2.rules], preserving_proto_field_name=True)
    return FieldRulesExtension.model_validate(data)


def read_http_rule(options: descriptor_pb2.MethodOptions) -> HttpRuleExtension | None:
    """Return the ``google.api.http`` extension of a method, if set."""
    if not options.HasExtension(annotations_pb2.http):
        return None
    data = json_format.MessageToDict(options.Extensions[annotations_pb2.http], preserving_proto_field_name=True)
    return HttpRuleExtension.model_validate(data)


@dataclass
class FileComments:
    """Source comments of one file keyed by location path."""

    locations: dict[LocationPath, SourceComments]

    @classmethod
    def from_proto(cls, proto: descriptor_pb2.FileDescriptorProto) -> "FileComments":
        return cls(
            {
                tuple(location.path): SourceComments(location.leading_comments, location.trailing_comments)
                for location in proto.source_code_info.location
            }
        )

    def at(self, path: LocationPath) -> SourceComments:
        return self.locations.get(path, SourceComments())


@dataclass
class _PendingMessage:
    message: ProtoMessage
    descriptor: descriptor_pb2.DescriptorProto
    path: LocationPath
    comments: FileComments


class SchemaLoader:
    """
    Loader resolving the descriptors of several files into one linked graph.

    Enums and messages of all files are declared first so that fields and methods
    can reference types from any loaded file, build target or not.
    """

    def __init__(self, file_protos: Iterable[descriptor_pb2.FileDescriptorProto]) -> None:
        self.file_protos = list(file_protos)
        self.types: dict[str, ProtoEnum | ProtoMessage] = {}
        self._pending: list[_PendingMessage] = []

    def load(self, build_targets: Collection[str] | None = None) -> list[ProtoPackage]:
        """
        Load all files and group them by package.

        Args:
            build_targets: Names of the files to generate for; all files when None

        Returns:
            Packages in first-seen order with their files in descriptor order
        """
        comments = [FileComments.from_proto(proto) for proto in self.file_protos]
        declared = [
            self._declare_file(proto, file_comments)
            for proto, file_comments in zip(self.file_protos, comments, strict=True)
        ]

        for pending in self._pending:
            self._populate_message(pending)

        packages: dict[str, ProtoPackage] = {}
        for proto, file_comments, (enums, messages) in zip(self.file_protos, comments, declared, strict=True):
            prefix = _package_prefix(proto.package)
            file = ProtoFile(
                name=proto.name,
                package=proto.package,
                build_target=build_targets is None or proto.name in build_targets,
                enums=enums,
                messages=messages,
                services=[
                    self._build_service(service, prefix, (FILE_SERVICE, index), file_comments)
                    for index, service in enumerate(proto.service)
                ],
            )
            packages.setdefault(proto.package, ProtoPackage(proto.package)).files.append(file)

        log.debug(f"Loaded {len(self.file_protos)} file(s) in {len(packages)} package(s)")
        return list(packages.values())

    def _declare_file(
        self, proto: descriptor_pb2.FileDescriptorProto, comments: FileComments
    ) -> tuple[list[ProtoEnum], list[ProtoMessage]]:
        prefix = _package_prefix(proto.package)
        enums = [
            self._declare_enum(enum, prefix, (FILE_ENUM_TYPE, index), comments)
            for index, enum in enumerate(proto.enum_type)
        ]
        messages = [
            self._declare_message(message, prefix, (FILE_MESSAGE_TYPE, index), comments)
            for index, message in enumerate(proto.message_type)
        ]
        return enums, messages

    def _declare_enum(
        self,
        descriptor: descriptor_pb2.EnumDescriptorProto,
        prefix: str,
        path: LocationPath,
        comments: FileComments,
    ) -> ProtoEnum:
        enum = ProtoEnum(
            name=descriptor.name,
            fully_qualified_name=f"{prefix}.{descriptor.name}",
            comments=comments.at(path),
            values=[
                ProtoEnumValue(
                    name=value.name,
                    # Enum values are scoped as siblings of their enum.
                    fully_qualified_name=f"{prefix}.{value.name}",
                    comments=comments.at((*path, ENUM_VALUE, index)),
                    number=value.number,
                )
                for index, value in enumerate(descriptor.value)
            ],
        )
        self.types[enum.fully_qualified_name] = enum
        return enum

    def _declare_message(
        self,
        descriptor: descriptor_pb2.DescriptorProto,
        prefix: str,
        path: LocationPath,
        comments: FileComments,
    ) -> ProtoMessage:
        fully_qualified_name = f"{prefix}.{descriptor.name}"
        message = ProtoMessage(
            name=descriptor.name,
            fully_qualified_name=fully_qualified_name,
            comments=comments.at(path),
            map_entry=descriptor.options.map_entry,
            enums=[
                self._declare_enum(enum, fully_qualified_name, (*path, MESSAGE_ENUM_TYPE, index), comments)
                for index, enum in enumerate(descriptor.enum_type)
            ],
            messages=[
                self._declare_message(nested, fully_qualified_name, (*path, MESSAGE_NESTED_TYPE, index), comments)
                for index, nested in enumerate(descriptor.nested_type)
            ],
        )
        self.types[fully_qualified_name] = message
        self._pending.append(_PendingMessage(message, descriptor, path, comments))
        return message

    def _resolve(self, type_name: str) -> ProtoEnum | ProtoMessage:
        try:
            return self.types[type_name]
        except KeyError:
            raise InvariantViolationError(f"Unresolved type reference {type_name!r}") from None

    def _resolve_message(self, type_name: str) -> ProtoMessage:
        resolved = self._resolve(type_name)
        if not isinstance(resolved, ProtoMessage):
            raise InvariantViolationError(f"{type_name!r} is not a message")
        return resolved

    def _build_type(self, descriptor: descriptor_pb2.FieldDescriptorProto) -> ProtoType:
        try:
            kind = WIRE_KINDS[descriptor.type]
        except KeyError:
            raise InvariantViolationError(f"Unexpected field type {descriptor.type} for {descriptor.name!r}") from None

        if kind == WireKind.ENUM:
            enum = self._resolve(descriptor.type_name)
            if not isinstance(enum, ProtoEnum):
                raise InvariantViolationError(f"{descriptor.type_name!r} is not an enum")
            return ProtoType(kind, enum=enum)
        if kind == WireKind.MESSAGE:
            return ProtoType(kind, message=self._resolve_message(descriptor.type_name))
        return ProtoType(kind)

    def _populate_message(self, pending: _PendingMessage) -> None:
        message, descriptor, path = pending.message, pending.descriptor, pending.path
        message.fields = [
            ProtoField(
                name=field.name,
                fully_qualified_name=f"{message.fully_qualified_name}.{field.name}",
                comments=pending.comments.at((*path, MESSAGE_FIELD, index)),
                type=self._build_type(field),
                repeated=field.label == FieldDescriptorProto.LABEL_REPEATED,
                rules=read_field_rules(field.options),
            )
            for index, field in enumerate(descriptor.field)
        ]

        members: dict[int, list[ProtoField]] = {}
        for field, field_descriptor in zip(message.fields, descriptor.field, strict=True):
            # Synthetic oneofs of proto3 optional fields are not part of the schema.
            if field_descriptor.HasField("oneof_index") and not field_descriptor.proto3_optional:
                members.setdefault(field_descriptor.oneof_index, []).append(field)

        message.oneofs = [
            ProtoOneOf(
                name=oneof.name,
                fully_qualified_name=f"{message.fully_qualified_name}.{oneof.name}",
                comments=pending.comments.at((*path, MESSAGE_ONEOF_DECL, index)),
                fields=members[index],
            )
            for index, oneof in enumerate(descriptor.oneof_decl)
            if index in members
        ]

    def _build_service(
        self,
        descriptor: descriptor_pb2.ServiceDescriptorProto,
        prefix: str,
        path: LocationPath,
        comments: FileComments,
    ) -> ProtoService:
        fully_qualified_name = f"{prefix}.{descriptor.name}"
        return ProtoService(
            name=descriptor.name,
            fully_qualified_name=fully_qualified_name,
            comments=comments.at(path),
            methods=[
                ProtoMethod(
                    name=method.name,
                    fully_qualified_name=f"{fully_qualified_name}.{method.name}",
                    comments=comments.at((*path, SERVICE_METHOD, index)),
                    input=self._resolve_message(method.input_type),
                    output=self._resolve_message(method.output_type),
                    client_streaming=method.client_streaming,
                    server_streaming=method.server_streaming,
                    http=read_http_rule(method.options),
                )
                for index, method in enumerate(descriptor.method)
            ],
        )


def _package_prefix(package: str) -> str:
    return f".{package}" if package else ""


def load_schema_graph(
    file_protos: Iterable[descriptor_pb2.FileDescriptorProto],
    build_targets: Collection[str] | None = None,
) -> list[ProtoPackage]:
    """Load a linked schema graph from file descriptors, grouped by package."""
    return SchemaLoader(file_protos).load(build_targets)


def load_descriptor_set(data: bytes, build_targets: Collection[str] | None = None) -> list[ProtoPackage]:
    """Load a schema graph from a serialized ``FileDescriptorSet``."""
    descriptor_set = descriptor_pb2.FileDescriptorSet.FromString(data)
    return load_schema_graph(descriptor_set.file, build_targets)
