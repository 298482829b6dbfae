"""In-memory object graph of a compiled protobuf schema.

This is the input of the data file generator: packages hold files, files hold
enums, messages and services. Every node knows its fully-qualified name (with the
leading dot used by descriptors, e.g. ``.acme.v1.Device.Status``), its source
comments and the file it was declared in.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from protodata.schema.extensions import FieldRulesExtension, HttpRuleExtension

WELL_KNOWN_PACKAGE = "google.protobuf"

WELL_KNOWN_TYPES = frozenset(
    {
        "Any",
        "Duration",
        "Empty",
        "Struct",
        "Timestamp",
        "Value",
        "ListValue",
        "DoubleValue",
        "FloatValue",
        "Int64Value",
        "UInt64Value",
        "Int32Value",
        "UInt32Value",
        "BoolValue",
        "StringValue",
        "BytesValue",
    }
)


class WireKind(str, Enum):
    DOUBLE = "double"
    FLOAT = "float"
    INT64 = "int64"
    UINT64 = "uint64"
    INT32 = "int32"
    FIXED64 = "fixed64"
    FIXED32 = "fixed32"
    BOOL = "bool"
    STRING = "string"
    GROUP = "group"
    MESSAGE = "message"
    BYTES = "bytes"
    UINT32 = "uint32"
    ENUM = "enum"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    SINT32 = "sint32"
    SINT64 = "sint64"


@dataclass
class SourceComments:
    leading: str = ""
    trailing: str = ""


@dataclass(eq=False, kw_only=True)
class ProtoNode:
    name: str
    fully_qualified_name: str
    comments: SourceComments = field(default_factory=SourceComments)
    file: "ProtoFile | None" = field(default=None, repr=False)

    @property
    def package(self) -> str:
        return self.file.package if self.file else ""

    @property
    def build_target(self) -> bool:
        return self.file is not None and self.file.build_target


@dataclass(eq=False, kw_only=True)
class ProtoEnumValue(ProtoNode):
    number: int


@dataclass(eq=False, kw_only=True)
class ProtoEnum(ProtoNode):
    values: list[ProtoEnumValue] = field(default_factory=list)


@dataclass(frozen=True)
class ProtoType:
    """Declared type of a field or of a repeated/map element."""

    kind: WireKind
    enum: ProtoEnum | None = None
    message: "ProtoMessage | None" = None

    @property
    def is_enum(self) -> bool:
        return self.enum is not None

    @property
    def is_embed(self) -> bool:
        return self.message is not None


@dataclass(eq=False, kw_only=True)
class ProtoField(ProtoNode):
    type: ProtoType
    repeated: bool = False
    rules: FieldRulesExtension | None = None

    @property
    def is_map(self) -> bool:
        return self.repeated and self.type.message is not None and self.type.message.map_entry

    @property
    def is_repeated(self) -> bool:
        """True for list fields; map fields are repeated on the wire but are not lists."""
        return self.repeated and not self.is_map

    @property
    def element(self) -> ProtoType | None:
        """Element type of a list, or value type of a map."""
        if self.is_map:
            assert self.type.message is not None
            return self.type.message.fields[1].type
        if self.repeated:
            return self.type
        return None

    @property
    def key(self) -> ProtoType | None:
        if self.is_map:
            assert self.type.message is not None
            return self.type.message.fields[0].type
        return None


@dataclass(eq=False, kw_only=True)
class ProtoOneOf(ProtoNode):
    fields: list[ProtoField] = field(default_factory=list)


@dataclass(eq=False, kw_only=True)
class ProtoMessage(ProtoNode):
    fields: list[ProtoField] = field(default_factory=list)
    oneofs: list[ProtoOneOf] = field(default_factory=list)
    messages: list["ProtoMessage"] = field(default_factory=list)
    enums: list[ProtoEnum] = field(default_factory=list)
    map_entry: bool = False

    @property
    def well_known_type(self) -> str | None:
        """Name of the well-known type this message is, if any."""
        prefix = f".{WELL_KNOWN_PACKAGE}."
        if not self.fully_qualified_name.startswith(prefix):
            return None
        name = self.fully_qualified_name.removeprefix(prefix)
        return name if name in WELL_KNOWN_TYPES else None

    def all_messages(self) -> list["ProtoMessage"]:
        """Nested messages, direct children first, then their descendants."""
        messages = list(self.messages)
        for message in self.messages:
            messages.extend(message.all_messages())
        return messages


@dataclass(eq=False, kw_only=True)
class ProtoMethod(ProtoNode):
    input: ProtoMessage
    output: ProtoMessage
    client_streaming: bool = False
    server_streaming: bool = False
    http: HttpRuleExtension | None = None


@dataclass(eq=False, kw_only=True)
class ProtoService(ProtoNode):
    methods: list[ProtoMethod] = field(default_factory=list)


@dataclass(eq=False)
class ProtoFile:
    name: str
    package: str
    build_target: bool = True
    enums: list[ProtoEnum] = field(default_factory=list)
    messages: list[ProtoMessage] = field(default_factory=list)
    services: list[ProtoService] = field(default_factory=list)

    def __post_init__(self) -> None:
        for node in self._nodes():
            node.file = self

    def _nodes(self) -> Iterator[ProtoNode]:
        for enum in self.all_enums():
            yield enum
            yield from enum.values
        for message in self.all_messages():
            yield message
            yield from message.fields
            yield from message.oneofs
        for service in self.services:
            yield service
            yield from service.methods

    def all_messages(self) -> list[ProtoMessage]:
        """Top-level messages first, then each one's nested messages."""
        messages = list(self.messages)
        for message in self.messages:
            messages.extend(message.all_messages())
        return messages

    def all_enums(self) -> list[ProtoEnum]:
        """Top-level enums first, then enums nested in messages (in all_messages order)."""
        enums = list(self.enums)
        for message in self.all_messages():
            enums.extend(message.enums)
        return enums


@dataclass(eq=False)
class ProtoPackage:
    name: str
    files: list[ProtoFile] = field(default_factory=list)
