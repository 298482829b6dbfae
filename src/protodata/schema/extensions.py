"""Pydantic models for the two schema extensions protodata understands.

``FieldRulesExtension`` mirrors the ``validate.rules`` field option of
protoc-gen-validate and ``HttpRuleExtension`` mirrors the ``google.api.http``
method option. Both accept the proto JSON mapping (as produced by
``json_format.MessageToDict`` with proto field names), so durations may be given
as ``"1.5s"`` strings and bytes as base64 strings.
"""

import base64
from datetime import UTC, datetime, timedelta
from typing import Any, Generic, TypeVar

from google.protobuf import duration_pb2, timestamp_pb2
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

T = TypeVar("T")


def parse_duration(value: Any) -> Any:
    """Convert a proto JSON duration (``"3.5s"``) into a timedelta, leave anything else to pydantic."""
    if isinstance(value, str) and value.endswith("s"):
        duration = duration_pb2.Duration()
        duration.FromJsonString(value)
        return duration.ToTimedelta()
    return value


def parse_timestamp(value: Any) -> Any:
    """Convert an RFC 3339 timestamp into an aware datetime. Nanoseconds are truncated to microseconds."""
    if isinstance(value, str):
        timestamp = timestamp_pb2.Timestamp()
        timestamp.FromJsonString(value)
        return timestamp.ToDatetime(tzinfo=UTC)
    return value


def _decode_bytes(value: Any) -> Any:
    if isinstance(value, str):
        return base64.b64decode(value)
    if isinstance(value, list):
        return [_decode_bytes(item) for item in value]
    return value


class ExtensionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MembershipRules(ExtensionModel, Generic[T]):
    const: T | None = None
    in_: list[T] | None = Field(None, alias="in")
    not_in: list[T] | None = None


class ComparisonRules(MembershipRules[T], Generic[T]):
    lt: T | None = None
    lte: T | None = None
    gt: T | None = None
    gte: T | None = None


class NumericRules(ComparisonRules[T], Generic[T]):
    """Shared shape of the float, double and every integer rule variant."""

    ignore_empty: bool | None = None


class BoolRules(ExtensionModel):
    const: bool | None = None


class StringRules(MembershipRules[str]):
    len: int | None = None
    min_len: int | None = None
    max_len: int | None = None
    len_bytes: int | None = None
    min_bytes: int | None = None
    max_bytes: int | None = None
    pattern: str | None = None
    prefix: str | None = None
    suffix: str | None = None
    contains: str | None = None
    not_contains: str | None = None
    email: bool | None = None
    hostname: bool | None = None
    ip: bool | None = None
    ipv4: bool | None = None
    ipv6: bool | None = None
    uri: bool | None = None
    uri_ref: bool | None = None
    address: bool | None = None
    uuid: bool | None = None
    well_known_regex: str | None = None
    strict: bool | None = None
    ignore_empty: bool | None = None


class BytesRules(MembershipRules[bytes]):
    len: int | None = None
    min_len: int | None = None
    max_len: int | None = None
    pattern: str | None = None
    prefix: bytes | None = None
    suffix: bytes | None = None
    contains: bytes | None = None
    ip: bool | None = None
    ipv4: bool | None = None
    ipv6: bool | None = None
    ignore_empty: bool | None = None

    @field_validator("const", "in_", "not_in", "prefix", "suffix", "contains", mode="before")
    @classmethod
    def decode_base64(cls, value: Any) -> Any:
        return _decode_bytes(value)


class EnumRules(MembershipRules[int]):
    defined_only: bool | None = None


class MessageRules(ExtensionModel):
    skip: bool | None = None
    required: bool | None = None


class AnyRules(ExtensionModel):
    required: bool | None = None
    in_: list[str] | None = Field(None, alias="in")
    not_in: list[str] | None = None


class DurationRules(ComparisonRules[timedelta]):
    required: bool | None = None

    @field_validator("const", "lt", "lte", "gt", "gte", mode="before")
    @classmethod
    def parse_comparison(cls, value: Any) -> Any:
        return parse_duration(value)

    @field_validator("in_", "not_in", mode="before")
    @classmethod
    def parse_durations(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [parse_duration(item) for item in value]
        return value


class TimestampRules(ComparisonRules[datetime]):
    required: bool | None = None
    lt_now: bool | None = None
    gt_now: bool | None = None
    within: timedelta | None = None

    @field_validator("const", "lt", "lte", "gt", "gte", mode="before")
    @classmethod
    def parse_comparison(cls, value: Any) -> Any:
        return parse_timestamp(value)

    @field_validator("within", mode="before")
    @classmethod
    def parse_within(cls, value: Any) -> Any:
        return parse_duration(value)


class RepeatedRules(ExtensionModel):
    min_items: int | None = None
    max_items: int | None = None
    unique: bool | None = None
    items: "FieldRulesExtension | None" = None
    ignore_empty: bool | None = None


class MapRules(ExtensionModel):
    min_pairs: int | None = None
    max_pairs: int | None = None
    no_sparse: bool | None = None
    keys: "FieldRulesExtension | None" = None
    values: "FieldRulesExtension | None" = None
    ignore_empty: bool | None = None


# Members of the ``type`` oneof, in declaration order of validate.proto.
RULE_VARIANTS = (
    "float_",
    "double",
    "int32",
    "int64",
    "uint32",
    "uint64",
    "sint32",
    "sint64",
    "fixed32",
    "fixed64",
    "sfixed32",
    "sfixed64",
    "bool_",
    "string",
    "bytes_",
    "enum",
    "repeated",
    "map",
    "any",
    "duration",
    "timestamp",
)


class FieldRulesExtension(ExtensionModel):
    """The ``validate.rules`` value attached to a field."""

    message: MessageRules | None = None
    float_: NumericRules[float] | None = Field(None, alias="float")
    double: NumericRules[float] | None = None
    int32: NumericRules[int] | None = None
    int64: NumericRules[int] | None = None
    uint32: NumericRules[int] | None = None
    uint64: NumericRules[int] | None = None
    sint32: NumericRules[int] | None = None
    sint64: NumericRules[int] | None = None
    fixed32: NumericRules[int] | None = None
    fixed64: NumericRules[int] | None = None
    sfixed32: NumericRules[int] | None = None
    sfixed64: NumericRules[int] | None = None
    bool_: BoolRules | None = Field(None, alias="bool")
    string: StringRules | None = None
    bytes_: BytesRules | None = Field(None, alias="bytes")
    enum: EnumRules | None = None
    repeated: RepeatedRules | None = None
    map: MapRules | None = None
    any: AnyRules | None = None
    duration: DurationRules | None = None
    timestamp: TimestampRules | None = None

    @model_validator(mode="after")
    def validate_single_variant(self) -> "FieldRulesExtension":
        present = [name for name in RULE_VARIANTS if getattr(self, name) is not None]
        if len(present) > 1:
            raise ValueError(f"At most one rule variant may be set, got {', '.join(present)}")
        return self

    def variant(self) -> tuple[str, BaseModel] | None:
        """Return the populated ``type`` variant as ``(name, rules)``, if any."""
        for name in RULE_VARIANTS:
            rules = getattr(self, name)
            if rules is not None:
                return name, rules
        return None


RepeatedRules.model_rebuild()
MapRules.model_rebuild()
FieldRulesExtension.model_rebuild()


class CustomHttpPattern(ExtensionModel):
    kind: str = ""
    path: str = ""


HTTP_PATTERNS = ("get", "put", "post", "delete", "patch")


class HttpRuleExtension(ExtensionModel):
    """The ``google.api.http`` value attached to a method."""

    selector: str = ""
    get: str | None = None
    put: str | None = None
    post: str | None = None
    delete: str | None = None
    patch: str | None = None
    custom: CustomHttpPattern | None = None
    body: str = ""
    response_body: str = ""
    additional_bindings: list["HttpRuleExtension"] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_single_pattern(self) -> "HttpRuleExtension":
        present = [name for name in (*HTTP_PATTERNS, "custom") if getattr(self, name) is not None]
        if len(present) > 1:
            raise ValueError(f"At most one path pattern may be set, got {', '.join(present)}")
        return self

    def pattern(self) -> tuple[str, str]:
        """Return ``(http_method, path)``; both empty when no pattern is set."""
        for name in HTTP_PATTERNS:
            path = getattr(self, name)
            if path is not None:
                return name.upper(), path
        if self.custom is not None:
            return self.custom.kind, self.custom.path
        return "", ""
