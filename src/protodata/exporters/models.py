"""Pydantic models for the emitted data files."""

from datetime import datetime, timedelta
from typing import Any, ClassVar

import pydantic
from pydantic import BaseModel, ConfigDict

from protodata.exporters.map_slice import MapSlice

ConstraintValue = bool | int | float | str | bytes | timedelta | datetime

FLAG_ANNOTATIONS = (bool, bool | None)


def is_empty(value: Any) -> bool:
    if isinstance(value, DataModel):
        return not value.to_data()
    if isinstance(value, (list, dict, str, bytes, MapSlice)):
        return len(value) == 0
    return value is None


def to_data(value: Any) -> Any:
    """Convert models (recursively) into dicts, lists and MapSlices ready for an encoder."""
    if isinstance(value, DataModel):
        return value.to_data()
    if isinstance(value, MapSlice):
        converted = MapSlice()
        for item in value:
            converted.append(item.key, to_data(item.value))
        return converted
    if isinstance(value, list):
        return [to_data(item) for item in value]
    if isinstance(value, dict):
        return {key: to_data(item) for key, item in value.items()}
    return value


class DataModel(BaseModel):
    """Base of every emitted model.

    ``to_data`` keeps the declared field order, drops empty values unless the field
    is listed in ``always_fields`` and merges ``inline_fields`` into the parent.
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    always_fields: ClassVar[frozenset[str]] = frozenset()
    inline_fields: ClassVar[frozenset[str]] = frozenset()

    def to_data(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for name, info in type(self).model_fields.items():
            value = getattr(self, name)
            if name in self.inline_fields:
                if value is not None:
                    data.update(value.to_data())
                continue
            if name not in self.always_fields:
                if is_empty(value) or (value is False and info.annotation in FLAG_ANNOTATIONS):
                    continue
            data[info.alias or name] = to_data(value)
        return data


class Entity(DataModel):
    always_fields: ClassVar[frozenset[str]] = frozenset({"name"})

    name: str
    comment: str = ""


class Ref(DataModel):
    """Reference to an enum or message; ``package`` is only set outside the generated file set."""

    always_fields: ClassVar[frozenset[str]] = frozenset({"name"})

    package: str = ""
    name: str


class EnumValue(DataModel):
    always_fields: ClassVar[frozenset[str]] = frozenset({"value"})
    inline_fields: ClassVar[frozenset[str]] = frozenset({"entity"})

    entity: Entity
    value: int


class Enum(DataModel):
    inline_fields: ClassVar[frozenset[str]] = frozenset({"entity"})

    entity: Entity
    values: list[EnumValue] = pydantic.Field(default_factory=list)


class FieldRules(DataModel):
    """Flat record of validation constraints. ``None`` means no constraint of that kind."""

    # Repeated
    min_items: int | None = None
    max_items: int | None = None
    unique: bool | None = None
    # Map
    min_pairs: int | None = None
    max_pairs: int | None = None
    no_sparse: bool | None = None
    # Enum
    defined_only: bool | None = None
    # Message
    skip: bool | None = None
    required: bool | None = None
    # String
    len: int | None = None
    min_len: int | None = None
    max_len: int | None = None
    len_bytes: int | None = None
    min_bytes: int | None = None
    max_bytes: int | None = None
    pattern: str | None = None
    email: bool | None = None
    hostname: bool | None = None
    uri: bool | None = None
    uri_ref: bool | None = None
    address: bool | None = None
    uuid: bool | None = None
    # String and bytes
    prefix: str | bytes | None = None
    suffix: str | bytes | None = None
    contains: str | bytes | None = None
    not_contains: str | bytes | None = None
    ip: bool | None = None
    ipv4: bool | None = None
    ipv6: bool | None = None
    # Timestamp
    lt_now: bool | None = None
    gt_now: bool | None = None
    within: timedelta | None = None
    # Most types
    const: ConstraintValue | None = None
    lt: ConstraintValue | None = None
    lte: ConstraintValue | None = None
    gt: ConstraintValue | None = None
    gte: ConstraintValue | None = None
    in_: list[ConstraintValue] | None = pydantic.Field(None, alias="in")
    not_in: list[ConstraintValue] | None = None
    # Skip validation of the zero value
    ignore_empty: bool | None = None


class FieldTypeElem(DataModel):
    """Exactly one of ``type``, ``enum`` and ``message`` is set on a built element."""

    type: str = ""
    enum: Ref | None = None
    message: Ref | None = None
    rules: FieldRules = pydantic.Field(default_factory=FieldRules)


class FieldType(FieldTypeElem):
    """A singular base element, or a repeated element, or a map key/value pair."""

    repeated: FieldTypeElem | None = None
    map_key: FieldTypeElem | None = None
    map_value: FieldTypeElem | None = None


class Field(DataModel):
    always_fields: ClassVar[frozenset[str]] = frozenset({"default"})
    inline_fields: ClassVar[frozenset[str]] = frozenset({"entity", "field_type"})

    entity: Entity
    field_type: FieldType
    default: Any = None

    @property
    def rules(self) -> FieldRules:
        return self.field_type.rules


class OneOf(DataModel):
    inline_fields: ClassVar[frozenset[str]] = frozenset({"entity"})

    entity: Entity
    field_names: list[str] = pydantic.Field(default_factory=list)


class Message(DataModel):
    inline_fields: ClassVar[frozenset[str]] = frozenset({"entity"})

    entity: Entity
    fields: list[Field] = pydantic.Field(default_factory=list)
    oneofs: list[OneOf] = pydantic.Field(default_factory=list)


class Stream(DataModel):
    inline_fields: ClassVar[frozenset[str]] = frozenset({"ref"})

    ref: Ref
    stream: bool = False


class HTTPRule(DataModel):
    always_fields: ClassVar[frozenset[str]] = frozenset({"method", "path"})

    method: str = ""
    path: str = ""
    input: str = ""
    input_message: str = ""
    output: str = ""
    output_message: str = ""


class Method(DataModel):
    always_fields: ClassVar[frozenset[str]] = frozenset({"input", "output"})
    inline_fields: ClassVar[frozenset[str]] = frozenset({"entity"})

    entity: Entity
    input: Stream
    output: Stream
    http: list[HTTPRule] = pydantic.Field(default_factory=list)


class Service(DataModel):
    inline_fields: ClassVar[frozenset[str]] = frozenset({"entity"})

    entity: Entity
    methods: MapSlice = pydantic.Field(default_factory=MapSlice)
