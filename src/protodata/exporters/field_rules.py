"""Flatten ``validate.rules`` extensions into FieldRules records.

Container rules (repeated/map) land on the field itself while the ``items``,
``keys`` and ``values`` rules recurse into the matching element. The scalar rule
variant is copied onto whatever level it was declared for.
"""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from protodata.exporters.models import Field, FieldRules
from protodata.schema.extensions import (
    AnyRules,
    BoolRules,
    BytesRules,
    DurationRules,
    EnumRules,
    FieldRulesExtension,
    NumericRules,
    StringRules,
    TimestampRules,
)
from protodata.schema.graph import ProtoField, ProtoType

MEMBERSHIP_RULES = ("const", "in_", "not_in")
COMPARISON_RULES = (*MEMBERSHIP_RULES, "lt", "lte", "gt", "gte")

STRING_RULES = (
    "len",
    "min_len",
    "max_len",
    "len_bytes",
    "min_bytes",
    "max_bytes",
    "pattern",
    "prefix",
    "suffix",
    "contains",
    "not_contains",
    "ip",
    "ipv4",
    "ipv6",
    "email",
    "hostname",
    "uri",
    "uri_ref",
    "address",
    "uuid",
    "ignore_empty",
)

BYTES_RULES = (
    "len",
    "min_len",
    "max_len",
    "pattern",
    "prefix",
    "suffix",
    "contains",
    "ip",
    "ipv4",
    "ipv6",
    "ignore_empty",
)

COUNT_RULES = frozenset(
    {
        "len",
        "min_len",
        "max_len",
        "len_bytes",
        "min_bytes",
        "max_bytes",
        "min_items",
        "max_items",
        "min_pairs",
        "max_pairs",
    }
)


def _copy_rules(rules: FieldRules, src: BaseModel, names: tuple[str, ...]) -> None:
    """Copy every attribute in ``names`` that is set on ``src``.

    Counts and lengths are plain scalars in ``validate.proto``, so zero means unset.
    """
    for name in names:
        value = getattr(src, name)
        if value is None or (name in COUNT_RULES and value == 0):
            continue
        setattr(rules, name, list(value) if isinstance(value, list) else value)


def _add_numeric_rules(rules: FieldRules, src: NumericRules[Any]) -> None:
    _copy_rules(rules, src, (*COMPARISON_RULES, "ignore_empty"))


def _add_bool_rules(rules: FieldRules, src: BoolRules) -> None:
    _copy_rules(rules, src, ("const",))


def _add_string_rules(rules: FieldRules, src: StringRules) -> None:
    _copy_rules(rules, src, (*MEMBERSHIP_RULES, *STRING_RULES))


def _add_bytes_rules(rules: FieldRules, src: BytesRules) -> None:
    _copy_rules(rules, src, (*MEMBERSHIP_RULES, *BYTES_RULES))


def _add_enum_rules(rules: FieldRules, src: EnumRules) -> None:
    _copy_rules(rules, src, (*MEMBERSHIP_RULES, "defined_only"))


def _add_any_rules(rules: FieldRules, src: AnyRules) -> None:
    _copy_rules(rules, src, ("required", "in_", "not_in"))


def _add_duration_rules(rules: FieldRules, src: DurationRules) -> None:
    _copy_rules(rules, src, (*COMPARISON_RULES, "required"))


def _add_timestamp_rules(rules: FieldRules, src: TimestampRules) -> None:
    _copy_rules(rules, src, (*COMPARISON_RULES, "required", "lt_now", "gt_now", "within"))


RULE_BUILDERS: dict[str, Callable[[FieldRules, Any], None]] = {
    "float_": _add_numeric_rules,
    "double": _add_numeric_rules,
    "int32": _add_numeric_rules,
    "int64": _add_numeric_rules,
    "uint32": _add_numeric_rules,
    "uint64": _add_numeric_rules,
    "sint32": _add_numeric_rules,
    "sint64": _add_numeric_rules,
    "fixed32": _add_numeric_rules,
    "fixed64": _add_numeric_rules,
    "sfixed32": _add_numeric_rules,
    "sfixed64": _add_numeric_rules,
    "bool_": _add_bool_rules,
    "string": _add_string_rules,
    "bytes_": _add_bytes_rules,
    "any": _add_any_rules,
    "duration": _add_duration_rules,
    "timestamp": _add_timestamp_rules,
}


def add_scalar_rules(rules: FieldRules, src: FieldRulesExtension | None, proto_type: ProtoType | None) -> None:
    """Copy the scalar rule variant of ``src`` onto ``rules``.

    ``proto_type`` is the type the rules are declared for, or None for the
    container level of a repeated or map field. Enum and message rules only
    apply to enum and message types respectively.
    """
    if src is None:
        return

    variant = src.variant()
    if variant is not None:
        name, variant_rules = variant
        if name == "enum":
            if proto_type is not None and proto_type.is_enum:
                _add_enum_rules(rules, variant_rules)  # type: ignore[arg-type]
        elif name in RULE_BUILDERS:
            RULE_BUILDERS[name](rules, variant_rules)

    if src.message is not None and proto_type is not None and proto_type.is_embed:
        _copy_rules(rules, src.message, ("skip", "required"))


def add_field_rules(field: Field, proto_field: ProtoField) -> None:
    """Merge the ``validate.rules`` extension of ``proto_field`` into the built ``field``."""
    src = proto_field.rules
    if src is None:
        return

    field_type = field.field_type
    if src.repeated is not None and field_type.repeated is not None:
        _copy_rules(field.rules, src.repeated, ("min_items", "max_items", "unique", "ignore_empty"))
        add_scalar_rules(field_type.repeated.rules, src.repeated.items, proto_field.element)

    if src.map is not None and field_type.map_key is not None and field_type.map_value is not None:
        _copy_rules(field.rules, src.map, ("min_pairs", "max_pairs", "no_sparse", "ignore_empty"))
        add_scalar_rules(field_type.map_key.rules, src.map.keys, proto_field.key)
        add_scalar_rules(field_type.map_value.rules, src.map.values, proto_field.element)

    add_scalar_rules(field.rules, src, None if proto_field.repeated else proto_field.type)

