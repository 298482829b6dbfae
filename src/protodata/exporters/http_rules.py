from collections.abc import Iterator

from protodata.exporters.models import HTTPRule
from protodata.schema.extensions import HttpRuleExtension
from protodata.schema.graph import ProtoMessage, ProtoMethod


def iter_http_bindings(src: HttpRuleExtension) -> Iterator[HttpRuleExtension]:
    """Yield a binding and then, depth first, all of its additional bindings."""
    yield src
    for additional in src.additional_bindings:
        yield from iter_http_bindings(additional)


def _resolve_body_field(selector: str, message: ProtoMessage) -> tuple[str, str]:
    """Return the selected field name and its fully-qualified name (empty when not found)."""
    if not selector or selector == "*":
        return "", ""
    for field in message.fields:
        if field.name == selector:
            return selector, field.fully_qualified_name
    return selector, ""


def build_http_rule(method: ProtoMethod, src: HttpRuleExtension) -> HTTPRule:
    """Map a single binding, ignoring its additional bindings."""
    http_method, path = src.pattern()
    input_field, input_message = _resolve_body_field(src.body, method.input)
    output_field, output_message = _resolve_body_field(src.response_body, method.output)
    return HTTPRule(
        method=http_method,
        path=path,
        input=input_field,
        input_message=input_message,
        output=output_field,
        output_message=output_message,
    )


def build_http_rules(method: ProtoMethod) -> list[HTTPRule]:
    """Flatten the ``google.api.http`` extension of ``method`` into an ordered rule list."""
    if method.http is None:
        return []
    return [build_http_rule(method, binding) for binding in iter_http_bindings(method.http)]
