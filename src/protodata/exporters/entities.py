from protodata.exporters.models import Entity, Ref
from protodata.schema.graph import ProtoNode, SourceComments


def short_name(node: ProtoNode) -> str:
    """Fully-qualified name of a node without its own package prefix.

    Nested types keep their parents: ``.acme.v1.Device.Status`` in package
    ``acme.v1`` becomes ``Device.Status``.
    """
    name = node.fully_qualified_name.removeprefix(".")
    if node.package:
        name = name.removeprefix(f"{node.package}.")
    return name


def clean_comment(comment: str) -> str:
    """Strip the single space protoc leaves after ``//`` on every line.

    The space is only removed when every non-empty line starts with one; otherwise
    the text is kept as is. Trailing whitespace is always trimmed.
    """
    lines = comment.split("\n")
    if not all(line.startswith(" ") for line in lines if line):
        return comment.rstrip()
    return "\n".join(line.removeprefix(" ") for line in lines).rstrip()


def entity_comment(comments: SourceComments) -> str:
    return clean_comment(comments.leading or comments.trailing)


def build_entity(node: ProtoNode, name: str | None = None) -> Entity:
    """Build the name/comment pair of a node, named by its declared name unless given."""
    return Entity(name=node.name if name is None else name, comment=entity_comment(node.comments))


def build_ref(node: ProtoNode) -> Ref:
    """Reference an enum or message; the package is only spelled out outside the build targets."""
    return Ref(package="" if node.build_target else node.package, name=short_name(node))
