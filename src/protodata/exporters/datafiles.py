"""Walk a schema graph and emit one data file per enum, message and service."""

import posixpath
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from protodata import log
from protodata.errors import EncodingError
from protodata.exporters.encoders import Encoder
from protodata.exporters.entities import short_name
from protodata.exporters.models import DataModel
from protodata.exporters.transformer import build_enum, build_message, build_service
from protodata.schema.graph import ProtoFile, ProtoNode, ProtoPackage


@dataclass(frozen=True)
class Artifact:
    path: str
    content: str


@dataclass(frozen=True)
class Diagnostic:
    path: str
    entity: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: failed to encode {self.entity}: {self.message}"


@dataclass
class GenerationResult:
    artifacts: list[Artifact]
    diagnostics: list[Diagnostic]

    @property
    def ok(self) -> bool:
        return not self.diagnostics


@dataclass
class GenerationContext:
    """State owned by a single generation run."""

    encoder: Encoder
    output_root: str = "api"
    artifacts: dict[str, Artifact] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def artifact_path(self, package: str, category: str, name: str) -> str:
        segments = [segment for segment in (self.output_root, package, category) if segment]
        return posixpath.join(*segments, f"{name}.{self.encoder.file_extension}")

    def emit(self, path: str, content: str) -> None:
        """Store an artifact, replacing any earlier one at the same path."""
        if path in self.artifacts:
            log.debug(f"Overwriting {path}")
        self.artifacts[path] = Artifact(path, content)

    def result(self) -> GenerationResult:
        return GenerationResult(list(self.artifacts.values()), list(self.diagnostics))


def _emit_entity(
    context: GenerationContext,
    category: str,
    node: ProtoNode,
    builder: Callable[[Any], DataModel],
) -> None:
    path = context.artifact_path(node.package, category, short_name(node))
    try:
        content = context.encoder.encode(builder(node).to_data())
    except EncodingError as e:
        log.error(f"Failed to encode {node.fully_qualified_name}: {e}")
        context.diagnostics.append(Diagnostic(path, node.fully_qualified_name, str(e)))
        return
    log.debug(f"Generated {path}")
    context.emit(path, content)


def generate_file(context: GenerationContext, file: ProtoFile) -> None:
    """Emit enums, then messages (without map entries), then services of one file."""
    for enum in file.all_enums():
        _emit_entity(context, "enums", enum, build_enum)
    for message in file.all_messages():
        if message.map_entry:
            continue
        _emit_entity(context, "messages", message, build_message)
    for service in file.services:
        _emit_entity(context, "services", service, build_service)


def generate_package(context: GenerationContext, package: ProtoPackage) -> None:
    for file in package.files:
        if not file.build_target:
            continue
        log.debug(f"Generating data files for {file.name}")
        generate_file(context, file)


def generate(packages: Iterable[ProtoPackage], encoder: Encoder, output_root: str = "api") -> GenerationResult:
    """
    Generate data files for every build target file of the given packages.

    Args:
        packages: Packages of the compiled schema
        encoder: Encoder producing the file contents
        output_root: First path segment of every artifact

    Returns:
        GenerationResult: Artifacts in emission order and encoding diagnostics

    Raises:
        InvariantViolationError: If the schema contains a type outside the protobuf type system
    """
    context = GenerationContext(encoder=encoder, output_root=output_root)
    packages = list(packages)
    log.info(f"Generating {encoder.file_extension} data files for {len(packages)} package(s)")

    for package in packages:
        generate_package(context, package)

    result = context.result()
    log.info(f"Generated {len(result.artifacts)} data file(s) with {len(result.diagnostics)} error(s)")
    return result
