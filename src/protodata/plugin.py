"""protoc plugin entry points.

``protoc-gen-json-files`` and ``protoc-gen-yaml-files`` read a serialized
``CodeGeneratorRequest`` from stdin and write a ``CodeGeneratorResponse`` to stdout.
"""

import logging
import os
import sys

from google.protobuf.compiler import plugin_pb2

from protodata import log
from protodata.config import OutputFormat, parse_plugin_parameter
from protodata.errors import ConfigError, InvariantViolationError
from protodata.exporters import generate, get_encoder
from protodata.schema.loader import load_schema_graph


def run(request: plugin_pb2.CodeGeneratorRequest, default_format: OutputFormat) -> plugin_pb2.CodeGeneratorResponse:
    """
    Generate data files for the files protoc asked for.

    Args:
        request: The request as sent by protoc
        default_format: Output format used unless the parameter names another one

    Returns:
        A response with one file per artifact, or with ``error`` set when the
        configuration, the schema or any entity could not be processed
    """
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL

    try:
        config = parse_plugin_parameter(request.parameter, default_format)
        packages = load_schema_graph(request.proto_file, set(request.file_to_generate))
        result = generate(packages, get_encoder(config), config.output_root)
    except (ConfigError, InvariantViolationError) as e:
        log.error(str(e))
        response.error = str(e)
        return response

    if not result.ok:
        response.error = "\n".join(str(diagnostic) for diagnostic in result.diagnostics)
        return response

    for artifact in result.artifacts:
        response.file.add(name=artifact.path, content=artifact.content)
    return response


def _main(default_format: OutputFormat) -> None:
    if os.environ.get("DEBUG"):
        log.setLevel(logging.DEBUG)

    request = plugin_pb2.CodeGeneratorRequest.FromString(sys.stdin.buffer.read())
    response = run(request, default_format)
    sys.stdout.buffer.write(response.SerializeToString())
    sys.stdout.buffer.flush()


def main_json() -> None:
    _main(OutputFormat.JSON)


def main_yaml() -> None:
    _main(OutputFormat.YAML)
