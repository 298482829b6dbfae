"""Encoders rendering converted data models as JSON or YAML documents.

Both encoders write object keys in the order they were inserted and render
``MapSlice`` values as objects without deduplicating keys.
"""

import base64
import json
from collections.abc import Iterator
from datetime import datetime, timedelta
from typing import Any, Protocol

import yaml
from google.protobuf import duration_pb2, timestamp_pb2

from protodata.config import GeneratorConfig, OutputFormat
from protodata.errors import EncodingError
from protodata.exporters.map_slice import MapSlice


class Encoder(Protocol):
    file_extension: str

    def encode(self, data: Any) -> str: ...


def format_duration(value: timedelta) -> str:
    duration = duration_pb2.Duration()
    duration.FromTimedelta(value)
    return duration.ToJsonString()


def format_timestamp(value: datetime) -> str:
    timestamp = timestamp_pb2.Timestamp()
    timestamp.FromDatetime(value)
    return timestamp.ToJsonString()


class JSONEncoder:
    """Indented JSON; bytes become lists of integers."""

    file_extension = "json"

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def encode(self, data: Any) -> str:
        try:
            return "".join(self._iterencode(data, 0))
        except (TypeError, ValueError) as e:
            raise EncodingError(str(e)) from e

    def _iterencode(self, value: Any, level: int) -> Iterator[str]:
        if isinstance(value, MapSlice):
            yield from self._iterencode_object([(item.key, item.value) for item in value], level)
        elif isinstance(value, dict):
            yield from self._iterencode_object(list(value.items()), level)
        elif isinstance(value, (bytes, bytearray)):
            yield from self._iterencode_array(list(value), level)
        elif isinstance(value, (list, tuple)):
            yield from self._iterencode_array(list(value), level)
        elif isinstance(value, timedelta):
            yield self._scalar(format_duration(value))
        elif isinstance(value, datetime):
            yield self._scalar(format_timestamp(value))
        else:
            yield self._scalar(value)

    def _scalar(self, value: Any) -> str:
        if value is not None and not isinstance(value, (str, int, float, bool)):
            raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
        return json.dumps(value, ensure_ascii=False, allow_nan=False)

    def _newline(self, level: int) -> str:
        return "\n" + " " * (self.indent * level)

    def _iterencode_object(self, items: list[tuple[str, Any]], level: int) -> Iterator[str]:
        if not items:
            yield "{}"
            return
        yield "{"
        for index, (key, value) in enumerate(items):
            if index:
                yield ","
            yield self._newline(level + 1)
            yield self._scalar(str(key))
            yield ": "
            yield from self._iterencode(value, level + 1)
        yield self._newline(level)
        yield "}"

    def _iterencode_array(self, items: list[Any], level: int) -> Iterator[str]:
        if not items:
            yield "[]"
            return
        yield "["
        for index, value in enumerate(items):
            if index:
                yield ","
            yield self._newline(level + 1)
            yield from self._iterencode(value, level + 1)
        yield self._newline(level)
        yield "]"


class DataFileDumper(yaml.SafeDumper):
    """SafeDumper that understands MapSlice, bytes as base64 and durations."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def _represent_map_slice(dumper: yaml.SafeDumper, value: MapSlice) -> yaml.Node:
    return dumper.represent_mapping("tag:yaml.org,2002:map", [(item.key, item.value) for item in value])


def _represent_bytes(dumper: yaml.SafeDumper, value: bytes) -> yaml.Node:
    return dumper.represent_str(base64.b64encode(value).decode("ascii"))


def _represent_timedelta(dumper: yaml.SafeDumper, value: timedelta) -> yaml.Node:
    return dumper.represent_str(format_duration(value))


DataFileDumper.add_representer(MapSlice, _represent_map_slice)
DataFileDumper.add_representer(bytes, _represent_bytes)
DataFileDumper.add_representer(timedelta, _represent_timedelta)


class YAMLEncoder:
    """Block style YAML; bytes become base64 strings."""

    file_extension = "yml"

    def encode(self, data: Any) -> str:
        try:
            return yaml.dump(
                data,
                Dumper=DataFileDumper,
                sort_keys=False,
                default_flow_style=False,
                allow_unicode=True,
            )
        except yaml.YAMLError as e:
            raise EncodingError(str(e)) from e


def get_encoder(config: GeneratorConfig) -> Encoder:
    if config.format == OutputFormat.YAML:
        return YAMLEncoder()
    return JSONEncoder(indent=config.json_indent)
