from enum import Enum
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from protodata import log
from protodata.errors import ConfigError


class OutputFormat(str, Enum):
    JSON = "json"
    YAML = "yaml"


class GeneratorConfig(BaseModel):
    """Settings of one generation run."""

    model_config = ConfigDict(extra="forbid")

    format: OutputFormat = OutputFormat.JSON
    output_root: str = "api"
    json_indent: int = Field(2, ge=0)


def load_generator_config(config_path: Path | None) -> GeneratorConfig:
    """
    Load and validate a generator configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file, or None for defaults.

    Returns:
        A validated GeneratorConfig.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
        TypeError: If the YAML root is not a mapping.
        ValidationError: If validation against GeneratorConfig fails.
    """
    if config_path is None:
        log.debug("No generator config provided")
        return GeneratorConfig()

    raw: Any
    with config_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    log.debug("Loaded generator config from %s", config_path)

    # Treat empty file or explicit YAML null as "defaults"
    if raw is None or raw == {}:
        return GeneratorConfig()

    if not isinstance(raw, dict):
        raise TypeError(f"Generator config root must be a mapping (YAML object), got {type(raw).__name__}")

    return GeneratorConfig.model_validate(cast(dict[str, Any], raw))


def parse_plugin_parameter(parameter: str, default_format: OutputFormat) -> GeneratorConfig:
    """Build a config from a protoc plugin parameter such as ``output_root=schema,json_indent=4``.

    Raises:
        ConfigError: If an item is not ``key=value`` or the values do not validate.
    """
    values: dict[str, Any] = {"format": default_format}
    for item in parameter.split(","):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ConfigError(f"Invalid plugin parameter {item!r}, expected key=value")
        values[key.strip()] = value.strip()

    try:
        return GeneratorConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"Invalid plugin parameter {parameter!r}: {e}") from e
