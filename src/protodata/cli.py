import logging
import sys
from pathlib import Path

import rich_click as click
import yaml
from google.protobuf.message import DecodeError
from pydantic import ValidationError
from rich.traceback import install

from protodata import __version__, log
from protodata.config import OutputFormat, load_generator_config
from protodata.errors import InvariantViolationError
from protodata.exporters import generate, get_encoder
from protodata.exporters.writer import write_artifacts
from protodata.schema.loader import load_descriptor_set


@click.group(context_settings={"auto_envvar_prefix": "protodata"})
@click.option(
    "-l",
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    help="Log level",
    show_default=True,
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Log file",
)
@click.version_option(__version__)
def cli(log_level: str, log_file: Path | None) -> None:
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setFormatter(logging.Formatter("%(asctime)s:%(levelname)s:%(message)s"))
        log.addHandler(file_handler)

    log.setLevel(log_level.upper())
    if log_level.upper() == "DEBUG":
        _ = install(show_locals=True)


@cli.command("generate")
@click.option(
    "--descriptor-set",
    "-d",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Serialized FileDescriptorSet (protoc --include_imports --include_source_info --descriptor_set_out)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, writable=True, path_type=Path),
    required=True,
    help="Output directory",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([fmt.value for fmt in OutputFormat], case_sensitive=False),
    help="Output format, overrides the configuration file",
)
@click.option(
    "--target",
    "-t",
    "targets",
    multiple=True,
    help="Proto file to generate data files for. Can be specified multiple times. Defaults to every file in the set.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file containing generator configuration",
)
def generate_data_files(
    descriptor_set: Path,
    output: Path,
    output_format: str | None,
    targets: tuple[str, ...],
    config_path: Path | None,
) -> None:
    """Generate JSON or YAML data files from a compiled protobuf descriptor set."""
    try:
        config = load_generator_config(config_path)
    except (OSError, yaml.YAMLError, TypeError, ValidationError) as e:
        log.error(f"Invalid generator config: {e}")
        sys.exit(1)

    if output_format:
        config = config.model_copy(update={"format": OutputFormat(output_format.lower())})

    try:
        packages = load_descriptor_set(descriptor_set.read_bytes(), set(targets) or None)
        result = generate(packages, get_encoder(config), config.output_root)
    except DecodeError as e:
        log.error(f"Invalid descriptor set {descriptor_set}: {e}")
        sys.exit(1)
    except InvariantViolationError as e:
        log.error(f"Invalid schema: {e}")
        sys.exit(1)

    try:
        written = write_artifacts(result.artifacts, output)
    except OSError as e:
        log.error(f"File I/O error: {e}")
        sys.exit(1)

    if not result.ok:
        for diagnostic in result.diagnostics:
            log.error(str(diagnostic))
        log.error(f"Found {len(result.diagnostics)} encoding error(s)")
        log.hint(f"The other {len(written)} data file(s) were still written to {output}")
        sys.exit(1)

    log.success(f"Generated {len(written)} {config.format.value} data file(s) in {output}")
    log.key_value("Targets", ", ".join(targets) or "all files")
    log.key_value("Root", output / config.output_root)


if __name__ == "__main__":
    cli()
