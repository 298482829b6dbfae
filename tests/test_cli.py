import json
import stat
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner
from google.protobuf import descriptor_pb2
from validate import validate_pb2

from protodata import __version__
from protodata.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def descriptor_set(tmp_path: Path, file_protos: list[descriptor_pb2.FileDescriptorProto]) -> Path:
    path = tmp_path / "device.pb"
    path.write_bytes(descriptor_pb2.FileDescriptorSet(file=file_protos).SerializeToString())
    return path


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_generate_json(runner: CliRunner, descriptor_set: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    result = runner.invoke(cli, ["generate", "-d", str(descriptor_set), "-o", str(out), "-t", "acme/v1/device.proto"])
    assert result.exit_code == 0, result.output

    device = out / "api" / "acme.v1" / "messages" / "Device.json"
    assert json.loads(device.read_text())["name"] == "Device"
    assert stat.S_IMODE(device.stat().st_mode) == 0o644
    assert not (out / "api" / "google.protobuf").exists()
    assert "Targets: acme/v1/device.proto" in result.output


def test_generate_without_targets_includes_imports(runner: CliRunner, descriptor_set: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    result = runner.invoke(cli, ["generate", "-d", str(descriptor_set), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert (out / "api" / "google.protobuf" / "messages" / "Duration.json").exists()
    assert "Targets: all files" in result.output


def test_generate_yaml(runner: CliRunner, descriptor_set: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    result = runner.invoke(
        cli, ["generate", "-d", str(descriptor_set), "-o", str(out), "-f", "yaml", "-t", "acme/v1/device.proto"]
    )
    assert result.exit_code == 0, result.output
    service = yaml.safe_load((out / "api" / "acme.v1" / "services" / "DeviceService.yml").read_text())
    assert list(service["methods"]) == ["GetDevice", "WatchDevices"]


def test_generate_overwrites_existing_files(runner: CliRunner, descriptor_set: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    stale = out / "api" / "acme.v1" / "enums" / "Status.json"
    stale.parent.mkdir(parents=True)
    stale.write_text("stale")

    result = runner.invoke(cli, ["generate", "-d", str(descriptor_set), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert json.loads(stale.read_text())["name"] == "Status"


def test_generate_with_config(runner: CliRunner, descriptor_set: Path, tmp_path: Path) -> None:
    config = tmp_path / "protodata.yaml"
    config.write_text("format: yaml\noutput_root: schema\n")
    out = tmp_path / "out"

    result = runner.invoke(cli, ["generate", "-d", str(descriptor_set), "-o", str(out), "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert (out / "schema" / "acme.v1" / "enums" / "Status.yml").exists()


def test_format_option_overrides_config(runner: CliRunner, descriptor_set: Path, tmp_path: Path) -> None:
    config = tmp_path / "protodata.yaml"
    config.write_text("format: yaml\n")
    out = tmp_path / "out"

    args = ["generate", "-d", str(descriptor_set), "-o", str(out), "--config", str(config), "-f", "json"]
    result = runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    assert (out / "api" / "acme.v1" / "enums" / "Status.json").exists()


def test_invalid_config(runner: CliRunner, descriptor_set: Path, tmp_path: Path) -> None:
    config = tmp_path / "protodata.yaml"
    config.write_text("json_indent: -1\n")

    result = runner.invoke(cli, ["generate", "-d", str(descriptor_set), "-o", str(tmp_path), "--config", str(config)])
    assert result.exit_code == 1


def test_invalid_descriptor_set(runner: CliRunner, tmp_path: Path) -> None:
    broken = tmp_path / "broken.pb"
    broken.write_bytes(b"\xff\xff\xff")

    result = runner.invoke(cli, ["generate", "-d", str(broken), "-o", str(tmp_path / "out")])
    assert result.exit_code == 1


def test_encoding_errors_exit_non_zero(
    runner: CliRunner, tmp_path: Path, file_protos: list[descriptor_pb2.FileDescriptorProto]
) -> None:
    """Files that could be encoded are still written."""
    device = file_protos[-1].message_type[0]
    device.field.add(name="ratio", number=50, type=descriptor_pb2.FieldDescriptorProto.TYPE_DOUBLE)
    device.field[-1].options.Extensions[validate_pb2.rules].double.lt = float("nan")
    descriptor_set = tmp_path / "device.pb"
    descriptor_set.write_bytes(descriptor_pb2.FileDescriptorSet(file=file_protos).SerializeToString())
    out = tmp_path / "out"

    result = runner.invoke(cli, ["generate", "-d", str(descriptor_set), "-o", str(out), "-t", "acme/v1/device.proto"])
    assert result.exit_code == 1
    assert not (out / "api" / "acme.v1" / "messages" / "Device.json").exists()
    assert (out / "api" / "acme.v1" / "enums" / "Status.json").exists()
    assert "The other 4 data file(s)" in result.output
