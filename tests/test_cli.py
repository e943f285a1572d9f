"""Tests for the riftopen command-line interface."""

import json

import pytest
import yaml
from click.testing import CliRunner

from riftopen import __version__
from riftopen.cli import cli, parse_measurement
from riftopen.core.entry import Polarity


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def ab_file(isolated_env):
    path = isolated_env / "ab.bin"
    path.write_bytes(bytes([0x41, 0x42, 0x41]))
    return path


class TestEncodeCommand:
    """riftopen encode"""

    def test_hex_dump(self, runner, ab_file):
        result = runner.invoke(cli, ["encode", str(ab_file)])

        assert result.exit_code == 0
        assert "Encoded 2 bytes (polarity A)" in result.output
        assert "0C 4E" in result.output

    def test_polarity_b(self, runner, isolated_env):
        path = isolated_env / "a.bin"
        path.write_bytes(bytes([0x41]))

        result = runner.invoke(cli, ["encode", str(path), "--polarity", "b"])

        assert result.exit_code == 0
        assert "Encoded 1 bytes (polarity B)" in result.output
        assert "4E" in result.output

    def test_limit_and_capacity(self, runner, isolated_env):
        path = isolated_env / "data.bin"
        path.write_bytes(bytes(100))

        result = runner.invoke(cli, ["encode", str(path), "--capacity", "10", "--limit", "4"])

        assert result.exit_code == 0
        assert "Encoded 10 bytes" in result.output
        assert "0F 0F 0F 0F" in result.output
        assert "0F 0F 0F 0F 0F" not in result.output

    def test_json_output(self, runner, ab_file):
        result = runner.invoke(cli, ["encode", str(ab_file), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["output"] == "0C4E"
        assert data["produced"] == 2
        assert data["source_available"] is True

    def test_writes_output_file(self, runner, ab_file, isolated_env):
        out = isolated_env / "out.bin"

        result = runner.invoke(cli, ["encode", str(ab_file), "-o", str(out)])

        assert result.exit_code == 0
        assert out.read_bytes() == bytes([0x0C, 0x4E])

    def test_panel_output(self, runner, ab_file):
        result = runner.invoke(cli, ["encode", str(ab_file), "--panel"])

        assert result.exit_code == 0
        assert "00000000  0C 4E" in result.output

    def test_missing_file(self, runner, isolated_env):
        result = runner.invoke(cli, ["encode", str(isolated_env / "missing.bin")])

        assert result.exit_code == 1
        assert "Encoded 0 bytes" in result.output

    def test_config_file_limit(self, runner, isolated_env):
        path = isolated_env / "data.bin"
        path.write_bytes(bytes(40))
        config = isolated_env / "cfg.yml"
        config.write_text(yaml.dump({"hex_dump_limit": 2}))

        result = runner.invoke(cli, ["encode", str(path), "--config", str(config)])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[-1] == "0F 0F"

    def test_invalid_config(self, runner, isolated_env, ab_file):
        config = isolated_env / "cfg.yml"
        config.write_text(yaml.dump({"prune_streak": 0}))

        result = runner.invoke(cli, ["encode", str(ab_file), "--config", str(config)])

        assert result.exit_code == 2

    def test_negative_capacity_is_usage_error(self, runner, ab_file):
        result = runner.invoke(cli, ["encode", str(ab_file), "--capacity", "-1"])

        assert result.exit_code == 2
        assert isinstance(result.exception, SystemExit)
        assert "--capacity" in result.output

    def test_mistyped_config_value(self, runner, isolated_env, ab_file):
        config = isolated_env / "cfg.yml"
        config.write_text("chunk_size: big\n")

        result = runner.invoke(cli, ["encode", str(ab_file), "--config", str(config)])

        assert result.exit_code == 2
        assert isinstance(result.exception, SystemExit)
        assert "Invalid value for chunk_size" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestInspectCommand:
    """riftopen inspect"""

    def test_summary(self, runner, ab_file):
        result = runner.invoke(cli, ["inspect", str(ab_file), "--verify"])

        assert result.exit_code == 0
        assert "Position index" in result.output
        assert "Index invariants hold" in result.output

    def test_measurements_prune(self, runner, ab_file):
        result = runner.invoke(
            cli,
            ["inspect", str(ab_file), "-m", "1:0.4", "-m", "2:0.9:+", "-m", "9:0.1"],
        )

        assert result.exit_code == 0
        assert "No entry at key 9" in result.output
        assert "Applied 3 measurements, pruned 1" in result.output

    def test_prune_negative(self, runner, ab_file):
        result = runner.invoke(cli, ["inspect", str(ab_file), "-p", "B", "--prune-negative"])

        assert result.exit_code == 0
        assert "Bulk-pruned 2 negative entries" in result.output

    def test_bad_measurement(self, runner, ab_file):
        result = runner.invoke(cli, ["inspect", str(ab_file), "-m", "oops"])

        assert result.exit_code == 2

    def test_negative_capacity_is_usage_error(self, runner, ab_file):
        result = runner.invoke(cli, ["inspect", str(ab_file), "--capacity", "-3"])

        assert result.exit_code == 2
        assert isinstance(result.exception, SystemExit)

    def test_missing_file(self, runner, isolated_env):
        result = runner.invoke(cli, ["inspect", str(isolated_env / "missing.bin")])

        assert result.exit_code == 1


class TestConfigCommands:
    """riftopen config ..."""

    def test_init_show_validate(self, runner, isolated_env):
        path = isolated_env / "cfg.yml"

        result = runner.invoke(cli, ["config", "init", "--path", str(path)])
        assert result.exit_code == 0
        assert path.exists()

        result = runner.invoke(cli, ["config", "show", "--path", str(path)])
        assert result.exit_code == 0
        assert "prune_threshold" in result.output

        result = runner.invoke(cli, ["config", "validate", "--path", str(path)])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_init_refuses_overwrite(self, runner, isolated_env):
        path = isolated_env / "cfg.yml"
        path.write_text("prune_streak: 7\n")

        result = runner.invoke(cli, ["config", "init", "--path", str(path)], input="n\n")

        assert "Aborted" in result.output
        assert yaml.safe_load(path.read_text()) == {"prune_streak": 7}

    def test_set(self, runner, isolated_env):
        path = isolated_env / "cfg.yml"

        result = runner.invoke(cli, ["config", "set", "prune_streak", "3", "--path", str(path)])

        assert result.exit_code == 0
        assert "Set prune_streak = 3" in result.output
        assert yaml.safe_load(path.read_text())["prune_streak"] == 3

    def test_set_rejects_invalid_value(self, runner, isolated_env):
        path = isolated_env / "cfg.yml"

        result = runner.invoke(cli, ["config", "set", "prune_threshold", "2.0", "--path", str(path)])

        assert result.exit_code == 1
        assert not path.exists()

    def test_set_unknown_parameter(self, runner, isolated_env):
        result = runner.invoke(cli, ["config", "set", "alpha", "1"])

        assert result.exit_code == 1

    def test_validate_invalid_file(self, runner, isolated_env):
        path = isolated_env / "cfg.yml"
        path.write_text("chunk_size: 1\n")

        result = runner.invoke(cli, ["config", "validate", "--path", str(path)])

        assert result.exit_code == 1


class TestParseMeasurement:
    """KEY:CONF[:POL] parsing."""

    def test_without_polarity(self):
        assert parse_measurement("12:0.4") == (12, 0.4, None)

    def test_with_polarity(self):
        assert parse_measurement("3:0.9:-") == (3, 0.9, Polarity.NEGATIVE)
        assert parse_measurement("3:0.9:A") == (3, 0.9, Polarity.POSITIVE)

    @pytest.mark.parametrize("raw", ["12", "a:b", "1:0.5:?", "1:2:3:4"])
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValueError):
            parse_measurement(raw)
