"""Tests for pmon run configuration."""

import pytest

from pmon.config import MonitorConfig, parse_duration, parse_pid
from pmon.errors import ConfigError, InvalidUnit
from pmon.formatters import csv, human
from pmon.size import Unit


class TestParseDuration:
    """Tests for parse_duration."""

    def test_milliseconds(self):
        """Test the default run length."""
        assert parse_duration("5ms") == pytest.approx(0.005)

    def test_compound(self):
        """Test several unit groups add up."""
        assert parse_duration("1h30m5s") == pytest.approx(5405.0)

    def test_fractional(self):
        """Test fractional amounts."""
        assert parse_duration("1.5s") == pytest.approx(1.5)
        assert parse_duration(".5m") == pytest.approx(30.0)

    def test_small_units(self):
        """Test sub-millisecond units."""
        assert parse_duration("300us") == pytest.approx(0.0003)
        assert parse_duration("2µs") == pytest.approx(0.000002)
        assert parse_duration("10ns") == pytest.approx(1e-8)

    def test_minutes_not_months(self):
        """Test 'm' means minutes."""
        assert parse_duration("5m") == pytest.approx(300.0)

    def test_bare_zero(self):
        """Test zero needs no unit."""
        assert parse_duration("0") == 0.0

    def test_invalid(self):
        """Test malformed durations raise ConfigError."""
        for text in ("", "5", "5x", "1s2", "-1s", "s", "1 s"):
            with pytest.raises(ConfigError):
                parse_duration(text)


class TestParsePid:
    """Tests for parse_pid."""

    def test_valid(self):
        """Test a positive integer."""
        assert parse_pid("8231") == 8231

    def test_invalid(self):
        """Test zero, negative and non-numeric pids are rejected."""
        for text in ("0", "-3", "abc", "1.5"):
            with pytest.raises(ConfigError, match="not a valid process id"):
                parse_pid(text)


class TestMonitorConfig:
    """Tests for MonitorConfig."""

    def test_defaults(self):
        """Test the default settings."""
        config = MonitorConfig()
        assert config.interval == 1.0
        assert config.length == 0.005
        assert config.unit is Unit.AUTO
        assert config.format_name == "human"
        assert config.formatter is human
        assert not config.graph
        assert not config.has_targets

    def test_from_strings(self):
        """Test building a config from command line strings."""
        config = MonitorConfig.from_strings(
            pids=["8231", "42"],
            interval="5s",
            length="1h30m5s",
            unit="kb",
            format_name="csv",
            command="sleep 10",
        )
        assert config.pids == (8231, 42)
        assert config.interval == 5.0
        assert config.length == pytest.approx(5405.0)
        assert config.unit is Unit.KIB
        assert config.formatter is csv
        assert config.command == "sleep 10"
        assert config.has_targets

    def test_command_only(self):
        """Test a command alone is a valid target."""
        assert MonitorConfig(command="sleep 1").has_targets

    def test_empty_command_ignored(self):
        """Test an empty command string means no command."""
        assert MonitorConfig.from_strings(command="").command is None

    def test_invalid_unit(self):
        """Test an unknown unit fails at startup."""
        with pytest.raises(InvalidUnit):
            MonitorConfig.from_strings(pids=["1"], unit="furlongs")

    def test_invalid_format(self):
        """Test an unknown format is rejected."""
        with pytest.raises(ConfigError, match="invalid format xml"):
            MonitorConfig(format_name="xml")

    def test_invalid_interval(self):
        """Test the interval must be positive."""
        with pytest.raises(ConfigError):
            MonitorConfig(interval=0.0)

    def test_invalid_length(self):
        """Test the length cannot be negative."""
        with pytest.raises(ConfigError):
            MonitorConfig(length=-1.0)

    def test_invalid_pid(self):
        """Test pids must be positive."""
        with pytest.raises(ConfigError):
            MonitorConfig(pids=(0,))

    def test_is_frozen(self):
        """Test that MonitorConfig is immutable."""
        config = MonitorConfig()
        with pytest.raises(AttributeError):
            config.interval = 2.0
