"""Run configuration for pmon."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from pmon.errors import ConfigError
from pmon.formatters import FORMATS, Formatter
from pmon.size import Unit, parse_unit

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5 micro sign
    "μs": 1e-6,  # U+03BC greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """
    Parse a duration like ``"5ms"``, ``"1.5s"`` or ``"1h30m5s"`` into seconds.

    Raises:
        ConfigError: If the text is not a valid, non-negative duration.
    """
    value = text.strip()
    if value in ("0", "+0"):
        return 0.0
    if value.startswith("+"):
        value = value[1:]
    if not value:
        raise ConfigError(f"invalid duration {text!r}")

    seconds = 0.0
    pos = 0
    while pos < len(value):
        match = _DURATION_PART.match(value, pos)
        if match is None:
            raise ConfigError(f"invalid duration {text!r}")
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return seconds


def parse_pid(text: str) -> int:
    """Parse a process id, which must be a positive integer."""
    try:
        pid = int(text)
    except ValueError:
        raise ConfigError(f"{text} is not a valid process id") from None
    if pid <= 0:
        raise ConfigError(f"{text} is not a valid process id")
    return pid


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Validated settings for one monitoring run."""

    pids: tuple[int, ...] = ()
    interval: float = 1.0  # seconds
    length: float = 0.005  # seconds
    unit: Unit = Unit.AUTO
    format_name: str = "human"
    graph: bool = False
    command: str | None = None

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ConfigError(f"interval must be positive, got {self.interval}s")
        if self.length < 0:
            raise ConfigError(f"length cannot be negative, got {self.length}s")
        if self.format_name not in FORMATS:
            raise ConfigError(f"invalid format {self.format_name}")
        for pid in self.pids:
            if pid <= 0:
                raise ConfigError(f"{pid} is not a valid process id")

    @property
    def formatter(self) -> Formatter:
        """Row formatter selected by ``format_name``."""
        return FORMATS[self.format_name]

    @property
    def has_targets(self) -> bool:
        """True when there is at least one pid or a command to watch."""
        return bool(self.pids) or bool(self.command)

    @classmethod
    def from_strings(
        cls,
        pids: Iterable[str] = (),
        interval: str = "1s",
        length: str = "5ms",
        unit: str = "",
        format_name: str = "human",
        graph: bool = False,
        command: str | None = None,
    ) -> "MonitorConfig":
        """
        Build a config from raw command line values.

        Raises:
            ConfigError: For bad pids, durations or formats.
            InvalidUnit: For an unknown unit.
        """
        return cls(
            pids=tuple(parse_pid(pid) for pid in pids),
            interval=parse_duration(interval),
            length=parse_duration(length),
            unit=parse_unit(unit),
            format_name=format_name,
            graph=graph,
            command=command or None,
        )
