"""Output formatters.

A formatter is a pure function ``(sample, unit) -> str``. Passing the
``Sample.header()`` sentinel asks for the header row; an empty string
means "no line".
"""

import json as _json
from collections.abc import Callable

from pmon.models import Sample
from pmon.size import Unit, format_size

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
COLUMNS = ("time", "pid", "peak_size", "current_size", "peak_resident", "current_resident")

Formatter = Callable[[Sample, Unit], str]


def _fields(sample: Sample, unit: Unit) -> tuple[str, ...]:
    return (
        sample.when.strftime(TIME_FORMAT),
        str(sample.pid),
        format_size(sample.peak_size, unit),
        format_size(sample.current_size, unit),
        format_size(sample.peak_resident, unit),
        format_size(sample.current_resident, unit),
    )


def human(sample: Sample, unit: Unit) -> str:
    """Fixed-width columns for reading in a terminal."""
    values = COLUMNS if sample.is_header else _fields(sample, unit)
    time_col, *rest = values
    return " ".join([f"{time_col:<20}", *(f"{value:<15}" for value in rest)])


def csv(sample: Sample, unit: Unit) -> str:
    """Comma separated values with a column name header."""
    values = COLUMNS if sample.is_header else _fields(sample, unit)
    return ",".join(values)


def json(sample: Sample, unit: Unit) -> str:
    """
    One JSON object per line.

    There is no header row. Sizes are strings like ``"1.5MiB"`` when the
    unit is AUTO, and bare numbers otherwise.
    """
    if sample.is_header:
        return ""

    when, pid, *sizes = _fields(sample, unit)
    if unit is Unit.AUTO:
        sizes = [_json.dumps(size) for size in sizes]
    pairs = [f'"time": {_json.dumps(when)}', f'"pid": {pid}']
    pairs += [f'"{name}": {size}' for name, size in zip(COLUMNS[2:], sizes)]
    return "{" + ", ".join(pairs) + "}"


FORMATS: dict[str, Formatter] = {
    "human": human,
    "csv": csv,
    "json": json,
}
