"""Tests for pmon output formatters."""

import json
from datetime import datetime

from pmon.formatters import COLUMNS, FORMATS, csv, human
from pmon.formatters import json as json_format
from pmon.models import Sample
from pmon.size import ByteSize, Unit

MIB = 1024 * 1024


def make_sample() -> Sample:
    """A sample with a mix of exact and inexact sizes."""
    return Sample(
        when=datetime(2024, 1, 2, 3, 4, 5),
        pid=7,
        peak_size=ByteSize(2 * MIB),
        current_size=ByteSize(1500000),
        peak_resident=ByteSize(MIB),
        current_resident=ByteSize(MIB),
    )


def test_formats_registry():
    """Test all three formats are registered by name."""
    assert FORMATS == {"human": human, "csv": csv, "json": json_format}


class TestHuman:
    """Tests for the human formatter."""

    def test_header(self):
        """Test the header lists the column names."""
        header = human(Sample.header(), Unit.AUTO)
        assert header.split() == list(COLUMNS)
        assert header.startswith("time" + " " * 17 + "pid")

    def test_row_auto(self):
        """Test a row in best fit units."""
        row = human(make_sample(), Unit.AUTO)
        assert row.split() == [
            "2024-01-02", "03:04:05", "7", "2MiB", "1.431MiB", "1MiB", "1MiB",
        ]

    def test_row_fixed_width(self):
        """Test columns are padded to fixed widths."""
        row = human(make_sample(), Unit.KIB)
        assert row.startswith("2024-01-02 03:04:05  7" + " " * 15 + "2048")
        assert len(row) == 20 + 5 * 16


class TestCsv:
    """Tests for the CSV formatter."""

    def test_header(self):
        """Test the CSV header row."""
        assert csv(Sample.header(), Unit.AUTO) == (
            "time,pid,peak_size,current_size,peak_resident,current_resident"
        )

    def test_row_explicit_unit(self):
        """Test exact values are integers and others have 3 decimals."""
        assert csv(make_sample(), Unit.KIB) == "2024-01-02 03:04:05,7,2048,1464.844,1024,1024"

    def test_row_auto(self):
        """Test best fit values carry their suffix."""
        assert csv(make_sample(), Unit.AUTO) == "2024-01-02 03:04:05,7,2MiB,1.431MiB,1MiB,1MiB"


class TestJson:
    """Tests for the JSON formatter."""

    def test_no_header(self):
        """Test JSON has no header row."""
        assert json_format(Sample.header(), Unit.AUTO) == ""
        assert json_format(Sample.header(), Unit.MIB) == ""

    def test_auto_sizes_are_strings(self):
        """Test best fit sizes are emitted as strings."""
        row = json.loads(json_format(make_sample(), Unit.AUTO))
        assert row == {
            "time": "2024-01-02 03:04:05",
            "pid": 7,
            "peak_size": "2MiB",
            "current_size": "1.431MiB",
            "peak_resident": "1MiB",
            "current_resident": "1MiB",
        }

    def test_explicit_sizes_are_numbers(self):
        """Test explicit unit sizes are bare numbers."""
        row = json.loads(json_format(make_sample(), Unit.KIB))
        assert row["peak_size"] == 2048
        assert row["current_size"] == 1464.844
        assert list(row) == list(COLUMNS)

    def test_one_object_per_line(self):
        """Test a row is a single line with no trailing comma."""
        row = json_format(make_sample(), Unit.B)
        assert "\n" not in row
        assert row.endswith("}")
