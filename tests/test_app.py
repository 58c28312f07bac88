"""Tests for the pmon chart viewer."""

from datetime import datetime, timedelta

import pytest
from textual.widgets import DataTable, Sparkline

from pmon.app import GraphApp, RunSummary, SeriesChart, format_value
from pmon.history import History
from pmon.models import Sample
from pmon.size import ByteSize, Unit

START = datetime(2024, 1, 1, 12, 0, 0)
MIB = 1024 * 1024


def make_history() -> History:
    """A history with two processes, one of them sampled twice."""
    history = History(Unit.AUTO, [100, 200])
    for seconds, pid, resident in [(0, 100, 2 * MIB), (0, 200, MIB), (1, 100, 4 * MIB)]:
        size = ByteSize(resident)
        history.add(Sample(START + timedelta(seconds=seconds), pid, size, size, size, size))
    return history


def test_format_value():
    """Test chart value formatting."""
    assert format_value(None) == "-"
    assert format_value(1.23456) == "1.235"
    assert format_value(2.0) == "2.000"


def test_summary_text():
    """Test the run summary describes the history."""
    text = RunSummary._describe(make_history())
    assert "RSS (MiB)" in text
    assert "processes: 2" in text
    assert "samples: 3" in text
    assert "min: 1.000" in text
    assert "max: 4.000" in text


@pytest.mark.asyncio
async def test_app_creation():
    """Test GraphApp can be instantiated."""
    app = GraphApp(make_history())
    assert app.title == "pmon"
    assert app.sub_title == "RSS (MiB)"


@pytest.mark.asyncio
async def test_app_compose():
    """Test GraphApp composes a summary, table and one chart per process."""
    app = GraphApp(make_history())
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#summary") is not None
        assert pilot.app.query_one("#series-table") is not None
        assert len(pilot.app.query(SeriesChart)) == 2
        assert pilot.app.query_one("#chart-100") is not None
        assert pilot.app.query_one("#chart-200") is not None


@pytest.mark.asyncio
async def test_series_table_rows():
    """Test the table has one row per process with its statistics."""
    app = GraphApp(make_history())
    async with app.run_test() as pilot:
        table = pilot.app.query_one("#series-table", DataTable)
        assert table.row_count == 2
        assert table.get_row("100") == ["100", "2", "2.000", "4.000", "4.000"]
        assert table.get_row("200") == ["200", "1", "1.000", "1.000", "1.000"]


@pytest.mark.asyncio
async def test_sparkline_data():
    """Test each chart plots its process's values."""
    app = GraphApp(make_history())
    async with app.run_test() as pilot:
        chart = pilot.app.query_one("#chart-100", SeriesChart)
        assert chart.query_one(Sparkline).data == [2.0, 4.0]


@pytest.mark.asyncio
async def test_empty_history():
    """Test the app copes with processes that were never sampled."""
    app = GraphApp(History(Unit.KIB, [5]))
    async with app.run_test() as pilot:
        table = pilot.app.query_one("#series-table", DataTable)
        assert table.get_row("5") == ["5", "0", "-", "-", "-"]


@pytest.mark.asyncio
async def test_app_quit_binding():
    """Test that 'q' binding triggers quit."""
    app = GraphApp(make_history())
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert pilot.app._exit
