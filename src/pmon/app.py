"""pmon - Textual viewer for the memory history of a finished run."""

from textual.app import App, ComposeResult
from textual.containers import Container, VerticalScroll
from textual.widgets import DataTable, Footer, Label, Sparkline, Static

from pmon.history import History, Series


def format_value(value: float | None) -> str:
    """Format a charted value, or a dash when there is none."""
    if value is None:
        return "-"
    return f"{value:.3f}"


class RunSummary(Static):
    """One line summary of the whole history."""

    DEFAULT_CSS = """
    RunSummary {
        height: auto;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, history: History, *args, **kwargs) -> None:
        """Initialize RunSummary."""
        super().__init__(self._describe(history), *args, **kwargs)

    @staticmethod
    def _describe(history: History) -> str:
        """Build the summary text."""
        return (
            f"{history.title}  processes: {len(history.series())}  "
            f"samples: {len(history)}  "
            f"min: {format_value(history.minimum)}  max: {format_value(history.maximum)}"
        )


class SeriesChart(Container):
    """Sparkline of one process's resident size."""

    DEFAULT_CSS = """
    SeriesChart {
        height: auto;
        margin-bottom: 1;
    }

    SeriesChart Sparkline {
        height: 3;
    }
    """

    def __init__(self, series: Series, *args, **kwargs) -> None:
        """Initialize SeriesChart."""
        super().__init__(*args, **kwargs)
        self.series = series

    def compose(self) -> ComposeResult:
        """Compose the label and sparkline."""
        yield Label(f"pid {self.series.pid}")
        yield Sparkline(self.series.values, summary_function=max)


class SeriesTable(Container):
    """Per-process statistics for the run."""

    DEFAULT_CSS = """
    SeriesTable {
        height: auto;
        max-height: 12;
        border: solid $primary;
    }
    """

    def __init__(self, history: History, *args, **kwargs) -> None:
        """Initialize SeriesTable."""
        super().__init__(*args, **kwargs)
        self._history = history

    def compose(self) -> ComposeResult:
        """Compose the data table."""
        yield DataTable(id="series-table")

    def on_mount(self) -> None:
        """Fill the table once mounted."""
        table = self.query_one("#series-table", DataTable)
        table.cursor_type = "row"
        table.add_column("PID", key="pid", width=10)
        table.add_column("SAMPLES", key="samples", width=8)
        table.add_column("MIN", key="min", width=14)
        table.add_column("MAX", key="max", width=14)
        table.add_column("LAST", key="last", width=14)

        for series in self._history.series():
            values = series.values
            table.add_row(
                str(series.pid),
                str(len(series)),
                format_value(min(values) if values else None),
                format_value(max(values) if values else None),
                format_value(values[-1] if values else None),
                key=str(series.pid),
            )


class GraphApp(App):
    """Shows resident memory over time for every monitored process."""

    TITLE = "pmon"

    CSS = """
    Screen {
        layout: vertical;
    }

    #charts {
        height: 1fr;
        padding: 1;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, history: History) -> None:
        """Initialize the GraphApp."""
        super().__init__()
        self._history = history
        self.sub_title = history.title

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield RunSummary(self._history, id="summary")
        yield SeriesTable(self._history)
        with VerticalScroll(id="charts"):
            for series in self._history.series():
                yield SeriesChart(series, id=f"chart-{series.pid}")
        yield Footer()
