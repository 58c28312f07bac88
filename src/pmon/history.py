"""Per-process RSS history, collected during a run for charting afterwards."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from pmon.models import Sample
from pmon.size import Unit, to_unit


@dataclass(slots=True)
class Series:
    """Resident size over time for one process, in the history's unit."""

    pid: int
    times: list[datetime] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)


class History:
    """
    Collects current resident sizes for every sample of a run.

    Called synchronously from the sampling thread, so ``add`` only appends.
    """

    def __init__(self, unit: Unit = Unit.AUTO, pids: Iterable[int] = ()) -> None:
        # AUTO would put every point on a different scale.
        self.unit = Unit.MIB if unit is Unit.AUTO else unit
        self._series: dict[int, Series] = {pid: Series(pid) for pid in pids}
        self.minimum: float | None = None
        self.maximum: float | None = None

    @property
    def title(self) -> str:
        return f"RSS ({self.unit.suffix})"

    def add(self, sample: Sample) -> None:
        value = to_unit(sample.current_resident, self.unit)
        series = self._series.setdefault(sample.pid, Series(sample.pid))
        series.times.append(sample.when)
        series.values.append(value)
        self.minimum = value if self.minimum is None else min(self.minimum, value)
        self.maximum = value if self.maximum is None else max(self.maximum, value)

    __call__ = add

    def series(self) -> list[Series]:
        """All series, in the order their processes were registered."""
        return list(self._series.values())

    def __len__(self) -> int:
        return sum(len(series) for series in self._series.values())
