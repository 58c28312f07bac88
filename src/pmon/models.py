"""Data models for pmon."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime

from pmon.size import ByteSize

STATM_FIELDS = ("size", "resident", "shared", "text", "lib", "data", "dirty")


@dataclass(slots=True, frozen=True)
class MemoryRecord:
    """Immutable decoded copy of one process's memory accounting file, in bytes."""

    size: ByteSize  # total virtual size
    resident: ByteSize
    shared: ByteSize
    text: ByteSize
    lib: ByteSize
    data: ByteSize  # data + stack
    dirty: ByteSize

    @classmethod
    def from_pages(cls, pages: Sequence[int], page_size: int) -> "MemoryRecord":
        """Build a record from raw page counts in statm field order."""
        if len(pages) != len(STATM_FIELDS):
            raise ValueError(f"expected {len(STATM_FIELDS)} fields, got {len(pages)}")
        return cls(*(ByteSize(count * page_size) for count in pages))


@dataclass(slots=True, frozen=True)
class MonitoredProcess:
    """
    One process under observation and its running peaks.

    Records are never mutated; ``observe`` and ``mark_dead`` return new
    records so a sampling pass can build a fresh collection.
    """

    pid: int
    peak_size: ByteSize = field(default_factory=ByteSize)
    peak_resident: ByteSize = field(default_factory=ByteSize)
    alive: bool = True

    def observe(self, record: MemoryRecord) -> "MonitoredProcess":
        """Return a copy with peaks raised to cover ``record``."""
        return replace(
            self,
            peak_size=max(self.peak_size, record.size),
            peak_resident=max(self.peak_resident, record.resident),
        )

    def mark_dead(self) -> "MonitoredProcess":
        """Copy of this process flagged for removal at the end of the tick."""
        return replace(self, alive=False)


@dataclass(slots=True, frozen=True)
class Sample:
    """A single output row: one process at one point in time."""

    when: datetime | None
    pid: int
    peak_size: ByteSize
    current_size: ByteSize
    peak_resident: ByteSize
    current_resident: ByteSize

    @classmethod
    def header(cls) -> "Sample":
        """The all-zero sentinel used to ask a formatter for its header row."""
        zero = ByteSize(0)
        return cls(when=None, pid=0, peak_size=zero, current_size=zero,
                   peak_resident=zero, current_resident=zero)

    @property
    def is_header(self) -> bool:
        """True for the all-zero sentinel that stands for the column header."""
        return self == Sample.header()

    @classmethod
    def from_record(
        cls, process: MonitoredProcess, record: MemoryRecord, when: datetime
    ) -> "Sample":
        """Row for ``process`` built from a fresh ``record`` taken at ``when``."""
        return cls(
            when=when,
            pid=process.pid,
            peak_size=process.peak_size,
            current_size=record.size,
            peak_resident=process.peak_resident,
            current_resident=record.resident,
        )


def prune(processes: Iterable[MonitoredProcess]) -> tuple[MonitoredProcess, ...]:
    """Drop processes marked dead, keeping the original order."""
    return tuple(proc for proc in processes if proc.alive)
