"""Sampling loop for pmon."""

import logging
import sys
import threading
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import Enum
from typing import TextIO

from pmon.errors import MalformedRecord, ProcessNotFound
from pmon.formatters import Formatter, human
from pmon.models import MonitoredProcess, Sample, prune
from pmon.size import Unit
from pmon.statm import MemorySampler

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """Lifecycle of a SamplingLoop."""

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class LoopEvent(Enum):
    """What woke the loop up."""

    TICK = "tick"
    DEADLINE = "deadline"
    INTERRUPT = "interrupt"


class StopReason(Enum):
    """Why a run ended."""

    DEADLINE = "deadline"
    INTERRUPT = "interrupt"
    EXHAUSTED = "exhausted"


class EventRace:
    """
    Races the next tick against the run deadline and an interrupt.

    ``wait`` blocks until one of them is due and reports which. An
    interrupt wins over the deadline, and the deadline wins over a tick
    that falls due at the same moment. The first tick is due immediately.
    """

    def __init__(
        self,
        interval: float,
        length: float,
        interrupt: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._interval = interval
        self._clock = clock
        self._interrupt = interrupt if interrupt is not None else threading.Event()
        start = clock()
        self._deadline = start + length
        self._next_tick = start

    def interrupt(self) -> None:
        """Make the current or next ``wait`` return INTERRUPT."""
        self._interrupt.set()

    def rearm(self) -> None:
        """Schedule the next tick one interval from now."""
        self._next_tick = self._clock() + self._interval

    def wait(self) -> LoopEvent:
        """Block until the interrupt, the deadline or the next tick is due."""
        while True:
            if self._interrupt.is_set():
                return LoopEvent.INTERRUPT
            now = self._clock()
            if now >= self._deadline:
                return LoopEvent.DEADLINE
            if now >= self._next_tick:
                return LoopEvent.TICK
            self._interrupt.wait(timeout=min(self._deadline, self._next_tick) - now)


class SamplingLoop:
    """
    Samples a set of processes at a fixed interval and writes one row per
    live process per tick.

    Can be driven synchronously with ``run`` or on a daemon thread with
    ``start``. All state is owned by whichever thread runs the loop; other
    threads may only call ``interrupt``/``stop`` and ``wait``.
    """

    def __init__(
        self,
        pids: Iterable[int],
        formatter: Formatter = human,
        unit: Unit = Unit.AUTO,
        interval: float = 1.0,
        length: float = 0.005,
        sampler: MemorySampler | None = None,
        out: TextIO | None = None,
        history: Callable[[Sample], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Initialize the SamplingLoop.

        Args:
            pids: Processes to monitor. Duplicates are ignored, order is kept.
            formatter: Renders each sample (and the header) as a line.
            unit: Unit passed to the formatter.
            interval: Seconds between the start of one tick and the next.
            length: Total run time in seconds.
            sampler: Reads memory records. Defaults to ``/proc``.
            out: Stream for formatted rows. Defaults to stdout.
            history: Optional collector called with every sample.
            clock: Monotonic clock used for scheduling.
            now: Wall clock used to timestamp samples.
        """
        self._processes = tuple(MonitoredProcess(pid) for pid in dict.fromkeys(pids))
        self._formatter = formatter
        self._unit = unit
        self._interval = interval
        self._length = length
        self._sampler = sampler if sampler is not None else MemorySampler()
        self._out = out if out is not None else sys.stdout
        self._history = history
        self._clock = clock
        self._now = now

        self._state = LoopState.IDLE
        self._interrupt = threading.Event()
        self._done = threading.Event()
        self._thread: threading.Thread | None = None
        self._ticks = 0
        self.stop_reason: StopReason | None = None
        self.error: BaseException | None = None

    @property
    def state(self) -> LoopState:
        """Current lifecycle state."""
        return self._state

    @property
    def processes(self) -> tuple[MonitoredProcess, ...]:
        """Processes still being monitored."""
        return self._processes

    @property
    def pids(self) -> list[int]:
        """Ids of the processes still being monitored, in sampling order."""
        return [proc.pid for proc in self._processes]

    @property
    def ticks(self) -> int:
        """Number of completed sampling passes."""
        return self._ticks

    @property
    def is_running(self) -> bool:
        """Check if the loop thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Run the loop on a daemon thread."""
        if self._thread is not None:
            return

        self._thread = threading.Thread(target=self._run_in_thread, daemon=True, name="SamplingLoop")
        self._thread.start()

    def interrupt(self) -> None:
        """
        Ask the loop to stop before its next tick.

        Safe to call from a signal handler, from any thread and any number
        of times, including before the loop has started.
        """
        self._interrupt.set()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Interrupt the loop and wait for its thread to finish.

        Args:
            timeout: How long to wait for the thread to stop (seconds).
        """
        self.interrupt()
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the loop has stopped. Returns False on timeout."""
        return self._done.wait(timeout=timeout)

    def run(self) -> StopReason:
        """Emit the header, then sample until a stop condition is reached."""
        if self._state is not LoopState.IDLE:
            raise RuntimeError(f"loop cannot run from state {self._state.value}")

        reason = None
        try:
            self._emit(Sample.header())
            race = EventRace(self._interval, self._length, self._interrupt, self._clock)
            self._set_state(LoopState.RUNNING)
            while True:
                event = race.wait()
                if event is LoopEvent.INTERRUPT:
                    reason = StopReason.INTERRUPT
                    break
                if event is LoopEvent.DEADLINE:
                    reason = StopReason.DEADLINE
                    break
                if not self._processes:
                    reason = StopReason.EXHAUSTED
                    break
                self.tick()
                race.rearm()
        except BaseException as exc:
            self.error = exc
            raise
        finally:
            self._finish(reason)
        return reason

    def _run_in_thread(self) -> None:
        """Thread target: the failure is kept on ``error`` for the waiter to handle."""
        try:
            self.run()
        except BaseException:
            logger.debug("sampling loop failed", exc_info=True)

    def tick(self) -> list[Sample]:
        """
        Sample every monitored process once.

        Processes that fail to sample are logged and dropped once the whole
        pass has finished; they never come back.
        """
        samples: list[Sample] = []
        seen: list[MonitoredProcess] = []
        for proc in self._processes:
            try:
                record = self._sampler.sample(proc.pid)
            except (ProcessNotFound, MalformedRecord) as exc:
                logger.warning("pid %d: %s", proc.pid, exc)
                seen.append(proc.mark_dead())
                continue

            proc = proc.observe(record)
            seen.append(proc)
            sample = Sample.from_record(proc, record, self._now())
            samples.append(sample)
            self._emit(sample)
            if self._history is not None:
                self._history(sample)

        self._processes = prune(seen)
        self._ticks += 1
        self._out.flush()
        logger.debug("tick %d: %d samples, %d processes left",
                     self._ticks, len(samples), len(self._processes))
        return samples

    def _emit(self, sample: Sample) -> None:
        line = self._formatter(sample, self._unit)
        if line:
            print(line, file=self._out)

    def _set_state(self, state: LoopState) -> None:
        logger.debug("sampling loop %s -> %s", self._state.value, state.value)
        self._state = state

    def _finish(self, reason: StopReason | None) -> None:
        if self._state in (LoopState.DRAINING, LoopState.STOPPED):
            return
        self.stop_reason = reason
        self._set_state(LoopState.DRAINING)
        try:
            self._out.flush()
        except BaseException as exc:
            if self.error is None:
                self.error = exc
            raise
        finally:
            self._set_state(LoopState.STOPPED)
            self._done.set()
