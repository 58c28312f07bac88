"""Command line entry point for pmon."""

import argparse
import contextlib
import logging
import os
import shlex
import signal
import subprocess
import sys
import threading

import psutil

from pmon.app import GraphApp
from pmon.config import MonitorConfig
from pmon.errors import CommandError, PmonError
from pmon.formatters import FORMATS
from pmon.history import History
from pmon.monitor import SamplingLoop

logger = logging.getLogger(__name__)

EXAMPLES = """\
examples:

  pmon -l 5m -u kb 8231
        monitors 8231 for 5 mins showing memory in KiB.
  pmon -l 1h30m5s -i 5s -f csv --cmd "sleep 10" 8231
        runs 'sleep' and monitors it and 8231 for 1 hour 30 mins 5 sec
        with a 5 sec interval and formatting to CSV.
"""


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the pmon command."""
    parser = argparse.ArgumentParser(
        prog="pmon",
        usage="%(prog)s [FLAG]... [PID]...",
        description="Monitor process memory and output it in various formats.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("pids", nargs="*", metavar="PID", help="process ids to monitor")
    parser.add_argument("-i", "--interval", default="1s",
                        help="interval between status checks (default: %(default)s)")
    parser.add_argument("-l", "--length", default="5ms",
                        help="length of time to run (default: %(default)s)")
    parser.add_argument("-f", "--format", dest="format_name", default="human",
                        choices=sorted(FORMATS), help="output format (default: %(default)s)")
    parser.add_argument("-u", "--unit", default="",
                        help="unit such as 'MiB' or 'kB' (default: best fit)")
    parser.add_argument("--graph", action="store_true",
                        help="show a graph of the memory usage when done")
    parser.add_argument("--cmd", dest="command", default=None,
                        help="run the command and monitor it; it is killed when pmon "
                             "exits and its stdout is sent to /dev/null")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    return parser


def spawn(command: str) -> psutil.Popen:
    """
    Start ``command`` with its stdout discarded.

    A background thread reaps the child so that once it exits its pid
    disappears and the sampling loop drops it.
    """
    try:
        child = psutil.Popen(shlex.split(command), stdout=subprocess.DEVNULL)
    except (OSError, ValueError) as exc:
        raise CommandError(f"error with command: {exc}") from exc
    threading.Thread(target=child.wait, daemon=True, name="ChildReaper").start()
    logger.debug("spawned %r as pid %d", command, child.pid)
    return child


def kill(child: psutil.Popen) -> None:
    """SIGKILL the child if it is still around."""
    with contextlib.suppress(psutil.NoSuchProcess):
        child.kill()


@contextlib.contextmanager
def interrupt_on_signals(loop: SamplingLoop, signums=(signal.SIGINT, signal.SIGTERM)):
    """Route termination signals to the loop's interrupt for the duration of the block."""
    def handler(signum, frame):
        logger.debug("received signal %d", signum)
        loop.interrupt()

    previous = {signum: signal.signal(signum, handler) for signum in signums}
    try:
        yield
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)


def run(config: MonitorConfig, out=None) -> SamplingLoop:
    """Monitor everything ``config`` names until the run ends."""
    pids = list(config.pids)
    for pid in pids:
        if not psutil.pid_exists(pid):
            logger.debug("pid %d does not exist", pid)

    child = spawn(config.command) if config.command else None
    if child is not None:
        pids.append(child.pid)

    history = History(config.unit, pids) if config.graph else None
    loop = SamplingLoop(
        pids,
        formatter=config.formatter,
        unit=config.unit,
        interval=config.interval,
        length=config.length,
        out=out,
        history=history,
    )
    try:
        with interrupt_on_signals(loop):
            loop.start()
            loop.wait()
    finally:
        if child is not None:
            kill(child)

    if loop.error is not None:
        raise loop.error
    logger.debug("run finished after %d ticks: %s", loop.ticks, loop.stop_reason)
    if history is not None:
        GraphApp(history).run()
    return loop


def main(argv: list[str] | None = None) -> int:
    """Entry point for the pmon command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = MonitorConfig.from_strings(
            pids=args.pids,
            interval=args.interval,
            length=args.length,
            unit=args.unit,
            format_name=args.format_name,
            graph=args.graph,
            command=args.command,
        )
    except PmonError as exc:
        parser.error(str(exc))

    if not config.has_targets:
        parser.print_help()
        return 0

    try:
        run(config)
    except CommandError as exc:
        logger.error("%s", exc)
        return 1
    except BrokenPipeError:
        # Reader went away, e.g. `pmon ... | head`. Exit status matches a SIGPIPE death.
        with contextlib.suppress(AttributeError, OSError, ValueError):
            stdout_fd = sys.stdout.fileno()
            os.dup2(os.open(os.devnull, os.O_WRONLY), stdout_fd)
        return 128 + signal.SIGPIPE
    return 0


if __name__ == "__main__":
    sys.exit(main())
