"""Reading per-process memory accounting from ``/proc/<pid>/statm``."""

import logging
import os
from pathlib import Path

from pmon.errors import MalformedRecord, ProcessNotFound
from pmon.models import STATM_FIELDS, MemoryRecord

logger = logging.getLogger(__name__)


def page_size() -> int:
    """Host memory page size in bytes."""
    return os.sysconf("SC_PAGE_SIZE")


class MemorySampler:
    """
    Decodes a process's statm file into a ``MemoryRecord``.

    The file holds seven page counts (size, resident, shared, text, lib,
    data, dirty). Every call does exactly one read; there is no caching
    and no retry.
    """

    def __init__(self, proc_root: str | os.PathLike = "/proc", page_bytes: int | None = None) -> None:
        """
        Initialize the MemorySampler.

        Args:
            proc_root: Mount point of the proc filesystem.
            page_bytes: Page size override. Queried from the host once if None.
        """
        self._proc_root = Path(proc_root)
        self._page_size = page_bytes if page_bytes is not None else page_size()

    @property
    def page_size(self) -> int:
        """Page size in bytes used to convert page counts."""
        return self._page_size

    def statm_path(self, pid: int) -> Path:
        """Location of the accounting file for ``pid``."""
        return self._proc_root / str(pid) / "statm"

    def sample(self, pid: int) -> MemoryRecord:
        """
        Read and decode the current accounting record for ``pid``.

        Raises:
            ProcessNotFound: The file could not be opened or read.
            MalformedRecord: The contents are not seven unsigned integers,
                or a field does not fit in a ``ByteSize``.
        """
        try:
            raw = self.statm_path(pid).read_bytes()
        except OSError as exc:
            logger.debug("reading statm for pid %d failed: %s", pid, exc)
            raise ProcessNotFound(pid) from exc

        try:
            text = raw.decode("ascii")
        except UnicodeDecodeError as exc:
            raise MalformedRecord(pid, f"non-ascii byte at offset {exc.start}") from exc

        pages = self.decode(pid, text)
        try:
            return MemoryRecord.from_pages(pages, self._page_size)
        except ValueError as exc:
            raise MalformedRecord(pid, str(exc)) from exc

    @staticmethod
    def decode(pid: int, raw: str) -> list[int]:
        """Split raw statm text into page counts, validating the layout."""
        tokens = raw.split()
        if len(tokens) != len(STATM_FIELDS):
            raise MalformedRecord(pid, f"expected {len(STATM_FIELDS)} fields, got {len(tokens)}")
        for name, token in zip(STATM_FIELDS, tokens):
            if not (token.isascii() and token.isdigit()):
                raise MalformedRecord(pid, f"{name} field {token!r} is not an unsigned integer")
        return [int(token) for token in tokens]
