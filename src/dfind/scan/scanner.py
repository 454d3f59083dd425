"""Scan orchestration: one walker thread per scan feeding a bounded stream."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple

from dfind.config import AppConfig
from dfind.errors import ReadOnlyViolation, TraversalFailure
from dfind.models import ScannedRecord, StoreRecord
from dfind.scan.walker import walk
from dfind.stream import Stream

if TYPE_CHECKING:
    from dfind.db.store import Store

LOGGER = logging.getLogger(__name__)

_JOIN_TIMEOUT = 5.0


@dataclass(slots=True)
class ScanStats:
    inserted: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.inserted + self.updated + self.failed

    def increment(self, status: str) -> None:
        if status == "inserted":
            self.inserted += 1
        elif status == "updated":
            self.updated += 1
        else:
            self.failed += 1

    def record_error(self, path: str, error: Exception | None) -> None:
        self.failed += 1
        self.errors.append((path, str(error)))


class Scanner:
    """Runs filesystem scans and optionally writes the results to a store."""

    def __init__(self, config: AppConfig, store: Optional["Store"] = None) -> None:
        self.config = config
        self.store = store
        self.options = config.scan_options()
        self._stream: Optional[Stream[ScannedRecord]] = None
        self._worker: Optional[threading.Thread] = None

    def scan(self, root: str | os.PathLike[str]) -> Stream[ScannedRecord]:
        """Start a traversal of ``root`` and return its record stream.

        The stream is closed by the worker once the walk ends, for whatever
        reason. Traversal errors arrive as records with ``error`` set.
        """
        root_path = os.fspath(root)
        if not os.path.lexists(root_path):
            raise TraversalFailure(f"Scan root does not exist: {root_path}")

        stream: Stream[ScannedRecord] = Stream(self.options.queue_size)
        self._stream = stream
        worker = threading.Thread(
            target=self._run,
            args=(root_path, stream),
            name="dfind-scan",
            daemon=True,
        )
        worker.start()
        self._worker = worker
        return stream

    def cancel(self) -> None:
        if self._stream is not None:
            self._stream.cancel()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the current traversal worker to exit."""
        if self._worker is not None:
            self._worker.join(timeout)

    def _run(self, root: str, stream: Stream[ScannedRecord]) -> None:
        LOGGER.info("Starting scan: %s", root)
        try:
            for record in walk(root, self.options, stream.cancel_event):
                if not stream.send(record):
                    LOGGER.info("Scan of %s cancelled by consumer", root)
                    return
                if not record.ok:
                    LOGGER.error("Traversal error at %s: %s", record.path, record.error)
        except Exception as exc:
            LOGGER.exception("Scan of %s aborted", root)
            stream.send(ScannedRecord(path=root, error=exc))
        finally:
            stream.close()

    def scan_insert(self, root: str | os.PathLike[str]) -> ScanStats:
        """Scan ``root`` and force-insert every successful record."""
        if self.store is None:
            raise ValueError("scan_insert requires a store")
        if self.store.read_only:
            raise ReadOnlyViolation("Cannot scan into a read-only store")

        stats = ScanStats()
        stream = self.scan(root)
        try:
            for record in stream:
                if not record.ok:
                    stats.record_error(record.path, record.error)
                    continue
                try:
                    status = self.store.insert(
                        record.path, StoreRecord.from_scanned(record), force=True
                    )
                except Exception as exc:
                    LOGGER.error("Error inserting %s: %s", record.path, exc)
                    stats.record_error(record.path, exc)
                    continue
                stats.increment(status)
        finally:
            if not stream.closed:
                stream.cancel()
            self.join(_JOIN_TIMEOUT)
        return stats
