"""Store facade enforcing the read-only invariant in front of a driver."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from dfind.config import AppConfig
from dfind.db.drivers.base import InsertStatus, StorageDriver
from dfind.db.drivers.sqlite import SQLiteDriver
from dfind.errors import QueryFailure, ReadOnlyViolation, SetupFailure
from dfind.models import SearchFailure, SearchResult, StoreRecord
from dfind.stream import Stream

LOGGER = logging.getLogger(__name__)


class Store:
    """High-level access to a storage driver.

    A read-only store rejects every mutating call before the driver sees it.
    Searches are always allowed.
    """

    def __init__(self, driver: StorageDriver, *, read_only: bool = False) -> None:
        self.driver = driver
        self.read_only = read_only

    @classmethod
    def open(
        cls, config: AppConfig, *, read_only: bool = False, base_dir: Path | None = None
    ) -> "Store":
        data_dir = config.resolve_data_dir(base_dir)
        db_path = config.resolve_db_path(base_dir)
        if not read_only:
            try:
                data_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise SetupFailure(f"Cannot create data directory {data_dir}: {exc}") from exc
        driver = SQLiteDriver(db_path, queue_size=config.queue_size)
        return cls(driver, read_only=read_only)

    def _check_writable(self, operation: str) -> None:
        if self.read_only:
            raise ReadOnlyViolation(f"{operation} not allowed on a read-only store")

    def insert(self, key: str, record: StoreRecord, force: bool = False) -> InsertStatus:
        self._check_writable("insert")
        return self.driver.insert(key, record, force)

    def delete(self, key: str) -> None:
        self._check_writable("delete")
        self.driver.delete(key)

    def search(
        self, pattern: str, ignore_case: bool = False, search_content: bool = False
    ) -> Stream[SearchResult]:
        return self.driver.search(pattern, ignore_case, search_content)

    def count(self) -> int:
        return self.driver.count()

    def prune(self) -> int:
        """Remove entries whose paths no longer exist."""
        self._check_writable("prune")
        removed = self.driver.delete_missing()
        LOGGER.info("Pruned %d missing entries", removed)
        return removed

    def close(self) -> None:
        self.driver.close()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def collect_keys(stream: Stream[SearchResult]) -> List[str]:
    """Drain a search stream into a list of keys.

    Raises:
        QueryFailure: the stream carried a failure.
    """
    keys: List[str] = []
    for result in stream:
        if isinstance(result, SearchFailure):
            raise QueryFailure(str(result.error)) from result.error
        keys.append(result.key)
    return keys


def search(
    pattern: str,
    ignore_case: bool = False,
    search_content: bool = False,
    config: AppConfig | None = None,
) -> List[str]:
    """Run a single search on a fresh read-only store and return all keys."""
    config = config or AppConfig()
    with Store.open(config, read_only=True) as store:
        return collect_keys(store.search(pattern, ignore_case, search_content))
