"""Capability contract every storage backend satisfies."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import List, Literal

from dfind.errors import QueryFailure
from dfind.models import SearchFailure, SearchResult, StoreRecord
from dfind.stream import Stream

InsertStatus = Literal["inserted", "updated"]


class StorageDriver(ABC):
    """Backend interface so drivers can be swapped out as needed."""

    @abstractmethod
    def insert(self, key: str, record: StoreRecord, force: bool) -> InsertStatus:
        """Store ``record`` under ``key``.

        Raises:
            ConstraintViolation: ``key`` exists and ``force`` is False. The
                stored row is left untouched.
        """

    @abstractmethod
    def search(
        self, pattern: str, ignore_case: bool, search_content: bool
    ) -> Stream[SearchResult]:
        """Start a substring search and return a stream of results.

        Raises:
            QueryFailure: the query could not be started.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; absent keys are not an error."""

    def all_keys(self) -> List[str]:
        """Every stored key, read through an unfiltered search."""
        keys: List[str] = []
        for result in self.search("", False, False):
            if isinstance(result, SearchFailure):
                raise QueryFailure(str(result.error)) from result.error
            keys.append(result.key)
        return keys

    def count(self) -> int:
        return len(self.all_keys())

    def delete_missing(self) -> int:
        """Remove keys whose paths no longer exist on disk."""
        missing = [key for key in self.all_keys() if not os.path.lexists(key)]
        for key in missing:
            self.delete(key)
        return len(missing)

    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self) -> "StorageDriver":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
