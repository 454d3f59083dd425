"""Core dfind data models."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, field_validator

PAYLOAD_VERSION = 1


class EntryType(str, Enum):
    FILE = "FILE"
    SYMLINK = "SYMLINK"
    DIRECTORY = "DIRECTORY"
    ARCHIVE = "ARCHIVE"
    DEVICE = "DEVICE"
    OTHER = "OTHER"


def classify_mode(mode: int) -> EntryType:
    """Map ``st_mode`` bits to an :class:`EntryType`.

    The first matching rule wins. Archives are never detected here.
    """
    if stat.S_ISDIR(mode):
        return EntryType.DIRECTORY
    if stat.S_ISLNK(mode):
        return EntryType.SYMLINK
    if stat.S_ISBLK(mode) or stat.S_ISCHR(mode):
        return EntryType.DEVICE
    if stat.S_ISREG(mode):
        return EntryType.FILE
    return EntryType.OTHER


@dataclass(slots=True, frozen=True)
class FileMetadata:
    """Subset of ``os.stat_result`` kept for each scanned entry."""

    name: str
    size: int
    mode: int
    mtime: float
    is_dir: bool
    dev: int = 0
    ino: int = 0

    @classmethod
    def from_stat(cls, name: str, st: os.stat_result) -> "FileMetadata":
        return cls(
            name=name,
            size=st.st_size,
            mode=st.st_mode,
            mtime=st.st_mtime,
            is_dir=stat.S_ISDIR(st.st_mode),
            dev=st.st_dev,
            ino=st.st_ino,
        )


@dataclass(slots=True)
class ScannedRecord:
    """One filesystem entry observed during a scan.

    A record with ``error`` set describes a traversal failure and carries no
    metadata. ``archive_error`` and ``children`` are reserved for archive
    expansion and stay empty.
    """

    path: str
    metadata: Optional[FileMetadata] = None
    error: Optional[Exception] = None
    archive_error: Optional[Exception] = None
    children: List["ScannedRecord"] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def entry_type(self) -> Optional[EntryType]:
        if self.metadata is None:
            return None
        return classify_mode(self.metadata.mode)


class RecordPayload(BaseModel):
    """Versioned payload persisted alongside each key."""

    version: int = PAYLOAD_VERSION
    entry_type: EntryType
    size: int
    mode: int
    mtime: float
    is_dir: bool

    @field_validator("version")
    @classmethod
    def _known_version(cls, value: int) -> int:
        if value != PAYLOAD_VERSION:
            raise ValueError(f"Unsupported payload version: {value}")
        return value

    @classmethod
    def from_scanned(cls, record: ScannedRecord) -> "RecordPayload":
        if record.metadata is None:
            raise ValueError(f"Record without metadata: {record.path}")
        meta = record.metadata
        return cls(
            entry_type=classify_mode(meta.mode),
            size=meta.size,
            mode=meta.mode,
            mtime=meta.mtime,
            is_dir=meta.is_dir,
        )


@dataclass(slots=True)
class StoreRecord:
    """Persisted unit: a unique key and its optional payload."""

    key: str
    payload: Optional[RecordPayload] = None

    @classmethod
    def from_scanned(cls, record: ScannedRecord) -> "StoreRecord":
        return cls(key=record.path, payload=RecordPayload.from_scanned(record))


@dataclass(slots=True, frozen=True)
class SearchHit:
    key: str


@dataclass(slots=True, frozen=True)
class SearchFailure:
    error: Exception


SearchResult = Union[SearchHit, SearchFailure]
