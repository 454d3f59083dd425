"""Depth-first filesystem walker producing :class:`ScannedRecord` values."""

from __future__ import annotations

import logging
import os
import stat
import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional, Set, Tuple

from dfind.models import FileMetadata, ScannedRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000

_PSEUDO_ENTRIES = (".", "..")


@dataclass(slots=True, frozen=True)
class ScanOptions:
    follow_symlinks: bool = False
    one_filesystem: bool = False
    halt_on_error: bool = True
    queue_size: int = DEFAULT_QUEUE_SIZE


def _lstat(path: str) -> os.stat_result:
    return os.lstat(path)


def _listdir(path: str) -> List[str]:
    return sorted(os.listdir(path))


def _directory_stat(
    path: str, st: os.stat_result, follow_symlinks: bool
) -> Optional[os.stat_result]:
    """Return the stat of the directory to descend into, if any."""
    if stat.S_ISDIR(st.st_mode):
        return st
    if follow_symlinks and stat.S_ISLNK(st.st_mode):
        try:
            target = os.stat(path)
        except OSError as exc:
            LOGGER.debug("Not following broken symlink %s: %s", path, exc)
            return None
        if stat.S_ISDIR(target.st_mode):
            return target
    return None


def walk(
    root: str | os.PathLike[str],
    options: ScanOptions | None = None,
    cancel_event: threading.Event | None = None,
) -> Iterator[ScannedRecord]:
    """Walk ``root`` depth-first, yielding one record per visited entry.

    The root comes first, then directory entries in lexical order. An entry
    that cannot be accessed yields an error record; unless
    ``options.halt_on_error`` is False, the walk stops right after it.

    Directories are identified by ``(st_dev, st_ino)``; a directory reached a
    second time (only possible through followed symlinks) is reported but not
    entered again. With ``one_filesystem`` set, directories on a different
    device than the root are reported but not entered.
    """
    options = options or ScanOptions()
    root_path = os.fspath(root)
    stack: List[str] = [root_path]
    visited: Set[Tuple[int, int]] = set()
    root_dev: Optional[int] = None

    while stack:
        if cancel_event is not None and cancel_event.is_set():
            LOGGER.info("Scan of %s cancelled", root_path)
            return

        path = stack.pop()
        try:
            st = _lstat(path)
        except OSError as exc:
            yield ScannedRecord(path=path, error=exc)
            if options.halt_on_error:
                return
            continue

        if root_dev is None:
            root_dev = st.st_dev

        if path in _PSEUDO_ENTRIES:
            LOGGER.debug("Ignoring: %s", path)
        else:
            yield ScannedRecord(
                path=path,
                metadata=FileMetadata.from_stat(os.path.basename(path) or path, st),
            )

        dir_st = _directory_stat(path, st, options.follow_symlinks)
        if dir_st is None:
            continue
        if options.one_filesystem and dir_st.st_dev != root_dev:
            LOGGER.debug("Not crossing filesystem boundary at %s", path)
            continue
        key = (dir_st.st_dev, dir_st.st_ino)
        if key in visited:
            LOGGER.debug("Already visited %s, skipping", path)
            continue
        visited.add(key)

        try:
            names = _listdir(path)
        except OSError as exc:
            yield ScannedRecord(path=path, error=exc)
            if options.halt_on_error:
                return
            continue

        stack.extend(os.path.join(path, name) for name in reversed(names))
