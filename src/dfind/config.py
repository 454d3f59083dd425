"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dfind.scan.walker import DEFAULT_QUEUE_SIZE, ScanOptions

DB_FILENAME = "dfind.sq3"


def _get_default_data_dir() -> Path:
    """Data directory from ``DFIND_DATA_DIR``, falling back to ``/tmp``."""
    env_dir = os.environ.get("DFIND_DATA_DIR")
    if env_dir:
        return Path(env_dir)
    return Path("/tmp")


@dataclass(slots=True)
class AppConfig:
    data_dir: Path | None = None
    verbose: bool = False
    follow_symlinks: bool = False
    one_filesystem: bool = False
    halt_on_error: bool = True
    queue_size: int = DEFAULT_QUEUE_SIZE
    db_filename: str = DB_FILENAME

    def __post_init__(self) -> None:
        if self.data_dir is None:
            self.data_dir = _get_default_data_dir()
        self.data_dir = Path(self.data_dir)

    def resolve_data_dir(self, base_dir: Path | None = None) -> Path:
        data_dir = Path(self.data_dir)
        if data_dir.is_absolute() or base_dir is None:
            return data_dir
        return base_dir / data_dir

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        return self.resolve_data_dir(base_dir) / self.db_filename

    def scan_options(self) -> ScanOptions:
        return ScanOptions(
            follow_symlinks=self.follow_symlinks,
            one_filesystem=self.one_filesystem,
            halt_on_error=self.halt_on_error,
            queue_size=self.queue_size,
        )
