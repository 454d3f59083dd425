"""Shared fixtures for dfind tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from dfind.config import AppConfig
from dfind.db.store import Store


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(data_dir=tmp_path / "data")


@pytest.fixture
def store(config: AppConfig):
    """Writable store backed by a temporary database."""
    store = Store.open(config)
    yield store
    store.close()


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """Small directory tree: a.txt, b/, b/c.txt, d.txt."""
    root = tmp_path / "root"
    root.mkdir()
    (root / "a.txt").write_text("a")
    (root / "b").mkdir()
    (root / "b" / "c.txt").write_text("c")
    (root / "d.txt").write_text("d")
    return root
