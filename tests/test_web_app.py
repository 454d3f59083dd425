"""Tests for the FastAPI application."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

from dfind.config import AppConfig
from dfind.db.store import Store
from dfind.errors import QueryFailure
from dfind.models import StoreRecord
from dfind.web.app import app


client = TestClient(app)


def _populate(data_dir: Path, keys: list[str]) -> None:
    with Store.open(AppConfig(data_dir=data_dir)) as store:
        for key in keys:
            store.insert(key, StoreRecord(key=key))


class TestSearchEndpoint:
    """Tests for POST /search endpoint."""

    def test_empty_pattern(self) -> None:
        response = client.post("/search", json={"pattern": "   "})
        assert response.status_code == 400
        assert "Empty pattern" in response.json()["detail"]

    def test_database_not_found(self, tmp_path: Path) -> None:
        response = client.post("/search", json={"pattern": "x", "data_dir": str(tmp_path)})
        assert response.status_code == 404
        assert "Database not found" in response.json()["detail"]

    def test_search_success(self, tmp_path: Path) -> None:
        _populate(tmp_path, ["/Docs/Report.pdf", "/docs/notes.txt"])

        sensitive = client.post("/search", json={"pattern": "report", "data_dir": str(tmp_path)})
        insensitive = client.post(
            "/search", json={"pattern": "report", "insensitive": True, "data_dir": str(tmp_path)}
        )

        assert sensitive.status_code == 200
        assert sensitive.json() == {"results": []}
        assert insensitive.json() == {"results": ["/Docs/Report.pdf"]}

    def test_query_failure(self, tmp_path: Path) -> None:
        _populate(tmp_path, [])
        with patch("dfind.web.app._run_search", side_effect=QueryFailure("boom")):
            response = client.post("/search", json={"pattern": "x", "data_dir": str(tmp_path)})

        assert response.status_code == 500
        assert response.json()["detail"] == "boom"


class TestStatsEndpoint:
    def test_stats_missing_database(self, tmp_path: Path) -> None:
        response = client.get("/stats", params={"data_dir": str(tmp_path)})
        assert response.status_code == 200
        assert response.json()["count"] == 0

    def test_stats_counts_rows(self, tmp_path: Path) -> None:
        _populate(tmp_path, ["/a", "/b", "/c"])

        response = client.get("/stats", params={"data_dir": str(tmp_path)})

        assert response.json() == {"count": 3, "db": str(tmp_path / "dfind.sq3")}
