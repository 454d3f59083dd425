"""FastAPI application exposing dfind search over HTTP."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from dfind.config import AppConfig
from dfind.db.store import Store, collect_keys
from dfind.errors import QueryFailure, SetupFailure

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="dfind", version="0.1.0")


class SearchPayload(BaseModel):
    pattern: str
    insensitive: bool = False
    data_dir: Path | None = None


def _config_for(request: Request, data_dir: Path | None) -> AppConfig:
    default: AppConfig = getattr(request.app.state, "config", None) or AppConfig()
    if data_dir is None:
        return default
    return AppConfig(data_dir=data_dir, queue_size=default.queue_size)


def _run_search(config: AppConfig, pattern: str, insensitive: bool) -> List[str]:
    with Store.open(config, read_only=True, base_dir=Path.cwd()) as store:
        return collect_keys(store.search(pattern, ignore_case=insensitive))


@app.post("/search")
async def search_paths(payload: SearchPayload, request: Request) -> dict[str, List[str]]:
    pattern = payload.pattern
    if not pattern.strip():
        raise HTTPException(status_code=400, detail="Empty pattern")

    config = _config_for(request, payload.data_dir)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        raise HTTPException(
            status_code=404,
            detail=f"Database not found at {resolved_db}. Run 'dfind scan' first.",
        )

    try:
        results = await asyncio.to_thread(_run_search, config, pattern, payload.insensitive)
    except (QueryFailure, SetupFailure) as exc:
        LOGGER.error("Search failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"results": results}


@app.get("/stats")
async def stats(request: Request, data_dir: Path | None = None) -> dict[str, Any]:
    config = _config_for(request, data_dir)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        return {"count": 0, "db": str(resolved_db)}

    with Store.open(config, read_only=True, base_dir=Path.cwd()) as store:
        count = store.count()
    return {"count": count, "db": str(resolved_db)}
