"""
tests/conftest.py — Shared Test Fixtures
=========================================

The CMS backend, the game catalog and the image host are replaced by one
in-memory FastAPI app served through ``httpx.ASGITransport``, so the real
:class:`BackendClient` code paths (status codes, JSON bodies, messages)
are exercised without a network.
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import UTC, datetime
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from portalcms.config import ConsoleConfig
from portalcms.console import AdminConsole

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def run_async(coro):
    """Run an async coroutine in a fresh event loop, then close the loop."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# resource → response key for single-entity replies
_RESOURCES = {
    "announcements": "announcement",
    "notifications": "notification",
    "banners": "banner",
    "providers": "provider",
    "games": "game",
}


# ---------------------------------------------------------------------------
# In-memory backend state
# ---------------------------------------------------------------------------
class FakeBackend:
    """Mutable state behind the fake app; tests seed and inspect it."""

    def __init__(self) -> None:
        self.collections: dict[str, list[dict[str, Any]]] = {name: [] for name in _RESOURCES}
        self.catalog: dict[str, Any] = {}
        self.failures: dict[str, tuple[int, Any]] = {}
        self.calls: list[str] = []
        self.catalog_forms: list[dict[str, str]] = []
        self.uploads: list[bytes] = []
        # Collections listed as {"<resource>": [...]} instead of a bare array
        self.wrapped_lists: set[str] = {"banners"}
        self._ids = itertools.count(1)

    def seed(self, resource: str, *rows: dict[str, Any]) -> list[dict[str, Any]]:
        for row in rows:
            row.setdefault("_id", f"{resource[:3]}{next(self._ids)}")
            self.collections[resource].append(row)
        return list(rows)

    def insert(self, resource: str, body: dict[str, Any]) -> dict[str, Any]:
        row = {"_id": f"{resource[:3]}{next(self._ids)}", "createdAt": NOW.isoformat(), **body}
        self.collections[resource].insert(0, row)
        return row

    def find(self, resource: str, item_id: str) -> dict[str, Any] | None:
        for row in self.collections[resource]:
            if row["_id"] == item_id:
                return row
        return None

    def fail(self, method: str, path: str, status: int = 500, body: Any = None) -> None:
        """Make ``METHOD /path`` answer with *status* and *body* (str → non-JSON)."""
        self.failures[f"{method} {path}"] = (status, body if body is not None else {"message": "Server error"})


# ---------------------------------------------------------------------------
# Fake app
# ---------------------------------------------------------------------------
def _register_collection(app: FastAPI, backend: FakeBackend, resource: str, key: str) -> None:
    title = key.capitalize()

    async def list_items(request: Request):
        rows = backend.collections[resource]
        provider = request.query_params.get("provider")
        if provider is not None:
            rows = [r for r in rows if r.get("gameProvider") == provider]
        if resource in backend.wrapped_lists:
            return {resource: rows}
        return rows

    async def create_item(request: Request):
        row = backend.insert(resource, await request.json())
        return {"message": f"{title} created successfully", key: row}

    async def update_item(item_id: str, request: Request):
        row = backend.find(resource, item_id)
        if row is None:
            return JSONResponse({"message": f"{title} not found"}, status_code=404)
        row.update(await request.json())
        return {"message": f"{title} updated successfully", key: row}

    async def delete_item(item_id: str):
        row = backend.find(resource, item_id)
        if row is None:
            return JSONResponse({"message": f"{title} not found"}, status_code=404)
        backend.collections[resource].remove(row)
        return {"message": f"{title} deleted successfully"}

    async def bulk_delete(request: Request):
        ids = set((await request.json())["ids"])
        before = len(backend.collections[resource])
        backend.collections[resource] = [r for r in backend.collections[resource] if r["_id"] not in ids]
        removed = before - len(backend.collections[resource])
        return {"message": f"{removed} {resource} deleted successfully"}

    for path in (f"/api/{resource}", f"/api/{resource}/"):
        app.add_api_route(path, list_items, methods=["GET"])
        app.add_api_route(path, create_item, methods=["POST"])
    app.add_api_route(f"/api/{resource}/bulk-delete", bulk_delete, methods=["POST"])
    app.add_api_route(f"/api/{resource}/{{item_id}}", update_item, methods=["PUT"])
    app.add_api_route(f"/api/{resource}/{{item_id}}", delete_item, methods=["DELETE"])


def build_app(backend: FakeBackend) -> FastAPI:
    app = FastAPI()

    @app.middleware("http")
    async def _inject_failures(request: Request, call_next):
        key = f"{request.method} {request.url.path}"
        backend.calls.append(key)
        if key in backend.failures:
            status, body = backend.failures[key]
            if isinstance(body, str):
                return PlainTextResponse(body, status_code=status)
            return JSONResponse(body, status_code=status)
        return await call_next(request)

    # Routes that would otherwise be shadowed by /{item_id}
    @app.put("/api/providers/reorder")
    async def reorder_providers(request: Request):
        ordered = (await request.json())["orderedIds"]
        rank = {item_id: i for i, item_id in enumerate(ordered)}
        rows = sorted(backend.collections["providers"], key=lambda r: rank.get(r["_id"], len(rank)))
        for position, row in enumerate(rows):
            row["order"] = position
        backend.collections["providers"] = rows
        return {"message": "Providers reordered successfully", "providers": rows}

    @app.patch("/api/banners/{field}/{item_id}")
    async def patch_banner(field: str, item_id: str, request: Request):
        row = backend.find("banners", item_id)
        if row is None:
            return JSONResponse({"message": "Banner not found"}, status_code=404)
        row[field] = (await request.json())[field]
        return {"message": f"Banner {field} updated successfully"}

    @app.get("/api/games/{game_id}")
    async def find_game(game_id: str):
        for row in backend.collections["games"]:
            if row.get("gameId") == game_id:
                return {"exists": True, "game": row}
        return {"exists": False}

    for resource, key in _RESOURCES.items():
        _register_collection(app, backend, resource, key)

    # External game catalog: form-encoded POST, positional arrays back
    @app.post("/catalog")
    async def catalog(request: Request):
        form = {k: v[0] for k, v in parse_qs((await request.body()).decode()).items()}
        backend.catalog_forms.append(form)
        return backend.catalog.get(form.get("p", ""), [])

    # Image host
    @app.post("/v1_1/{cloud_name}/image/upload")
    async def upload(cloud_name: str, request: Request):
        body = await request.body()
        backend.uploads.append(body)
        n = len(backend.uploads)
        return {"secure_url": f"https://res.cloudinary.com/{cloud_name}/image/upload/v1/img{n}.jpg"}

    return app


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def cfg() -> ConsoleConfig:
    return ConsoleConfig(
        api_url="http://testserver/api",
        game_catalog_url="http://testserver/catalog",
        cloudinary_cloud_name="demo",
        cloudinary_upload_preset="unsigned",
        uploader_id="admin-1",
        request_timeout=2.0,
    )


@pytest.fixture
def transport(backend: FakeBackend) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=build_app(backend))


@pytest.fixture
def console(cfg: ConsoleConfig, transport: httpx.ASGITransport) -> AdminConsole:
    return AdminConsole(cfg, transport=transport, now=lambda: NOW)


@pytest.fixture
def now() -> datetime:
    return NOW
