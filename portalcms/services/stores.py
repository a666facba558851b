"""
portalcms.services.stores — Entity Stores
==========================================

Each store is the only owner of one cached collection and the only code
that mutates it.  Stores are plain objects built once per console (see
:mod:`portalcms.console`) and injected where needed; ``reset()`` returns
one to its empty state.

Reconciliation rules after a backend call:
  - create → prepend the canonical entity returned by the server;
  - update → replace by id with the canonical entity, or patch only the
    sent fields when the server returns none;
  - field-level mutators → patch that single field only;
  - delete / bulk delete → drop the id(s) when the backend reports success;
  - any failure → cache untouched, :class:`ApiResult` returned, nothing
    raised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from portalcms.constants import DEVICES, PROVIDER_FLAGS, THEMES, StoredStatus
from portalcms.engine.reorder import order_by_ids, renumber
from portalcms.models import Announcement, Banner, Entity, Game, Notification, Provider
from portalcms.services.backend import ApiResult, BackendClient, SuccessRule

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

__all__ = [
    "AnnouncementStore",
    "BannerStore",
    "EntityStore",
    "GameStore",
    "NotificationStore",
    "ProviderStore",
]


def _as_payload(data: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    if isinstance(data, Entity):
        payload = data.to_payload()
        payload.pop("_id", None)
        return payload
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_none=True)
    return dict(data)


class EntityStore(Generic[E]):
    """Cached collection + CRUD for one backend resource."""

    model: ClassVar[type[Entity]]
    resource: ClassVar[str]
    # Announcements are served with a trailing slash on the collection URL
    collection_path: ClassVar[str | None] = None

    def __init__(self, client: BackendClient) -> None:
        self.client = client
        self.items: list[E] = []
        self.loading = False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @property
    def _collection(self) -> str:
        return self.collection_path or self.resource

    @property
    def _label(self) -> str:
        return self.model.label

    @property
    def _title(self) -> str:
        return self._label.capitalize()

    def reset(self) -> None:
        self.items = []
        self.loading = False

    def get(self, item_id: str) -> E | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def _parse(self, raw: Any) -> E | None:
        try:
            return self.model.model_validate(raw)  # type: ignore[return-value]
        except ValidationError:
            logger.warning("Skipping malformed %s row: %r", self._label, raw)
            return None

    def _parse_list(self, body: Any) -> list[E]:
        if isinstance(body, dict):
            body = body.get(self.resource, [])
        if not isinstance(body, list):
            return []
        parsed = (self._parse(row) for row in body)
        return [row for row in parsed if row is not None]

    def _extract_entity(self, result: ApiResult) -> E | None:
        raw = result.get(self.model.response_key)
        if isinstance(raw, dict):
            return self._parse(raw)
        return None

    def _patch(self, item_id: str, changes: Mapping[str, Any]) -> None:
        self.items = [
            item.model_copy(update=dict(changes)) if item.id == item_id else item
            for item in self.items
        ]

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    async def fetch_all(self, params: dict[str, Any] | None = None) -> list[E]:
        """Reload the collection; ``loading`` is reset on every exit path."""
        self.loading = True
        try:
            result = await self.client.request(
                "GET", self._collection, params=params,
                verb="load", label=self.resource,
            )
            if result.success:
                self.items = self._parse_list(result.data)
                logger.debug("Loaded %d %s", len(self.items), self.resource)
            return self.items
        finally:
            self.loading = False

    async def create(self, payload: Mapping[str, Any] | BaseModel) -> ApiResult:
        result = await self.client.request(
            "POST", self._collection, json=_as_payload(payload),
            verb="create", label=self._label,
            default_message=f"{self._title} created successfully.",
        )
        if not result.success:
            return result
        entity = self._extract_entity(result)
        if entity is not None:
            self.items = [entity, *self.items]
        return ApiResult(True, result.message, entity, result.status_code)

    async def update(self, item_id: str, changes: Mapping[str, Any] | BaseModel) -> ApiResult:
        payload = _as_payload(changes)
        result = await self.client.request(
            "PUT", f"{self.resource}/{item_id}", json=payload,
            verb="update", label=self._label,
            default_message=f"{self._title} updated successfully.",
        )
        if not result.success:
            return result
        entity = self._extract_entity(result)
        if entity is not None:
            self.items = [entity if item.id == item_id else item for item in self.items]
        else:
            self._patch(item_id, payload)
        return ApiResult(True, result.message, entity or self.get(item_id), result.status_code)

    async def delete(self, item_id: str) -> ApiResult:
        result = await self.client.request(
            "DELETE", f"{self.resource}/{item_id}",
            verb="delete", label=self._label,
            rule=SuccessRule.MESSAGE,
            default_message=f"{self._title} deleted successfully.",
        )
        if result.success:
            self.items = [item for item in self.items if item.id != item_id]
        return result

    async def delete_many(self, ids: Iterable[str]) -> ApiResult:
        ids = list(ids)
        result = await self.client.request(
            "POST", f"{self.resource}/bulk-delete", json={"ids": ids},
            verb="delete", label=self.resource,
            rule=SuccessRule.MESSAGE,
        )
        if result.success:
            doomed = set(ids)
            self.items = [item for item in self.items if item.id not in doomed]
            logger.info("Bulk-deleted %d %s", len(doomed), self.resource)
        return result

    async def _update_field(
        self,
        item_id: str,
        field: str,
        value: Any,
        *,
        method: str = "PUT",
        path: str | None = None,
        label: str | None = None,
    ) -> ApiResult:
        """Send one field and patch only that field locally on success."""
        result = await self.client.request(
            method, path or f"{self.resource}/{item_id}", json={field: value},
            verb="update", label=label or f"{self._label} {field}",
            default_message=f"{self._title} {field} updated successfully.",
        )
        if result.success:
            self._patch(item_id, {field: value})
        return result


# ---------------------------------------------------------------------------
# Concrete stores
# ---------------------------------------------------------------------------
class _StatusMixin:
    async def update_status(self, item_id: str, status: str) -> ApiResult:
        if status not in (StoredStatus.ACTIVE, StoredStatus.HIDE, StoredStatus.EXPIRED):
            raise ValueError(f"Invalid status: {status!r}")
        return await self._update_field(item_id, "status", status)  # type: ignore[attr-defined]


class AnnouncementStore(_StatusMixin, EntityStore[Announcement]):
    model = Announcement
    resource = "announcements"
    collection_path = "announcements/"


class NotificationStore(_StatusMixin, EntityStore[Notification]):
    model = Notification
    resource = "notifications"


class BannerStore(EntityStore[Banner]):
    model = Banner
    resource = "banners"

    def _extract_entity(self, result: ApiResult) -> Banner | None:
        # The banner endpoints return the entity either wrapped or bare
        raw = result.get("banner")
        if raw is None and isinstance(result.data, dict) and (
            "_id" in result.data or "id" in result.data
        ):
            raw = {k: v for k, v in result.data.items() if k != "message"}
        return self._parse(raw) if isinstance(raw, dict) else None

    async def update_status(self, item_id: str, status: str) -> ApiResult:
        if status not in (StoredStatus.ACTIVE, StoredStatus.HIDE):
            raise ValueError(f"Invalid banner status: {status!r}")
        return await self._update_field(
            item_id, "status", status, method="PATCH", path=f"banners/status/{item_id}",
            label="banner status",
        )

    async def update_theme(self, item_id: str, theme: str) -> ApiResult:
        if theme not in THEMES:
            raise ValueError(f"Invalid banner theme: {theme!r}")
        return await self._update_field(
            item_id, "theme", theme, method="PATCH", path=f"banners/theme/{item_id}",
            label="banner theme",
        )

    async def update_device(self, item_id: str, device: str) -> ApiResult:
        if device not in DEVICES:
            raise ValueError(f"Invalid banner device: {device!r}")
        return await self._update_field(
            item_id, "device", device, method="PATCH", path=f"banners/device/{item_id}",
            label="banner device mode",
        )


class ProviderStore(EntityStore[Provider]):
    model = Provider
    resource = "providers"

    async def update_flag(self, item_id: str, flag: str, value: bool) -> ApiResult:
        """Toggle one of ``newGame`` / ``topGame`` / ``hidden``."""
        if flag not in PROVIDER_FLAGS:
            raise ValueError(f"Unknown provider flag: {flag!r}")
        return await self._update_field(item_id, flag, bool(value), label=flag)

    async def reorder(self, ordered_ids: Sequence[str]) -> ApiResult:
        """Apply *ordered_ids* locally at once, then persist.

        On success the server's canonical list replaces the cache.  On
        failure only positions are rolled back: each provider gets its
        previous ``order`` by id, on top of whatever the cache holds now,
        so field updates that landed while the request was in flight stay.
        """
        previous_ids = [p.id for p in self.items]
        previous_order = {p.id: p.order for p in self.items}
        self.items = renumber(order_by_ids(self.items, ordered_ids))

        result = await self.client.request(
            "PUT", "providers/reorder", json={"orderedIds": list(ordered_ids)},
            verb="reorder", label="providers",
            default_message="Providers reordered successfully.",
        )
        if not result.success:
            logger.warning("Provider reorder failed, rolling back: %s", result.message)
            restored = [
                p.model_copy(update={"order": previous_order[p.id]}) if p.id in previous_order else p
                for p in self.items
            ]
            self.items = order_by_ids(restored, previous_ids)
            return result

        server_rows = result.get("providers")
        if isinstance(server_rows, list):
            self.items = self._parse_list(server_rows)
        return ApiResult(True, result.message, self.items, result.status_code)


class GameStore(EntityStore[Game]):
    model = Game
    resource = "games"

    async def find_by_game_id(self, game_id: str) -> ApiResult:
        """``GET /games/:gameId`` → ``data`` is the backend :class:`Game` or ``None``."""
        result = await self.client.request(
            "GET", f"games/{game_id}", verb="check", label="game",
        )
        if not result.success or not result.get("exists"):
            return ApiResult(result.success, result.message, None, result.status_code)
        raw = result.get("game")
        game = self._parse(raw) if isinstance(raw, dict) else None
        return ApiResult(True, result.message, game, result.status_code)

    async def fetch_for_provider(self, provider_name: str) -> list[Game]:
        """Backend tag records for one provider (does not touch the cache)."""
        result = await self.client.request(
            "GET", "games", params={"provider": provider_name},
            verb="load", label="games",
        )
        return self._parse_list(result.data) if result.success else []
