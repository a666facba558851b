"""
portalcms.services.catalog_service — Provider game catalog & tag toggling
==========================================================================

Games come from a third-party catalog endpoint (form-encoded POST,
positional-array JSON response).  The CMS backend only stores tag
overrides keyed by ``gameId``; the catalog view merges the two and keeps
the list sorted by tag priority.
"""

from __future__ import annotations

import logging

import httpx

from portalcms.constants import PROVIDER_CODES
from portalcms.engine.tags import GameTags, sort_games, toggle_legacy
from portalcms.models import Game
from portalcms.services.backend import ApiResult, BackendClient
from portalcms.services.stores import GameStore

logger = logging.getLogger(__name__)


class GameCatalog:
    """The games modal: one provider's catalog merged with backend tags."""

    def __init__(
        self,
        client: BackendClient,
        store: GameStore,
        *,
        catalog_url: str,
        tenant_domain: str,
    ) -> None:
        self.client = client
        self.store = store
        self.catalog_url = catalog_url
        self.tenant_domain = tenant_domain
        self.provider_name = ""
        self.games: list[Game] = []
        self.loading = False

    def reset(self) -> None:
        self.provider_name = ""
        self.games = []
        self.loading = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def _fetch_catalog(self, provider_name: str, code: str, mobile: bool) -> list[Game]:
        form = {"cmd": "getGame", "p": code}
        if mobile:
            form["m"] = "1"
        form["domain"] = self.tenant_domain

        resp = await self.client.http.post(self.catalog_url, data=form)
        resp.raise_for_status()
        payload = resp.json()
        if not isinstance(payload, (dict, list)):
            raise ValueError(f"Unexpected catalog body: {type(payload).__name__}")
        rows = payload.values() if isinstance(payload, dict) else payload
        return [
            Game.from_catalog_row(row, provider_name)
            for row in rows
            if isinstance(row, list) and row
        ]

    async def load(self, provider_name: str, *, mobile: bool = False) -> ApiResult:
        """Fetch the catalog, overlay backend tags by ``gameId``, sort."""
        code = PROVIDER_CODES.get(provider_name)
        if code is None:
            logger.warning("No catalog code for provider %r", provider_name)
            return ApiResult(False, f"Unknown provider: {provider_name}")
        if not self.catalog_url:
            return ApiResult(False, "Game catalog is not configured")

        self.loading = True
        try:
            try:
                catalog = await self._fetch_catalog(provider_name, code, mobile)
            except (httpx.HTTPError, ValueError):
                logger.exception("Failed to fetch games for %s", provider_name)
                return ApiResult(False, "Failed to load games")

            overrides = {g.gameId: g.gameTab for g in await self.store.fetch_for_provider(provider_name)}
            merged = [
                g.model_copy(update={"gameTab": overrides[g.gameId]}) if g.gameId in overrides else g
                for g in catalog
            ]
            self.provider_name = provider_name
            self.games = sort_games(merged)
            logger.info("Loaded %d games for %s (%d tag overrides)",
                        len(self.games), provider_name, len(overrides))
            return ApiResult(True, "", self.games)
        finally:
            self.loading = False

    def search(self, term: str) -> list[Game]:
        """Case-insensitive game-name filter over the loaded catalog."""
        term = term.strip().lower()
        if not term:
            return list(self.games)
        return [g for g in self.games if term in g.gameName.lower()]

    # ------------------------------------------------------------------
    # Tag toggling
    # ------------------------------------------------------------------
    async def toggle_tag(self, game_id: str, tag: str, snapshot: Game) -> ApiResult:
        """Flip *tag* (top / hot / new) on one game and persist it.

        Updates the backend record when one exists, otherwise creates one
        seeded from *snapshot*.  The local list is patched and re-sorted
        only after the backend accepts the change.
        """
        GameTags.parse(tag)

        lookup = await self.store.find_by_game_id(game_id)
        if not lookup.success:
            return lookup

        existing: Game | None = lookup.data
        current = existing.gameTab if existing is not None else snapshot.gameTab
        new_tab = toggle_legacy(current, tag)

        if existing is not None:
            result = await self.store.update(existing.id, {"gameTab": new_tab})
        else:
            result = await self.store.create(snapshot.seed_payload(new_tab))

        if result.success:
            self.games = sort_games(
                g.model_copy(update={"gameTab": new_tab}) if g.gameId == game_id else g
                for g in self.games
            )
        return result

    def tags_of(self, game_id: str) -> GameTags:
        for g in self.games:
            if g.gameId == game_id:
                return g.tags
        return GameTags.NONE
