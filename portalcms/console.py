"""
portalcms.console — Application container
==========================================

Builds every store, list view and form once per console instance and
wires them together.  Nothing lives at module level: two consoles (or two
tests) never share state.

Usage::

    async with AdminConsole(load_config()) as console:
        await console.announcements.fetch_all()
        view = console.announcement_view
        view.set_filter_status("expired")
        rows = view.paginated
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

import httpx

from portalcms.config import ConsoleConfig
from portalcms.engine.listing import (
    ListController,
    announcement_list,
    banner_list,
    notification_list,
    provider_list,
)
from portalcms.engine.reorder import ReorderController
from portalcms.models import Announcement, Banner, Notification, Provider
from portalcms.services.backend import BackendClient
from portalcms.services.catalog_service import GameCatalog
from portalcms.services.feedback import FeedbackBoard
from portalcms.services.forms import (
    AnnouncementForm,
    BannerForm,
    ImageFile,
    NotificationForm,
    ProviderForm,
)
from portalcms.services.stores import (
    AnnouncementStore,
    BannerStore,
    GameStore,
    NotificationStore,
    ProviderStore,
)
from portalcms.services.upload_service import upload_image

logger = logging.getLogger(__name__)


class AdminConsole:
    """All console state for one session.

    Parameters
    ----------
    cfg:
        Loaded configuration.
    transport:
        Optional httpx transport shared by the backend client (tests).
    now:
        Clock used by status derivation in the list views.
    """

    def __init__(
        self,
        cfg: ConsoleConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.cfg = cfg
        self.client = BackendClient(cfg.api_url, timeout=cfg.request_timeout, transport=transport)

        # Stores
        self.announcements = AnnouncementStore(self.client)
        self.notifications = NotificationStore(self.client)
        self.banners = BannerStore(self.client)
        self.providers = ProviderStore(self.client)
        self.games = GameStore(self.client)

        self.feedback = FeedbackBoard()
        self.catalog = GameCatalog(
            self.client,
            self.games,
            catalog_url=cfg.game_catalog_url,
            tenant_domain=cfg.tenant_domain,
        )

        # Forms
        self.announcement_form = AnnouncementForm(self.announcements)
        self.notification_form = NotificationForm(self.notifications)
        self.banner_form = BannerForm(self.banners, self.upload, uploaded_by=cfg.uploader_id)
        self.provider_form = ProviderForm(self.providers, self.upload)

        self._now = now
        self._build_views()

    def _build_views(self) -> None:
        size = self.cfg.default_page_size
        clock = {"now": self._now} if self._now else {}

        self.announcement_view: ListController[Announcement] = announcement_list(
            lambda: self.announcements.items, page_size=size,
            on_delete=self.announcements.delete, on_bulk_delete=self.announcements.delete_many,
            **clock,
        )
        self.notification_view: ListController[Notification] = notification_list(
            lambda: self.notifications.items, page_size=size,
            on_delete=self.notifications.delete, on_bulk_delete=self.notifications.delete_many,
            **clock,
        )
        self.banner_view: ListController[Banner] = banner_list(
            lambda: self.banners.items, page_size=size,
            on_delete=self.banners.delete, on_bulk_delete=self.banners.delete_many,
            **clock,
        )
        self.provider_view: ListController[Provider] = provider_list(
            lambda: self.providers.items, page_size=size,
            on_delete=self.providers.delete, on_bulk_delete=self.providers.delete_many,
        )
        self.provider_reorder = ReorderController(self.provider_view, self.providers)

    async def upload(self, image: ImageFile) -> str:
        """Upload through the configured image host."""
        return await upload_image(
            self.client.http,
            cloud_name=self.cfg.cloudinary_cloud_name,
            upload_preset=self.cfg.cloudinary_upload_preset,
            filename=image.filename,
            content=image.content,
            content_type=image.content_type,
        )

    def reset(self) -> None:
        """Drop every cached collection and all view state."""
        for store in (self.announcements, self.notifications, self.banners, self.providers, self.games):
            store.reset()
        self.catalog.reset()
        self.feedback.dismiss()
        self._build_views()
        logger.debug("Console state reset")

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> AdminConsole:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
