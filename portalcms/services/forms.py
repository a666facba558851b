"""
portalcms.services.forms — Create/Edit Form Controllers
========================================================

One controller per modal.  ``submit()`` validates first and raises
:class:`FormValidationError` with the user-facing message before anything
is sent; otherwise it uploads any new images, builds the payload and hands
it to the store, returning the store's :class:`ApiResult`.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date

from portalcms.constants import DEVICES, MAX_TEXT_CHARS, THEMES, StoredStatus
from portalcms.engine.status import min_expiry_date
from portalcms.services.backend import ApiResult
from portalcms.services.stores import (
    AnnouncementStore,
    BannerStore,
    NotificationStore,
    ProviderStore,
)
from portalcms.services.upload_service import UploadError

logger = logging.getLogger(__name__)


class FormValidationError(ValueError):
    """Input rejected before any request was made."""


class FormMode(enum.StrEnum):
    ADD = "add"
    EDIT = "edit"


@dataclass(frozen=True, slots=True)
class ImageFile:
    """A file picked in a form, not yet uploaded."""
    filename: str
    content: bytes
    content_type: str | None = None


# ImageFile → hosted URL
Uploader = Callable[[ImageFile], Awaitable[str]]


def _required(value: str | None, message: str) -> str:
    if not value or not value.strip():
        raise FormValidationError(message)
    return value


def _resolve_mode(mode: FormMode | str, item_id: str | None) -> FormMode:
    mode = FormMode(mode)
    if mode is FormMode.EDIT and not item_id:
        raise FormValidationError("Nothing selected to edit.")
    return mode


def _ensure_saved(result: ApiResult, fallback: str) -> ApiResult:
    if not result.success and not result.message:
        result.message = fallback
    return result


async def _upload(uploader: Uploader | None, image: ImageFile) -> str:
    if uploader is None:
        raise FormValidationError("Image uploads are not configured")
    try:
        return await uploader(image)
    except UploadError as exc:
        raise FormValidationError(str(exc)) from exc


# ---------------------------------------------------------------------------
# Announcements
# ---------------------------------------------------------------------------
class AnnouncementForm:
    def __init__(self, store: AnnouncementStore) -> None:
        self.store = store

    def build_payload(
        self,
        mode: FormMode | str,
        *,
        desc: str,
        status: str = StoredStatus.ACTIVE,
        expiry: str | None = None,
        today: date | None = None,
    ) -> dict:
        _required(desc, "Announcement is required!")
        if len(desc) > MAX_TEXT_CHARS:
            raise FormValidationError(f"Announcement must be at most {MAX_TEXT_CHARS} characters.")
        # Past expiries are only blocked on add; edits may keep an old date
        if FormMode(mode) is FormMode.ADD and expiry and expiry < min_expiry_date(today):
            raise FormValidationError("Expiry date must be later than today.")
        return {"desc": desc, "status": str(status), "expiry": expiry or None}

    async def submit(self, mode: FormMode | str, *, item_id: str | None = None, **fields) -> ApiResult:
        mode = _resolve_mode(mode, item_id)
        payload = self.build_payload(mode, **fields)
        if mode is FormMode.EDIT:
            return await self.store.update(item_id, payload)
        return await self.store.create(payload)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
class NotificationForm:
    def __init__(self, store: NotificationStore) -> None:
        self.store = store

    def build_payload(
        self,
        *,
        title: str,
        message: str,
        status: str = StoredStatus.ACTIVE,
        expiry: str | None = None,
    ) -> dict:
        _required(title, "Title is required!")
        _required(message, "Message is required!")
        if len(message) > MAX_TEXT_CHARS:
            raise FormValidationError(f"Message must be at most {MAX_TEXT_CHARS} characters.")
        return {"title": title, "message": message, "status": str(status), "expiry": expiry or None}

    async def submit(self, mode: FormMode | str, *, item_id: str | None = None, **fields) -> ApiResult:
        mode = _resolve_mode(mode, item_id)
        payload = self.build_payload(**fields)
        if mode is FormMode.EDIT:
            return await self.store.update(item_id, payload)
        return await self.store.create(payload)


# ---------------------------------------------------------------------------
# Banners
# ---------------------------------------------------------------------------
class BannerForm:
    def __init__(self, store: BannerStore, uploader: Uploader | None = None, *, uploaded_by: str = "") -> None:
        self.store = store
        self.uploader = uploader
        self.uploaded_by = uploaded_by

    async def submit(
        self,
        mode: FormMode | str,
        *,
        item_id: str | None = None,
        image: ImageFile | None = None,
        current_url: str | None = None,
        status: str = StoredStatus.ACTIVE,
        device: str = "desktop",
        theme: str = "light",
        expiry: str | None = None,
    ) -> ApiResult:
        mode = _resolve_mode(mode, item_id)
        if not status:
            raise FormValidationError("Status is required.")
        if mode is FormMode.ADD and image is None:
            raise FormValidationError("Upload an image first.")
        if device not in DEVICES:
            raise FormValidationError(f"Invalid device: {device!r}")
        if theme not in THEMES:
            raise FormValidationError(f"Invalid theme: {theme!r}")

        url = await _upload(self.uploader, image) if image is not None else current_url
        payload = {
            "url": url,
            "status": str(status),
            "expiry": expiry or None,
            "device": device,
            "theme": theme,
        }
        if self.uploaded_by:
            payload["uploadedBy"] = self.uploaded_by

        if mode is FormMode.EDIT:
            result = await self.store.update(item_id, payload)
        else:
            result = await self.store.create(payload)
        return _ensure_saved(result, "Failed to save banner.")


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------
def _coerce_order(value: object) -> int:
    """Blank/invalid/zero input → -1, which the backend appends at the end."""
    try:
        return int(value) or -1  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return -1


class ProviderForm:
    def __init__(self, store: ProviderStore, uploader: Uploader | None = None) -> None:
        self.store = store
        self.uploader = uploader

    async def submit(
        self,
        mode: FormMode | str,
        *,
        item_id: str | None = None,
        provider_id: str,
        name: str,
        directory: str,
        order: object = "",
        image: ImageFile | None = None,
        image_url: str | None = None,
        dark_logo: ImageFile | None = None,
        dark_logo_url: str | None = None,
        light_logo: ImageFile | None = None,
        light_logo_url: str | None = None,
        new_game: bool = False,
        top_game: bool = False,
        hidden: bool = False,
    ) -> ApiResult:
        mode = _resolve_mode(mode, item_id)
        _required(provider_id, "Provider ID required")
        _required(name, "Provider name required")
        _required(directory, "Directory required")
        if image is None and not image_url:
            raise FormValidationError("Main image is required")

        if dark_logo is not None:
            dark_logo_url = await _upload(self.uploader, dark_logo)
        if light_logo is not None:
            light_logo_url = await _upload(self.uploader, light_logo)
        if image is not None:
            image_url = await _upload(self.uploader, image)

        payload = {
            "provider_id": provider_id,
            "name": name,
            "directory": directory,
            "order": _coerce_order(order),
            "darkLogo": dark_logo_url,
            "lightLogo": light_logo_url,
            "image": image_url,
            "newGame": new_game,
            "topGame": top_game,
            "hidden": hidden,
        }

        if mode is FormMode.EDIT:
            result = await self.store.update(item_id, payload)
        else:
            result = await self.store.create(payload)
        if not result.success:
            logger.info("Provider save rejected: %s", result.message)
        return _ensure_saved(result, "Failed to save provider")
