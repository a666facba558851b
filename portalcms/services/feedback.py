"""
portalcms.services.feedback — Auto-dismissing confirmations
=============================================================

Holds the one notice the console is currently showing.  Success
confirmations and error text both disappear on their own after a fixed
3 seconds; a newer notice replaces the old one.  Nothing is retried.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from portalcms.constants import FEEDBACK_TTL_SECONDS
from portalcms.services.backend import ApiResult

logger = logging.getLogger(__name__)


class NoticeKind(enum.StrEnum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notice:
    kind: NoticeKind
    title: str
    description: str
    shown_at: float


class FeedbackBoard:
    """Single-slot notice with a time-to-live."""

    def __init__(
        self,
        ttl: float = FEEDBACK_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._notice: Notice | None = None

    def _show(self, kind: NoticeKind, title: str, description: str) -> Notice:
        self._notice = Notice(kind, title, description, self._clock())
        return self._notice

    def success(self, title: str, description: str) -> Notice:
        return self._show(NoticeKind.SUCCESS, title, description)

    def error(self, description: str, title: str = "Error") -> Notice:
        logger.debug("Showing error notice: %s", description)
        return self._show(NoticeKind.ERROR, title, description)

    def report(self, result: ApiResult | None, *, title: str = "Success!") -> Notice | None:
        """Confirm only a successful *result*; show failures as error text."""
        if result is None:
            return None
        if result.success:
            return self.success(title, result.message)
        return self.error(result.message or "Request failed")

    @property
    def current(self) -> Notice | None:
        notice = self._notice
        if notice is not None and self._clock() - notice.shown_at >= self.ttl:
            self._notice = None
            return None
        return notice

    def dismiss(self) -> None:
        self._notice = None
