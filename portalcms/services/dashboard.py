"""
portalcms.services.dashboard — Dashboard summary
=================================================

Loads the four collections concurrently (each fetch only touches its own
store, so completion order doesn't matter) and aggregates the count cards
and the banner rotation for one device.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from portalcms.constants import EffectiveStatus
from portalcms.engine.status import count_by_status, effective_status
from portalcms.models import Banner

if TYPE_CHECKING:
    from portalcms.console import AdminConsole

logger = logging.getLogger(__name__)


@dataclass
class DashboardSummary:
    totals: dict[str, int] = field(default_factory=dict)
    status_counts: dict[str, dict[str, int]] = field(default_factory=dict)
    provider_flags: dict[str, int] = field(default_factory=dict)
    rotation: list[Banner] = field(default_factory=list)


def summarize(console: AdminConsole, *, device: str = "desktop", now: datetime | None = None) -> DashboardSummary:
    """Aggregate whatever the stores currently hold (no I/O)."""
    now = now or datetime.now(UTC)
    announcements = console.announcements.items
    notifications = console.notifications.items
    banners = console.banners.items
    providers = console.providers.items

    return DashboardSummary(
        totals={
            "announcements": len(announcements),
            "banners": len(banners),
            "notifications": len(notifications),
            "providers": len(providers),
        },
        status_counts={
            "announcements": count_by_status(announcements, now),
            "banners": count_by_status(banners, now),
            "notifications": count_by_status(notifications, now),
        },
        provider_flags={
            "new": sum(1 for p in providers if p.newGame),
            "top": sum(1 for p in providers if p.topGame),
            "hidden": sum(1 for p in providers if p.hidden),
        },
        rotation=[
            b for b in banners
            if b.device == device and effective_status(b, now) is EffectiveStatus.ACTIVE
        ],
    )


async def load_dashboard(
    console: AdminConsole, *, device: str = "desktop", now: datetime | None = None
) -> DashboardSummary:
    """Fetch all four collections concurrently, then summarize."""
    await asyncio.gather(
        console.announcements.fetch_all(),
        console.notifications.fetch_all(),
        console.banners.fetch_all(),
        console.providers.fetch_all(),
    )
    summary = summarize(console, device=device, now=now)
    logger.info("Dashboard loaded: %s", summary.totals)
    return summary
