"""
portalcms.engine.status — Effective Status & Date Helpers
==========================================================

Pure functions, no I/O.  The list views, count cards and dashboard all
classify rows through :func:`effective_status` so the three of them can
never disagree about what "expired" means.

Derivation::

    stored "hide"     → hidden   (explicit status always wins)
    stored "expired"  → expired
    stored "active"   → expired if expiry < now, else active
    anything else     → active

A missing or unparseable expiry never expires.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import Any

from portalcms.constants import EffectiveStatus, StoredStatus

__all__ = [
    "count_by_status",
    "effective_status",
    "format_date",
    "format_datetime",
    "min_expiry_date",
    "parse_timestamp",
    "status_label",
]


def _field(entity: Any, name: str) -> Any:
    if isinstance(entity, Mapping):
        return entity.get(name)
    return getattr(entity, name, None)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 date/datetime string into an aware UTC datetime.

    Date-only strings are midnight UTC.  Returns ``None`` for missing or
    unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _as_aware(now: datetime) -> datetime:
    return now if now.tzinfo is not None else now.replace(tzinfo=UTC)


def effective_status(entity: Any, now: datetime) -> EffectiveStatus:
    """Classify *entity* (model or dict with ``status`` / ``expiry``) at *now*."""
    status = _field(entity, "status")
    if status == StoredStatus.HIDE:
        return EffectiveStatus.HIDDEN
    if status == StoredStatus.EXPIRED:
        return EffectiveStatus.EXPIRED
    if status == StoredStatus.ACTIVE:
        expiry = parse_timestamp(_field(entity, "expiry"))
        if expiry is not None and expiry < _as_aware(now):
            return EffectiveStatus.EXPIRED
    return EffectiveStatus.ACTIVE


def status_label(status: EffectiveStatus) -> str:
    """Capitalized label ("Active" / "Expired" / "Hidden")."""
    return status.value.capitalize()


def count_by_status(items: Iterable[Any], now: datetime) -> dict[str, int]:
    """Aggregate for the count cards: ``{"active", "expired", "hidden"}``."""
    counts = {s.value: 0 for s in EffectiveStatus}
    for item in items:
        counts[effective_status(item, now).value] += 1
    return counts


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------
def _localize(value: Any, tz: tzinfo | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed


def format_date(value: Any, tz: tzinfo | None = None) -> str:
    """Expiry display: ``"January 5, 2025"``, or ``"-"`` when absent/invalid."""
    parsed = _localize(value, tz)
    if parsed is None:
        return "-"
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_datetime(value: Any, tz: tzinfo | None = None) -> str:
    """Created-at display: ``"January 5, 2025, 3:07 PM"``, or ``"-"``."""
    parsed = _localize(value, tz)
    if parsed is None:
        return "-"
    hour = parsed.hour % 12 or 12
    meridiem = "AM" if parsed.hour < 12 else "PM"
    return f"{parsed:%B} {parsed.day}, {parsed.year}, {hour}:{parsed:%M} {meridiem}"


def min_expiry_date(today: date | None = None) -> str:
    """Earliest selectable expiry (tomorrow) as ``YYYY-MM-DD``."""
    today = today or date.today()
    return (today + timedelta(days=1)).isoformat()
