"""
portalcms.constants — Shared Constants
=======================================

Single source of truth for status vocabularies, form limits and the
provider-code table used by the external game catalog.
"""

from __future__ import annotations

import enum


# ---------------------------------------------------------------------------
# Status vocabularies
# ---------------------------------------------------------------------------
class StoredStatus(enum.StrEnum):
    """Status flag as persisted by the backend."""
    ACTIVE = "active"
    HIDE = "hide"
    EXPIRED = "expired"  # edit-only, announcements/notifications


class EffectiveStatus(enum.StrEnum):
    """Display-time classification derived from stored status + expiry."""
    ACTIVE = "active"
    EXPIRED = "expired"
    HIDDEN = "hidden"


# Filter keys used by the count cards → effective status
STATUS_FILTERS: dict[str, EffectiveStatus | None] = {
    "all": None,
    "active": EffectiveStatus.ACTIVE,
    "expired": EffectiveStatus.EXPIRED,
    "hide": EffectiveStatus.HIDDEN,
    "hidden": EffectiveStatus.HIDDEN,
}

# Provider list filters map onto boolean flags instead of a status
PROVIDER_FILTERS: dict[str, str | None] = {
    "all": None,
    "new": "newGame",
    "top": "topGame",
    "hidden": "hidden",
}

PROVIDER_FLAGS: frozenset[str] = frozenset({"newGame", "topGame", "hidden"})

DEVICES: frozenset[str] = frozenset({"desktop", "mobile"})
THEMES: frozenset[str] = frozenset({"light", "dark"})


# ---------------------------------------------------------------------------
# Forms & feedback
# ---------------------------------------------------------------------------
MAX_TEXT_CHARS = 120
FEEDBACK_TTL_SECONDS = 3.0

MAX_IMAGE_BYTES = 1024 * 1024  # 1 MiB
ALLOWED_IMAGE_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/webp"})
ALLOWED_IMAGE_EXTENSIONS: frozenset[str] = frozenset({".jpeg", ".jpg", ".webp"})


# ---------------------------------------------------------------------------
# Game catalog
# ---------------------------------------------------------------------------
# Provider display name → catalog code (``p=`` parameter)
PROVIDER_CODES: dict[str, str] = {
    "FiveGames": "5G",
    "Spadegaming": "spade",
    "JILI": "jili",
    "Bigpot": "bigpot",
    "No Limit City": "evonlc",
    "Yggdrasil": "yggdrasil",
    "Wazdan": "wazdan",
    "Triple Profits Gaming": "tpg",
    "Real Time Gaming": "rtg",
    "Red Tiger": "evoredtiger",
    "Playstar": "playstar",
    "PG Soft": "pgsoft",
    "Nextspin": "nextspin",
    "NetEnt": "netent",
    "JDB": "jdb",
    "FA Chai": "fachaidirect",
    "CQ9": "cq9",
    "Big Time Gaming": "btg",
    "Booongo": "booongo",
    "Pragmatic Play": "pp",
    "Habanero": "habanero",
    "Elbet": "elbet",
    "Playtech": "playtechsw",
}
