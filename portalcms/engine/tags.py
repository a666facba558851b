"""
portalcms.engine.tags — Game Tag Flags
=======================================

The backend stores a game's decorations as one string (``gameTab``) in
which the presence of the substrings ``top`` / ``hot`` / ``new`` marks a
tag as set.  Inside the console tags are a :class:`GameTags` flag set;
the legacy string is only produced or read at the backend boundary.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import Any, TypeVar

__all__ = ["GameTags", "TAG_NAMES", "priority", "sort_games", "toggle_legacy"]

T = TypeVar("T")


class GameTags(enum.Flag):
    NONE = 0
    TOP = enum.auto()
    HOT = enum.auto()
    NEW = enum.auto()

    @classmethod
    def parse(cls, name: str) -> GameTags:
        """``"top"`` → ``GameTags.TOP``; raises ``ValueError`` otherwise."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown game tag: {name!r}") from None

    @classmethod
    def from_legacy(cls, tab: str | None) -> GameTags:
        lowered = (tab or "").lower()
        flags = cls.NONE
        for member in _ORDERED:
            if member.name.lower() in lowered:
                flags |= member
        return flags

    def to_legacy(self) -> str:
        return "".join(m.name.lower() for m in _ORDERED if m in self)


_ORDERED: tuple[GameTags, ...] = (GameTags.TOP, GameTags.HOT, GameTags.NEW)

TAG_NAMES: frozenset[str] = frozenset(m.name.lower() for m in _ORDERED)

# Most-decorated combination first, untagged last
_PRIORITY: dict[GameTags, int] = {
    GameTags.TOP | GameTags.HOT | GameTags.NEW: 1,
    GameTags.TOP | GameTags.HOT: 2,
    GameTags.TOP | GameTags.NEW: 3,
    GameTags.HOT | GameTags.NEW: 4,
    GameTags.TOP: 5,
    GameTags.HOT: 6,
    GameTags.NEW: 7,
    GameTags.NONE: 8,
}


def priority(tags: GameTags | str | None) -> int:
    if not isinstance(tags, GameTags):
        tags = GameTags.from_legacy(tags)
    return _PRIORITY[tags]


def toggle_legacy(tab: str | None, tag: str) -> str:
    """Flip *tag* in a legacy tag string.

    Removes the first (case-insensitive) occurrence when present, else
    appends the tag, so the other tags keep their position in the string.
    """
    tab = tab or ""
    GameTags.parse(tag)
    idx = tab.lower().find(tag.lower())
    if idx >= 0:
        return tab[:idx] + tab[idx + len(tag):]
    return tab + tag.lower()


def _tab_of(game: Any) -> str:
    if isinstance(game, dict):
        return game.get("gameTab") or ""
    return getattr(game, "gameTab", "") or ""


def sort_games(games: Iterable[T]) -> list[T]:
    """Stable sort by tag priority (ties keep their prior order)."""
    return sorted(games, key=lambda g: priority(_tab_of(g)))
