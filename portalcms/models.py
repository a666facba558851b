"""
portalcms.models — Entity Models
=================================

Pydantic models for the five CMS collections.  Field names follow the
backend's JSON (``_id``, ``createdAt``, ``gameTab`` ...); ``id`` is the
Python-side name of ``_id``.  Unknown keys returned by the backend are
kept so a round-trip never drops data the console doesn't know about.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from portalcms.engine.tags import GameTags


class Entity(BaseModel):
    """Common base: id aliasing + lenient parsing."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    # Response key under which the backend wraps a single entity
    response_key: ClassVar[str] = ""
    # Human label used in synthesized messages ("Failed to add announcement")
    label: ClassVar[str] = ""

    id: str = Field(default="", alias="_id")
    createdAt: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the wire (``_id`` key, unset fields dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Announcement(Entity):
    response_key: ClassVar[str] = "announcement"
    label: ClassVar[str] = "announcement"

    desc: str = ""
    status: str = "active"
    expiry: str | None = None


class Notification(Entity):
    response_key: ClassVar[str] = "notification"
    label: ClassVar[str] = "notification"

    title: str = ""
    message: str = ""
    status: str = "active"
    expiry: str | None = None


class Banner(Entity):
    response_key: ClassVar[str] = "banner"
    label: ClassVar[str] = "banner"

    url: str = ""
    status: str = "active"
    expiry: str | None = None
    device: str = "desktop"
    theme: str = "light"
    uploadedBy: str | None = None


class Provider(Entity):
    response_key: ClassVar[str] = "provider"
    label: ClassVar[str] = "provider"

    provider_id: str = ""
    name: str = ""
    directory: str = ""
    order: int = -1
    darkLogo: str | None = None
    lightLogo: str | None = None
    image: str | None = None
    newGame: bool = False
    topGame: bool = False
    hidden: bool = False


class Game(Entity):
    response_key: ClassVar[str] = "game"
    label: ClassVar[str] = "game"

    gameId: str = ""
    gameName: str = ""
    gameImg: str = ""
    gameDemo: str = ""
    gameCategory: str = ""
    gameProvider: str = ""
    gameTab: str = ""

    @property
    def tags(self) -> GameTags:
        return GameTags.from_legacy(self.gameTab)

    @classmethod
    def from_catalog_row(cls, row: list[Any], provider_name: str) -> Game:
        """Build from a positional catalog array
        ``[gameId, gameName, gameImg, gameDemo, gameCategory, gameTab]``."""
        padded = list(row) + [""] * (6 - len(row))
        return cls(
            gameId=str(padded[0]),
            gameName=str(padded[1] or ""),
            gameImg=str(padded[2] or ""),
            gameDemo=str(padded[3] or ""),
            gameCategory=str(padded[4] or ""),
            gameTab=str(padded[5] or ""),
            gameProvider=provider_name,
        )

    def seed_payload(self, game_tab: str) -> dict[str, Any]:
        """Payload for creating a backend record from a catalog snapshot."""
        return {
            "gameId": self.gameId,
            "gameName": self.gameName,
            "gameImg": self.gameImg,
            "gameDemo": self.gameDemo,
            "gameCategory": self.gameCategory,
            "gameProvider": self.gameProvider,
            "gameTab": game_tab,
        }
