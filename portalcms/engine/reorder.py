"""
portalcms.engine.reorder — Drag Reorder for Providers
======================================================

``order`` on providers is a total order: after any move every provider is
renumbered ``0..n-1`` in list position.  A drag happens inside the
filtered, paginated view; :class:`ReorderController` maps the page-local
indices onto the full collection so providers hidden by the current
filter keep their slots.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from portalcms.engine.listing import ListController
    from portalcms.services.backend import ApiResult
    from portalcms.services.stores import ProviderStore

logger = logging.getLogger(__name__)

__all__ = ["ReorderController", "move", "order_by_ids", "renumber", "splice_visible"]

T = TypeVar("T")


def move(items: Sequence[T], source: int, destination: int | None) -> list[T]:
    """Remove the item at *source* and reinsert it at *destination*.

    Everything else keeps its relative order.  A missing or out-of-range
    index leaves the list unchanged.
    """
    result = list(items)
    if destination is None:
        return result
    if not (0 <= source < len(result)) or not (0 <= destination < len(result)):
        return result
    item = result.pop(source)
    result.insert(destination, item)
    return result


def _key(item: Any) -> str:
    if isinstance(item, Mapping):
        return str(item.get("_id") or item.get("id") or "")
    return str(getattr(item, "id", ""))


def splice_visible(full: Sequence[T], visible: Sequence[T]) -> list[T]:
    """Write the new *visible* order back into the slots it occupies in *full*.

    Rows of *full* that are not in *visible* stay exactly where they are.
    """
    visible_ids = {_key(v) for v in visible}
    replacement = iter(visible)
    return [next(replacement) if _key(row) in visible_ids else row for row in full]


def order_by_ids(items: Sequence[T], ordered_ids: Sequence[str]) -> list[T]:
    """Sort *items* by position in *ordered_ids*; unknown ids go last, stable."""
    rank = {item_id: i for i, item_id in enumerate(ordered_ids)}
    return sorted(items, key=lambda it: rank.get(_key(it), len(rank)))


def renumber(items: Sequence[T]) -> list[T]:
    """Assign ``order = 0..n-1`` in list position."""
    out: list[Any] = []
    for position, item in enumerate(items):
        if isinstance(item, Mapping):
            out.append({**item, "order": position})
        else:
            out.append(item.model_copy(update={"order": position}))
    return out


class ReorderController:
    """Connects drag events on the provider table to the provider store."""

    def __init__(self, listing: ListController, store: ProviderStore) -> None:
        self.listing = listing
        self.store = store

    def _absolute(self, page_index: int) -> int:
        return (self.listing.current_page - 1) * self.listing.page_size + page_index

    def preview(self, source: int, destination: int | None) -> list[str]:
        """Full ordered id list the drop would produce (no side effects)."""
        filtered = self.listing.filtered
        if destination is None:
            return [_key(p) for p in self.listing.items]
        moved = move(filtered, self._absolute(source), self._absolute(destination))
        return [_key(p) for p in splice_visible(self.listing.items, moved)]

    async def on_drag_end(self, source: int, destination: int | None) -> ApiResult | None:
        """Handle a drop at page-local indices; ``None`` when nothing moved."""
        before = [_key(p) for p in self.listing.items]
        ordered_ids = self.preview(source, destination)
        if ordered_ids == before:
            return None
        logger.info("Reordering providers: %s → %s", source, destination)
        return await self.store.reorder(ordered_ids)

