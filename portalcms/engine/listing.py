"""
portalcms.engine.listing — Generic List-View Controller
=========================================================

One controller drives every CRUD table (announcements, banners,
notifications, providers).  It owns the view-local state — status filter,
facet filters, search term, page size, current page, selection set and the
delete-confirmation prompt — and derives the visible rows from the store's
collection on every access, so a store mutation is reflected immediately.

Derivation order::

    collection → presentation order → status filter → facets → search
               → filtered → paginated

Selection semantics:
  - the selection survives page turns and filter changes;
  - "select all" is evaluated against ``filtered`` (every page), never just
    the visible page;
  - executing a bulk delete always clears the selection.
"""

from __future__ import annotations

import enum
import logging
import math
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from portalcms.config import DEFAULT_PAGE_SIZE
from portalcms.constants import PROVIDER_FILTERS, STATUS_FILTERS
from portalcms.engine.status import effective_status, parse_timestamp

logger = logging.getLogger(__name__)

__all__ = [
    "ELLIPSIS",
    "DeletePrompt",
    "ListController",
    "SelectAllState",
    "announcement_list",
    "banner_list",
    "notification_list",
    "provider_list",
]

T = TypeVar("T")

ELLIPSIS = "..."

Predicate = Callable[[Any], bool]


class SelectAllState(enum.StrEnum):
    """Header checkbox state, computed against the filtered rows."""
    UNCHECKED = "unchecked"
    INDETERMINATE = "indeterminate"
    CHECKED = "checked"


@dataclass(frozen=True, slots=True)
class DeletePrompt:
    """An open confirm/cancel prompt. ``ids`` is empty for nothing."""
    bulk: bool
    ids: tuple[str, ...]


def _default_key(item: Any) -> str:
    if isinstance(item, Mapping):
        return str(item.get("_id") or item.get("id") or "")
    return str(getattr(item, "id", ""))


class ListController(Generic[T]):
    """Filter / paginate / select over a collection owned by someone else.

    Parameters
    ----------
    source:
        Zero-arg callable returning the current collection (usually the
        store's ``items``).  Called on every derivation.
    status_filters:
        Filter key → row predicate; ``None`` means "no filtering".  Must
        contain ``"all"``.
    facets:
        Facet name → ``(row, value) -> bool``.  A facet set to ``"all"`` is
        inactive.
    search:
        ``(row, lowered_term) -> bool`` used for the free-text box.
    order:
        Optional presentation ordering applied before filtering.
    on_delete / on_bulk_delete:
        Async callbacks invoked when a prompt is confirmed.
    """

    def __init__(
        self,
        source: Callable[[], Sequence[T]],
        *,
        status_filters: Mapping[str, Predicate | None],
        facets: Mapping[str, Callable[[T, str], bool]] | None = None,
        search: Callable[[T, str], bool] | None = None,
        order: Callable[[Sequence[T]], list[T]] | None = None,
        key: Callable[[T], str] = _default_key,
        page_size: int = DEFAULT_PAGE_SIZE,
        on_delete: Callable[[str], Awaitable[Any]] | None = None,
        on_bulk_delete: Callable[[list[str]], Awaitable[Any]] | None = None,
    ) -> None:
        if "all" not in status_filters:
            raise ValueError("status_filters must define an 'all' entry")
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")

        self._source = source
        self._status_filters = dict(status_filters)
        self._facet_predicates = dict(facets or {})
        self._search = search
        self._order = order
        self._key = key
        self._on_delete = on_delete
        self._on_bulk_delete = on_bulk_delete

        self.default_page_size = page_size
        self._page_size = page_size
        self._page = 1
        self._filter_status = "all"
        self._facet_values: dict[str, str] = {name: "all" for name in self._facet_predicates}
        self._search_term = ""
        self._selected: set[str] = set()
        self.prompt: DeletePrompt | None = None

    # ------------------------------------------------------------------
    # Filter state (every change resets to page 1)
    # ------------------------------------------------------------------
    @property
    def filter_status(self) -> str:
        return self._filter_status

    def set_filter_status(self, value: str) -> None:
        if value not in self._status_filters:
            raise ValueError(
                f"Unknown filter {value!r}. Must be one of {sorted(self._status_filters)}"
            )
        self._filter_status = value
        self._page = 1

    @property
    def facets(self) -> dict[str, str]:
        return dict(self._facet_values)

    def set_facet(self, name: str, value: str) -> None:
        if name not in self._facet_predicates:
            raise KeyError(f"Unknown facet: {name}")
        self._facet_values[name] = value or "all"
        self._page = 1

    @property
    def search_term(self) -> str:
        return self._search_term

    def set_search(self, term: str) -> None:
        self._search_term = term or ""
        self._page = 1

    @property
    def page_size(self) -> int:
        return self._page_size

    def set_page_size(self, size: int | None) -> None:
        """Blank or non-positive input falls back to the default size."""
        self._page_size = size if size and size > 0 else self.default_page_size
        self._page = 1

    # ------------------------------------------------------------------
    # Derivations
    # ------------------------------------------------------------------
    @property
    def items(self) -> list[T]:
        rows = self._source()
        return self._order(rows) if self._order else list(rows)

    @property
    def filtered(self) -> list[T]:
        rows = self.items

        status_pred = self._status_filters[self._filter_status]
        if status_pred is not None:
            rows = [r for r in rows if status_pred(r)]

        for name, value in self._facet_values.items():
            if value != "all":
                pred = self._facet_predicates[name]
                rows = [r for r in rows if pred(r, value)]

        term = self._search_term.strip().lower()
        if term and self._search is not None:
            rows = [r for r in rows if self._search(r, term)]

        return rows

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.filtered) / self._page_size))

    @property
    def current_page(self) -> int:
        # A deletion can shrink the result under the cursor
        return min(self._page, self.total_pages)

    @property
    def paginated(self) -> list[T]:
        start = (self.current_page - 1) * self._page_size
        return self.filtered[start:start + self._page_size]

    def row_number(self, index: int) -> int:
        """1-based absolute row number of the *index*-th visible row."""
        return (self.current_page - 1) * self._page_size + index + 1

    # ------------------------------------------------------------------
    # Pagination control
    # ------------------------------------------------------------------
    @property
    def has_prev(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def go_to_page(self, page: int) -> None:
        """No-op outside ``[1, total_pages]``."""
        if 1 <= page <= self.total_pages:
            self._page = page

    def prev_page(self) -> None:
        self.go_to_page(self.current_page - 1)

    def next_page(self) -> None:
        self.go_to_page(self.current_page + 1)

    def page_numbers(self) -> list[int | str]:
        """Page buttons with :data:`ELLIPSIS` gaps around a 3-page window."""
        current, total = self.current_page, self.total_pages
        pages: list[int | str] = []

        if current > 2:
            pages.append(1)
            if current > 3:
                pages.append(ELLIPSIS)

        pages.extend(range(max(1, current - 1), min(total, current + 1) + 1))

        if current < total - 2:
            pages.append(ELLIPSIS)
            pages.append(total)

        return pages

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    @property
    def selected_ids(self) -> frozenset[str]:
        """Selected ids still present in the collection."""
        present = {self._key(r) for r in self._source()}
        return frozenset(self._selected & present)

    def is_selected(self, item_id: str) -> bool:
        return item_id in self.selected_ids

    def toggle_select(self, item_id: str) -> None:
        if item_id in self._selected:
            self._selected.discard(item_id)
        else:
            self._selected.add(item_id)

    def select_all_state(self) -> SelectAllState:
        ids = [self._key(r) for r in self.filtered]
        if not ids:
            return SelectAllState.UNCHECKED
        picked = sum(1 for i in ids if i in self._selected)
        if picked == len(ids):
            return SelectAllState.CHECKED
        if picked:
            return SelectAllState.INDETERMINATE
        return SelectAllState.UNCHECKED

    def toggle_select_all(self) -> None:
        ids = [self._key(r) for r in self.filtered]
        if ids and all(i in self._selected for i in ids):
            self._selected.difference_update(ids)
        else:
            self._selected.update(ids)

    def clear_selection(self) -> None:
        self._selected.clear()

    # ------------------------------------------------------------------
    # Delete confirmation
    # ------------------------------------------------------------------
    def request_delete(self, item_id: str) -> DeletePrompt:
        self.prompt = DeletePrompt(bulk=False, ids=(item_id,))
        return self.prompt

    def request_bulk_delete(self) -> DeletePrompt | None:
        """Open the bulk prompt; returns ``None`` when nothing is selected."""
        selected = self.selected_ids
        if not selected:
            return None
        ordered = tuple(self._key(r) for r in self._source() if self._key(r) in selected)
        self.prompt = DeletePrompt(bulk=True, ids=ordered)
        return self.prompt

    def cancel_prompt(self) -> None:
        self.prompt = None

    async def confirm(self) -> Any:
        """Execute the open prompt, then close it.

        A bulk delete clears the selection whatever the outcome.
        """
        prompt = self.prompt
        if prompt is None:
            return None
        try:
            if prompt.bulk:
                if self._on_bulk_delete is None:
                    raise RuntimeError("No bulk delete handler configured")
                logger.debug("Bulk delete of %d rows", len(prompt.ids))
                return await self._on_bulk_delete(list(prompt.ids))
            if self._on_delete is None:
                raise RuntimeError("No delete handler configured")
            self._selected.discard(prompt.ids[0])
            return await self._on_delete(prompt.ids[0])
        finally:
            if prompt.bulk:
                self._selected.clear()
            self.prompt = None


# ---------------------------------------------------------------------------
# Per-entity instantiations
# ---------------------------------------------------------------------------
NowFn = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _status_filters(now: NowFn) -> dict[str, Predicate | None]:
    filters: dict[str, Predicate | None] = {}
    for name, wanted in STATUS_FILTERS.items():
        if wanted is None:
            filters[name] = None
        else:
            filters[name] = lambda row, w=wanted: effective_status(row, now()) == w
    return filters


def _attr(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _newest_first(rows: Iterable[Any]) -> list[Any]:
    floor = datetime.min.replace(tzinfo=UTC)
    return sorted(
        rows,
        key=lambda r: parse_timestamp(_attr(r, "createdAt")) or floor,
        reverse=True,
    )


def announcement_list(source: Callable[[], Sequence[T]], *, now: NowFn = _utcnow, **kwargs: Any) -> ListController[T]:
    return ListController(source, status_filters=_status_filters(now), **kwargs)


def notification_list(source: Callable[[], Sequence[T]], *, now: NowFn = _utcnow, **kwargs: Any) -> ListController[T]:
    return ListController(source, status_filters=_status_filters(now), **kwargs)


def banner_list(source: Callable[[], Sequence[T]], *, now: NowFn = _utcnow, **kwargs: Any) -> ListController[T]:
    """Newest first, with independent device and theme facets."""
    return ListController(
        source,
        status_filters=_status_filters(now),
        facets={
            "device": lambda row, value: _attr(row, "device") == value,
            "theme": lambda row, value: _attr(row, "theme") == value,
        },
        order=_newest_first,
        **kwargs,
    )


def _by_order(rows: Iterable[Any]) -> list[Any]:
    # Unnumbered rows (order -1 / missing) trail, in collection order
    return sorted(rows, key=lambda r: (_attr(r, "order") is None or _attr(r, "order") < 0, _attr(r, "order") or 0))


def _provider_matches(row: Any, term: str) -> bool:
    name = (_attr(row, "name") or "").lower()
    directory = (_attr(row, "directory") or "").lower()
    return term in name or term in directory


def provider_list(source: Callable[[], Sequence[T]], **kwargs: Any) -> ListController[T]:
    """Flag filters (new/top/hidden) plus search over name and directory."""
    filters: dict[str, Predicate | None] = {}
    for name, flag in PROVIDER_FILTERS.items():
        filters[name] = None if flag is None else (lambda row, f=flag: bool(_attr(row, f)))
    return ListController(
        source,
        status_filters=filters,
        search=_provider_matches,
        order=_by_order,
        **kwargs,
    )
