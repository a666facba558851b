"""
tests/test_reorder.py — Provider Drag Reorder
==============================================

Pure move/splice helpers, then the controller against the fake backend:
contiguous renumbering, page offsets, hidden rows keeping their slots and
rollback on a rejected reorder.
"""

from __future__ import annotations

import httpx
import pytest
from conftest import run_async

from portalcms.engine.reorder import move, order_by_ids, renumber, splice_visible
from portalcms.models import Provider
from portalcms.services.backend import BackendClient
from portalcms.services.stores import ProviderStore

API = "http://testserver/api"


def _providers(n: int) -> list[dict]:
    return [
        {"_id": f"p{i}", "name": f"Provider {i}", "directory": f"dir{i}", "order": i}
        for i in range(n)
    ]


# ===========================================================================
# Pure helpers
# ===========================================================================
class TestMove:

    def test_move_down(self):
        assert move(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]

    def test_move_up(self):
        assert move(["a", "b", "c", "d"], 3, 1) == ["a", "d", "b", "c"]

    def test_same_index(self):
        assert move(["a", "b"], 1, 1) == ["a", "b"]

    @pytest.mark.parametrize("source, destination", [(0, None), (5, 0), (0, 9), (-1, 0)])
    def test_invalid_is_noop(self, source, destination):
        assert move(["a", "b", "c"], source, destination) == ["a", "b", "c"]

    def test_does_not_mutate_input(self):
        items = ["a", "b", "c"]
        move(items, 0, 2)
        assert items == ["a", "b", "c"]


class TestHelpers:

    def test_splice_keeps_invisible_rows_in_place(self):
        full = [{"_id": x} for x in "abcde"]
        visible = [{"_id": "d"}, {"_id": "b"}]
        assert [r["_id"] for r in splice_visible(full, visible)] == ["a", "d", "c", "b", "e"]

    def test_order_by_ids_unknown_last(self):
        rows = [{"_id": x} for x in "abc"]
        assert [r["_id"] for r in order_by_ids(rows, ["c", "a"])] == ["c", "a", "b"]

    def test_renumber_is_contiguous(self):
        rows = [{"_id": "x", "order": 7}, {"_id": "y", "order": -1}, {"_id": "z", "order": 3}]
        assert [r["order"] for r in renumber(rows)] == [0, 1, 2]


# ===========================================================================
# Controller against the fake backend
# ===========================================================================
class TestReorderController:

    def test_drag_renumbers_and_persists(self, console, backend):
        backend.seed("providers", *_providers(4))

        async def _inner():
            await console.providers.fetch_all()
            result = await console.provider_reorder.on_drag_end(0, 2)
            assert result.success
            assert result.message == "Providers reordered successfully"

        run_async(_inner())

        ids = [p.id for p in console.providers.items]
        assert ids == ["p1", "p2", "p0", "p3"]
        assert [p.order for p in console.providers.items] == [0, 1, 2, 3]
        assert [r["_id"] for r in backend.collections["providers"]] == ids

    def test_drop_outside_list_does_nothing(self, console, backend):
        backend.seed("providers", *_providers(3))

        async def _inner():
            await console.providers.fetch_all()
            return await console.provider_reorder.on_drag_end(1, None)

        assert run_async(_inner()) is None
        assert "PUT /api/providers/reorder" not in backend.calls

    def test_drop_in_place_does_nothing(self, console, backend):
        backend.seed("providers", *_providers(3))

        async def _inner():
            await console.providers.fetch_all()
            return await console.provider_reorder.on_drag_end(1, 1)

        assert run_async(_inner()) is None

    def test_page_local_indices_on_second_page(self, console, backend):
        backend.seed("providers", *_providers(8))

        async def _inner():
            await console.providers.fetch_all()
            console.provider_view.go_to_page(2)
            # second page shows p5..p7; drag its first row to its last
            await console.provider_reorder.on_drag_end(0, 2)

        run_async(_inner())
        assert [p.id for p in console.providers.items] == ["p0", "p1", "p2", "p3", "p4", "p6", "p7", "p5"]

    def test_filtered_drag_keeps_hidden_rows_in_their_slots(self, console, backend):
        rows = _providers(5)
        rows[1]["topGame"] = True
        rows[3]["topGame"] = True
        rows[4]["topGame"] = True
        backend.seed("providers", *rows)

        async def _inner():
            await console.providers.fetch_all()
            console.provider_view.set_filter_status("top")
            ids = console.provider_reorder.preview(2, 0)
            await console.provider_reorder.on_drag_end(2, 0)
            return ids

        sent = run_async(_inner())
        assert sent == ["p0", "p4", "p2", "p1", "p3"]
        assert [p.id for p in console.providers.items] == sent

    def test_rejected_reorder_rolls_back(self, console, backend):
        backend.seed("providers", *_providers(3))
        backend.fail("PUT", "/api/providers/reorder", 500, {"message": "Reorder failed"})

        async def _inner():
            await console.providers.fetch_all()
            return await console.provider_reorder.on_drag_end(0, 2)

        result = run_async(_inner())
        assert not result.success
        assert result.message == "Reorder failed"
        assert [p.id for p in console.providers.items] == ["p0", "p1", "p2"]
        assert [p.order for p in console.providers.items] == [0, 1, 2]

    def test_rollback_keeps_fields_changed_in_flight(self):
        store = None

        def _handler(request: httpx.Request) -> httpx.Response:
            # a flag update lands while the reorder is pending
            store.items = [
                p.model_copy(update={"newGame": True}) if p.id == "p1" else p
                for p in store.items
            ]
            return httpx.Response(500, json={"message": "Reorder failed"})

        store = ProviderStore(BackendClient(API, transport=httpx.MockTransport(_handler)))
        store.items = [Provider.model_validate(row) for row in _providers(3)]

        result = run_async(store.reorder(["p2", "p0", "p1"]))

        assert not result.success
        assert [p.id for p in store.items] == ["p0", "p1", "p2"]
        assert [p.order for p in store.items] == [0, 1, 2]
        assert store.get("p1").newGame is True
