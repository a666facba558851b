"""
tests/test_dashboard.py — Dashboard Summary
============================================
"""

from __future__ import annotations

from conftest import run_async

from portalcms.services.dashboard import load_dashboard, summarize


def _seed(backend) -> None:
    backend.seed(
        "announcements",
        {"desc": "Lapsed promo", "status": "active", "expiry": "2020-01-01"},
        {"desc": "Live promo", "status": "active", "expiry": "2099-01-01"},
        {"desc": "Draft", "status": "hide"},
    )
    backend.seed("notifications", {"title": "t", "message": "m", "status": "expired"})
    backend.seed(
        "banners",
        {"_id": "b1", "url": "https://img/1.jpg", "device": "desktop", "status": "active"},
        {"_id": "b2", "url": "https://img/2.jpg", "device": "mobile", "status": "active"},
        {"_id": "b3", "url": "https://img/3.jpg", "device": "desktop", "status": "hide"},
        {"_id": "b4", "url": "https://img/4.jpg", "device": "desktop", "status": "active", "expiry": "2020-01-01"},
    )
    backend.seed(
        "providers",
        {"name": "JILI", "order": 0, "newGame": True, "topGame": True},
        {"name": "PG Soft", "order": 1, "hidden": True},
    )


class TestDashboard:

    def test_counts_and_rotation(self, console, backend, now):
        _seed(backend)
        summary = run_async(load_dashboard(console, now=now))

        assert summary.totals == {"announcements": 3, "banners": 4, "notifications": 1, "providers": 2}
        assert summary.status_counts["announcements"] == {"active": 1, "expired": 1, "hidden": 1}
        assert summary.status_counts["notifications"] == {"active": 0, "expired": 1, "hidden": 0}
        assert summary.provider_flags == {"new": 1, "top": 1, "hidden": 1}
        assert [b.id for b in summary.rotation] == ["b1"]

    def test_mobile_rotation(self, console, backend, now):
        _seed(backend)
        summary = run_async(load_dashboard(console, device="mobile", now=now))
        assert [b.id for b in summary.rotation] == ["b2"]

    def test_one_failed_collection_does_not_block_the_rest(self, console, backend, now):
        _seed(backend)
        backend.fail("GET", "/api/banners", 500)
        summary = run_async(load_dashboard(console, now=now))
        assert summary.totals["banners"] == 0
        assert summary.totals["announcements"] == 3

    def test_summarize_without_fetch_is_empty(self, console, now):
        summary = summarize(console, now=now)
        assert summary.totals == {"announcements": 0, "banners": 0, "notifications": 0, "providers": 0}
        assert summary.rotation == []
