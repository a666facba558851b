"""
portalcms.__main__ — Entry point for ``python -m portalcms``
=============================================================

Wiring:
1. Load .env (upload preset and other secrets).
2. Load config.yaml (backend URL, catalog endpoint, timeouts).
3. Build an :class:`AdminConsole` and run one read-only command against
   the live backend.

Run with::

    uv run python -m portalcms dashboard --device mobile
    uv run python -m portalcms list banners --status expired --page 2
    uv run python -m portalcms games "PG Soft" --search fortune
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime

from dotenv import load_dotenv

from portalcms.config import load_config
from portalcms.console import AdminConsole
from portalcms.engine.status import effective_status, format_date, status_label
from portalcms.services.dashboard import load_dashboard

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("portalcms")

ENTITIES = ("announcements", "notifications", "banners", "providers")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portalcms", description="Gaming portal CMS console")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    dash = sub.add_parser("dashboard", help="Count cards and banner rotation")
    dash.add_argument("--device", choices=("desktop", "mobile"), default="desktop")

    ls = sub.add_parser("list", help="One page of a collection")
    ls.add_argument("entity", choices=ENTITIES)
    ls.add_argument("--status", default="all", help="Status / flag filter key")
    ls.add_argument("--search", default="", help="Provider name/directory search")
    ls.add_argument("--page", type=int, default=1)
    ls.add_argument("--page-size", type=int, default=None)

    games = sub.add_parser("games", help="A provider's catalog, sorted by tag priority")
    games.add_argument("provider")
    games.add_argument("--mobile", action="store_true")
    games.add_argument("--search", default="")
    return parser


def _row_label(entity: str, row) -> str:
    if entity == "announcements":
        return row.desc
    if entity == "notifications":
        return f"{row.title}: {row.message}"
    if entity == "banners":
        return f"{row.url} [{row.device}/{row.theme}]"
    return f"{row.order:>3} {row.name} ({row.directory})"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
async def _dashboard(console: AdminConsole, args: argparse.Namespace) -> int:
    summary = await load_dashboard(console, device=args.device)
    for name, total in summary.totals.items():
        counts = summary.status_counts.get(name)
        detail = ", ".join(f"{k}={v}" for k, v in counts.items()) if counts else ""
        print(f"{name:<14} {total:>4}  {detail}")
    flags = summary.provider_flags
    print(f"{'provider flags':<14}       new={flags['new']}, top={flags['top']}, hidden={flags['hidden']}")
    print(f"\nActive {args.device} banners: {len(summary.rotation)}")
    for banner in summary.rotation:
        print(f"  - {banner.url}")
    return 0


async def _list(console: AdminConsole, args: argparse.Namespace) -> int:
    store = getattr(console, args.entity)
    view = getattr(console, f"{args.entity[:-1]}_view")

    await store.fetch_all()
    view.set_filter_status(args.status)
    if args.search:
        view.set_search(args.search)
    view.set_page_size(args.page_size)
    view.go_to_page(args.page)

    now = datetime.now(UTC)
    for index, row in enumerate(view.paginated):
        line = f"{view.row_number(index):>4}. {_row_label(args.entity, row)}"
        if args.entity != "providers":
            state = status_label(effective_status(row, now))
            line += f"  {state}  expires {format_date(row.expiry)}"
        print(line)
    pages = " ".join(str(p) for p in view.page_numbers())
    print(f"\nPage {view.current_page}/{view.total_pages} ({len(view.filtered)} rows)  [{pages}]")
    return 0


async def _games(console: AdminConsole, args: argparse.Namespace) -> int:
    result = await console.catalog.load(args.provider, mobile=args.mobile)
    if not result.success:
        logger.error("%s", result.message)
        return 1
    for game in console.catalog.search(args.search):
        tags = game.tags.to_legacy() or "-"
        print(f"{game.gameId:<12} {game.gameName:<40} {tags}")
    return 0


_COMMANDS = {"dashboard": _dashboard, "list": _list, "games": _games}


async def _run(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    logger.info("Config loaded — Backend: %s", cfg.api_url)
    async with AdminConsole(cfg) as console:
        return await _COMMANDS[args.command](console, args)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, load configuration and run one command."""

    # 1. Environment variables (secrets).
    load_dotenv()

    args = _build_parser().parse_args(argv)

    try:
        code = asyncio.run(_run(args))
    except (FileNotFoundError, KeyError, ValueError) as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
