#!/usr/bin/env python3
"""
HOPE ERP - command line entry point.

Loads screens from the hosted backend, renders them as text, and manages the
table availability cache.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from ..backend.base import BackendError
from ..backend.rest import RestBackend
from ..data.availability import AvailabilityCache
from ..data.fetcher import TieredFetcher
from ..data.persistence import KeyValueStore, MemoryStore
from ..data.probe import TableProbe
from .config import Config
from .controller import ScreenManager
from .render import render_state
from .screens import PERIODS, SCREENS, ScreenContext, get_screen

logger = logging.getLogger(__name__)


def build_backend(config: Config) -> RestBackend:
    backend = RestBackend(
        url=config.backend.url,
        api_key=config.backend.api_key,
        timeout=config.backend.timeout,
        retries=config.backend.retries,
        verify=config.backend.verify,
        ca_bundle=config.backend.ca_bundle,
    )
    password = os.environ.get("HOPE_ERP_PASSWORD")
    if config.backend.email and password:
        backend.sign_in(config.backend.email, password)
    return backend


def build_cache(config: Config, persist: bool = True) -> AvailabilityCache:
    if persist:
        store = KeyValueStore(Path(config.data_dir) if config.data_dir else None)
    else:
        store = MemoryStore()
    return AvailabilityCache(store)


def build_manager(config: Config, args, backend: RestBackend, cache: AvailabilityCache) -> ScreenManager:
    probe = TableProbe(backend)
    context = ScreenContext(
        backend=backend,
        cache=cache,
        probe=probe,
        period=getattr(args, "period", "week"),
        region=getattr(args, "region", "all"),
    )
    return ScreenManager(TieredFetcher(cache, probe), context)


async def show_screen(manager: ScreenManager, name: str) -> int:
    """Load a screen once and print it."""
    definition = get_screen(name)
    controller = manager.mount(definition)
    ok, detail = await controller.refresh()
    print(render_state(definition, controller.snapshot()))
    manager.unmount(name)
    logger.debug("[cli] %s: %s", name, detail)
    return 0 if ok else 1


async def watch_screen(
    manager: ScreenManager, name: str, interval: Optional[int], count: Optional[int]
) -> int:
    """Poll a screen and print it after every load."""
    definition = get_screen(name)
    interval = interval or definition.refresh_interval or 60

    def on_change(state):
        print(render_state(definition, state), flush=True)

    manager.mount(definition, on_change=on_change)
    poller = manager.start_polling(name, interval, max_runs=count)
    try:
        await poller.join()
    finally:
        await manager.stop_all()
    controller = manager.get(name)
    state = controller.snapshot() if controller else None
    manager.unmount(name)
    return 0 if state is not None and state.error_message is None else 1


def run_cache_command(args, cache: AvailabilityCache) -> int:
    if args.cache_command == "reset":
        cache.reset(args.resource)
        print(f"Cleared availability for {args.resource or 'all resources'}.")
        return 0

    entries = cache.snapshot()
    if not entries:
        print("No cached availability.")
        return 0
    width = max(len(name) for name in entries)
    for name, available in sorted(entries.items()):
        print(f"{name.ljust(width)}  {'available' if available else 'unavailable'}")
    return 0


def run(args) -> int:
    config = Config.load(args.config)
    level = (args.log_level or config.log_level).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.debug("[config] Loaded: %s", config.to_dict())

    cache = build_cache(config, persist=not args.no_persist)
    if args.command == "cache":
        return run_cache_command(args, cache)

    try:
        backend = build_backend(config)
    except BackendError as exc:
        print(f"Sign-in failed: {exc}", file=sys.stderr)
        return 1

    if not backend.is_available():
        logger.warning("[config] Backend URL or API key missing; every screen will report unavailable")

    if not config.is_screen_enabled(args.screen):
        print(f"Screen {args.screen!r} is disabled in the configuration.", file=sys.stderr)
        backend.close()
        return 1

    manager = build_manager(config, args, backend, cache)
    try:
        if args.command == "show":
            return asyncio.run(show_screen(manager, args.screen))
        if args.command == "watch":
            interval = args.interval or config.get_screen_config(args.screen).refresh_interval
            return asyncio.run(watch_screen(manager, args.screen, interval, args.count))
    except KeyboardInterrupt:
        print("\n[hope-erp] Stopped.")
        return 130
    finally:
        backend.close()
    return 2


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        prog="hope-erp",
        description="HOPE ERP data screens",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", type=str, help="Path to config YAML file")
    parser.add_argument("--log-level", default=None, help="Logging level (overrides config)")
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="Keep the availability cache in memory only",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def add_screen_options(p):
        p.add_argument("screen", choices=sorted(SCREENS), help="Screen to load")
        p.add_argument("--period", choices=PERIODS, default="week", help="Scheduler period")
        p.add_argument("--region", default="all", help="Scheduler region id")

    show = sub.add_parser("show", help="Load a screen once")
    add_screen_options(show)

    watch = sub.add_parser("watch", help="Reload a screen on an interval")
    add_screen_options(watch)
    watch.add_argument("--interval", type=int, default=None, help="Seconds between loads")
    watch.add_argument("--count", type=int, default=None, help="Stop after this many loads")

    cache = sub.add_parser("cache", help="Inspect or reset table availability")
    cache_sub = cache.add_subparsers(dest="cache_command", required=True)
    cache_sub.add_parser("list", help="Show cached availability")
    reset = cache_sub.add_parser("reset", help="Forget availability so tables are probed again")
    reset.add_argument("resource", nargs="?", default=None, help="Resource name (default: all)")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the hope-erp command."""
    return run(parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
