#!/usr/bin/env python3
"""
Command line access to the workout content cache.

Commands:
  init      load the manifest (cache first, download when missing)
  refresh   clear the cache and download everything again (3 attempts)
  update    download the manifest and record the remote version marker
  check     compare the remote version marker with the cached one
  videos    download every referenced video that is not cached yet
  info      print cache size and last sync time
  clear     delete cached content and metadata (--manifest-only keeps videos)

Settings come from data/config.json (see ContentSettings); relative paths
are resolved against the repository root.

Run from the repository root as a module, or install the project first
(pip install -e .) so the src package is importable.

Example:
  python3 -m scripts.sync_content init
  python3 -m scripts.sync_content --verbose refresh
  python3 -m scripts.sync_content clear --manifest-only
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from src.backend.bootstrap import ContentComponents, build_components
from src.backend.fs.metadata import format_utc_z
from src.backend.settings.store import SettingsStore
from src.shared.errors import ContentError


REPO_ROOT = Path(__file__).resolve().parents[1]


def _print_json(obj) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _print_state(components: ContentComponents) -> int:
    state = components.facade.state
    _print_json(
        {
            "workouts": [c.name for c in state.containers],
            "update_available": state.update_available,
            "cache_size": state.cache_size_description,
            "last_sync": format_utc_z(state.last_sync_timestamp) if state.last_sync_timestamp else None,
            "error": state.initialization_error,
        }
    )
    return 1 if state.initialization_error else 0


async def run(args: argparse.Namespace) -> int:
    config_path = Path(args.config)
    if not config_path.is_absolute():
        config_path = REPO_ROOT / config_path

    settings = SettingsStore(path=config_path).load()
    components = build_components(settings, base_dir=REPO_ROOT)
    facade = components.facade
    sync = components.synchronizer

    try:
        if args.command == "init":
            await facade.initialize()
            await facade.drain()
            return _print_state(components)

        if args.command == "refresh":
            await facade.refresh()
            await facade.drain()
            return _print_state(components)

        if args.command == "update":
            try:
                manifest = await sync.update_content()
            except ContentError as exc:
                print(f"Failed to update content: {exc}", file=sys.stderr)
                return 1
            _print_json({"workouts": len(manifest), "version": components.store.read_metadata().content_version})
            return 0

        if args.command == "check":
            result = await facade.check_for_updates()
            if result is None:
                print("Version check failed (see log)", file=sys.stderr)
                return 1
            _print_json({"update_available": result})
            return 0

        if args.command == "videos":
            await facade.initialize()
            if facade.initialization_error:
                print(facade.initialization_error, file=sys.stderr)
                return 1
            batch = await facade.download_all_videos()
            _print_json(batch.to_dict())
            return 1 if batch.failed else 0

        if args.command == "info":
            info = facade.cache_info()
            _print_json(
                {
                    "size_bytes": info.size_bytes,
                    "size": info.size_description,
                    "last_sync": format_utc_z(info.last_sync_timestamp) if info.last_sync_timestamp else None,
                    "cache_root": str(components.store.cache_root),
                    "manifest_cached": components.store.has_manifest(),
                }
            )
            return 0

        if args.command == "clear":
            try:
                if args.manifest_only:
                    components.store.clear_manifest()
                else:
                    sync.clear_cache()
            except ContentError as exc:
                print(f"Failed to clear cache: {exc}", file=sys.stderr)
                return 1
            what = "Cached manifest removed" if args.manifest_only else "Cache cleared"
            print(f"{what}: {components.store.cache_root}")
            return 0
    finally:
        await facade.close()

    print(f"unknown command: {args.command}", file=sys.stderr)
    return 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Sync workout content (manifest + videos) from the content repository",
    )
    p.add_argument("--config", default="data/config.json", help="settings file (default data/config.json)")
    p.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    p.add_argument(
        "command",
        choices=("init", "refresh", "update", "check", "videos", "info", "clear"),
        help="operation to run",
    )
    p.add_argument("--manifest-only", action="store_true", help="clear: remove only the cached manifest")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
