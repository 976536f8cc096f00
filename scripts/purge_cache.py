#!/usr/bin/env python3
"""
Empty the rendered-map cache.

Run it while the server is stopped (or can tolerate images vanishing under it):
entries are removed, not invalidated, and in-flight writes may land afterwards.

Examples:
  python scripts/purge_cache.py --yes
  python scripts/purge_cache.py --config config/params.yaml --yes
  python scripts/purge_cache.py --root /var/cache/maps --yes
"""
from __future__ import annotations

import argparse
import os
import sys

# Add the project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.config import load_settings
from imgcache.store import ShardedCacheStore


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default=None, help="YAML config (default: $MAPCACHE_CONFIG or config/params.yaml)")
    ap.add_argument("--root", default=None, help="Cache root to purge (overrides config)")
    ap.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    args = ap.parse_args()

    root = args.root or load_settings(args.config).cache_root
    store = ShardedCacheStore(root)
    print(f"Deleting cache directory contents {store.root.resolve()}")
    if not args.yes:
        answer = input("Continue? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("aborted")
            return
    removed = store.purge()
    print(f"[ok] removed {removed} entries")


if __name__ == "__main__":
    main()
