from __future__ import annotations

import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from common.logging_setup import ctx, get_logger


log = get_logger(__name__)

_DIGEST_RE = re.compile(r"^[0-9a-f]{8,}$")
# mkstemp creates files 0600
CACHE_FILE_MODE = 0o644


@dataclass(frozen=True)
class CacheEntry:
    """Where a rendered image lives (or would live) in the store."""
    digest: str
    base_path: Path
    file_path: Path
    exists: bool


class ShardedCacheStore:
    """
    Content-addressed image store on disk. The first 8 hex chars of the digest
    pick a 4-level shard directory:

        root/
          └─ ab/
              └─ cd/
                  └─ ef/
                      └─ 01/
                          └─ abcdef01....{ext}

    Files are written once and never updated; there is no eviction or TTL.
    Bulk clean-up is scripts/purge_cache.py.
    """

    def __init__(self, root: str = "data/cache"):
        self.root = Path(root)

    # -------- public API --------

    def shard_dir(self, digest: str) -> Path:
        if not _DIGEST_RE.match(digest):
            raise ValueError(f"digest must be at least 8 lowercase hex chars, got {digest!r}")
        return self.root.joinpath(digest[0:2], digest[2:4], digest[4:6], digest[6:8])

    def lookup(self, digest: str, extension: str) -> CacheEntry:
        """Resolve the entry for `digest`. Touches nothing on disk."""
        base = self.shard_dir(digest)
        path = base / f"{digest}.{extension}"
        return CacheEntry(digest=digest, base_path=base, file_path=path, exists=path.is_file())

    def ensure(self, digest: str) -> Path:
        """Create the shard directory if needed; safe with concurrent callers."""
        base = self.shard_dir(digest)
        base.mkdir(parents=True, exist_ok=True)
        return base

    def store(self, digest: str, extension: str, data: bytes) -> CacheEntry:
        """
        Persist `data` for `digest`. Bytes go to a hidden temp file in the shard
        directory and are renamed into place, so readers see either nothing or
        the complete file.
        """
        base = self.ensure(digest)
        final = base / f"{digest}.{extension}"
        fd, tmp = tempfile.mkstemp(prefix=f".{digest[:8]}-", suffix=".tmp", dir=base)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp, CACHE_FILE_MODE)
            os.replace(tmp, final)
        except BaseException:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise
        log.debug("cache entry written", extra=ctx(digest=digest, bytes=len(data)))
        return CacheEntry(digest=digest, base_path=base, file_path=final, exists=True)

    def read(self, entry: CacheEntry) -> bytes:
        # Raises FileNotFoundError if the entry was purged meanwhile
        with entry.file_path.open("rb") as f:
            return f.read()

    def purge(self) -> int:
        """Remove everything under the root; returns the number of top-level entries removed."""
        if not self.root.exists():
            return 0
        removed = 0
        for child in self.root.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
            removed += 1
        log.info("cache purged", extra=ctx(root=str(self.root), removed=removed))
        return removed
