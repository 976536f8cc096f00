from __future__ import annotations

"""
Per-request render pipeline:

    received -> parsed -> key_derived -> cache_hit  -> served
                                      -> cache_miss -> rendering -> persisted -> served
    (validation error from received/parsed -> failed; renderer error -> failed, nothing cached)

Concurrent misses for one cache key share a single render through SingleFlight.
"""

import concurrent.futures
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from common.config import Settings
from common.errors import RenderError, UnsupportedRenderError
from common.logging_setup import ctx, get_logger
from common.types import MapRequest
from imgcache.canonical import derive_cache_key
from imgcache.singleflight import SingleFlight
from imgcache.store import ShardedCacheStore
from mapserver.renderer import Renderer
from query.request import QueryValue, parse_map_request


log = get_logger(__name__)

# requests' timeout applies to connect and to each read separately
FOLLOWER_GRACE_S = 5.0


class RequestState(str, Enum):
    received = "received"
    parsed = "parsed"
    key_derived = "key_derived"
    cache_hit = "cache_hit"
    cache_miss = "cache_miss"
    rendering = "rendering"
    persisted = "persisted"
    served = "served"
    failed = "failed"


@dataclass(frozen=True)
class RenderedImage:
    content: bytes
    content_type: str
    digest: str
    cache_hit: bool


class RendererUnavailable(RenderError):
    """Cache miss with no renderer configured."""


class MapService:
    def __init__(self, settings: Settings, store: ShardedCacheStore, renderer: Optional[Renderer] = None):
        self.settings = settings
        self.store = store
        self.renderer = renderer
        self._flights: SingleFlight[bytes] = SingleFlight()

    def follower_timeout(self) -> float:
        """How long a request waits on another request's in-flight render of the same key."""
        return 2 * self.settings.renderer_timeout_s + FOLLOWER_GRACE_S

    def serve(self, query: Mapping[str, QueryValue]) -> RenderedImage:
        """Parse + render. Raises MapQueryError on invalid input, RenderError on render failure."""
        log.debug("request received", extra=ctx(state=RequestState.received.value))
        request = parse_map_request(query, self.settings)
        return self.render(request)

    def render(self, request: MapRequest) -> RenderedImage:
        log.debug("request parsed", extra=ctx(state=RequestState.parsed.value))
        digest = derive_cache_key(request)
        ext = request.format.extension
        content_type = request.format.content_type
        log.debug("cache key derived", extra=ctx(state=RequestState.key_derived.value, digest=digest))

        entry = self.store.lookup(digest, ext)
        if entry.exists:
            try:
                data = self.store.read(entry)
            except FileNotFoundError:
                # purged between lookup and read
                log.info("cache entry vanished", extra=ctx(digest=digest))
            else:
                log.info("cache hit", extra=ctx(state=RequestState.cache_hit.value, digest=digest))
                return RenderedImage(data, content_type, digest, cache_hit=True)

        log.info("cache miss", extra=ctx(state=RequestState.cache_miss.value, digest=digest))
        try:
            data, leader = self._flights.do(
                digest,
                lambda: self._render_and_store(request, digest, ext),
                timeout=self.follower_timeout(),
            )
        except concurrent.futures.TimeoutError as e:
            log.error("render wait timed out", extra=ctx(state=RequestState.failed.value, digest=digest))
            raise RenderError(f"Timed out waiting for render of {digest}") from e
        except UnsupportedRenderError as e:
            log.warning("render refused: %s", e, extra=ctx(state=RequestState.failed.value, digest=digest))
            raise
        except RenderError:
            log.exception("render failed", extra=ctx(state=RequestState.failed.value, digest=digest))
            raise

        log.info(
            "request served",
            extra=ctx(state=RequestState.served.value, digest=digest, shared=not leader),
        )
        return RenderedImage(data, content_type, digest, cache_hit=False)

    def _render_and_store(self, request: MapRequest, digest: str, ext: str) -> bytes:
        # another leader may have finished between our lookup and taking the flight
        entry = self.store.lookup(digest, ext)
        if entry.exists:
            return self.store.read(entry)
        if self.renderer is None:
            raise RendererUnavailable("No renderer configured")

        log.info("rendering", extra=ctx(state=RequestState.rendering.value, digest=digest))
        data = self.renderer.render(request)
        if not data:
            raise RenderError("Renderer returned no data")
        try:
            self.store.store(digest, ext, data)
        except OSError:
            log.exception(
                "cache write failed, serving uncached",
                extra=ctx(state=RequestState.failed.value, digest=digest),
            )
            return data
        log.info("cache entry persisted", extra=ctx(state=RequestState.persisted.value, digest=digest))
        return data
