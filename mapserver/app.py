from __future__ import annotations

from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware

from common.config import Settings, load_settings
from common.errors import RenderError, UnsupportedRenderError
from common.logging_setup import ctx, get_logger, setup_logging
from imgcache.store import ShardedCacheStore
from mapserver.renderer import Renderer, renderer_from_settings
from mapserver.service import MapService, RendererUnavailable
from query.request import parse_map_query


log = get_logger(__name__)


def _query_dict(request: Request) -> Dict[str, List[str]]:
    qp = request.query_params
    return {k: qp.getlist(k) for k in qp.keys()}


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse({"data": "error", "error": message}, status_code=status)


def create_app(settings: Optional[Settings] = None, renderer: Optional[Renderer] = None) -> FastAPI:
    """
    Build the HTTP app. Without an explicit renderer one is built from settings;
    if that fails (no API key) the app still serves cached images and answers
    cache misses with 503.
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    renderer_error: Optional[str] = None
    if renderer is None:
        try:
            renderer = renderer_from_settings(settings)
        except ValueError as e:
            renderer_error = str(e)
            log.warning("renderer unavailable: %s", e)

    store = ShardedCacheStore(settings.cache_root)
    service = MapService(settings, store, renderer)

    app = FastAPI(title="Static Map API", version="1.0.0")
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        log.error("unhandled error", exc_info=exc, extra=ctx(path=request.url.path))
        return _error(500, "Internal server error")

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "cache_root": str(store.root),
            "renderer": {
                "available": service.renderer is not None,
                "init_error": renderer_error,
            },
        }

    @app.get("/")
    def static_map(request: Request):
        """
        Render (or serve from cache) a static map.

        Query: size, center, zoom, format, markers*, path*, text*   (* repeatable)
        """
        result = parse_map_query(_query_dict(request), settings)
        if not result.ok:
            err = result.error
            log.info("invalid request: %s", err.message, extra=ctx(kind=err.kind, fragment=err.fragment))
            return _error(400, err.message)

        try:
            image = service.render(result.value)
        except RendererUnavailable:
            return _error(503, "Map renderer unavailable")
        except UnsupportedRenderError as e:
            return _error(422, str(e))
        except RenderError:
            # detail already logged by the service
            return _error(502, "Failed to render map")

        headers = {
            "X-Cache": "HIT" if image.cache_hit else "MISS",
            "X-Cache-Key": image.digest,
        }
        return Response(content=image.content, media_type=image.content_type, headers=headers)

    return app


# -------- local dev entrypoint --------
if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
