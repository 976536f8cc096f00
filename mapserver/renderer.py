from __future__ import annotations

"""
Renderer backends.

The core only needs `Renderer.render(MapRequest) -> bytes` (raising RenderError).
GoogleStaticMapsRenderer delegates drawing to the Google Static Maps API:

    r = GoogleStaticMapsRenderer(api_key="...", timeout=15)
    png = r.render(request)

⚠️ Check the Google Maps Platform terms before caching its images on disk;
   the service is normally licensed for on-screen display only.
"""

import io
import logging
from collections import OrderedDict
from typing import List, Optional, Protocol, Tuple
from urllib.parse import urlencode

import requests
from PIL import Image

from common.errors import RenderError, UnsupportedRenderError
from common.types import Coordinate, MapRequest, PathSpec


log = logging.getLogger(__name__)

# our format -> format asked from Google
_REMOTE_FORMAT = {"jpg": "jpg", "png": "png32", "webp": "png32"}
# formats re-encoded locally with Pillow
_PIL_FORMAT = {"webp": "WEBP"}


class Renderer(Protocol):
    def render(self, request: MapRequest) -> bytes:
        ...


def _latlon(c: Coordinate) -> str:
    return f"{c.latitude!r},{c.longitude!r}"


def _hex(color: str) -> str:
    # '#RRGGBBAA' -> '0xRRGGBBAA'
    return "0x" + color.lstrip("#")


class GoogleStaticMapsRenderer:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://maps.googleapis.com/maps/api/staticmap",
        timeout: float = 15.0,
        default_zoom: int = 12,
        session: Optional[requests.Session] = None,
    ):
        """
        Params:
            api_key: Google Maps API key (required)
            timeout: per-request connect/read timeout in seconds
            default_zoom: used when a map has a center but nothing to fit the view to
            session: optional requests.Session for connection reuse
        """
        if not api_key:
            raise ValueError(
                "Google Maps API key is required. "
                "Set GOOGLE_MAPS_API_KEY or renderer.api_key in config/params.yaml"
            )
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = float(timeout)
        self.default_zoom = int(default_zoom)
        self.session = session or requests.Session()

    # ----------------------------
    # Public API
    # ----------------------------
    def build_params(self, request: MapRequest) -> List[Tuple[str, str]]:
        """
        Translate a MapRequest into Static Maps query params. `markers` and `path`
        repeat, so this returns a list of pairs rather than a dict.
        Static Maps has no text labels: requests carrying any raise UnsupportedRenderError.
        """
        if request.texts:
            raise UnsupportedRenderError(
                f"Text labels are not supported by the map renderer ({len(request.texts)} requested)"
            )
        params: List[Tuple[str, str]] = [
            ("size", f"{request.size.width}x{request.size.height}"),
            ("format", _REMOTE_FORMAT[request.format.extension]),
            ("scale", "1"),
        ]
        if request.center is not None:
            params.append(("center", _latlon(request.center)))
        zoom = request.zoom
        if zoom is None and request.center is not None and not (request.markers or request.paths):
            zoom = self.default_zoom
        if zoom is not None:
            params.append(("zoom", str(int(zoom))))

        # one markers param per icon, preserving first-seen order
        groups: "OrderedDict[str, List[str]]" = OrderedDict()
        for m in request.markers:
            groups.setdefault(m.icon.name, []).append(_latlon(m.coord))
        for color, locs in groups.items():
            params.append(("markers", "|".join([f"color:{color}"] + locs)))

        for p in request.paths:
            params.append(("path", self._path_param(p)))

        params.append(("key", self.api_key))
        return params

    def build_url(self, request: MapRequest) -> str:
        return f"{self.base_url}?{urlencode(self.build_params(request))}"

    def render(self, request: MapRequest) -> bytes:
        """
        Fetch the rendered map. Raises RenderError on network failure, timeout,
        non-200 status or an empty body, UnsupportedRenderError for text labels.
        """
        params = self.build_params(request)
        log.debug("fetching static map", extra={"extra": {"size": params[0][1], "params": len(params)}})
        try:
            r = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise RenderError(f"Static Maps request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise RenderError(f"Static Maps request failed: {e}") from e
        if r.status_code != 200 or not r.content:
            raise RenderError(f"Static Maps returned {r.status_code}: {r.text[:200]}")
        return self._encode(r.content, request.format.extension)

    # ----------------------------
    # helpers
    # ----------------------------
    @staticmethod
    def _path_param(p: PathSpec) -> str:
        parts = [f"color:{_hex(p.color)}", f"weight:{p.width}"]
        if p.fill:
            parts.append(f"fillcolor:{_hex(p.fill)}")
        parts.extend(_latlon(c) for c in p.coords)
        return "|".join(parts)

    @staticmethod
    def _encode(data: bytes, extension: str) -> bytes:
        target = _PIL_FORMAT.get(extension)
        if target is None:
            return data
        try:
            with Image.open(io.BytesIO(data)) as img:
                out = io.BytesIO()
                img.save(out, format=target)
                return out.getvalue()
        except (OSError, ValueError) as e:
            raise RenderError(f"Cannot convert rendered map to {extension}: {e}") from e


def renderer_from_settings(settings) -> GoogleStaticMapsRenderer:
    return GoogleStaticMapsRenderer(
        settings.renderer_api_key,
        base_url=settings.renderer_base_url,
        timeout=settings.renderer_timeout_s,
        default_zoom=settings.renderer_default_zoom,
    )
