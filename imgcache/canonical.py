from __future__ import annotations

"""
Canonical form of a MapRequest and the cache key derived from it.

Layout (CANONICAL_VERSION "v1"):

    v1|size{w=600;h=400}|format{ext=jpg}|center{lon=..;lat=..}|zoom{z=10}
      |markers[marker(...),marker(...)]|paths[path(...)]|texts[text(...)]

- every item lists its fields in a fixed order with labels;
- path vertices keep their order (a path is a sequence);
- the markers / paths / texts lists are sorted by item string (they are sets);
- absent center / zoom / fill / offsets serialize as an empty value.

Validated values are decimals, #RRGGBBAA colors, whitelisted fonts / anchors and
[A-Za-z0-9 -] text, so none of them can contain the delimiters | ; = { } [ ] ( ) ,
Icon paths come from configuration, not from the query.

Bump CANONICAL_VERSION whenever the layout or the hash changes; old cache
entries then simply stop matching.
"""

import hashlib
from typing import Iterable, Optional

from common.errors import RequiredFieldError
from common.types import Coordinate, MapRequest, Marker, PathSpec, TextSpec
from query.request import NO_CONTENT


CANONICAL_VERSION = "v1"


def _num(v: Optional[float]) -> str:
    return "" if v is None else repr(v)


def _coord(c: Optional[Coordinate]) -> str:
    if c is None:
        return ""
    # + 0.0 folds -0.0 into 0.0
    return f"lon={_num(float(c.longitude) + 0.0)};lat={_num(float(c.latitude) + 0.0)}"


def _marker(m: Marker) -> str:
    return (
        f"marker(coord=({_coord(m.coord)});icon={m.icon.name}:{m.icon.path};"
        f"width={m.width};height={m.height};offsetX={_num(m.offset_x)};offsetY={_num(m.offset_y)})"
    )


def _path(p: PathSpec) -> str:
    coords = ",".join(f"({_coord(c)})" for c in p.coords)
    return f"path(coords=[{coords}];color={p.color};width={p.width};fill={p.fill or ''})"


def _text(t: TextSpec) -> str:
    return (
        f"text(coord=({_coord(t.coord)});text={t.text};color={t.color};width={t.width};"
        f"fill={t.fill};size={t.size};font={t.font};anchor={t.anchor})"
    )


def _sorted_list(items: Iterable[str]) -> str:
    return "[" + ",".join(sorted(items)) + "]"


def canonicalize(request: MapRequest) -> str:
    """
    Order-independent serialization of `request`.

    Raises:
        RequiredFieldError: format or size missing, or no center/markers/paths/texts.
    """
    if request.format is None:
        raise RequiredFieldError("format is required")
    if request.size is None:
        raise RequiredFieldError("size is required")
    if not request.has_content:
        raise RequiredFieldError(NO_CONTENT)

    parts = [
        CANONICAL_VERSION,
        f"size{{w={request.size.width};h={request.size.height}}}",
        f"format{{ext={request.format.extension}}}",
        f"center{{{_coord(request.center)}}}",
        f"zoom{{z={_num(request.zoom)}}}",
        "markers" + _sorted_list(_marker(m) for m in request.markers),
        "paths" + _sorted_list(_path(p) for p in request.paths),
        "texts" + _sorted_list(_text(t) for t in request.texts),
    ]
    return "|".join(parts)


def derive_cache_key(request: MapRequest) -> str:
    """SHA-256 hex digest (64 chars) of the canonical form."""
    return hashlib.sha256(canonicalize(request).encode("utf-8")).hexdigest()
