from __future__ import annotations

import re
from dataclasses import replace
from typing import List, Optional

from common.config import FORMATS, Settings
from common.errors import ConsistencyError, FormatError, RangeError, RequiredFieldError, UnsupportedValueError
from common.types import ImageFormat, Marker, PathSpec, Size, TextSpec
from query.grammar import (
    MarkerConfig,
    PathConfig,
    TextConfig,
    apply_defaults,
    marker_defaults,
    marker_schema,
    parse_config,
    path_defaults,
    path_schema,
    split_tokens,
    text_defaults,
    text_schema,
)
from query.location import parse_location_fragment


_SIZE_RE = re.compile(r"^(\d+)([xX])(\d+)$")
_ZOOM_RE = re.compile(r"^\d+$")


def _blank(token: Optional[str], name: str) -> bool:
    """True for absent/empty values; rejects non-string values."""
    if token is None:
        return True
    if not isinstance(token, str):
        raise FormatError(f"{name} should be string type")
    return not token.strip()


def parse_size(token: Optional[str], settings: Settings) -> Size:
    if _blank(token, "size"):
        return Size(width=settings.image_width, height=settings.image_height)
    m = _SIZE_RE.match(token.strip())
    if m is None:
        raise FormatError(
            "Invalid size format. Format should be width x height in integers(without spaces). Eg. 600x400",
            fragment=token,
        )
    width, height = int(m.group(1)), int(m.group(3))
    if not settings.image_width_min <= width <= settings.image_width_max:
        raise RangeError(
            f"Image width should be within {settings.image_width_min}-{settings.image_width_max}",
            fragment=token,
        )
    if not settings.image_height_min <= height <= settings.image_height_max:
        raise RangeError(
            f"Image height should be within {settings.image_height_min}-{settings.image_height_max}",
            fragment=token,
        )
    return Size(width=width, height=height)


def parse_zoom(token: Optional[str], settings: Settings) -> Optional[int]:
    """
    Absent/blank zoom yields settings.zoom_default, which is None unless configured:
    the renderer then fits the map to its geometry.
    """
    if _blank(token, "zoom"):
        return settings.zoom_default
    value = token.strip()
    if not _ZOOM_RE.match(value):
        raise FormatError("Invalid zoom value. zoom value should be a integer eg. 10", fragment=token)
    zoom = int(value)
    if not settings.zoom_min <= zoom <= settings.zoom_max:
        raise RangeError(
            f"Invalid zoom value. zoom should be within {settings.zoom_min}-{settings.zoom_max}",
            fragment=token,
        )
    return zoom


def image_format(extension: str) -> ImageFormat:
    return ImageFormat(extension=extension, content_type=f"image/{extension}")


def parse_format(token: Optional[str], settings: Settings) -> ImageFormat:
    if _blank(token, "format"):
        return image_format(settings.format_default)
    ext = token.strip().lower()
    if ext not in FORMATS:
        raise UnsupportedValueError(
            'Invalid format value. format should be one of "jpg", "png", "webp"', fragment=token
        )
    return image_format(ext)


def parse_markers(token: Optional[str], settings: Settings) -> List[Marker]:
    """One Marker per location; all of them share the group's style."""
    if _blank(token, "markers"):
        return []
    locations, configs = split_tokens(token, "marker")
    if not locations:
        raise RequiredFieldError("No marker locations found", fragment=token)
    coords = [parse_location_fragment(loc) for loc in locations]
    cfg = apply_defaults(MarkerConfig, marker_defaults(settings), parse_config(configs, marker_schema(settings)))
    return [Marker(coord=c, icon=cfg.icon, width=cfg.width, height=cfg.height) for c in coords]


def parse_path(token: Optional[str], settings: Settings) -> Optional[PathSpec]:
    """
    Polygon rule: a closed ring (>2 points, first == last) with no explicit
    fillcolor gets settings.polygon_fill_default; an explicit fillcolor on a
    two-point path is dropped since two points enclose nothing.
    """
    if _blank(token, "path"):
        return None
    locations, configs = split_tokens(token, "path")
    if not locations:
        raise RequiredFieldError("No path locations found", fragment=token)
    coords = tuple(parse_location_fragment(loc) for loc in locations)
    if len(coords) < 2:
        raise ConsistencyError("There must be two or more locations to draw a path", fragment=token)
    overrides = parse_config(configs, path_schema(settings))
    cfg = apply_defaults(PathConfig, path_defaults(settings), overrides)

    path = PathSpec(coords=coords, color=cfg.color, width=cfg.width, fill=cfg.fill)
    if "fill" not in overrides and path.is_closed:
        return replace(path, fill=settings.polygon_fill_default)
    if len(coords) == 2:
        return replace(path, fill=None)
    return path


def parse_text(token: Optional[str], settings: Settings) -> Optional[TextSpec]:
    if _blank(token, "text"):
        return None
    locations, configs = split_tokens(token, "text")
    if not locations:
        raise RequiredFieldError("No text location found", fragment=token)
    if len(locations) > 1:
        raise ConsistencyError("Multiple locations found as text location", fragment=token)
    coord = parse_location_fragment(locations[0])
    cfg = apply_defaults(TextConfig, text_defaults(settings), parse_config(configs, text_schema(settings)))
    if cfg.text is None:
        raise RequiredFieldError("content configuration is required", fragment=token)
    return TextSpec(
        coord=coord,
        text=cfg.text,
        color=cfg.color,
        width=cfg.width,
        fill=cfg.fill,
        size=cfg.size,
        font=cfg.font,
        anchor=cfg.anchor,
    )
