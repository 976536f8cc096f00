from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"

FORMATS = ("jpg", "png", "webp")
ANCHORS = ("start", "middle", "end")


@dataclass(frozen=True)
class Settings:
    """
    Read-only runtime configuration, built once at startup and passed explicitly
    to every parser, canonicalizer and store call.
    """
    # image size
    image_width: int = 600
    image_height: int = 400
    image_width_min: int = 50
    image_width_max: int = 1280
    image_height_min: int = 50
    image_height_max: int = 1280

    # zoom; None default => renderer fits the geometry
    zoom_min: int = 1
    zoom_max: int = 20
    zoom_default: Optional[int] = None

    format_default: str = "jpg"

    marker_color_default: str = "red"
    marker_width: int = 32
    marker_height: int = 32
    marker_assets_dir: str = "assets/markers"

    path_color_default: str = "#000000BB"
    path_width_default: int = 5
    polygon_fill_default: str = "#0000FF44"

    text_color: str = "#000000BB"
    text_width: int = 1
    text_fill: str = "#FFFFFFBB"
    text_size: int = 12
    text_font: str = "Arial"
    text_anchor: str = "middle"
    fonts: Tuple[str, ...] = (
        "Arial",
        "Calibri",
        "Courier New",
        "Georgia",
        "Helvetica",
        "Times New Roman",
        "Verdana",
    )

    cache_root: str = "data/cache"

    renderer_api_key: Optional[str] = field(default=None, repr=False)
    renderer_base_url: str = "https://maps.googleapis.com/maps/api/staticmap"
    renderer_timeout_s: float = 15.0
    renderer_default_zoom: int = 12

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for lo, hi, name in (
            (self.image_width_min, self.image_width_max, "image width"),
            (self.image_height_min, self.image_height_max, "image height"),
            (self.zoom_min, self.zoom_max, "zoom"),
        ):
            if lo > hi:
                raise ValueError(f"{name} bounds are inverted: {lo} > {hi}")
        if not (self.image_width_min <= self.image_width <= self.image_width_max):
            raise ValueError("default image width outside its bounds")
        if not (self.image_height_min <= self.image_height <= self.image_height_max):
            raise ValueError("default image height outside its bounds")
        if self.zoom_default is not None and not (self.zoom_min <= self.zoom_default <= self.zoom_max):
            raise ValueError("default zoom outside its bounds")
        if self.format_default not in FORMATS:
            raise ValueError(f"format_default must be one of {FORMATS}")
        if self.text_font not in self.fonts:
            raise ValueError(f"text_font {self.text_font!r} is not in the font whitelist")
        if self.text_anchor not in ANCHORS:
            raise ValueError(f"text_anchor must be one of {ANCHORS}")


# yaml section -> {yaml key: Settings field}
_SECTIONS: Dict[str, Dict[str, str]] = {
    "image": {
        "width": "image_width",
        "height": "image_height",
        "width_min": "image_width_min",
        "width_max": "image_width_max",
        "height_min": "image_height_min",
        "height_max": "image_height_max",
    },
    "zoom": {"min": "zoom_min", "max": "zoom_max", "default": "zoom_default"},
    "format": {"default": "format_default"},
    "marker": {
        "color": "marker_color_default",
        "width": "marker_width",
        "height": "marker_height",
        "assets_dir": "marker_assets_dir",
    },
    "path": {
        "color": "path_color_default",
        "width": "path_width_default",
        "polygon_fill": "polygon_fill_default",
    },
    "text": {
        "color": "text_color",
        "width": "text_width",
        "fill": "text_fill",
        "size": "text_size",
        "font": "text_font",
        "anchor": "text_anchor",
        "fonts": "fonts",
    },
    "cache": {"root": "cache_root"},
    "renderer": {
        "api_key": "renderer_api_key",
        "base_url": "renderer_base_url",
        "timeout_s": "renderer_timeout_s",
        "default_zoom": "renderer_default_zoom",
    },
    "logging": {"level": "log_level"},
}

_ENV: Dict[str, str] = {
    "CACHE_DIRECTORY": "cache_root",
    "GOOGLE_MAPS_API_KEY": "renderer_api_key",
    "LOG_LEVEL": "log_level",
}


def _coerce(name: str, value: Any) -> Any:
    if name == "fonts":
        return tuple(str(v) for v in value)
    return value


def settings_from_dict(raw: Dict[str, Any]) -> Settings:
    """
    Build Settings from the nested params.yaml structure. Unknown sections or
    keys raise ValueError so typos do not silently fall back to defaults.
    """
    kwargs: Dict[str, Any] = {}
    for section, values in (raw or {}).items():
        mapping = _SECTIONS.get(section)
        if mapping is None:
            raise ValueError(f"Unknown config section {section!r}")
        for key, value in (values or {}).items():
            if key not in mapping:
                raise ValueError(f"Unknown config key {section}.{key}")
            kwargs[mapping[key]] = _coerce(mapping[key], value)
    return Settings(**kwargs)


def _apply_env(settings: Settings) -> Settings:
    overrides = {f: os.environ[k] for k, f in _ENV.items() if os.environ.get(k)}
    return replace(settings, **overrides) if overrides else settings


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from YAML.
    Path precedence:
      - explicit `path` arg
      - env MAPCACHE_CONFIG
      - config/params.yaml
    A missing file yields the built-in defaults; env vars are applied last.
    """
    path = path or os.environ.get("MAPCACHE_CONFIG") or DEFAULT_CONFIG_PATH
    if not Path(path).exists():
        return _apply_env(Settings())
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}
    return _apply_env(settings_from_dict(raw))

