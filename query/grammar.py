from __future__ import annotations

"""
Shared `key:value` grammar for the markers / path / text parameters.

A parameter value is a `|`-separated list of tokens:
    color:red|weight:3|40.714728,-73.998672|40.714728,-73.598672

Tokens containing "," are locations, other tokens containing ":" are config
entries, anything else is rejected. Each domain owns a ConfigSchema: the table of
keys it accepts, the validator for each, and the field the value lands in.
Validation is fail-fast: the first bad token raises.
"""

import re
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from common.config import ANCHORS, Settings
from common.errors import FormatError, UnsupportedValueError
from common.types import IconRef


# RGB for each named color; DEFAULT_ALPHA is appended
NAMED_COLORS: Dict[str, str] = {
    "black": "000000",
    "brown": "A52A2A",
    "green": "00FF00",
    "purple": "800080",
    "yellow": "FFFF00",
    "blue": "0000FF",
    "gray": "808080",
    "orange": "FFA500",
    "red": "FF0000",
    "white": "FFFFFF",
}
DEFAULT_ALPHA = "BB"

_HEX_RGBA_RE = re.compile(r"^[0-9a-fA-F]{8}$")
_UINT_RE = re.compile(r"^\d+$")
_CONTENT_RE = re.compile(r"^[A-Za-z0-9 \-]+$")

Validator = Callable[[str, str], Any]


# -------------------------
# Token split
# -------------------------
def split_tokens(raw: str, domain: str) -> Tuple[List[str], List[str]]:
    """
    Split a parameter value into (location tokens, config tokens).
    Blank tokens (e.g. from "||") are skipped.
    """
    locations: List[str] = []
    configs: List[str] = []
    for token in raw.split("|"):
        if not token.strip():
            continue
        if "," in token:
            locations.append(token)
        elif ":" in token:
            configs.append(token.strip())
        else:
            raise FormatError(f'Invalid {domain} token "{token}"', fragment=token)
    return locations, configs


# -------------------------
# Validators: (key, value) -> stored value
# -------------------------
def _token(key: str, value: str) -> str:
    return f"{key}:{value}"


def validate_color(key: str, value: str) -> str:
    if _HEX_RGBA_RE.match(value):
        return "#" + value.upper()
    rgb = NAMED_COLORS.get(value.lower())
    if rgb is not None:
        return f"#{rgb}{DEFAULT_ALPHA}"
    raise UnsupportedValueError(f'Invalid {key} configuration "{_token(key, value)}"', fragment=_token(key, value))


def validate_uint(key: str, value: str) -> int:
    if not _UINT_RE.match(value):
        raise FormatError(
            f'Invalid {key} configuration "{_token(key, value)}". Should be integer type eg. 4',
            fragment=_token(key, value),
        )
    return int(value)


def validate_content(key: str, value: str) -> str:
    if not _CONTENT_RE.match(value):
        raise FormatError(f'Invalid {key} configuration "{_token(key, value)}"', fragment=_token(key, value))
    return value


def validate_anchor(key: str, value: str) -> str:
    v = value.lower()
    if v not in ANCHORS:
        raise UnsupportedValueError(f'Invalid {key} configuration "{_token(key, value)}"', fragment=_token(key, value))
    return v


def font_validator(fonts: Sequence[str]) -> Validator:
    allowed = frozenset(fonts)

    def validate_font(key: str, value: str) -> str:
        if value not in allowed:
            raise UnsupportedValueError(
                f'Invalid {key} configuration "{_token(key, value)}"', fragment=_token(key, value)
            )
        return value

    return validate_font


def marker_icon(assets_dir: str, color: str) -> IconRef:
    return IconRef(name=color, path=str(Path(assets_dir) / f"{color}-32.png"))


def icon_validator(assets_dir: str) -> Validator:
    """Marker `color` picks an icon asset, so only named colors are accepted."""

    def validate_icon(key: str, value: str) -> IconRef:
        name = value.lower()
        if name not in NAMED_COLORS:
            raise UnsupportedValueError(
                f'Invalid {key} configuration "{_token(key, value)}"', fragment=_token(key, value)
            )
        return marker_icon(assets_dir, name)

    return validate_icon


# -------------------------
# Schemas
# -------------------------
@dataclass(frozen=True)
class ConfigKey:
    name: str          # key as written in the query
    field: str         # config field it populates
    validate: Validator


@dataclass(frozen=True)
class ConfigSchema:
    domain: str
    keys: Mapping[str, ConfigKey]

    @classmethod
    def of(cls, domain: str, *keys: ConfigKey) -> "ConfigSchema":
        return cls(domain=domain, keys={k.name: k for k in keys})


@dataclass(frozen=True)
class MarkerConfig:
    icon: IconRef
    width: int
    height: int


@dataclass(frozen=True)
class PathConfig:
    color: str
    width: int
    fill: Optional[str] = None


@dataclass(frozen=True)
class TextConfig:
    color: str
    width: int
    fill: str
    size: int
    font: str
    anchor: str
    text: Optional[str] = None


@lru_cache(maxsize=8)
def marker_schema(settings: Settings) -> ConfigSchema:
    return ConfigSchema.of(
        "marker",
        ConfigKey("color", "icon", icon_validator(settings.marker_assets_dir)),
    )


@lru_cache(maxsize=8)
def path_schema(settings: Settings) -> ConfigSchema:
    return ConfigSchema.of(
        "path",
        ConfigKey("color", "color", validate_color),
        ConfigKey("fillcolor", "fill", validate_color),
        ConfigKey("weight", "width", validate_uint),
    )


@lru_cache(maxsize=8)
def text_schema(settings: Settings) -> ConfigSchema:
    return ConfigSchema.of(
        "text",
        ConfigKey("content", "text", validate_content),
        ConfigKey("color", "color", validate_color),
        ConfigKey("fillcolor", "fill", validate_color),
        ConfigKey("weight", "width", validate_uint),
        ConfigKey("font", "font", font_validator(settings.fonts)),
        ConfigKey("fontsize", "size", validate_uint),
        ConfigKey("anchor", "anchor", validate_anchor),
    )


def marker_defaults(settings: Settings) -> Dict[str, Any]:
    return {
        "icon": marker_icon(settings.marker_assets_dir, settings.marker_color_default),
        "width": settings.marker_width,
        "height": settings.marker_height,
    }


def path_defaults(settings: Settings) -> Dict[str, Any]:
    return {"color": settings.path_color_default, "width": settings.path_width_default}


def text_defaults(settings: Settings) -> Dict[str, Any]:
    return {
        "color": settings.text_color,
        "width": settings.text_width,
        "fill": settings.text_fill,
        "size": settings.text_size,
        "font": settings.text_font,
        "anchor": settings.text_anchor,
    }


# -------------------------
# Parsing
# -------------------------
def parse_config(tokens: Sequence[str], schema: ConfigSchema) -> Dict[str, Any]:
    """
    Validate config tokens against `schema`; returns {field: value} for the keys
    that were given (a repeated key keeps its last value).
    """
    out: Dict[str, Any] = {}
    for token in tokens:
        key, _, value = token.partition(":")
        key, value = key.strip(), value.strip()
        entry = schema.keys.get(key)
        if not key or not value:
            raise FormatError(f'Invalid {schema.domain} configuration "{token}"', fragment=token)
        if entry is None:
            raise UnsupportedValueError(f'Invalid {schema.domain} configuration "{token}"', fragment=token)
        out[entry.field] = entry.validate(key, value)
    return out


C = TypeVar("C", MarkerConfig, PathConfig, TextConfig)


def apply_defaults(config_type: Type[C], defaults: Mapping[str, Any], overrides: Mapping[str, Any]) -> C:
    """Start from domain defaults, then overlay validated overrides (override wins)."""
    merged = dict(defaults)
    merged.update(overrides)
    known = {f.name for f in fields(config_type)}
    return config_type(**{k: v for k, v in merged.items() if k in known})
