from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """
    WGS84 position in renderer order.

    Attributes:
        longitude: degrees, [-180, 180].
        latitude: degrees, [-90, 90].

    Query strings carry "lat,lon"; the swap happens in query.location.
    """
    longitude: float
    latitude: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.latitude <= 90.0) or not (-180.0 <= self.longitude <= 180.0):
            raise ValueError("lat/lon out of range")


@dataclass(frozen=True, slots=True)
class Size:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class ImageFormat:
    """Output image format: file extension plus the Content-Type served for it."""
    extension: str
    content_type: str


@dataclass(frozen=True, slots=True)
class IconRef:
    """Marker icon asset, identified by its color name and asset path."""
    name: str
    path: str


@dataclass(frozen=True, slots=True)
class Marker:
    coord: Coordinate
    icon: IconRef
    width: int
    height: int
    offset_x: Optional[int] = None
    offset_y: Optional[int] = None


@dataclass(frozen=True, slots=True)
class PathSpec:
    """
    Open polyline or filled polygon.

    Attributes:
        coords: ordered vertices (>= 2); order is significant.
        color: '#RRGGBBAA' stroke color.
        width: stroke width in pixels.
        fill: '#RRGGBBAA' fill color, only for closed rings.
    """
    coords: tuple[Coordinate, ...]
    color: str
    width: int
    fill: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return len(self.coords) > 2 and self.coords[0] == self.coords[-1]


@dataclass(frozen=True, slots=True)
class TextSpec:
    coord: Coordinate
    text: str
    color: str
    width: int
    fill: str
    size: int
    font: str
    anchor: str


@dataclass(slots=True)
class MapRequest:
    """
    Fully validated map-rendering request.

    `size` and `format` are always set by query.request; they stay Optional here
    so imgcache.canonical can report a request assembled by hand without them.
    `zoom` None means "let the renderer fit the geometry".
    """
    size: Optional[Size] = None
    format: Optional[ImageFormat] = None
    center: Optional[Coordinate] = None
    zoom: Optional[int] = None
    markers: List[Marker] = field(default_factory=list)
    paths: List[PathSpec] = field(default_factory=list)
    texts: List[TextSpec] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return self.center is not None or bool(self.markers or self.paths or self.texts)
