from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Union

from common.config import Settings
from common.errors import MapQueryError, ParseResult, RequiredFieldError
from common.types import MapRequest
from query.fields import parse_format, parse_markers, parse_path, parse_size, parse_text, parse_zoom
from query.location import parse_center


QueryValue = Union[str, Sequence[str], None]

NO_CONTENT = "At least center, markers, path or text parameter is required"


def _first(query: Mapping[str, QueryValue], name: str) -> Optional[str]:
    v = query.get(name)
    if isinstance(v, (list, tuple)):
        return v[0] if v else None
    return v  # type: ignore[return-value]


def _all(query: Mapping[str, QueryValue], name: str) -> List[str]:
    v = query.get(name)
    if v is None:
        return []
    if isinstance(v, (list, tuple)):
        return list(v)
    return [v]  # type: ignore[list-item]


def parse_map_request(query: Mapping[str, QueryValue], settings: Settings) -> MapRequest:
    """
    Validate a raw query into a MapRequest. Raises the first MapQueryError found.

    `markers`, `path` and `text` may repeat (one styled group per value);
    the other parameters use their first value.
    """
    size = parse_size(_first(query, "size"), settings)
    zoom = parse_zoom(_first(query, "zoom"), settings)
    fmt = parse_format(_first(query, "format"), settings)

    markers = []
    for value in _all(query, "markers"):
        markers.extend(parse_markers(value, settings))
    paths = [p for p in (parse_path(v, settings) for v in _all(query, "path")) if p is not None]
    texts = [t for t in (parse_text(v, settings) for v in _all(query, "text")) if t is not None]

    center = parse_center(_first(query, "center"))
    if center is None and len(texts) == 1:
        # a lone label has nothing to fit around: centre on it
        center = texts[0].coord

    request = MapRequest(
        size=size,
        format=fmt,
        center=center,
        zoom=zoom,
        markers=markers,
        paths=paths,
        texts=texts,
    )
    if not request.has_content:
        raise RequiredFieldError(NO_CONTENT)
    return request


def parse_map_query(query: Mapping[str, QueryValue], settings: Settings) -> ParseResult[MapRequest]:
    try:
        return ParseResult.success(parse_map_request(query, settings))
    except MapQueryError as e:
        return ParseResult.failure(e)
