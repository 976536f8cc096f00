from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar


T = TypeVar("T")


class MapQueryError(ValueError):
    """
    Validation failure for a map query.

    Attributes:
        kind: taxonomy tag (format, range, required, unsupported, consistency).
        fragment: the raw query fragment that failed, when there is one.
        detail: short hint used when a caller re-wraps the error with more context.
    """
    kind = "invalid"

    def __init__(self, message: str, fragment: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.fragment = fragment
        self.detail = detail or message

    def rewrap(self, message: str, fragment: Optional[str] = None) -> "MapQueryError":
        """Same error class, new message (keeps the original as __cause__ when raised `from`)."""
        return type(self)(message, fragment=fragment if fragment is not None else self.fragment)


class FormatError(MapQueryError):
    kind = "format"


class RangeError(MapQueryError):
    kind = "range"


class RequiredFieldError(MapQueryError):
    kind = "required"


class UnsupportedValueError(MapQueryError):
    kind = "unsupported"


class ConsistencyError(MapQueryError):
    kind = "consistency"


class RenderError(RuntimeError):
    """Renderer failed or timed out. Never cached."""


class UnsupportedRenderError(RenderError):
    """The renderer cannot draw part of a valid request (e.g. text labels)."""


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Outcome of parsing a query: exactly one of `value` / `error` is set.

    Usage:
        res = parse_map_query(params, settings)
        if not res.ok:
            return 400, res.error.message
        request = res.value
    """
    value: Optional[T] = None
    error: Optional[MapQueryError] = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("ParseResult needs exactly one of value/error")

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: MapQueryError) -> "ParseResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
