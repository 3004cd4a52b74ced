"""Exception types raised by the theme cache."""

from __future__ import annotations


class ThemeCacheError(Exception):
    """Base class for theme cache errors."""


class InvalidOriginError(ThemeCacheError, ValueError):
    """Raised when a caller asks for an origin outside the fixed set."""

    def __init__(self, origin: object) -> None:
        self.origin = origin
        super().__init__(f"invalid origin: {origin!r}")


class ConfigError(ThemeCacheError):
    """Raised when cache configuration values are out of range."""
