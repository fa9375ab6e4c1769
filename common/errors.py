"""
Exception taxonomy shared by the slider pipeline and the wallpaper helpers.

Only configuration errors (plain ValueError at startup) are allowed to stop the
process; everything below is recovered by the polling loop.
"""
from __future__ import annotations

from typing import Optional

from common.types import TileCoordinate


class SatpaperError(RuntimeError):
    """Base class for recoverable pipeline failures."""


class MetadataFetchError(SatpaperError):
    """Latest dates/timestamps could not be fetched or understood."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message if url is None else f"{message} ({url})")
        self.url = url


class ParseError(MetadataFetchError):
    """A metadata payload did not have the expected JSON shape."""


class TileFetchError(SatpaperError):
    """A single tile failed; the whole acquisition cycle is aborted."""

    def __init__(self, coord: TileCoordinate, reason: str, url: Optional[str] = None):
        super().__init__(f"tile ({coord.x}, {coord.y}): {reason}")
        self.coord = coord
        self.reason = reason
        self.url = url


class CompositionError(SatpaperError):
    """The composed wallpaper could not be written."""


class WallpaperError(SatpaperError):
    """The desktop wallpaper could not be set."""
