from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Any, Dict
import numpy as np


def _check_rgb(pixels: np.ndarray, name: str) -> None:
    if not isinstance(pixels, np.ndarray):
        raise TypeError(f"{name} must be a numpy ndarray")
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"{name} must be an RGB array of shape (H,W,3)")
    if pixels.dtype != np.uint8:
        raise ValueError(f"{name} must be uint8")


@dataclass(frozen=True, slots=True)
class CaptureMetadata:
    """
    Identifies one full-disk imaging pass on the slider service.

    Attributes:
        year, month, day: capture date, split from the service's YYYYMMDD integer.
        timestamp: opaque capture id (e.g. 20231026153020), used in tile URLs
            and for change detection between polling cycles.
    """
    year: int
    month: int
    day: int
    timestamp: int

    def to_meta(self) -> Dict[str, Any]:
        return {
            "date": f"{self.year:04}-{self.month:02}-{self.day:02}",
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class TileCoordinate:
    """Cell of the tile grid; `x` is the first index of the tile file name."""
    x: int
    y: int

    def in_grid(self, tile_count: int) -> bool:
        return 0 <= self.x < tile_count and 0 <= self.y < tile_count


@dataclass(slots=True)
class TileImage:
    """A decoded and rescaled RGB tile waiting to be stitched."""
    coord: TileCoordinate
    pixels: np.ndarray

    def __post_init__(self) -> None:
        _check_rgb(self.pixels, "pixels")
        if self.pixels.shape[0] != self.pixels.shape[1]:
            raise ValueError("tiles must be square")

    @property
    def size(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(slots=True)
class DiskImage:
    """
    The stitched full-disk canvas (square, RGB, uint8).

    Produced once per cycle by DiskCanvas.into_image(); nothing else keeps a
    reference to the buffer afterwards.
    """
    pixels: np.ndarray

    def __post_init__(self) -> None:
        _check_rgb(self.pixels, "pixels")
        if self.pixels.shape[0] != self.pixels.shape[1]:
            raise ValueError("disk image must be square")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True, slots=True)
class BoundaryEstimate:
    """
    Approximate circle of the visible planet inside a DiskImage.

    Attributes:
        center_x, center_y: geometric centre of the canvas (not the midpoint of the marches).
        radius: half the distance between the midline march hits, never negative.
        disk_left, disk_right: where the rightward/leftward marches stopped.
    """
    center_x: int
    center_y: int
    radius: int
    disk_left: int
    disk_right: int

    @property
    def center(self) -> Tuple[int, int]:
        return (self.center_x, self.center_y)


@dataclass(frozen=True, slots=True)
class CycleResult:
    """What one polling cycle reports back to the caller."""
    timestamp: Optional[int]
    success: bool
    output: Optional[Path] = None
