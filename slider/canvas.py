from __future__ import annotations

import threading
from typing import Iterator, Set, Tuple

import numpy as np

from common.types import DiskImage, TileCoordinate, TileImage


def tile_coordinates(tile_count: int) -> Iterator[TileCoordinate]:
    """Every cell of a tile_count x tile_count grid, exactly once."""
    for x in range(tile_count):
        for y in range(tile_count):
            yield TileCoordinate(x, y)


class DiskCanvas:
    """
    Shared destination buffer for one stitching pass.

    Tile (x, y) covers rows [x*s, (x+1)*s) and columns [y*s, (y+1)*s) with
    s = disk_dim // tile_count. Regions never overlap, but the buffer handle is
    shared by the worker threads, so every placement happens under a lock.
    When disk_dim is not a multiple of tile_count the bottom/right remainder
    stays black, like the padding around the planet.
    """

    def __init__(self, disk_dim: int, tile_count: int):
        if tile_count <= 0:
            raise ValueError("tile_count must be > 0")
        if disk_dim < tile_count:
            raise ValueError("disk_dim must be >= tile_count")
        self.disk_dim = int(disk_dim)
        self.tile_count = int(tile_count)
        self.tile_px = self.disk_dim // self.tile_count
        self._buf: np.ndarray | None = np.zeros((self.disk_dim, self.disk_dim, 3), dtype=np.uint8)
        self._placed: Set[TileCoordinate] = set()
        self._lock = threading.Lock()

    def tile_rect(self, coord: TileCoordinate) -> Tuple[slice, slice]:
        if not coord.in_grid(self.tile_count):
            raise ValueError(f"tile ({coord.x}, {coord.y}) outside {self.tile_count}x{self.tile_count} grid")
        s = self.tile_px
        return slice(coord.x * s, (coord.x + 1) * s), slice(coord.y * s, (coord.y + 1) * s)

    def place(self, tile: TileImage) -> None:
        rows, cols = self.tile_rect(tile.coord)
        if tile.pixels.shape != (self.tile_px, self.tile_px, 3):
            raise ValueError(
                f"tile ({tile.coord.x}, {tile.coord.y}) is {tile.pixels.shape[1]}x{tile.pixels.shape[0]}, "
                f"expected {self.tile_px}x{self.tile_px}"
            )
        with self._lock:
            if self._buf is None:
                raise RuntimeError("canvas already handed off")
            if tile.coord in self._placed:
                raise ValueError(f"tile ({tile.coord.x}, {tile.coord.y}) placed twice")
            self._buf[rows, cols] = tile.pixels
            self._placed.add(tile.coord)

    @property
    def placed(self) -> int:
        with self._lock:
            return len(self._placed)

    @property
    def complete(self) -> bool:
        return self.placed == self.tile_count * self.tile_count

    def into_image(self) -> DiskImage:
        """
        Hand the finished buffer over. Only allowed once, and only when every
        tile has been placed; the canvas keeps no reference afterwards.
        """
        with self._lock:
            if self._buf is None:
                raise RuntimeError("canvas already handed off")
            missing = self.tile_count * self.tile_count - len(self._placed)
            if missing:
                raise RuntimeError(f"canvas incomplete: {missing} tile(s) missing")
            buf, self._buf = self._buf, None
        return DiskImage(buf)
