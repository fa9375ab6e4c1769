from __future__ import annotations

import logging
import os
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Optional

import cv2
import numpy as np
import requests

from common.errors import TileFetchError
from common.types import CaptureMetadata, TileCoordinate, TileImage
from slider.canvas import DiskCanvas, tile_coordinates
from slider.metadata import SliderService
from slider.satellites import Satellite


log = logging.getLogger(__name__)


def decode_tile(data: bytes, expected_size: int) -> np.ndarray:
    """
    Decode PNG bytes into an RGB uint8 array of exactly expected_size x expected_size.
    Raises ValueError on undecodable data or a size mismatch.
    """
    arr = np.frombuffer(data, dtype=np.uint8)
    bgr = cv2.imdecode(arr, cv2.IMREAD_COLOR) if arr.size else None
    if bgr is None:
        raise ValueError("undecodable image data")
    h, w = bgr.shape[:2]
    if (w, h) != (expected_size, expected_size):
        raise ValueError(f"expected {expected_size}x{expected_size} tile, got {w}x{h}")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def scale_tile(pixels: np.ndarray, size: int) -> np.ndarray:
    """Lanczos resample to size x size (no-op if already there)."""
    if pixels.shape[0] == size and pixels.shape[1] == size:
        return pixels
    return cv2.resize(pixels, (size, size), interpolation=cv2.INTER_LANCZOS4)


def fetch_tile(
    service: SliderService,
    sat: Satellite,
    capture: CaptureMetadata,
    coord: TileCoordinate,
    size: int,
) -> TileImage:
    """Download, decode, check and rescale one tile. Any failure -> TileFetchError."""
    url = service.tile_url(sat, capture, coord)
    log.debug("Scraping tile at (%d, %d).", coord.x, coord.y)
    try:
        r = service.get(url)
    except requests.RequestException as e:
        raise TileFetchError(coord, f"request failed: {e}", url) from e
    if r.status_code != 200:
        raise TileFetchError(coord, f"HTTP {r.status_code}", url)
    try:
        pixels = decode_tile(r.content, sat.tile_size)
    except ValueError as e:
        raise TileFetchError(coord, str(e), url) from e

    tile = TileImage(coord=coord, pixels=scale_tile(pixels, size))
    log.debug(
        "Finished scraping tile at (%d, %d). Size: %.2fKiB",
        coord.x, coord.y, len(r.content) / 1024.0,
    )
    return tile


class TileAcquirer:
    """
    Fetches a satellite's whole tile grid concurrently and stitches it.

    Each tile is an independent blocking unit on a thread pool; results are
    placed into the canvas as they complete, in any order.
    """

    def __init__(self, service: SliderService, satellite: Satellite, max_workers: Optional[int] = None):
        self.service = service
        self.satellite = satellite
        self.max_workers = max_workers or os.cpu_count() or 4

    def _fetch_and_place(self, capture: CaptureMetadata, coord: TileCoordinate, canvas: DiskCanvas, size: int) -> None:
        tile = fetch_tile(self.service, self.satellite, capture, coord, size)
        try:
            canvas.place(tile)
        except ValueError as e:
            raise TileFetchError(coord, str(e)) from e

    def acquire(self, capture: CaptureMetadata, canvas: DiskCanvas) -> None:
        """
        Fill `canvas` with every tile of `capture`.

        The first TileFetchError cancels whatever has not started yet and is
        re-raised; in-flight siblings are left to finish and their output is
        dropped together with the canvas.
        """
        if canvas.tile_count != self.satellite.tile_count:
            raise ValueError("canvas grid does not match the satellite's tile grid")
        n = canvas.tile_count
        size = self.satellite.scaled_tile_size(canvas.disk_dim)
        log.info(
            "Fetching tiles",
            extra={"extra": {"satellite": self.satellite.service_id, "grid": f"{n}x{n}",
                             "tile_px": size, "workers": self.max_workers, **capture.to_meta()}},
        )
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="tile")
        try:
            futures = [
                executor.submit(self._fetch_and_place, capture, coord, canvas, size)
                for coord in tile_coordinates(n)
            ]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for fut in done:
                err = fut.exception()
                if err is not None:
                    raise err
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        log.info("Stitched %d tiles", canvas.placed)
