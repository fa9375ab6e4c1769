from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Tuple

import cv2
import numpy as np

from common.errors import CompositionError
from common.types import BoundaryEstimate, DiskImage


log = logging.getLogger(__name__)

# Channel value at or below which a pixel counts as the black padding around the planet.
BLACK_THRESHOLD = 4


def _march(row: np.ndarray, start: int, step: int, threshold: int) -> int:
    """
    Walk along `row` from `start` in direction `step` (+1 right, -1 left) until
    a non-background pixel turns up. Running out of row stops at the far edge
    (x_max going right, 0 going left), so a fully black row always terminates.
    """
    x_max = row.shape[0] - 1
    bright = np.flatnonzero((row > threshold).any(axis=1))
    if step > 0:
        hits = bright[bright >= start]
        return int(hits[0]) if hits.size else x_max
    hits = bright[bright <= start]
    return int(hits[-1]) if hits.size else 0


def detect_boundary(image: DiskImage, threshold: int = BLACK_THRESHOLD) -> BoundaryEstimate:
    """
    Estimate the planet's circle from a horizontal march along the vertical midline.

    The radius is half the span between the first bright pixel from the left
    and from the right. The centre is the geometric centre of the canvas rather
    than the midpoint of the two hits: the slider imagery is centred in its
    tile grid.
    """
    px = image.pixels
    x_max = image.width - 1
    y_center = (image.height - 1) // 2
    x_center = x_max // 2
    row = px[y_center]

    log.debug("Performing cutout march (right) on row %d", y_center)
    disk_left = _march(row, 0, 1, threshold)
    log.debug("Performing cutout march (left) on row %d", y_center)
    disk_right = _march(row, x_max, -1, threshold)

    # Marches cross on an all-black midline; saturate instead of going negative.
    radius = max(0, (disk_right - disk_left) // 2)
    log.debug("L %d R %d radius %d center (%d, %d)", disk_left, disk_right, radius, x_center, y_center)
    return BoundaryEstimate(
        center_x=x_center,
        center_y=y_center,
        radius=radius,
        disk_left=disk_left,
        disk_right=disk_right,
    )


def placement_offset(resolution: Tuple[int, int], disk_dim: int, bias: Tuple[int, int] = (0, 0)) -> Tuple[int, int]:
    """Top-left corner of the disk on the background: centred, then nudged by `bias`."""
    rx, ry = resolution
    return ((rx - disk_dim) // 2 + bias[0], (ry - disk_dim) // 2 + bias[1])


def disk_mask(shape: Tuple[int, int], estimate: BoundaryEstimate) -> np.ndarray:
    """
    Boolean (H, W) mask of pixels strictly inside the estimated circle.

    isqrt(dx^2 + dy^2) < r holds exactly when dx^2 + dy^2 < r^2 for integers,
    so the squared form is used directly.
    """
    h, w = shape
    dy = np.arange(h, dtype=np.int64)[:, None] - estimate.center_y
    dx = np.arange(w, dtype=np.int64)[None, :] - estimate.center_x
    r = int(estimate.radius)
    return (dx * dx + dy * dy) < r * r


def composite_disk(
    background: np.ndarray,
    disk: DiskImage,
    estimate: BoundaryEstimate,
    offset: Tuple[int, int],
) -> np.ndarray:
    """
    Copy every disk pixel inside the circle onto a copy of `background` at
    (offset_x + x, offset_y + y). Other background pixels are untouched; the
    part of the disk that falls outside the background is clipped.
    """
    if background.ndim != 3 or background.shape[2] != 3:
        raise ValueError("background must be an RGB array of shape (H,W,3)")
    out = background.copy()
    bh, bw = out.shape[:2]
    dh, dw = disk.height, disk.width
    ox, oy = offset

    # Intersection of the disk rectangle with the background, in both frames.
    x0, y0 = max(0, ox), max(0, oy)
    x1, y1 = min(bw, ox + dw), min(bh, oy + dh)
    if x1 <= x0 or y1 <= y0:
        log.warning("Disk lies entirely outside the background", extra={"extra": {"offset": [ox, oy]}})
        return out
    if (x0, y0, x1, y1) != (ox, oy, ox + dw, oy + dh):
        log.warning(
            "Disk clipped by background edges",
            extra={"extra": {"offset": [ox, oy], "disk": dw, "background": [bw, bh]}},
        )

    src = disk.pixels[y0 - oy:y1 - oy, x0 - ox:x1 - ox]
    mask = disk_mask((dh, dw), estimate)[y0 - oy:y1 - oy, x0 - ox:x1 - ox]
    dst = out[y0:y1, x0:x1]
    dst[mask] = src[mask]
    return out


def _discard(tmp: Path) -> None:
    try:
        tmp.unlink(missing_ok=True)
    except OSError as e:
        log.debug("Could not remove %s: %s", tmp, e)


def save_image(pixels: np.ndarray, path: Path) -> Path:
    """
    Write an RGB array as PNG. The file is written next to the target and then
    renamed over it, so a reader never sees a half-written wallpaper.
    """
    path = Path(path)
    tmp = path.with_name(f".{path.stem}.tmp{path.suffix}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        ok = cv2.imwrite(str(tmp), cv2.cvtColor(pixels, cv2.COLOR_RGB2BGR))
        if not ok:
            _discard(tmp)
            raise CompositionError(f"could not encode/write {tmp}")
        os.replace(tmp, path)
    except (OSError, cv2.error) as e:
        _discard(tmp)
        raise CompositionError(f"failed to save {path}: {e}") from e
    return path
