from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import requests
from PIL import Image

from slider.config import BackgroundConfig


log = logging.getLogger(__name__)

SUN_API_URL = "https://api.sunrise-sunset.org/json"


def is_daytime(now: datetime, day_start_hour: int = 7, day_end_hour: int = 18) -> bool:
    """Local hour in [day_start_hour, day_end_hour)."""
    return day_start_hour <= now.hour < day_end_hour


def sun_window(
    lat: float,
    lon: float,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> Optional[Tuple[datetime, datetime]]:
    """
    Today's (sunrise, sunset) as aware datetimes, or None if the lookup fails
    for any reason; callers then fall back to the hour window.
    """
    sess = session or requests
    try:
        r = sess.get(SUN_API_URL, params={"lat": lat, "lng": lon, "formatted": 0}, timeout=timeout)
        if r.status_code != 200:
            log.warning("Sunrise/sunset lookup failed: HTTP %s", r.status_code)
            return None
        body = r.json()
        if body.get("status") != "OK":
            log.warning("Sunrise/sunset lookup failed: status %s", body.get("status"))
            return None
        res = body["results"]
        return datetime.fromisoformat(res["sunrise"]), datetime.fromisoformat(res["sunset"])
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        log.warning("Sunrise/sunset lookup failed: %s", e)
        return None


def select_background_path(
    cfg: BackgroundConfig,
    now: Optional[datetime] = None,
    session: Optional[requests.Session] = None,
) -> Optional[str]:
    """Day or night artwork for `now` (local time). None means no artwork configured."""
    now = now or datetime.now().astimezone()
    day = None
    if cfg.latitude is not None and cfg.longitude is not None:
        window = sun_window(cfg.latitude, cfg.longitude, session=session)
        if window is not None:
            sunrise, sunset = window
            aware = now if now.tzinfo is not None else now.astimezone()
            day = sunrise <= aware <= sunset
    if day is None:
        day = is_daytime(now, cfg.day_start_hour, cfg.day_end_hour)
    path = cfg.day if day else cfg.night
    # A single configured image serves both.
    return path or cfg.night or cfg.day


def load_background(path: Optional[str], size: Tuple[int, int]) -> np.ndarray:
    """
    RGB uint8 array of exactly size=(width, height).

    Missing/unset artwork gives a black canvas; artwork of another size is
    Lanczos-resized to fit.
    """
    w, h = size
    if not path or not Path(path).expanduser().is_file():
        if path:
            log.warning("Background image not found, using black: %s", path)
        return np.zeros((h, w, 3), dtype=np.uint8)
    with Image.open(Path(path).expanduser()) as im:
        rgb = im.convert("RGB")
        if rgb.size != (w, h):
            log.info("Resizing background %s from %dx%d to %dx%d", path, rgb.size[0], rgb.size[1], w, h)
            rgb = rgb.resize((w, h), Image.Resampling.LANCZOS)
        return np.array(rgb, dtype=np.uint8)
