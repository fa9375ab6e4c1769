from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from slider.satellites import Satellite


DEFAULT_CONFIG_PATH = "config/params.yaml"
SLIDER_BASE_URL = "https://rammb-slider.cira.colostate.edu"
OUTPUT_NAME = "satpaper_latest.png"


@dataclass(frozen=True)
class BackgroundConfig:
    """
    Artwork the disk is composited onto.

    day/night: image paths (None -> plain black canvas)
    day_start_hour/day_end_hour: local-hour window treated as daytime
    latitude/longitude: if both set, sunrise/sunset are looked up instead
    """
    day: Optional[str] = None
    night: Optional[str] = None
    day_start_hour: int = 7
    day_end_hour: int = 18
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class Config:
    satellite: Satellite = Satellite.GOES_EAST
    resolution_x: int = 3840
    resolution_y: int = 2160
    disk_size: int = 95
    target_path: Path = Path(".")
    wallpaper_command: Optional[str] = None
    once: bool = False
    poll_interval_s: float = 60.0
    base_url: str = SLIDER_BASE_URL
    timeout_s: float = 300.0
    workers: Optional[int] = None
    bias: Tuple[int, int] = (0, 0)
    background: BackgroundConfig = field(default_factory=BackgroundConfig)
    log_level: str = "INFO"
    log_format: str = "json"

    def __post_init__(self) -> None:
        if self.resolution_x <= 0 or self.resolution_y <= 0:
            raise ValueError("resolution must be positive")
        if not (1 <= self.disk_size <= 100):
            raise ValueError("disk_size must be a percentage in 1..100")
        if self.disk_dim < self.satellite.tile_count:
            raise ValueError(
                f"disk of {self.disk_dim}px is smaller than the {self.satellite.tile_count}-tile grid"
            )
        if self.poll_interval_s < 0:
            raise ValueError("poll_interval_s must be >= 0")
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        if self.workers is not None and self.workers <= 0:
            raise ValueError("workers must be > 0")

    @property
    def disk_dim(self) -> int:
        return self.satellite.disk_dimension(self.resolution_x, self.resolution_y, self.disk_size)

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.resolution_x, self.resolution_y)

    @property
    def output_path(self) -> Path:
        return Path(self.target_path) / OUTPUT_NAME

    def with_overrides(self, **kwargs: Any) -> "Config":
        """Copy with non-None overrides applied (CLI flags)."""
        return replace(self, **{k: v for k, v in kwargs.items() if v is not None})

    @classmethod
    def from_dict(cls, P: Dict[str, Any]) -> "Config":
        res = P.get("resolution", {}) or {}
        sl = P.get("slider", {}) or {}
        comp = P.get("compositor", {}) or {}
        bg = P.get("background", {}) or {}
        lg = P.get("logging", {}) or {}
        return cls(
            satellite=Satellite.parse(P.get("satellite", "goes-east")),
            resolution_x=int(res.get("x", 3840)),
            resolution_y=int(res.get("y", 2160)),
            disk_size=int(P.get("disk_size", 95)),
            target_path=Path(P.get("target_path", ".")).expanduser(),
            wallpaper_command=P.get("wallpaper_command"),
            once=bool(P.get("once", False)),
            poll_interval_s=float(P.get("poll_interval_s", 60)),
            base_url=str(sl.get("base_url", SLIDER_BASE_URL)).rstrip("/"),
            timeout_s=float(sl.get("timeout_s", 300)),
            workers=None if sl.get("workers") is None else int(sl["workers"]),
            bias=(int(comp.get("bias_x", 0)), int(comp.get("bias_y", 0))),
            background=BackgroundConfig(
                day=bg.get("day"),
                night=bg.get("night"),
                day_start_hour=int(bg.get("day_start_hour", 7)),
                day_end_hour=int(bg.get("day_end_hour", 18)),
                latitude=None if bg.get("latitude") is None else float(bg["latitude"]),
                longitude=None if bg.get("longitude") is None else float(bg["longitude"]),
            ),
            log_level=str(lg.get("level", "INFO")),
            log_format=str(lg.get("format", "json")),
        )


def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Read the YAML config; a missing file means built-in defaults."""
    if not Path(path).exists():
        return Config()
    with open(path, "r") as f:
        P = yaml.safe_load(f) or {}
    if not isinstance(P, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return Config.from_dict(P)


def parse_resolution(s: str) -> Tuple[int, int]:
    """'3840x2160' or '3840,2160' -> (3840, 2160)."""
    if "x" in s.lower():
        w, h = s.lower().split("x")
    else:
        parts = s.split(",")
        if len(parts) != 2:
            raise ValueError("Resolution must be WxH or W,H")
        w, h = parts
    return (int(w), int(h))
