from __future__ import annotations

import enum
from typing import Dict


class Satellite(enum.Enum):
    """
    Full-disk imagers available on the slider service.

    Value tuple: (service_id, max_zoom, tile_count, tile_size)
      - service_id: path segment used by the slider API
      - max_zoom: highest zoom level published for the full_disk sector
      - tile_count: tiles per grid edge at max_zoom
      - tile_size: pixels per tile edge as served
    """
    GOES_EAST = ("goes-16", 4, 16, 678)
    GOES_WEST = ("goes-18", 4, 16, 678)
    HIMAWARI = ("himawari", 4, 16, 688)
    METEOSAT_9 = ("meteosat-9", 3, 8, 464)
    METEOSAT_10 = ("meteosat-0deg", 3, 8, 464)

    @property
    def service_id(self) -> str:
        return self.value[0]

    @property
    def max_zoom(self) -> int:
        return self.value[1]

    @property
    def tile_count(self) -> int:
        return self.value[2]

    @property
    def tile_size(self) -> int:
        return self.value[3]

    def disk_dimension(self, resolution_x: int, resolution_y: int, disk_size_percent: int) -> int:
        """floor(min(rx, ry) * pct / 100), in integers so no float rounding creeps in."""
        return (min(resolution_x, resolution_y) * disk_size_percent) // 100

    def scaled_tile_size(self, disk_dim: int) -> int:
        """Edge of one tile once the full grid is shrunk to disk_dim."""
        return disk_dim // self.tile_count

    @classmethod
    def parse(cls, name: str) -> "Satellite":
        """
        Accepts member names and the usual spellings: "goes-east", "GOESEast",
        "goes_west", "himawari", "meteosat9", "meteosat-10", or a service id.
        """
        if isinstance(name, Satellite):
            return name
        key = "".join(ch for ch in str(name).lower() if ch.isalnum())
        hit = _ALIASES.get(key)
        if hit is None:
            choices = ", ".join(s.name.lower().replace("_", "-") for s in cls)
            raise ValueError(f"Unknown satellite {name!r}; expected one of: {choices}")
        return hit


def _aliases() -> Dict[str, Satellite]:
    out: Dict[str, Satellite] = {}
    for sat in Satellite:
        for alias in (sat.name, sat.service_id):
            out["".join(ch for ch in alias.lower() if ch.isalnum())] = sat
    return out


_ALIASES = _aliases()
