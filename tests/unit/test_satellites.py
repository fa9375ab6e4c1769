"""
Unit tests for the satellite descriptor table
"""

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from slider.satellites import Satellite


class TestSatellite:
    """Test cases for Satellite geometry"""

    @pytest.mark.parametrize(
        "sat, service_id, zoom, count, size",
        [
            (Satellite.GOES_EAST, "goes-16", 4, 16, 678),
            (Satellite.GOES_WEST, "goes-18", 4, 16, 678),
            (Satellite.HIMAWARI, "himawari", 4, 16, 688),
            (Satellite.METEOSAT_9, "meteosat-9", 3, 8, 464),
            (Satellite.METEOSAT_10, "meteosat-0deg", 3, 8, 464),
        ],
    )
    def test_table(self, sat, service_id, zoom, count, size):
        """Each satellite exposes its fixed grid geometry"""
        assert sat.service_id == service_id
        assert sat.max_zoom == zoom
        assert sat.tile_count == count
        assert sat.tile_size == size

    def test_disk_dimension(self):
        """Disk edge is floor(min(rx, ry) * pct / 100)"""
        sat = Satellite.GOES_EAST
        assert sat.disk_dimension(3840, 2160, 95) == 2052
        assert sat.disk_dimension(2556, 1440, 95) == 1368
        assert sat.disk_dimension(1080, 1920, 100) == 1080
        # 1001 * 33 / 100 = 330.33 -> 330
        assert sat.disk_dimension(1001, 5000, 33) == 330

    def test_scaled_tile_size(self):
        """Tiles shrink to disk_dim // tile_count"""
        assert Satellite.GOES_EAST.scaled_tile_size(2052) == 128
        assert Satellite.METEOSAT_9.scaled_tile_size(2052) == 256

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("goes-east", Satellite.GOES_EAST),
            ("GOESEast", Satellite.GOES_EAST),
            ("goes_west", Satellite.GOES_WEST),
            ("goes-18", Satellite.GOES_WEST),
            ("Himawari", Satellite.HIMAWARI),
            ("meteosat9", Satellite.METEOSAT_9),
            ("Meteosat-10", Satellite.METEOSAT_10),
            ("meteosat-0deg", Satellite.METEOSAT_10),
        ],
    )
    def test_parse(self, name, expected):
        """Common spellings resolve to the right member"""
        assert Satellite.parse(name) is expected

    def test_parse_unknown(self):
        """Unknown names are a configuration error"""
        with pytest.raises(ValueError, match="Unknown satellite"):
            Satellite.parse("sputnik")
