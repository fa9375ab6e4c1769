"""
Unit tests for the slider metadata fetcher
"""

import pytest
import os
import sys
from unittest.mock import Mock

import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.errors import MetadataFetchError, ParseError
from common.types import CaptureMetadata, TileCoordinate
from slider.metadata import SliderService, first_element, split_date
from slider.satellites import Satellite


def _response(status=200, payload=None, text=""):
    r = Mock()
    r.status_code = status
    r.text = text
    r.json.return_value = payload
    return r


def _service(*responses):
    session = Mock()
    session.headers = {}
    session.get.side_effect = list(responses)
    return SliderService(session=session), session


class TestSplitDate:
    """Test cases for YYYYMMDD decomposition"""

    def test_known_dates(self):
        """Digit extraction by place value"""
        assert split_date(2023_10_26) == (2023, 10, 26)
        assert split_date(2027_04_25) == (2027, 4, 25)

    def test_range_edges(self):
        """Both ends of the supported range"""
        assert split_date(1000_01_01) == (1000, 1, 1)
        assert split_date(9999_12_31) == (9999, 12, 31)

    @pytest.mark.parametrize("year", [1000, 1970, 2024, 5555, 9999])
    def test_all_months_and_days(self, year):
        """Every month/day combination splits back into its parts"""
        for month in range(1, 13):
            for day in (1, 9, 10, 28, 31):
                assert split_date(year * 10000 + month * 100 + day) == (year, month, day)


class TestFirstElement:
    """Test cases for lenient array-head parsing"""

    def test_first_of_many(self):
        """Trailing history is ignored"""
        assert first_element({"dates_int": [20231026, 20231025, 20231024]}, "dates_int") == 20231026

    def test_single(self):
        assert first_element({"timestamps_int": [20231026153020]}, "timestamps_int") == 20231026153020

    def test_head_is_not_max(self):
        """The first element wins even when a later one is larger"""
        assert first_element({"timestamps_int": [5, 9, 7]}, "timestamps_int") == 5

    def test_trailing_junk_tolerated(self):
        """Only the head is validated"""
        assert first_element({"dates_int": [20231026, "x", None]}, "dates_int") == 20231026

    def test_empty_array(self):
        with pytest.raises(ParseError, match="empty"):
            first_element({"dates_int": []}, "dates_int")

    def test_missing_key(self):
        with pytest.raises(ParseError):
            first_element({"other": [1]}, "dates_int")

    def test_not_a_list(self):
        with pytest.raises(ParseError):
            first_element({"dates_int": 20231026}, "dates_int")

    @pytest.mark.parametrize("head", ["20231026", 1.5, True, -3, None])
    def test_bad_head(self, head):
        with pytest.raises(ParseError):
            first_element({"dates_int": [head]}, "dates_int")

    def test_parse_error_is_metadata_error(self):
        """Callers only need to catch MetadataFetchError"""
        assert issubclass(ParseError, MetadataFetchError)


class TestSliderService:
    """Test cases for SliderService"""

    def test_urls(self):
        """URL layout of the slider service"""
        svc = SliderService(session=Mock(headers={}))
        sat = Satellite.GOES_EAST
        assert svc.latest_times_url(sat) == (
            "https://rammb-slider.cira.colostate.edu/data/json/goes-16/full_disk/geocolor/latest_times.json"
        )
        assert svc.available_dates_url(sat) == (
            "https://rammb-slider.cira.colostate.edu/data/json/goes-16/full_disk/geocolor/available_dates.json"
        )
        capture = CaptureMetadata(year=2023, month=4, day=5, timestamp=20230405153020)
        assert svc.tile_url(sat, capture, TileCoordinate(3, 12)) == (
            "https://rammb-slider.cira.colostate.edu/data/imagery/2023/04/05/goes-16---full_disk/"
            "geocolor/20230405153020/04/003_012.png"
        )

    def test_tile_url_meteosat_zoom(self):
        """Zoom is zero-padded to two digits"""
        svc = SliderService(base_url="http://localhost:9000/", session=Mock(headers={}))
        capture = CaptureMetadata(year=2024, month=12, day=31, timestamp=1)
        url = svc.tile_url(Satellite.METEOSAT_10, capture, TileCoordinate(0, 7))
        assert url == "http://localhost:9000/data/imagery/2024/12/31/meteosat-0deg---full_disk/geocolor/1/03/000_007.png"

    def test_user_agent(self):
        svc = SliderService(session=Mock(headers={}))
        assert svc.session.headers["User-Agent"] == "satpaper"

    def test_fetch_capture(self):
        """Timestamp and date come from their own documents"""
        svc, session = _service(
            _response(payload={"timestamps_int": [20231026153020, 20231026151020]}),
            _response(payload={"dates_int": [20231026, 20231025]}),
        )
        capture = svc.fetch_capture(Satellite.HIMAWARI)
        assert capture == CaptureMetadata(year=2023, month=10, day=26, timestamp=20231026153020)
        urls = [c.args[0] for c in session.get.call_args_list]
        assert urls[0].endswith("/himawari/full_disk/geocolor/latest_times.json")
        assert urls[1].endswith("/himawari/full_disk/geocolor/available_dates.json")
        assert all(c.kwargs["timeout"] == 300.0 for c in session.get.call_args_list)

    def test_fetch_capture_known_timestamp(self):
        """A timestamp already in hand skips latest_times.json"""
        svc, session = _service(_response(payload={"dates_int": [20231026]}))
        capture = svc.fetch_capture(Satellite.GOES_EAST, timestamp=20231026153020)
        assert capture == CaptureMetadata(year=2023, month=10, day=26, timestamp=20231026153020)
        assert session.get.call_count == 1
        assert session.get.call_args.args[0].endswith("available_dates.json")

    def test_http_error(self):
        svc, _ = _service(_response(status=503, text="Service Unavailable"))
        with pytest.raises(MetadataFetchError, match="HTTP 503"):
            svc.fetch_latest_timestamp(Satellite.GOES_WEST)

    def test_network_error(self):
        session = Mock(headers={})
        session.get.side_effect = requests.ConnectionError("boom")
        svc = SliderService(session=session)
        with pytest.raises(MetadataFetchError, match="latest_times.json"):
            svc.fetch_latest_timestamp(Satellite.GOES_WEST)

    def test_invalid_json(self):
        bad = _response()
        bad.json.side_effect = ValueError("Expecting value")
        svc, _ = _service(bad)
        with pytest.raises(ParseError, match="invalid JSON"):
            svc.fetch_latest_timestamp(Satellite.GOES_WEST)

    def test_empty_dates(self):
        """An empty array is a fetch failure, reported with its URL"""
        svc, _ = _service(_response(payload={"dates_int": []}))
        with pytest.raises(ParseError, match="available_dates.json"):
            svc.fetch_latest_date(Satellite.METEOSAT_9)


class TestModule:
    def test_has_docstring(self):
        import slider.metadata
        assert slider.metadata.__doc__ and "latest_times.json" in slider.metadata.__doc__
