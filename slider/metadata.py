"""
Slider (RAMMB/CIRA) service adapter.

Two small JSON documents describe what is available for a satellite:
  - latest_times.json     -> {"timestamps_int": [20231026153020, ...]}
  - available_dates.json  -> {"dates_int": [20231026, ...]}
Only the first element of each array is used; the rest is history.

Usage:
    svc = SliderService()
    capture = svc.fetch_capture(Satellite.GOES_EAST)
    url = svc.tile_url(Satellite.GOES_EAST, capture, TileCoordinate(3, 7))
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import requests

from common.errors import MetadataFetchError, ParseError
from common.types import CaptureMetadata, TileCoordinate
from slider.config import SLIDER_BASE_URL
from slider.satellites import Satellite


log = logging.getLogger(__name__)

SECTOR = "full_disk"
PRODUCT = "geocolor"
USER_AGENT = "satpaper"


def first_element(payload: Any, key: str) -> int:
    """
    Return element 0 of the integer array `payload[key]`.

    Trailing elements are ignored, whatever they are; an empty array, a missing
    key or a non-integer head raise ParseError.
    """
    if not isinstance(payload, dict) or key not in payload:
        raise ParseError(f"expected an object with a {key!r} array")
    seq = payload[key]
    if not isinstance(seq, list):
        raise ParseError(f"{key!r} is not an array")
    if not seq:
        raise ParseError(f"{key!r} is empty")
    head = seq[0]
    # bool is an int subclass; a JSON true is not a timestamp
    if isinstance(head, bool) or not isinstance(head, int) or head < 0:
        raise ParseError(f"{key!r}[0] is not an unsigned integer: {head!r}")
    return head


def split_date(value: int) -> Tuple[int, int, int]:
    """
    Split a YYYYMMDD integer into (year, month, day) by decimal place value.

    Digits are taken from the low eight places of the number itself, so
    20231026 -> (2023, 10, 26) and 20270425 -> (2027, 4, 25).
    """
    def dig(n: int) -> int:
        return (value // 10 ** n) % 10

    year = dig(7) * 1000 + dig(6) * 100 + dig(5) * 10 + dig(4)
    month = dig(3) * 10 + dig(2)
    day = dig(1) * 10 + dig(0)
    return year, month, day


class SliderService:
    def __init__(
        self,
        base_url: str = SLIDER_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 300.0,
    ):
        """
        Params:
            base_url: service root, without trailing slash
            session: optional requests.Session for connection reuse (shared by tile workers)
            timeout: per-request timeout in seconds; the service can be very slow
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    # ----------------------------
    # URL builders
    # ----------------------------
    def _json_url(self, sat: Satellite, name: str) -> str:
        return f"{self.base_url}/data/json/{sat.service_id}/{SECTOR}/{PRODUCT}/{name}"

    def latest_times_url(self, sat: Satellite) -> str:
        return self._json_url(sat, "latest_times.json")

    def available_dates_url(self, sat: Satellite) -> str:
        return self._json_url(sat, "available_dates.json")

    def tile_url(self, sat: Satellite, capture: CaptureMetadata, coord: TileCoordinate) -> str:
        return (
            f"{self.base_url}/data/imagery/"
            f"{capture.year:04}/{capture.month:02}/{capture.day:02}/"
            f"{sat.service_id}---{SECTOR}/{PRODUCT}/{capture.timestamp}/"
            f"{sat.max_zoom:02}/{coord.x:03}_{coord.y:03}.png"
        )

    # ----------------------------
    # Requests
    # ----------------------------
    def get(self, url: str) -> requests.Response:
        """Plain GET with the service timeout; raises requests exceptions unchanged."""
        return self.session.get(url, timeout=self.timeout)

    def _get_json(self, url: str) -> Dict:
        try:
            r = self.get(url)
        except requests.RequestException as e:
            raise MetadataFetchError(f"request failed: {e}", url) from e
        if r.status_code != 200:
            raise MetadataFetchError(f"HTTP {r.status_code}: {r.text[:200]}", url)
        try:
            return r.json()
        except ValueError as e:
            raise ParseError(f"invalid JSON: {e}", url) from e

    def _first(self, url: str, key: str) -> int:
        payload = self._get_json(url)
        try:
            return first_element(payload, key)
        except ParseError as e:
            raise ParseError(str(e), url) from e

    def fetch_latest_timestamp(self, sat: Satellite) -> int:
        return self._first(self.latest_times_url(sat), "timestamps_int")

    def fetch_latest_date(self, sat: Satellite) -> Tuple[int, int, int]:
        return split_date(self._first(self.available_dates_url(sat), "dates_int"))

    def fetch_capture(self, sat: Satellite, timestamp: Optional[int] = None) -> CaptureMetadata:
        """
        Latest timestamp + date. A timestamp the caller already fetched is
        reused, so only the dates document is requested.
        Raises MetadataFetchError on any failure.
        """
        if timestamp is None:
            timestamp = self.fetch_latest_timestamp(sat)
        year, month, day = self.fetch_latest_date(sat)
        capture = CaptureMetadata(year=year, month=month, day=day, timestamp=timestamp)
        log.debug("Latest capture", extra={"extra": {"satellite": sat.service_id, **capture.to_meta()}})
        return capture
