from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from common.errors import CompositionError, MetadataFetchError, TileFetchError, WallpaperError
from common.logging_setup import setup_logging
from common.types import CaptureMetadata, CycleResult, DiskImage
from common.utils import timer_ms, trim_heap
from slider.canvas import DiskCanvas
from slider.config import DEFAULT_CONFIG_PATH, Config, load_config, parse_resolution
from slider.disk import composite_disk, detect_boundary, placement_offset, save_image
from slider.metadata import SliderService
from slider.satellites import Satellite
from slider.tiles import TileAcquirer
from wallpaper.background import load_background, select_background_path
from wallpaper.desktop import set_wallpaper


log = logging.getLogger("slider")


def make_service(config: Config) -> SliderService:
    return SliderService(base_url=config.base_url, timeout=config.timeout_s)


@timer_ms
def _acquire(acquirer: TileAcquirer, capture: CaptureMetadata, canvas: DiskCanvas) -> None:
    acquirer.acquire(capture, canvas)


def download_disk(config: Config, service: SliderService, capture: CaptureMetadata) -> DiskImage:
    """Fetch every tile of `capture` and return the stitched disk. Raises TileFetchError."""
    canvas = DiskCanvas(config.disk_dim, config.satellite.tile_count)
    acquirer = TileAcquirer(service, config.satellite, max_workers=config.workers)
    _, dt_ms = _acquire(acquirer, capture, canvas)
    log.info("Tiles stitched", extra={"extra": {"disk_px": config.disk_dim, "latency_ms": int(dt_ms)}})
    return canvas.into_image()


def compose(config: Config, disk: DiskImage, background: np.ndarray) -> Path:
    """Cut the disk out onto `background` and save it. Raises CompositionError."""
    log.info("Compositing...")
    estimate = detect_boundary(disk)
    offset = placement_offset(config.resolution, config.disk_dim, config.bias)
    log.debug(
        "Boundary estimate",
        extra={"extra": {"center": list(estimate.center), "radius": estimate.radius, "offset": list(offset)}},
    )
    out = composite_disk(background, disk, estimate, offset)
    path = save_image(out, config.output_path)
    log.info("Output saved to %s", path)
    return path


def composite_latest_image(
    config: Config,
    service: SliderService,
    background: np.ndarray,
    capture: Optional[CaptureMetadata] = None,
) -> bool:
    """
    One acquisition + composition pass.

    Returns False (nothing written) when metadata or any tile fails;
    CompositionError from writing the output is not caught.
    """
    try:
        if capture is None:
            capture = service.fetch_capture(config.satellite)
        disk = download_disk(config, service, capture)
    except (MetadataFetchError, TileFetchError) as e:
        log.error("Failed to download source image: %s", e)
        log.error("Composition aborted; waiting until next go round.")
        return False
    compose(config, disk, background)
    return True


class WallpaperUpdater:
    """
    Polling loop state: remembers the timestamp of the last capture that was
    successfully composited and only redoes the work when it changes.
    """

    def __init__(
        self,
        config: Config,
        service: Optional[SliderService] = None,
        setter: Optional[Callable[[Path, Optional[str]], None]] = None,
    ):
        self.config = config
        self.service = service or make_service(config)
        self.setter = setter or set_wallpaper
        self.timestamp: Optional[int] = None

    def _background(self) -> np.ndarray:
        path = select_background_path(self.config.background, session=self.service.session)
        try:
            return load_background(path, self.config.resolution)
        except (OSError, ValueError) as e:
            # PIL.UnidentifiedImageError is an OSError
            log.warning("Background image unreadable, using black: %s (%s)", path, e)
            return load_background(None, self.config.resolution)

    def run_cycle(self) -> CycleResult:
        log.info("Checking timestamp...")
        sat = self.config.satellite
        try:
            timestamp = self.service.fetch_latest_timestamp(sat)
            if timestamp == self.timestamp:
                log.debug("Timestamp unchanged: %s", timestamp)
                return CycleResult(timestamp=timestamp, success=True)
            capture = self.service.fetch_capture(sat, timestamp=timestamp)
        except MetadataFetchError as e:
            log.error("Failed to fetch latest timestamp: %s", e)
            log.error("Check aborted; waiting until next go round.")
            return CycleResult(timestamp=self.timestamp, success=False)

        log.info("Timestamp has changed!", extra={"extra": {"old": self.timestamp, "new": capture.timestamp}})
        log.info("Fetching updated source and compositing new wallpaper...")
        try:
            if not composite_latest_image(self.config, self.service, self._background(), capture):
                return CycleResult(timestamp=capture.timestamp, success=False)
        except CompositionError:
            log.exception("Failed to write composited wallpaper to %s", self.config.output_path)
            return CycleResult(timestamp=capture.timestamp, success=False)

        self.timestamp = capture.timestamp
        output = self.config.output_path
        if not self.config.once:
            try:
                self.setter(output, self.config.wallpaper_command)
                log.info("New wallpaper composited and set.")
            except WallpaperError as e:
                log.error("Could not set wallpaper: %s", e)
        return CycleResult(timestamp=capture.timestamp, success=True, output=output)

    def run(self, max_cycles: Optional[int] = None, sleep: Callable[[float], None] = time.sleep) -> CycleResult:
        """
        Poll until stopped. With `once`, return after the first successful
        composition; `max_cycles` bounds the loop (tests, cron-style use).
        """
        n = 0
        result = CycleResult(timestamp=None, success=False)
        while max_cycles is None or n < max_cycles:
            result = self.run_cycle()
            n += 1
            if self.config.once and result.success and result.output is not None:
                return result
            trim_heap()
            if max_cycles is not None and n >= max_cycles:
                break
            log.debug("Sleeping for %.0fs...", self.config.poll_interval_s)
            sleep(self.config.poll_interval_s)
        return result


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="satpaper: live satellite wallpaper")
    ap.add_argument("--config", default=DEFAULT_CONFIG_PATH)
    ap.add_argument("--satellite", default=None, help="goes-east | goes-west | himawari | meteosat-9 | meteosat-10")
    ap.add_argument("--resolution", default=None, help="Wallpaper size WxH, e.g. 3840x2160")
    ap.add_argument("--disk-size", type=int, default=None, help="Disk size as %% of the smaller dimension")
    ap.add_argument("--target-path", default=None, help="Directory for satpaper_latest.png")
    ap.add_argument("--wallpaper-command", default=None, help="Command to set the wallpaper; {path} is substituted")
    ap.add_argument("--once", action="store_true", default=None, help="Compose one wallpaper and exit")
    ap.add_argument("--log-level", default=None)
    return ap


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
        res = parse_resolution(args.resolution) if args.resolution else (None, None)
        config = config.with_overrides(
            satellite=Satellite.parse(args.satellite) if args.satellite else None,
            resolution_x=res[0],
            resolution_y=res[1],
            disk_size=args.disk_size,
            target_path=Path(args.target_path).expanduser() if args.target_path else None,
            wallpaper_command=args.wallpaper_command,
            once=args.once,
            log_level=args.log_level,
        )
    except ValueError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level, config.log_format, force=True)
    log.info(
        "satpaper started",
        extra={"extra": {"satellite": config.satellite.service_id, "resolution": list(config.resolution),
                         "disk_px": config.disk_dim, "target": str(config.output_path)}},
    )
    result = WallpaperUpdater(config).run()
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
