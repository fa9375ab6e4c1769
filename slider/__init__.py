# FILE: slider/__init__.py
"""
Slider: full-disk imagery acquisition and composition

This package provides:
- Per-satellite tile grid geometry (satellites.py)
- Latest capture lookup on the RAMMB/CIRA slider service (metadata.py)
- Concurrent tile download/decode/rescale into a shared canvas (tiles.py, canvas.py)
- Midline boundary march and circular cut-out compositing (disk.py)
- A polling pipeline that writes satpaper_latest.png and sets the wallpaper

Entry point:
    python -m slider.pipeline --config config/params.yaml
"""
from .satellites import Satellite

__all__ = ["Satellite"]
