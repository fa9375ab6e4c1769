"""
satpaper test suite

Structure:
- unit/: Unit tests for individual components (satellites, metadata, canvas, tiles, disk, wallpaper)
- integration/: End-to-end pipeline cycles against a fake slider service
"""
