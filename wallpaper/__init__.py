"""
Wallpaper side of satpaper

- background.py: day/night artwork selection and loading (Pillow)
- desktop.py: setting the composed image as the desktop background
"""
from .background import load_background, select_background_path
from .desktop import set_wallpaper

__all__ = ["load_background", "select_background_path", "set_wallpaper"]
