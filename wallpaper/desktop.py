from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional

from common.errors import WallpaperError


log = logging.getLogger(__name__)


def _quote_if_has_whitespace(string: str) -> str:
    """Single-quote a string if it has whitespace, escaping any single-quotes inside with a backslash."""
    if not re.search(r"\s", string):
        return string
    return "'{}'".format(string.replace("'", "\\'"))


def _check_call_with_echo(cmd: List[str]) -> None:
    """Like subprocess.check_call(), but the command goes to the log first."""
    log.info("Running: %s", " ".join(map(_quote_if_has_whitespace, cmd)))
    subprocess.check_call(cmd)


def build_command(path: Path, command_template: Optional[str] = None, desktop: Optional[str] = None) -> List[List[str]]:
    """
    Commands that put `path` up as the desktop background.

    A user template wins: "{path}" is substituted, otherwise the path is
    appended. Without one, the desktop is guessed from XDG_CURRENT_DESKTOP.
    """
    path = Path(path).resolve()
    if command_template:
        argv = shlex.split(command_template)
        if any("{path}" in a for a in argv):
            return [[a.replace("{path}", str(path)) for a in argv]]
        return [argv + [str(path)]]

    desktop = (desktop if desktop is not None else os.environ.get("XDG_CURRENT_DESKTOP", "")).lower()
    uri = path.as_uri()
    if any(d in desktop for d in ("gnome", "unity", "cinnamon", "budgie")):
        schema = "org.cinnamon.desktop.background" if "cinnamon" in desktop else "org.gnome.desktop.background"
        cmds = [["gsettings", "set", schema, "picture-uri", uri]]
        if schema == "org.gnome.desktop.background":
            cmds.append(["gsettings", "set", schema, "picture-uri-dark", uri])
        cmds.append(["gsettings", "set", schema, "picture-options", "scaled"])
        return cmds
    if "kde" in desktop:
        return [["plasma-apply-wallpaperimage", str(path)]]
    if "xfce" in desktop:
        # Only the first monitor/workspace; others are listed by
        # 'xfconf-query --channel xfce4-desktop --list'.
        return [[
            "xfconf-query", "--channel", "xfce4-desktop",
            "--property", "/backdrop/screen0/monitor0/workspace0/last-image",
            "--set", str(path),
        ]]
    # Plain window managers (XMonad, Openbox, i3...)
    return [["feh", "--bg-scale", str(path)]]


def set_wallpaper(path: Path, command_template: Optional[str] = None) -> None:
    """Run the wallpaper command(s); any failure is raised as WallpaperError."""
    for cmd in build_command(path, command_template):
        try:
            _check_call_with_echo(cmd)
        except (subprocess.CalledProcessError, OSError) as e:
            raise WallpaperError(f"{cmd[0]} failed: {e}") from e
