"""Locating and reading freedesktop ``.desktop`` application entries."""

from __future__ import annotations

import logging
import os
import re
import threading
from pathlib import Path
from typing import Iterable, Optional

log = logging.getLogger(__name__)

DesktopFile = dict[str, list[str]]

LOOK_OUT_KEYS = frozenset({"Name", "StartupWMClass", "Exec", "Icon"})
MAX_DEPTH = 5

_cache: dict[Path, DesktopFile] = {}
_cache_lock = threading.Lock()

_APP_ID_SEPARATORS = re.compile(r"[ :@._]")


def _user_data_dir() -> Optional[Path]:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    home = os.environ.get("HOME")
    return Path(home, ".local", "share") if home else None


def find_application_dirs() -> list[Path]:
    """Return the existing directories that may hold ``.desktop`` files."""
    dirs = [
        Path("/usr/share/applications"),
        Path("/var/lib/flatpak/exports/share/applications"),
    ]
    xdg_dirs = os.environ.get("XDG_DATA_DIRS")
    if xdg_dirs is not None:
        dirs.extend(Path(entry) / "applications" for entry in xdg_dirs.split(os.pathsep))
    user_dir = _user_data_dir()
    if user_dir is not None:
        dirs.append(user_dir / "applications")
    return [directory for directory in dirs if directory.exists()]


def find_desktop_files(dirs: Optional[Iterable[Path]] = None) -> list[Path]:
    """Return all ``.desktop`` files up to five levels below the given directories."""
    if dirs is None:
        dirs = find_application_dirs()
    found: list[Path] = []
    for root in map(Path, dirs):
        for dirpath, dirnames, filenames in os.walk(root):
            depth = len(Path(dirpath).relative_to(root).parts)
            if depth + 1 >= MAX_DEPTH:
                dirnames.clear()
            dirnames.sort()
            for filename in sorted(filenames):
                path = Path(dirpath, filename)
                if path.suffix == ".desktop" and path.is_file():
                    found.append(path)
    return found


def parse_desktop_file(path: Path) -> Optional[DesktopFile]:
    """Read the interesting keys of a desktop file; None if it cannot be read."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        log.warning("Couldn't Open File: %s", path)
        return None

    entries: DesktopFile = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if key in LOOK_OUT_KEYS:
            entries.setdefault(key, []).append(value.strip())
    return entries


def find_desktop_file_by_filename(app_id: str, files: Iterable[Path]) -> Optional[Path]:
    """Match an app id against file names: exact first, then by id parts."""
    with_names = [(Path(file), Path(file).stem.lower()) for file in files]
    wanted = app_id.lower()

    for file, name in with_names:
        if name == wanted:
            return file

    parts = [part.lower() for part in _APP_ID_SEPARATORS.split(app_id)]
    for file, name in with_names:
        if name in parts:
            return file
    return None


def find_desktop_file_by_filedata(app_id: str, files: Iterable[Path]) -> Optional[Path]:
    """Match an app id against the contents of desktop files."""
    app_id = app_id.lower()

    parsed: list[tuple[Path, DesktopFile]] = []
    for file in map(Path, files):
        desktop_file = parse_desktop_file(file)
        if desktop_file is None:
            continue
        with _cache_lock:
            _cache[file] = desktop_file
        parsed.append((file, desktop_file))

    passes = (
        lambda entry: any(name.lower() == app_id for name in entry.get("Name", [])),
        lambda entry: any(app_id in name.lower() for name in entry.get("Name", [])),
        lambda entry: any(
            app_id in value.lower() for values in entry.values() for value in values
        ),
    )
    for matches in passes:
        for file, desktop_file in parsed:
            if matches(desktop_file):
                return file
    return None


def find_desktop_file(app_id: str, dirs: Optional[Iterable[Path]] = None) -> Optional[Path]:
    """Locate the desktop file for an app id."""
    files = find_desktop_files(dirs)
    return find_desktop_file_by_filename(app_id, files) or find_desktop_file_by_filedata(
        app_id, files
    )


def get_desktop_icon_name(app_id: str, dirs: Optional[Iterable[Path]] = None) -> Optional[str]:
    """Return the first ``Icon`` value of the app's desktop file, if any."""
    path = find_desktop_file(app_id, dirs)
    if path is None:
        return None

    with _cache_lock:
        desktop_file = _cache.get(path)
    if desktop_file is None:
        desktop_file = parse_desktop_file(path)
        if desktop_file is None:
            return None
        with _cache_lock:
            _cache[path] = desktop_file

    icons = desktop_file.get("Icon", [])
    return icons[0] if icons else None