"""
core.paths
~~~~~~~~~~
Single source of truth for locating the ffmpeg / ffprobe binaries.
Import these helpers instead of hard-coding strings anywhere else.

Lookup order for each binary:
  1. explicit override from the settings page
  2. /app/bin/<name>            (Flatpak runtime prefix)
  3. next to the running executable
  4. <project>/bin/<name>
  5. $PATH
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

# Project root = the directory that contains the dnxhd_transcoder package
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

BIN_DIR     = PROJECT_ROOT / "bin"
FLATPAK_BIN = Path("/app/bin")


def _exe_name(name: str) -> str:
    return f"{name}.exe" if os.name == "nt" else name


def _candidates(name: str, extra_dirs: list[Path]) -> list[Path]:
    exe = _exe_name(name)
    dirs = [*extra_dirs, FLATPAK_BIN, Path(sys.executable).resolve().parent, BIN_DIR]
    return [d / exe for d in dirs]


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _find(name: str, override: str | None, extra_dirs: list[Path]) -> str:
    if override:
        return override
    for candidate in _candidates(name, extra_dirs):
        if _is_executable(candidate):
            logger.debug("Found %s at %s", name, candidate)
            return str(candidate)
    found = shutil.which(name)
    if found:
        logger.debug("Found %s on PATH: %s", name, found)
        return found
    # Let subprocess report the failure with the bare name
    logger.warning("%s not found, falling back to bare command name", name)
    return name


# ── Public API ────────────────────────────────────────────────────────────────

def find_ffmpeg(override: str | None = None) -> str:
    return _find("ffmpeg", override, [])


def find_ffprobe(override: str | None = None, ffmpeg_path: str | None = None) -> str:
    """ffprobe is looked up next to the chosen ffmpeg first."""
    extra: list[Path] = []
    if ffmpeg_path and os.sep in ffmpeg_path:
        extra.append(Path(ffmpeg_path).resolve().parent)
    return _find("ffprobe", override, extra)


def validate_binaries(ffmpeg: str, ffprobe: str) -> list[str]:
    """
    Return a list of error strings for any missing/non-executable binaries.
    Empty list means all good.

    Call this at startup and show a dialog if errors is non-empty.
    """
    errors: list[str] = []
    for binary in (ffmpeg, ffprobe):
        path = Path(binary)
        if os.sep not in binary and shutil.which(binary) is None:
            errors.append(f"Binary not found on PATH: {binary}")
        elif os.sep not in binary:
            continue
        elif not path.exists():
            errors.append(f"Binary not found: {binary}")
        elif not path.is_file():
            errors.append(f"Not a file: {binary}")
        elif not os.access(path, os.X_OK):
            errors.append(f"Not executable: {binary}")
    return errors
