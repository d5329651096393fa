"""
core.config
~~~~~~~~~~~
Persists AppSettings (last used encoding options, output folder, binary
overrides, theme) to a JSON file in the platform's standard config
directory.

Config location
---------------
  Windows  : %APPDATA%\\DNxHDTranscoder\\settings.json
  macOS    : ~/Library/Application Support/DNxHDTranscoder/settings.json
  Linux    : $XDG_CONFIG_HOME/DNxHDTranscoder/settings.json
             (~/.config when XDG_CONFIG_HOME is unset)

Batch state (files, progress, results) is never stored.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import asdict, fields
from pathlib import Path

from dnxhd_transcoder.core.models import AppSettings, JobConfig

logger = logging.getLogger(__name__)

APP_DIR_NAME = "DNxHDTranscoder"
THEMES = ("dark", "light")
MAX_PARALLEL_LIMIT = 8


# ── Config directory ──────────────────────────────────────────────────────────

def _config_dir() -> Path:
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / APP_DIR_NAME


CONFIG_DIR    = _config_dir()
SETTINGS_FILE = CONFIG_DIR / "settings.json"


# ── Public API ────────────────────────────────────────────────────────────────

def save_settings(settings: AppSettings, path: Path | None = None) -> None:
    """
    Serialise *settings*, overwriting any previous data.
    I/O errors are logged, never raised, so a config issue never crashes
    the app.
    """
    target = path or SETTINGS_FILE
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(_settings_to_dict(settings), indent=2), encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not save settings to %s: %s", target, exc)


def load_settings(path: Path | None = None) -> AppSettings:
    """
    Read the settings file and return an AppSettings instance.
    Returns defaults if the file is missing, empty, or malformed; a bad
    individual field falls back to its own default.
    """
    source = path or SETTINGS_FILE
    if not source.exists():
        return AppSettings()
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", source, exc)
        return AppSettings()
    if not isinstance(payload, dict):
        logger.warning("Ignoring settings file %s: not a JSON object", source)
        return AppSettings()
    return _dict_to_settings(payload)


# ── Serialisation helpers ─────────────────────────────────────────────────────

def _settings_to_dict(s: AppSettings) -> dict:
    return {
        "job":          asdict(s.job),
        "output_dir":   str(s.output_dir) if s.output_dir else None,
        "ffmpeg_path":  s.ffmpeg_path,
        "ffprobe_path": s.ffprobe_path,
        "max_parallel": s.max_parallel,
        "theme":        s.theme,
    }


def _dict_to_settings(d: dict) -> AppSettings:
    defaults = AppSettings()

    output_dir = d.get("output_dir")
    theme = d.get("theme", defaults.theme)

    try:
        max_parallel = int(d.get("max_parallel", defaults.max_parallel))
    except (TypeError, ValueError):
        max_parallel = defaults.max_parallel

    return AppSettings(
        job          = _dict_to_job(d.get("job")),
        output_dir   = Path(output_dir) if isinstance(output_dir, str) and output_dir else None,
        ffmpeg_path  = str(d.get("ffmpeg_path") or ""),
        ffprobe_path = str(d.get("ffprobe_path") or ""),
        max_parallel = min(max(max_parallel, 1), MAX_PARALLEL_LIMIT),
        theme        = theme if theme in THEMES else defaults.theme,
    )


def _dict_to_job(d) -> JobConfig:
    job = JobConfig()
    if not isinstance(d, dict):
        return job

    for f in fields(JobConfig):
        if f.name not in d:
            continue
        default = getattr(job, f.name)
        value = d[f.name]
        # bool before int: bool is an int subclass
        if isinstance(default, bool):
            ok = isinstance(value, bool)
        elif isinstance(default, float):
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            value = float(value) if ok else value
        elif isinstance(default, int):
            ok = isinstance(value, int) and not isinstance(value, bool)
        else:
            ok = isinstance(value, str)
        if ok:
            setattr(job, f.name, value)
        else:
            logger.warning("Ignoring bad setting job.%s=%r", f.name, value)
    return job
