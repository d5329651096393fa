"""
core.models
~~~~~~~~~~~
Pure dataclasses, no Qt or I/O.
These travel freely between core and ui.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path


# ── Enums ─────────────────────────────────────────────────────────────────────

class BatchStatus(Enum):
    IDLE       = auto()  # nothing started yet
    RUNNING    = auto()  # at least one worker is active or queued
    CANCELLING = auto()  # stop requested, waiting for processes to exit
    DONE       = auto()  # every item reached a final state


class WorkerStatus(Enum):
    PENDING   = auto()
    PROBING   = auto()
    ANALYSING = auto()   # loudness measurement pass
    RUNNING   = auto()
    DONE      = auto()
    ERROR     = auto()
    CANCELLED = auto()

    @property
    def is_final(self) -> bool:
        return self in (WorkerStatus.DONE, WorkerStatus.ERROR, WorkerStatus.CANCELLED)


# ── Probe result (returned by core.probe) ─────────────────────────────────────

@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""
    path: Path
    duration_seconds: float        # 0.0 if unknown
    width: int  = 0
    height: int = 0
    video_codec: str = ""
    audio_codec: str = ""
    fps: float = 0.0               # 0.0 if unknown
    audio_channels: int = 0


# ── Job configuration ─────────────────────────────────────────────────────────

@dataclass
class JobConfig:
    """
    Encoding options shared by every file of a batch.

    ``profile`` and ``container`` hold ffmpeg ids (``dnxhr_hq``, ``mxf``);
    core.presets knows which combinations are allowed.
    """
    profile: str = "dnxhr_hq"
    container: str = "mov"
    audio_bits: int = 16
    audio_channels: int = 2
    preserve_fps: bool = True
    target_fps: float = 25.0
    set_timecode: bool = False
    timecode: str = "00:00:00:00"
    normalize_loudness: bool = False

    @property
    def output_extension(self) -> str:
        return f".{self.container}"


# ── Loudness measurement (first loudnorm pass) ────────────────────────────────

@dataclass
class LoudnessMeasurement:
    input_i: float
    input_tp: float
    input_lra: float
    input_thresh: float
    target_offset: float = 0.0


# ── One parsed -progress block ────────────────────────────────────────────────

@dataclass
class ProgressSnapshot:
    out_time_seconds: float | None = None
    frame: int | None = None
    fps: float | None = None
    speed: float | None = None
    is_end: bool = False
    percent: float | None = None   # None = duration unknown
    eta_seconds: float | None = None


# ── Per-file worker descriptor ────────────────────────────────────────────────

@dataclass
class WorkItem:
    """
    Represents a single file in a batch.
    The overseer creates these; the UI shows one row per item.
    """
    input_file: Path
    output_file: Path
    index: int
    status: WorkerStatus = WorkerStatus.PENDING
    progress: float | None = 0.0   # 0.0 – 100.0, None while indeterminate
    eta_seconds: float | None = None
    probe: ProbeResult | None = None
    error_message: str = ""
    return_code: int | None = None


# ── Persisted preferences ─────────────────────────────────────────────────────

@dataclass
class AppSettings:
    job: JobConfig = field(default_factory=JobConfig)
    output_dir: Path | None = None
    ffmpeg_path: str = ""          # empty = auto-detect
    ffprobe_path: str = ""
    max_parallel: int = 1
    theme: str = "dark"
