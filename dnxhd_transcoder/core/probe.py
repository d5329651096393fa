"""
core.probe
~~~~~~~~~~
ffprobe wrapper producing ProbeResult dataclasses. No Qt.

The caller can pass ``on_start`` to get hold of the running ffprobe
process, which is how TranscodeWorker makes a slow probe cancellable.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Callable

from dnxhd_transcoder.core.command_builder import build_probe_command, command_as_string
from dnxhd_transcoder.core.errors import ProbeError, TranscoderError
from dnxhd_transcoder.core.models import ProbeResult
from dnxhd_transcoder.core.paths import find_ffprobe

logger = logging.getLogger(__name__)

ProcessCallback = Callable[[subprocess.Popen], None]


# ── Public API ────────────────────────────────────────────────────────────────

def probe(
    file: Path,
    ffprobe_bin: str | None = None,
    on_start: ProcessCallback | None = None,
) -> ProbeResult:
    """
    Run ffprobe on *file* and return a ProbeResult.

    Raises:
        FileNotFoundError  – if the input file does not exist
        ProbeError         – if ffprobe cannot run, exits non-zero or
                             prints something that is not a JSON object
    """
    if not file.exists():
        raise FileNotFoundError(f"Input file not found: {file}")

    raw = _run_ffprobe(file, ffprobe_bin or find_ffprobe(), on_start)
    return _parse(file, raw)


def get_duration(file: Path, ffprobe_bin: str | None = None) -> float:
    """
    Duration in seconds only.
    Returns 0.0 if the duration cannot be determined.
    """
    try:
        return probe(file, ffprobe_bin).duration_seconds
    except (OSError, TranscoderError) as exc:
        logger.warning("Could not read duration of %s: %s", file.name, exc)
        return 0.0


# ── Internal helpers ──────────────────────────────────────────────────────────

def _run_ffprobe(file: Path, ffprobe_bin: str, on_start: ProcessCallback | None) -> dict:
    cmd = build_probe_command(file, ffprobe_bin)
    logger.debug("Probing: %s", command_as_string(cmd))

    try:
        # Tags are not always UTF-8 (old Latin-1 metadata)
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
        )
    except OSError as exc:
        raise ProbeError(f"Unable to start ffprobe ({ffprobe_bin}): {exc}") from exc

    if on_start is not None:
        on_start(process)
    stdout, stderr = process.communicate()

    if process.returncode != 0:
        raise ProbeError(
            f"ffprobe failed on {file.name} (exit {process.returncode}):\n{stderr.strip()}"
        )

    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise ProbeError(f"ffprobe returned invalid JSON for {file.name}") from exc
    if not isinstance(data, dict):
        raise ProbeError(f"ffprobe returned unexpected output for {file.name}")
    return data


def _parse(file: Path, data: dict) -> ProbeResult:
    """Extract the fields we care about from raw ffprobe JSON."""
    fmt = data.get("format", {})
    streams = data.get("streams", [])

    # Pull the first video stream and first audio stream
    video_stream = next((s for s in streams if s.get("codec_type") == "video"), {})
    audio_stream = next((s for s in streams if s.get("codec_type") == "audio"), {})

    # Some containers only report duration on the stream
    duration = _to_float(fmt.get("duration")) or _to_float(video_stream.get("duration"))

    # Framerate is stored as a fraction string like "24000/1001";
    # r_frame_rate can be 0/0 on VFR sources, so fall back to avg_frame_rate.
    fps = _parse_fraction(video_stream.get("r_frame_rate", "0/1"))
    if fps <= 0:
        fps = _parse_fraction(video_stream.get("avg_frame_rate", "0/1"))

    return ProbeResult(
        path=file,
        duration_seconds=duration,
        width=int(video_stream.get("width", 0)),
        height=int(video_stream.get("height", 0)),
        video_codec=video_stream.get("codec_name", ""),
        audio_codec=audio_stream.get("codec_name", ""),
        fps=fps,
        audio_channels=int(audio_stream.get("channels", 0)),
    )


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _parse_fraction(frac: str) -> float:
    """Convert a fraction string like '24000/1001' to a float."""
    try:
        num, den = frac.split("/")
        return float(num) / float(den) if float(den) != 0 else 0.0
    except (ValueError, ZeroDivisionError):
        return 0.0
