"""
core.timecode
~~~~~~~~~~~~~
Validation for the SMPTE start timecode written with ``-timecode``.
"""

from __future__ import annotations

import math
import re

from dnxhd_transcoder.core.errors import InvalidTimecodeError

# 01:00:00:00 (non-drop) or 01:00:00;00 (drop-frame)
TIMECODE_RE = re.compile(r"^(?P<h>\d{2}):(?P<m>\d{2}):(?P<s>\d{2})[:;](?P<f>\d{2})$")


def parse_timecode(text: str, fps: float | None = None) -> tuple[int, int, int, int]:
    """
    Split *text* into (hours, minutes, seconds, frames).

    When *fps* is known the frame field must be below the rounded-up
    frame rate (29.97 allows frames 00–29).

    Raises:
        InvalidTimecodeError – malformed or out of range
    """
    match = TIMECODE_RE.match(text.strip())
    if match is None:
        raise InvalidTimecodeError(f"Timecode must look like HH:MM:SS:FF, got {text!r}")

    h, m, s, f = (int(match.group(k)) for k in ("h", "m", "s", "f"))

    if m >= 60:
        raise InvalidTimecodeError(f"Minutes out of range in {text!r}")
    if s >= 60:
        raise InvalidTimecodeError(f"Seconds out of range in {text!r}")
    if fps and fps > 0:
        max_frames = math.ceil(fps)
        if f >= max_frames:
            raise InvalidTimecodeError(
                f"Frame {f:02d} out of range for {fps:g} fps (max {max_frames - 1:02d})"
            )

    return h, m, s, f


def is_valid_timecode(text: str, fps: float | None = None) -> bool:
    try:
        parse_timecode(text, fps)
    except InvalidTimecodeError:
        return False
    return True
