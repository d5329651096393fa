"""
core.loudness
~~~~~~~~~~~~~
EBU R128 helpers for the two-pass ``loudnorm`` workflow.

Pass 1 (see command_builder.build_loudness_command) prints a JSON block
on stderr; this module turns that text into a LoudnessMeasurement which
pass 2 feeds back through ``measured_*`` options.
"""

from __future__ import annotations

import json
import logging
import math

from dnxhd_transcoder.core.models import LoudnessMeasurement

logger = logging.getLogger(__name__)

# Older ffmpeg builds used the measured_* spelling
_FIELDS = {
    "input_i":       ("input_i", "measured_I"),
    "input_tp":      ("input_tp", "measured_TP"),
    "input_lra":     ("input_lra", "measured_LRA"),
    "input_thresh":  ("input_thresh", "measured_thresh"),
}


def parse_loudnorm_output(text: str) -> LoudnessMeasurement | None:
    """
    Extract the measurement from ffmpeg's stderr.

    Returns ``None`` when no JSON block is present, when a required field
    is missing, or when the values are not finite (silent input reports
    ``-inf``).
    """
    start = text.rfind("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        logger.debug("No loudnorm JSON block in ffmpeg output")
        return None

    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as exc:
        logger.warning("Could not decode loudnorm JSON: %s", exc)
        return None

    values: dict[str, float] = {}
    for field, keys in _FIELDS.items():
        value = _first_number(data, keys)
        if value is None or not math.isfinite(value):
            logger.warning("loudnorm measurement has no usable %s", field)
            return None
        values[field] = value

    offset = _first_number(data, ("target_offset",))
    if offset is None or not math.isfinite(offset):
        offset = 0.0

    return LoudnessMeasurement(target_offset=offset, **values)


def _first_number(data: dict, keys: tuple[str, ...]) -> float | None:
    for key in keys:
        if key in data:
            try:
                return float(data[key])
            except (TypeError, ValueError):
                return None
    return None
