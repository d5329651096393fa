"""
core.progress
~~~~~~~~~~~~~
Parser for ffmpeg's ``-progress pipe:1`` output.

ffmpeg writes blocks of ``key=value`` lines, each block terminated by
``progress=continue`` or, once, ``progress=end``:

    frame=250
    fps=48.51
    out_time_us=10000000
    out_time_ms=10000000       ← also microseconds, despite the name
    out_time=00:00:10.000000
    speed=1.94x
    progress=continue

No Qt here; the worker feeds lines in and forwards snapshots as signals.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from dnxhd_transcoder.core.models import ProgressSnapshot

logger = logging.getLogger(__name__)

# Keep the bar just short of full until ffmpeg says it is done
MAX_RUNNING_FRACTION = 0.999


class ProgressParser:
    """
    Stateful line parser for one ffmpeg run.

    ``feed()`` returns a ProgressSnapshot each time a block closes and
    ``None`` for every other line.
    """

    def __init__(self, duration_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.duration = duration_seconds if duration_seconds > 0 else 0.0
        self.malformed_lines = 0
        self.last: ProgressSnapshot | None = None
        self._clock = clock
        self._started_at = clock()
        self._block: dict[str, str] = {}

    @property
    def known_duration(self) -> bool:
        return self.duration > 0

    def feed(self, line: str) -> ProgressSnapshot | None:
        line = line.strip()
        if not line:
            return None

        key, sep, value = line.partition("=")
        if not sep or not key:
            self.malformed_lines += 1
            logger.debug("Ignoring unparsable progress line: %r", line)
            return None

        key, value = key.strip(), value.strip()
        if key != "progress":
            self._block[key] = value
            return None

        snapshot = self._build_snapshot(is_end=(value == "end"))
        self._block = {}
        self.last = snapshot
        return snapshot

    # ── Internal ──────────────────────────────────────────────────────────────

    def _build_snapshot(self, is_end: bool) -> ProgressSnapshot:
        out_time = self._out_time_seconds()
        speed    = self._speed()

        snap = ProgressSnapshot(
            out_time_seconds=out_time,
            frame=self._int("frame"),
            fps=self._float("fps"),
            speed=speed,
            is_end=is_end,
        )

        if is_end:
            snap.percent = 100.0
            snap.eta_seconds = 0.0
            return snap

        if not self.known_duration or out_time is None:
            # Unknown duration → indeterminate bar
            return snap

        fraction = min(max(out_time / self.duration, 0.0), MAX_RUNNING_FRACTION)
        snap.percent = fraction * 100.0
        snap.eta_seconds = self._eta(out_time, fraction, speed)
        return snap

    def _out_time_seconds(self) -> float | None:
        for key in ("out_time_us", "out_time_ms"):
            if key in self._block:
                micros = self._int(key)
                if micros is not None:
                    return micros / 1_000_000.0

        if "out_time" in self._block:
            return parse_hhmmss(self._block["out_time"])
        return None

    def _speed(self) -> float | None:
        raw = self._block.get("speed")
        if raw is None:
            return None
        try:
            return float(raw.rstrip("x").strip())
        except ValueError:
            self._malformed("speed", raw)
            return None

    def _eta(self, out_time: float, fraction: float, speed: float | None) -> float | None:
        remaining_media = max(self.duration - out_time, 0.0)
        if speed and speed > 0:
            return remaining_media / speed

        elapsed = self._clock() - self._started_at
        if fraction > 0 and elapsed > 0:
            return elapsed * (1.0 - fraction) / fraction
        return None

    def _int(self, key: str) -> int | None:
        raw = self._block.get(key)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            self._malformed(key, raw)
            return None

    def _float(self, key: str) -> float | None:
        raw = self._block.get(key)
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            self._malformed(key, raw)
            return None

    def _malformed(self, key: str, raw: str) -> None:
        self.malformed_lines += 1
        logger.debug("Ignoring malformed progress value %s=%r", key, raw)


def parse_hhmmss(time_str: str) -> float | None:
    """'00:01:02.500000' → 62.5; ``None`` for N/A, negative or garbage."""
    time_str = time_str.strip()
    if time_str.startswith("-"):
        return None
    try:
        parts = time_str.split(":")
        h, m, s = float(parts[0]), float(parts[1]), float(parts[2])
    except (ValueError, IndexError):
        return None
    return h * 3600 + m * 60 + s
