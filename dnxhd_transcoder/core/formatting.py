from __future__ import annotations

from dnxhd_transcoder.core.models import ProbeResult


def format_time(seconds: float | None) -> str:
    if seconds is None or seconds < 0:
        return "--:--"
    total = int(round(seconds))
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    if h > 0:
        return f"{h:02d}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"


def format_progress_text(percent: float | None, eta_seconds: float | None) -> str:
    """'Converting… 42% (ETA 01:10)' style label for a running row."""
    if percent is None:
        return "Converting…"
    text = f"Converting… {percent:.0f}%"
    if eta_seconds is not None:
        text += f" (ETA {format_time(eta_seconds)})"
    return text


def format_probe_summary(info: ProbeResult) -> str:
    parts: list[str] = []
    if info.width and info.height:
        parts.append(f"{info.width}x{info.height}")
    if info.fps > 0:
        parts.append(f"{info.fps:.3f}".rstrip("0").rstrip(".") + " fps")
    if info.duration_seconds > 0:
        parts.append(format_time(info.duration_seconds))
    if info.video_codec:
        parts.append(info.video_codec)
    if info.audio_codec:
        audio = info.audio_codec
        if info.audio_channels:
            audio += f" {info.audio_channels}ch"
        parts.append(audio)
    return "  •  ".join(parts)
