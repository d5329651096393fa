# core/presets.py

from __future__ import annotations

from dataclasses import dataclass

from dnxhd_transcoder.core.errors import IncompatibleOptionsError


@dataclass(frozen=True)
class DnxProfile:
    ffmpeg_id: str
    display_name: str
    pix_fmt: str


@dataclass(frozen=True)
class ContainerPreset:
    ffmpeg_id: str
    display_name: str
    extension: str
    allowed_profiles: tuple[str, ...]
    audio_sample_rate: int | None = None     # forced -ar, None = keep source
    default_profile: str = "dnxhr_hq"


@dataclass(frozen=True)
class AudioDepth:
    bits: int
    display_name: str
    ffmpeg_codec: str


PROFILE_PRESETS: list[DnxProfile] = [
    DnxProfile("dnxhr_lb",  "DNxHR LB (Low Bandwidth)",        "yuv422p"),
    DnxProfile("dnxhr_sq",  "DNxHR SQ (Standard Quality)",     "yuv422p"),
    DnxProfile("dnxhr_hq",  "DNxHR HQ (High Quality)",         "yuv422p"),
    DnxProfile("dnxhr_hqx", "DNxHR HQX (High Quality 10-bit)", "yuv422p10le"),
    DnxProfile("dnxhr_444", "DNxHR 444 (4:4:4 10-bit)",        "yuv444p10le"),
]

_ALL_PROFILES = tuple(p.ffmpeg_id for p in PROFILE_PRESETS)

CONTAINER_PRESETS: list[ContainerPreset] = [
    ContainerPreset(
        ffmpeg_id="mov",
        display_name="QuickTime (.mov)",
        extension=".mov",
        allowed_profiles=_ALL_PROFILES,
    ),
    ContainerPreset(
        ffmpeg_id="mxf",
        display_name="MXF OP1a (.mxf)",
        extension=".mxf",
        allowed_profiles=tuple(p for p in _ALL_PROFILES if p != "dnxhr_444"),
        audio_sample_rate=48000,
    ),
]

AUDIO_DEPTHS: list[AudioDepth] = [
    AudioDepth(16, "PCM 16-bit", "pcm_s16le"),
    AudioDepth(24, "PCM 24-bit", "pcm_s24le"),
]

AUDIO_CHANNELS: list[int] = [2, 4, 8]

DEFAULT_PROFILE   = "dnxhr_hq"
DEFAULT_CONTAINER = "mov"

FPS_RANGE: tuple[float, float] = (1.0, 120.0)


# ── Lookups ───────────────────────────────────────────────────────────────────

def get_profile(profile_id: str) -> DnxProfile:
    for preset in PROFILE_PRESETS:
        if preset.ffmpeg_id == profile_id:
            return preset
    raise IncompatibleOptionsError(f"Unknown DNxHR profile: {profile_id!r}")


def get_container(container_id: str) -> ContainerPreset:
    for preset in CONTAINER_PRESETS:
        if preset.ffmpeg_id == container_id:
            return preset
    raise IncompatibleOptionsError(f"Unknown container: {container_id!r}")


def get_audio_depth(bits: int) -> AudioDepth:
    for depth in AUDIO_DEPTHS:
        if depth.bits == bits:
            return depth
    raise IncompatibleOptionsError(f"Unsupported audio depth: {bits}-bit")


# ── Compatibility ─────────────────────────────────────────────────────────────

def profiles_for_container(container_id: str) -> list[DnxProfile]:
    allowed = get_container(container_id).allowed_profiles
    return [p for p in PROFILE_PRESETS if p.ffmpeg_id in allowed]


def is_profile_allowed(container_id: str, profile_id: str) -> bool:
    return profile_id in get_container(container_id).allowed_profiles


def coerce_profile(container_id: str, profile_id: str) -> str:
    """
    Return *profile_id* if the container accepts it, otherwise the
    container's default profile.
    """
    container = get_container(container_id)
    if profile_id in container.allowed_profiles:
        return profile_id
    return container.default_profile
