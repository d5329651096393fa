"""
core.command_builder
~~~~~~~~~~~~~~~~~~~~
Builds ffmpeg CLI commands as plain list[str].

Keeping command construction separate means you can:
  - log / print the exact command before running it
  - paste it straight into a terminal for debugging
  - unit-test flag generation without running any process
"""

from __future__ import annotations

import shlex
from pathlib import Path

from dnxhd_transcoder.core.errors import IncompatibleOptionsError
from dnxhd_transcoder.core.models import JobConfig, LoudnessMeasurement
from dnxhd_transcoder.core.presets import (
    AUDIO_CHANNELS,
    FPS_RANGE,
    get_audio_depth,
    get_container,
    get_profile,
    is_profile_allowed,
)
from dnxhd_transcoder.core.timecode import parse_timecode

# EBU R128 broadcast targets
LOUDNORM_TARGET_I   = -23.0
LOUDNORM_TARGET_TP  = -2.0
LOUDNORM_TARGET_LRA = 7.0

_LOUDNORM_TARGETS = f"I={LOUDNORM_TARGET_I:g}:TP={LOUDNORM_TARGET_TP:g}:LRA={LOUDNORM_TARGET_LRA:g}"


def validate_job_config(config: JobConfig, source_fps: float | None = None) -> None:
    """
    Check that *config* describes something ffmpeg can actually produce.

    *source_fps* is only used to range-check the timecode frame field when
    the output keeps the source frame rate.

    Raises:
        IncompatibleOptionsError – unknown ids, bad ranges, 444 in MXF
        InvalidTimecodeError     – malformed timecode when one is requested
    """
    get_profile(config.profile)
    get_container(config.container)
    get_audio_depth(config.audio_bits)

    if not is_profile_allowed(config.container, config.profile):
        raise IncompatibleOptionsError(
            f"{get_profile(config.profile).display_name} cannot be written to "
            f"{get_container(config.container).display_name}"
        )
    if config.audio_channels not in AUDIO_CHANNELS:
        raise IncompatibleOptionsError(f"Unsupported channel count: {config.audio_channels}")

    lo, hi = FPS_RANGE
    if not config.preserve_fps and not lo <= config.target_fps <= hi:
        raise IncompatibleOptionsError(
            f"Target frame rate must be between {lo:g} and {hi:g}, got {config.target_fps:g}"
        )

    if config.set_timecode:
        fps = source_fps if config.preserve_fps else config.target_fps
        parse_timecode(config.timecode, fps)


def build_transcode_command(
    config: JobConfig,
    input_file: Path,
    output_file: Path,
    ffmpeg_bin: str,
    loudness: LoudnessMeasurement | None = None,
) -> list[str]:
    """
    Build the full ffmpeg command for transcoding one file.

    The command structure is:
        ffmpeg
          -hide_banner
          -i <input>
          -nostats               ← suppress human-readable stats on stderr
          -progress pipe:1       ← machine-readable key=value progress on stdout
          <codec / audio / fps / timecode flags>
          [-af loudnorm=...]     ← second pass, only with a measurement
          -y                     ← overwrite output without prompting
          <output>

    Example output:
        ['/usr/bin/ffmpeg', '-hide_banner', '-i', '/rushes/clip.mp4',
         '-nostats', '-progress', 'pipe:1',
         '-c:v', 'dnxhd', '-profile:v', 'dnxhr_hq', '-pix_fmt', 'yuv422p',
         '-c:a', 'pcm_s16le', '-ac', '2',
         '-y', '/rushes/transcoded/clip.mov']
    """
    output_file.parent.mkdir(parents=True, exist_ok=True)

    return [
        ffmpeg_bin,
        "-hide_banner",
        "-i", str(input_file),
        "-nostats",
        "-progress", "pipe:1",
        *build_encoding_flags(config, loudness),
        "-y",
        str(output_file),
    ]


def build_encoding_flags(
    config: JobConfig,
    loudness: LoudnessMeasurement | None = None,
) -> list[str]:
    """The codec/audio/filter part of the command, without input and output."""
    profile   = get_profile(config.profile)
    container = get_container(config.container)
    depth     = get_audio_depth(config.audio_bits)

    flags = [
        "-c:v", "dnxhd",
        "-profile:v", profile.ffmpeg_id,
        "-pix_fmt", profile.pix_fmt,
        "-c:a", depth.ffmpeg_codec,
        "-ac", str(config.audio_channels),
    ]

    if container.audio_sample_rate:
        flags.extend(["-ar", str(container.audio_sample_rate)])

    if not config.preserve_fps:
        flags.extend(["-r", f"{config.target_fps:.3f}"])

    if config.set_timecode:
        flags.extend(["-timecode", config.timecode.strip()])

    if loudness is not None:
        flags.extend(["-af", loudnorm_filter(loudness)])

    return flags


def loudnorm_filter(m: LoudnessMeasurement) -> str:
    """Second-pass loudnorm filter using the values from the first pass."""
    return (
        f"loudnorm={_LOUDNORM_TARGETS}"
        f":measured_I={m.input_i:.2f}"
        f":measured_LRA={m.input_lra:.2f}"
        f":measured_TP={m.input_tp:.2f}"
        f":measured_thresh={m.input_thresh:.2f}"
        f":offset={m.target_offset:.2f}"
        ":linear=true:print_format=summary"
    )


def build_loudness_command(input_file: Path, ffmpeg_bin: str) -> list[str]:
    """
    First loudnorm pass: decode audio only, discard output, and let the
    filter print its JSON measurement on stderr.
    """
    return [
        ffmpeg_bin,
        "-hide_banner",
        "-i", str(input_file),
        "-nostats",
        "-progress", "pipe:1",
        "-vn",
        "-af", f"loudnorm={_LOUDNORM_TARGETS}:print_format=json",
        "-f", "null",
        "-",
    ]


def build_probe_command(input_file: Path, ffprobe_bin: str) -> list[str]:
    return [
        ffprobe_bin,
        "-v", "quiet",            # suppress banner
        "-print_format", "json",  # machine-readable output
        "-show_format",           # duration, bitrate, etc.
        "-show_streams",          # per-stream codec info
        str(input_file),
    ]


def command_as_string(cmd: list[str]) -> str:
    """Human-readable version of the command for logging."""
    return shlex.join(cmd)
