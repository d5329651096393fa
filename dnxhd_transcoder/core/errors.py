"""
core.errors
~~~~~~~~~~~
Exception hierarchy for the transcoder core.

Everything raised on purpose by ``dnxhd_transcoder.core`` derives from
TranscoderError, so the UI can catch one type and show the message.
"""

from __future__ import annotations


class TranscoderError(Exception):
    """Base class for all transcoder errors."""


class BinaryNotFoundError(TranscoderError):
    """ffmpeg or ffprobe could not be located or is not executable."""


class ProbeError(TranscoderError):
    """ffprobe failed or returned output we could not read."""


class FFmpegError(TranscoderError):
    """
    ffmpeg exited with a non-zero status.

    ``stderr_tail`` holds the last lines ffmpeg wrote to stderr, which is
    usually where the actual reason is.
    """

    def __init__(self, returncode: int, stderr_tail: list[str] | None = None, context: str = ""):
        self.returncode = returncode
        self.stderr_tail = list(stderr_tail or [])
        message = f"ffmpeg exited with code {returncode}"
        if context:
            message += f" ({context})"
        if self.stderr_tail:
            message += f": {self.stderr_tail[-1]}"
        super().__init__(message)


class InvalidTimecodeError(TranscoderError, ValueError):
    """A timecode string is not a valid HH:MM:SS:FF value."""


class IncompatibleOptionsError(TranscoderError, ValueError):
    """The chosen options cannot be combined (e.g. DNxHR 444 in MXF)."""


class BatchBusyError(TranscoderError):
    """A batch was started while another one is still running."""
