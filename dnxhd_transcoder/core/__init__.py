from .models import (
    AppSettings, BatchStatus, JobConfig, LoudnessMeasurement,
    ProbeResult, ProgressSnapshot, WorkerStatus, WorkItem,
)
from .errors import (
    BatchBusyError, BinaryNotFoundError, FFmpegError, IncompatibleOptionsError,
    InvalidTimecodeError, ProbeError, TranscoderError,
)
from .overseer import BatchOverseer
from .probe import probe, get_duration
from .scanner import parse_uri_list, plan_outputs, resolve_output_dir
from .command_builder import build_transcode_command, validate_job_config

__all__ = [
    "AppSettings", "BatchStatus", "JobConfig", "LoudnessMeasurement",
    "ProbeResult", "ProgressSnapshot", "WorkerStatus", "WorkItem",
    "BatchBusyError", "BinaryNotFoundError", "FFmpegError", "IncompatibleOptionsError",
    "InvalidTimecodeError", "ProbeError", "TranscoderError",
    "BatchOverseer",
    "probe", "get_duration",
    "parse_uri_list", "plan_outputs", "resolve_output_dir",
    "build_transcode_command", "validate_job_config",
]
