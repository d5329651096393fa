"""
core.worker
~~~~~~~~~~~
QThread that runs a single file through probe → (loudness pass) →
ffmpeg transcode and emits signals the UI can connect to directly.

Signals
-------
probed(ProbeResult)                 emitted once, right after probing
status_changed(WorkerStatus, str)   new status plus a row label
progress_changed(object, object)    percent 0.0 – 100.0 or None (unknown
                                    duration), ETA seconds or None
error_occurred(str)                 human-readable error message
work_finished()                     emitted when the item reached a final
                                    state (done, error or cancelled)
"""

from __future__ import annotations

import logging
import subprocess
import threading

from PySide6.QtCore import QThread, Signal

from dnxhd_transcoder.core.command_builder import (
    build_loudness_command,
    build_transcode_command,
    command_as_string,
)
from dnxhd_transcoder.core.errors import BinaryNotFoundError, FFmpegError, ProbeError, TranscoderError
from dnxhd_transcoder.core.loudness import parse_loudnorm_output
from dnxhd_transcoder.core.models import JobConfig, LoudnessMeasurement, WorkItem, WorkerStatus
from dnxhd_transcoder.core.probe import probe
from dnxhd_transcoder.core.progress import ProgressParser
from dnxhd_transcoder.core.timecode import parse_timecode

logger = logging.getLogger(__name__)

STDERR_TAIL_LINES = 20
KILL_TIMEOUT_SECONDS = 5.0


class TranscodeWorker(QThread):

    probed           = Signal(object)
    status_changed   = Signal(object, str)
    progress_changed = Signal(object, object)
    error_occurred   = Signal(str)
    work_finished    = Signal()

    def __init__(
        self,
        item: WorkItem,
        config: JobConfig,
        ffmpeg_bin: str,
        ffprobe_bin: str,
        parent=None,
    ):
        super().__init__(parent)
        self._item    = item
        self._config  = config
        self._ffmpeg  = ffmpeg_bin
        self._ffprobe = ffprobe_bin
        self._process: subprocess.Popen | None = None
        self._kill_timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._cancelled = False
        self._encode_started = False
        logger.debug("Worker created for '%s' → '%s'", item.input_file.name, item.output_file.name)

    @property
    def item(self) -> WorkItem:
        return self._item

    # ── QThread entry point ───────────────────────────────────────────────────

    def run(self):
        name = self._item.input_file.name
        logger.info("Starting job %d: %s", self._item.index, self._item.input_file)

        try:
            duration = self._probe()
            self._check_timecode()

            loudness = None
            if self._config.normalize_loudness and not self._cancelled:
                loudness = self._measure_loudness(duration)

            if not self._cancelled:
                self._set_status(WorkerStatus.RUNNING, "Converting…")
                self._encode_started = True
                cmd = build_transcode_command(
                    self._config,
                    self._item.input_file,
                    self._item.output_file,
                    self._ffmpeg,
                    loudness=loudness,
                )
                returncode, stderr_tail = self._run_ffmpeg(cmd, duration)
                if returncode != 0 and not self._cancelled:
                    raise FFmpegError(returncode, stderr_tail[-STDERR_TAIL_LINES:])

        except Exception as exc:
            if self._cancelled:
                self._finish_cancelled()
                return
            if not isinstance(exc, (TranscoderError, OSError)):
                logger.exception("Unexpected error while processing '%s'", name)
            self._fail(str(exc) or type(exc).__name__)
            return

        if self._cancelled:
            self._finish_cancelled()
            return

        logger.info("Job %d completed: %s", self._item.index, name)
        self._item.progress = 100.0
        self._item.eta_seconds = 0.0
        self.progress_changed.emit(100.0, 0.0)
        self._set_status(WorkerStatus.DONE, "Completed")
        self.work_finished.emit()

    # ── Cancel ────────────────────────────────────────────────────────────────

    def cancel(self):
        """
        Terminate the running ffmpeg/ffprobe child, if any, and kill it if it
        is still alive KILL_TIMEOUT_SECONDS later. Safe from any thread.
        """
        logger.info("Cancel requested for '%s'", self._item.input_file.name)
        with self._lock:
            self._cancelled = True
            process = self._process
        if process and process.poll() is None:
            self._terminate(process)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    # ── Steps ─────────────────────────────────────────────────────────────────

    def _probe(self) -> float:
        self._set_status(WorkerStatus.PROBING, "Probing…")
        try:
            info = probe(self._item.input_file, self._ffprobe, on_start=self._track_process)
        except ProbeError as exc:
            if self._cancelled:
                return 0.0
            # Not fatal: ffmpeg may still read it, we just can't show a percentage
            logger.warning("Probe failed for '%s': %s", self._item.input_file.name, exc)
            return 0.0
        finally:
            self._release_process()

        self._item.probe = info
        self.probed.emit(info)
        logger.info("Duration of '%s' = %.2fs, %.3f fps",
                    self._item.input_file.name, info.duration_seconds, info.fps)
        return info.duration_seconds

    def _check_timecode(self) -> None:
        config = self._config
        if config.set_timecode and config.preserve_fps and self._item.probe:
            parse_timecode(config.timecode, self._item.probe.fps)

    def _measure_loudness(self, duration: float) -> LoudnessMeasurement | None:
        self._set_status(WorkerStatus.ANALYSING, "Analysing audio…")
        cmd = build_loudness_command(self._item.input_file, self._ffmpeg)
        returncode, stderr_lines = self._run_ffmpeg(cmd, duration)
        if self._cancelled:
            return None

        measurement = None
        if returncode == 0:
            measurement = parse_loudnorm_output("\n".join(stderr_lines))

        if measurement is None:
            logger.warning("Loudness measurement failed for '%s' (exit %d); "
                           "encoding without normalisation",
                           self._item.input_file.name, returncode)
            self.status_changed.emit(
                WorkerStatus.ANALYSING, "Loudness analysis failed, skipping normalisation"
            )
        else:
            logger.info("Measured %s: I=%.2f LUFS TP=%.2f LRA=%.2f",
                        self._item.input_file.name, measurement.input_i,
                        measurement.input_tp, measurement.input_lra)
        return measurement

    # ── Internal ──────────────────────────────────────────────────────────────

    def _run_ffmpeg(self, cmd: list[str], duration: float) -> tuple[int, list[str]]:
        """
        Run *cmd*, forwarding progress. Returns (returncode, stderr lines).
        """
        logger.info("Command: %s", command_as_string(cmd))
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise BinaryNotFoundError(f"Unable to start ffmpeg ({cmd[0]}): {exc}") from exc

        self._track_process(process)
        logger.debug("PID = %d", process.pid)

        # ── Drain stderr in a background thread to prevent pipe deadlock ──────
        # ffmpeg writes encoding info to stderr. If we only read stdout, the
        # stderr pipe buffer fills up (~64 KB), ffmpeg blocks waiting for it to
        # be consumed, stdout stalls, and this loop hangs indefinitely.
        stderr_lines: list[str] = []

        def _drain_stderr():
            for line in process.stderr:
                stripped = line.rstrip()
                if stripped:
                    stderr_lines.append(stripped)

        stderr_thread = threading.Thread(target=_drain_stderr, daemon=True)
        stderr_thread.start()

        # ── Read progress from stdout ─────────────────────────────────────────
        parser = ProgressParser(duration)
        sent_indeterminate = False
        for line in process.stdout:
            stripped = line.strip()
            if stripped:
                logger.debug("ffmpeg progress: %s", stripped)
            snap = parser.feed(stripped)
            if snap is None:
                continue
            if snap.percent is None:
                if not sent_indeterminate:
                    logger.debug("Unknown duration, switching to indeterminate progress")
                    self._item.progress = None
                    self.progress_changed.emit(None, None)
                    sent_indeterminate = True
                continue
            self._item.progress = snap.percent
            self._item.eta_seconds = snap.eta_seconds
            self.progress_changed.emit(snap.percent, snap.eta_seconds)

        try:
            process.wait(timeout=KILL_TIMEOUT_SECONDS if self._cancelled else None)
        except subprocess.TimeoutExpired:
            logger.warning("ffmpeg did not exit after SIGTERM, killing PID %d", process.pid)
            process.kill()
            process.wait()
        stderr_thread.join()
        self._release_process()

        if parser.malformed_lines:
            logger.debug("%d unparsable progress line(s) from ffmpeg", parser.malformed_lines)
        logger.info("ffmpeg exited with code %d", process.returncode)
        if process.returncode != 0 and stderr_lines:
            logger.debug("ffmpeg stderr (%d lines):\n%s", len(stderr_lines),
                         "\n".join(f"  {l}" for l in stderr_lines[-STDERR_TAIL_LINES:]))

        self._item.return_code = process.returncode
        return process.returncode, stderr_lines

    # ── Child process bookkeeping ─────────────────────────────────────────────

    def _track_process(self, process: subprocess.Popen) -> None:
        with self._lock:
            self._process = process
            cancelled = self._cancelled
        if cancelled:
            self._terminate(process)

    def _release_process(self) -> None:
        with self._lock:
            self._process = None
            timer, self._kill_timer = self._kill_timer, None
        if timer is not None:
            timer.cancel()

    def _terminate(self, process: subprocess.Popen) -> None:
        # The reading thread is blocked on the pipes until the child exits
        timer = threading.Timer(KILL_TIMEOUT_SECONDS, self._kill_if_running, args=(process,))
        timer.daemon = True
        with self._lock:
            if self._kill_timer is not None:
                return
            self._kill_timer = timer
        process.terminate()
        logger.debug("Sent SIGTERM to PID %d", process.pid)
        timer.start()

    @staticmethod
    def _kill_if_running(process: subprocess.Popen) -> None:
        if process.poll() is None:
            logger.warning("PID %d did not exit after SIGTERM, killing it", process.pid)
            process.kill()

    def _set_status(self, status: WorkerStatus, text: str) -> None:
        self._item.status = status
        self.status_changed.emit(status, text)

    def _finish_cancelled(self) -> None:
        logger.info("Job %d cancelled: %s", self._item.index, self._item.input_file.name)
        output = self._item.output_file
        try:
            if self._encode_started and output.exists():
                output.unlink()
                logger.debug("Removed partial output %s", output)
        except OSError as exc:
            logger.warning("Could not remove partial output %s: %s", output, exc)
        self._set_status(WorkerStatus.CANCELLED, "Cancelled")
        self.work_finished.emit()

    def _fail(self, message: str):
        logger.error("Job %d failed (%s): %s", self._item.index, self._item.input_file.name, message)
        self._item.error_message = message
        self._set_status(WorkerStatus.ERROR, f"Error: {message}")
        self.error_occurred.emit(message)
        self.work_finished.emit()
