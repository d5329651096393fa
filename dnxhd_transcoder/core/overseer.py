"""
core.overseer
~~~~~~~~~~~~~
BatchOverseer turns a file list plus a JobConfig into WorkItems and
runs them through TranscodeWorkers, at most ``max_parallel`` at a time,
in list order.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import deque
from pathlib import Path

from PySide6.QtCore import QObject, Signal

from dnxhd_transcoder.core.command_builder import validate_job_config
from dnxhd_transcoder.core.config import MAX_PARALLEL_LIMIT
from dnxhd_transcoder.core.errors import BatchBusyError, TranscoderError
from dnxhd_transcoder.core.models import BatchStatus, JobConfig, WorkItem, WorkerStatus
from dnxhd_transcoder.core.paths import find_ffmpeg, find_ffprobe
from dnxhd_transcoder.core.scanner import plan_outputs, resolve_output_dir
from dnxhd_transcoder.core.worker import TranscodeWorker

logger = logging.getLogger(__name__)


class BatchOverseer(QObject):

    batch_started        = Signal(object)              # list[WorkItem]
    batch_status_changed = Signal(object)              # BatchStatus
    batch_finished       = Signal(int, int, int)       # done, failed, cancelled
    item_probed          = Signal(int, object)         # (index, ProbeResult)
    item_status          = Signal(int, object, str)    # (index, WorkerStatus, label)
    item_progress        = Signal(int, object, object) # (index, percent|None, eta|None)
    item_error           = Signal(int, str)

    # Swapped out in tests
    worker_factory = TranscodeWorker

    def __init__(self, parent=None):
        super().__init__(parent)
        self._items: list[WorkItem] = []
        self._queue: deque[int] = deque()
        self._active: set[int] = set()
        self._workers: dict[int, TranscodeWorker] = {}
        self._threads: set[TranscodeWorker] = set()
        self._config = JobConfig()
        self._status = BatchStatus.IDLE
        self._max_parallel = 1
        self._ffmpeg_override = ""
        self._ffprobe_override = ""

    # ── Configuration ─────────────────────────────────────────────────────────

    @property
    def max_parallel(self) -> int:
        return self._max_parallel

    @max_parallel.setter
    def max_parallel(self, value: int) -> None:
        self._max_parallel = min(max(int(value), 1), MAX_PARALLEL_LIMIT)
        logger.debug("max_parallel = %d", self._max_parallel)

    def set_binary_overrides(self, ffmpeg_path: str, ffprobe_path: str) -> None:
        self._ffmpeg_override = ffmpeg_path
        self._ffprobe_override = ffprobe_path

    # ── Batch management ──────────────────────────────────────────────────────

    def start(self, files: list[Path], config: JobConfig, output_dir: Path | None) -> list[WorkItem]:
        """
        Validate *config*, plan one output per file and start processing.

        Raises:
            BatchBusyError            – a batch is still running
            TranscoderError           – no input files
            IncompatibleOptionsError,
            InvalidTimecodeError      – the options can't be encoded
        """
        if self.is_running():
            raise BatchBusyError("A batch is already running")
        if not files:
            raise TranscoderError("No files selected")

        validate_job_config(config)

        out_dir = resolve_output_dir(files, output_dir)
        outputs = plan_outputs(files, out_dir, config.output_extension)

        self._config = dataclasses.replace(config)
        self._items = [
            WorkItem(input_file=f, output_file=o, index=i)
            for i, (f, o) in enumerate(zip(files, outputs))
        ]
        self._queue = deque(range(len(self._items)))
        self._active.clear()

        logger.info("Batch of %d file(s) → %s (profile=%s, container=%s, parallel=%d)",
                    len(self._items), out_dir, config.profile, config.container,
                    self._max_parallel)

        self._set_status(BatchStatus.RUNNING)
        self.batch_started.emit(list(self._items))
        self._fill_slots()
        return list(self._items)

    def cancel(self) -> None:
        """Drop everything still queued and terminate running processes."""
        if not self.is_running():
            return
        logger.info("Cancelling batch: %d queued, %d running", len(self._queue), len(self._active))
        self._set_status(BatchStatus.CANCELLING)

        while self._queue:
            index = self._queue.popleft()
            item = self._items[index]
            item.status = WorkerStatus.CANCELLED
            self.item_status.emit(index, WorkerStatus.CANCELLED, "Cancelled")

        for index in list(self._active):
            worker = self._workers.get(index)
            if worker is not None:
                worker.cancel()

        self._maybe_finish()

    def wait_for_workers(self) -> None:
        """Block until every worker thread has returned (used on quit)."""
        for worker in list(self._threads):
            worker.wait()

    def is_running(self) -> bool:
        return self._status in (BatchStatus.RUNNING, BatchStatus.CANCELLING)

    @property
    def status(self) -> BatchStatus:
        return self._status

    def items(self) -> list[WorkItem]:
        return list(self._items)

    # ── Worker lifecycle ──────────────────────────────────────────────────────

    def _fill_slots(self) -> None:
        while self._queue and len(self._active) < self._max_parallel:
            self._start_worker(self._queue.popleft())
        self._maybe_finish()

    def _start_worker(self, index: int) -> None:
        item = self._items[index]
        ffmpeg = find_ffmpeg(self._ffmpeg_override or None)
        ffprobe = find_ffprobe(self._ffprobe_override or None, ffmpeg)
        logger.debug("Starting worker %d: '%s' → '%s'", index, item.input_file.name, item.output_file)

        worker = self.worker_factory(item, self._config, ffmpeg, ffprobe, parent=self)

        worker.probed.connect(lambda info, i=index: self.item_probed.emit(i, info))
        worker.status_changed.connect(
            lambda status, text, i=index: self.item_status.emit(i, status, text)
        )
        worker.progress_changed.connect(
            lambda pct, eta, i=index: self.item_progress.emit(i, pct, eta)
        )
        worker.error_occurred.connect(lambda msg, i=index: self.item_error.emit(i, msg))
        worker.work_finished.connect(lambda i=index: self._on_worker_finished(i))
        # Only drop the QThread once its run() has actually returned
        worker.finished.connect(lambda i=index, w=worker: self._release_worker(i, w))

        self._workers[index] = worker
        self._threads.add(worker)
        self._active.add(index)
        worker.start()

    def _on_worker_finished(self, index: int) -> None:
        item = self._items[index]
        logger.debug("Worker %d finished with %s", index, item.status.name)
        self._active.discard(index)
        if self._status == BatchStatus.RUNNING:
            self._fill_slots()
        else:
            self._maybe_finish()

    def _release_worker(self, index: int, worker: TranscodeWorker) -> None:
        # A thread from an earlier batch can finish after its index was reused
        if self._workers.get(index) is worker:
            del self._workers[index]
        self._threads.discard(worker)
        worker.deleteLater()

    def _maybe_finish(self) -> None:
        if self._queue or self._active or not self.is_running():
            return

        done      = sum(1 for i in self._items if i.status == WorkerStatus.DONE)
        failed    = sum(1 for i in self._items if i.status == WorkerStatus.ERROR)
        cancelled = sum(1 for i in self._items if i.status == WorkerStatus.CANCELLED)
        logger.info("Batch finished: %d done, %d failed, %d cancelled", done, failed, cancelled)

        self._set_status(BatchStatus.DONE)
        self.batch_finished.emit(done, failed, cancelled)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _set_status(self, status: BatchStatus) -> None:
        logger.debug("Batch status: %s → %s", self._status.name, status.name)
        self._status = status
        self.batch_status_changed.emit(status)
