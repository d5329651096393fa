import io
import os
import subprocess
import tempfile
import threading
import time
import unittest
from pathlib import Path
from unittest import mock

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication

from dnxhd_transcoder.core import worker as worker_module
from dnxhd_transcoder.core.errors import ProbeError
from dnxhd_transcoder.core.models import JobConfig, ProbeResult, WorkItem, WorkerStatus
from dnxhd_transcoder.core.worker import TranscodeWorker

LOUDNORM_STDERR = """\
[Parsed_loudnorm_0 @ 0x5581]
{
	"input_i" : "-27.61",
	"input_tp" : "-4.47",
	"input_lra" : "18.06",
	"input_thresh" : "-39.20",
	"target_offset" : "0.58"
}
"""


class FakeProcess:
    def __init__(self, stdout="", stderr="", returncode=0):
        self.stdout = io.StringIO(stdout) if isinstance(stdout, str) else stdout
        self.stderr = io.StringIO(stderr)
        self.pid = 4242
        self.returncode = None
        self.terminated = False
        self._exit_code = returncode

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        self.returncode = self._exit_code
        return self.returncode

    def terminate(self):
        self.terminated = True
        self._exit_code = -15

    def kill(self):
        self.killed = True
        self._exit_code = -9


class StubbornProcess(FakeProcess):
    """Ignores SIGTERM: a bounded wait() only returns once killed."""

    killed = False

    def wait(self, timeout=None):
        if timeout is not None and not self.killed:
            raise subprocess.TimeoutExpired("ffmpeg", timeout)
        return super().wait()


class TranscodeWorkerTest(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._app = QApplication.instance() or QApplication([])

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        tmp = Path(self._tmp.name)
        self.input = tmp / "clip.mp4"
        self.input.write_bytes(b"")
        self.item = WorkItem(input_file=self.input, output_file=tmp / "transcoded" / "clip.mov", index=0)
        self.info = ProbeResult(path=self.input, duration_seconds=10.0, fps=25.0)

        probe_patch = mock.patch("dnxhd_transcoder.core.worker.probe", return_value=self.info)
        self.probe = probe_patch.start()
        self.addCleanup(probe_patch.stop)

        popen_patch = mock.patch("dnxhd_transcoder.core.worker.subprocess.Popen")
        self.popen = popen_patch.start()
        self.addCleanup(popen_patch.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def _worker(self, config=None):
        worker = TranscodeWorker(self.item, config or JobConfig(), "ffmpeg", "ffprobe")
        self.statuses, self.progress, self.errors, self.finished = [], [], [], []
        worker.status_changed.connect(lambda s, t: self.statuses.append((s, t)))
        worker.progress_changed.connect(lambda p, e: self.progress.append((p, e)))
        worker.error_occurred.connect(self.errors.append)
        worker.work_finished.connect(lambda: self.finished.append(True))
        return worker

    def test_successful_encode(self):
        self.popen.return_value = FakeProcess(
            "out_time_us=5000000\nspeed=1x\nprogress=continue\n"
            "out_time_us=10000000\nprogress=end\n"
        )
        worker = self._worker()
        worker.run()

        self.assertEqual([s for s, _ in self.statuses],
                         [WorkerStatus.PROBING, WorkerStatus.RUNNING, WorkerStatus.DONE])
        self.assertEqual(self.statuses[-1][1], "Completed")
        self.assertEqual(self.progress, [(50.0, 5.0), (100.0, 0.0), (100.0, 0.0)])
        self.assertEqual(self.finished, [True])
        self.assertEqual(self.item.status, WorkerStatus.DONE)
        self.assertEqual(self.item.probe, self.info)
        self.assertEqual(self.item.return_code, 0)

        cmd = self.popen.call_args[0][0]
        self.assertEqual(cmd[0], "ffmpeg")
        self.assertEqual(cmd[-1], str(self.item.output_file))

    def test_ffmpeg_failure_reports_stderr_tail(self):
        self.popen.return_value = FakeProcess(stderr="Unknown encoder 'dnxhd'\n", returncode=1)
        worker = self._worker()
        worker.run()

        self.assertEqual(self.item.status, WorkerStatus.ERROR)
        self.assertEqual(len(self.errors), 1)
        self.assertIn("code 1", self.errors[0])
        self.assertIn("Unknown encoder", self.errors[0])
        self.assertTrue(self.statuses[-1][1].startswith("Error: "))
        self.assertEqual(self.finished, [True])

    def test_missing_ffmpeg(self):
        self.popen.side_effect = FileNotFoundError("ffmpeg")
        self._worker().run()
        self.assertEqual(self.item.status, WorkerStatus.ERROR)
        self.assertIn("ffmpeg", self.errors[0])

    def test_probe_failure_gives_indeterminate_progress(self):
        self.probe.side_effect = ProbeError("moov atom not found")
        self.popen.return_value = FakeProcess(
            "out_time_us=1000000\nprogress=continue\n"
            "out_time_us=2000000\nprogress=continue\n"
            "progress=end\n"
        )
        self._worker().run()

        self.assertEqual(self.progress, [(None, None), (100.0, 0.0), (100.0, 0.0)])
        self.assertEqual(self.item.status, WorkerStatus.DONE)

    def test_loudness_two_pass(self):
        measure = FakeProcess(stderr=LOUDNORM_STDERR)
        encode = FakeProcess("progress=end\n")
        self.popen.side_effect = [measure, encode]

        self._worker(JobConfig(normalize_loudness=True)).run()

        self.assertIn(WorkerStatus.ANALYSING, [s for s, _ in self.statuses])
        first_cmd = self.popen.call_args_list[0][0][0]
        second_cmd = self.popen.call_args_list[1][0][0]
        self.assertIn("loudnorm=I=-23:TP=-2:LRA=7:print_format=json", first_cmd)
        af = second_cmd[second_cmd.index("-af") + 1]
        self.assertIn("measured_I=-27.61", af)
        self.assertEqual(self.item.status, WorkerStatus.DONE)

    def test_failed_measurement_encodes_without_normalisation(self):
        self.popen.side_effect = [FakeProcess(stderr="Stream not found\n", returncode=1),
                                  FakeProcess("progress=end\n")]

        self._worker(JobConfig(normalize_loudness=True)).run()

        self.assertIn("Loudness analysis failed, skipping normalisation",
                      [t for _, t in self.statuses])
        self.assertNotIn("-af", self.popen.call_args_list[1][0][0])
        self.assertEqual(self.item.status, WorkerStatus.DONE)

    def test_timecode_checked_against_source_rate(self):
        config = JobConfig(set_timecode=True, timecode="00:00:00:25")
        self._worker(config).run()

        self.assertEqual(self.item.status, WorkerStatus.ERROR)
        self.popen.assert_not_called()

    def test_cancel_before_encode_keeps_existing_output(self):
        self.item.output_file.parent.mkdir(parents=True)
        self.item.output_file.write_bytes(b"previous render")

        worker = self._worker()
        worker.cancel()
        worker.run()

        self.popen.assert_not_called()
        self.assertEqual(self.item.status, WorkerStatus.CANCELLED)
        self.assertEqual(self.statuses[-1], (WorkerStatus.CANCELLED, "Cancelled"))
        self.assertTrue(self.item.output_file.exists())
        self.assertEqual(self.finished, [True])

    def test_cancel_during_encode_removes_partial_output(self):
        output = self.item.output_file

        def progress_lines():
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(b"half a file")
            yield "out_time_us=2000000\n"
            yield "progress=continue\n"
            worker.cancel()

        process = FakeProcess(progress_lines())
        self.popen.return_value = process
        worker = self._worker()
        worker.run()

        self.assertTrue(process.terminated)
        self.assertEqual(self.item.status, WorkerStatus.CANCELLED)
        self.assertFalse(output.exists())
        self.assertEqual(self.errors, [])
        self.assertEqual(self.finished, [True])

    def test_cancelled_ffmpeg_ignoring_sigterm_is_killed(self):
        def progress_lines():
            yield "progress=continue\n"
            worker.cancel()

        process = StubbornProcess(progress_lines())
        self.popen.return_value = process
        worker = self._worker()
        worker.run()

        self.assertTrue(process.terminated)
        self.assertTrue(process.killed)
        self.assertEqual(self.item.return_code, -9)
        self.assertEqual(self.item.status, WorkerStatus.CANCELLED)

    def test_cancel_while_reading_media_info_stops_ffprobe(self):
        ffprobe = FakeProcess()

        def slow_ffprobe(file, ffprobe_bin, on_start=None):
            on_start(ffprobe)
            worker.cancel()
            raise ProbeError("ffprobe failed on clip.mp4 (exit -15)")

        self.probe.side_effect = slow_ffprobe
        worker = self._worker()
        worker.run()

        self.assertTrue(ffprobe.terminated)
        self.popen.assert_not_called()
        self.assertEqual(self.item.status, WorkerStatus.CANCELLED)
        self.assertEqual(self.finished, [True])

    def test_unexpected_error_fails_item(self):
        self.probe.side_effect = UnicodeDecodeError("utf-8", b"\xe9", 0, 1, "invalid continuation byte")

        with self.assertLogs("dnxhd_transcoder.core.worker", level="ERROR"):
            self._worker().run()

        self.popen.assert_not_called()
        self.assertEqual(self.item.status, WorkerStatus.ERROR)
        self.assertEqual(len(self.errors), 1)
        self.assertIn("utf-8", self.errors[0])
        self.assertEqual(self.finished, [True])


@unittest.skipIf(os.name == "nt", "needs a POSIX shell and signals")
class TranscodeWorkerKillTest(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._app = QApplication.instance() or QApplication([])

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        tmp = Path(self._tmp.name)
        self.item = WorkItem(input_file=tmp / "clip.mp4", output_file=tmp / "clip.mov", index=0)

    def tearDown(self):
        self._tmp.cleanup()

    def test_child_ignoring_sigterm_is_killed_while_pipes_are_open(self):
        worker = TranscodeWorker(self.item, JobConfig(), "ffmpeg", "ffprobe")
        canceller = threading.Timer(0.2, worker.cancel)

        with mock.patch.object(worker_module, "KILL_TIMEOUT_SECONDS", 0.3):
            started = time.monotonic()
            canceller.start()
            returncode, _ = worker._run_ffmpeg(["sh", "-c", "trap '' TERM; exec sleep 30"], 0.0)
            elapsed = time.monotonic() - started
        canceller.join()

        self.assertNotEqual(returncode, 0)
        self.assertLess(elapsed, 5.0)


if __name__ == "__main__":
    unittest.main()
