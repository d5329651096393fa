import tempfile
import unittest
from pathlib import Path

from dnxhd_transcoder.core.command_builder import (
    build_loudness_command,
    build_transcode_command,
    command_as_string,
    validate_job_config,
)
from dnxhd_transcoder.core.errors import IncompatibleOptionsError, InvalidTimecodeError
from dnxhd_transcoder.core.models import JobConfig, LoudnessMeasurement


class BuildTranscodeCommandTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.input = self.tmp / "clip.mp4"
        self.output = self.tmp / "transcoded" / "clip.mov"

    def tearDown(self):
        self._tmp.cleanup()

    def _flag(self, cmd, name):
        return cmd[cmd.index(name) + 1]

    def test_default_command(self):
        cmd = build_transcode_command(JobConfig(), self.input, self.output, "ffmpeg")
        self.assertEqual(cmd, [
            "ffmpeg", "-hide_banner",
            "-i", str(self.input),
            "-nostats", "-progress", "pipe:1",
            "-c:v", "dnxhd", "-profile:v", "dnxhr_hq", "-pix_fmt", "yuv422p",
            "-c:a", "pcm_s16le", "-ac", "2",
            "-y", str(self.output),
        ])

    def test_creates_output_folder(self):
        build_transcode_command(JobConfig(), self.input, self.output, "ffmpeg")
        self.assertTrue(self.output.parent.is_dir())

    def test_ten_bit_profiles_pick_matching_pixel_format(self):
        hqx = build_transcode_command(JobConfig(profile="dnxhr_hqx"), self.input, self.output, "ffmpeg")
        self.assertEqual(self._flag(hqx, "-pix_fmt"), "yuv422p10le")

        full = build_transcode_command(JobConfig(profile="dnxhr_444"), self.input, self.output, "ffmpeg")
        self.assertEqual(self._flag(full, "-pix_fmt"), "yuv444p10le")

    def test_audio_depth_and_channels(self):
        cmd = build_transcode_command(
            JobConfig(audio_bits=24, audio_channels=8), self.input, self.output, "ffmpeg"
        )
        self.assertEqual(self._flag(cmd, "-c:a"), "pcm_s24le")
        self.assertEqual(self._flag(cmd, "-ac"), "8")

    def test_mxf_forces_48k_audio(self):
        config = JobConfig(container="mxf")
        self.assertEqual(config.output_extension, ".mxf")
        cmd = build_transcode_command(config, self.input, self.tmp / "clip.mxf", "ffmpeg")
        self.assertEqual(self._flag(cmd, "-ar"), "48000")

    def test_mov_keeps_source_sample_rate(self):
        cmd = build_transcode_command(JobConfig(), self.input, self.output, "ffmpeg")
        self.assertNotIn("-ar", cmd)

    def test_target_fps_only_when_not_preserving(self):
        kept = build_transcode_command(JobConfig(target_fps=50.0), self.input, self.output, "ffmpeg")
        self.assertNotIn("-r", kept)

        changed = build_transcode_command(
            JobConfig(preserve_fps=False, target_fps=29.97), self.input, self.output, "ffmpeg"
        )
        self.assertEqual(self._flag(changed, "-r"), "29.970")

    def test_timecode_flag(self):
        cmd = build_transcode_command(
            JobConfig(set_timecode=True, timecode=" 01:00:00:00 "), self.input, self.output, "ffmpeg"
        )
        self.assertEqual(self._flag(cmd, "-timecode"), "01:00:00:00")

        cmd = build_transcode_command(JobConfig(timecode="01:00:00:00"), self.input, self.output, "ffmpeg")
        self.assertNotIn("-timecode", cmd)

    def test_loudnorm_second_pass_goes_before_output(self):
        m = LoudnessMeasurement(input_i=-27.61, input_tp=-4.47, input_lra=18.06,
                                input_thresh=-39.2, target_offset=0.58)
        cmd = build_transcode_command(JobConfig(), self.input, self.output, "ffmpeg", loudness=m)

        self.assertLess(cmd.index("-af"), cmd.index(str(self.output)))
        self.assertEqual(
            self._flag(cmd, "-af"),
            "loudnorm=I=-23:TP=-2:LRA=7:measured_I=-27.61:measured_LRA=18.06"
            ":measured_TP=-4.47:measured_thresh=-39.20:offset=0.58"
            ":linear=true:print_format=summary",
        )

    def test_loudness_measurement_command(self):
        cmd = build_loudness_command(self.input, "/opt/ffmpeg")
        self.assertEqual(cmd[0], "/opt/ffmpeg")
        self.assertIn("loudnorm=I=-23:TP=-2:LRA=7:print_format=json", cmd)
        self.assertIn("pipe:1", cmd)
        self.assertEqual(cmd[-3:], ["-f", "null", "-"])

    def test_command_as_string_quotes_spaces(self):
        self.assertEqual(command_as_string(["ffmpeg", "-i", "my clip.mov"]), "ffmpeg -i 'my clip.mov'")


class ValidateJobConfigTest(unittest.TestCase):
    def test_defaults_are_valid(self):
        validate_job_config(JobConfig())

    def test_444_not_allowed_in_mxf(self):
        with self.assertRaises(IncompatibleOptionsError):
            validate_job_config(JobConfig(profile="dnxhr_444", container="mxf"))
        validate_job_config(JobConfig(profile="dnxhr_444", container="mov"))

    def test_unknown_ids(self):
        with self.assertRaises(IncompatibleOptionsError):
            validate_job_config(JobConfig(profile="prores_hq"))
        with self.assertRaises(IncompatibleOptionsError):
            validate_job_config(JobConfig(container="mkv"))
        with self.assertRaises(IncompatibleOptionsError):
            validate_job_config(JobConfig(audio_bits=32))
        with self.assertRaises(IncompatibleOptionsError):
            validate_job_config(JobConfig(audio_channels=6))

    def test_target_fps_range_checked_only_when_used(self):
        validate_job_config(JobConfig(preserve_fps=True, target_fps=0.5))
        with self.assertRaises(IncompatibleOptionsError):
            validate_job_config(JobConfig(preserve_fps=False, target_fps=0.5))

    def test_timecode_checked_only_when_enabled(self):
        validate_job_config(JobConfig(set_timecode=False, timecode="garbage"))
        with self.assertRaises(InvalidTimecodeError):
            validate_job_config(JobConfig(set_timecode=True, timecode="garbage"))

    def test_timecode_frames_checked_against_target_fps(self):
        config = JobConfig(preserve_fps=False, target_fps=25.0, set_timecode=True, timecode="00:00:00:25")
        with self.assertRaises(InvalidTimecodeError):
            validate_job_config(config)

    def test_timecode_frames_checked_against_source_fps(self):
        config = JobConfig(set_timecode=True, timecode="00:00:00:29")
        validate_job_config(config, source_fps=29.97)
        with self.assertRaises(InvalidTimecodeError):
            validate_job_config(config, source_fps=24.0)


if __name__ == "__main__":
    unittest.main()
