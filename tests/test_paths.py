import os
import stat
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from dnxhd_transcoder.core import paths


def _make_exe(path: Path) -> Path:
    path.write_text("#!/bin/sh\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


@unittest.skipIf(os.name == "nt", "POSIX permissions")
class BinaryLookupTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_override_wins(self):
        self.assertEqual(paths.find_ffmpeg("/custom/ffmpeg"), "/custom/ffmpeg")
        self.assertEqual(paths.find_ffprobe("/custom/ffprobe", "/other/ffmpeg"), "/custom/ffprobe")

    def test_ffprobe_found_next_to_ffmpeg(self):
        ffmpeg = _make_exe(self.tmp / "ffmpeg")
        ffprobe = _make_exe(self.tmp / "ffprobe")
        self.assertEqual(paths.find_ffprobe(None, str(ffmpeg)), str(ffprobe.resolve()))

    def test_bare_name_when_nothing_found(self):
        with mock.patch.object(paths, "_candidates", return_value=[]), \
                mock.patch.object(paths.shutil, "which", return_value=None):
            self.assertEqual(paths.find_ffmpeg(), "ffmpeg")

    def test_validate_binaries(self):
        ffmpeg = _make_exe(self.tmp / "ffmpeg")
        plain = self.tmp / "ffprobe"
        plain.write_text("")
        plain.chmod(0o644)

        self.assertEqual(paths.validate_binaries(str(ffmpeg), str(ffmpeg)), [])

        errors = paths.validate_binaries(str(ffmpeg), str(plain))
        self.assertEqual(len(errors), 1)
        self.assertIn("Not executable", errors[0])

        errors = paths.validate_binaries(str(self.tmp / "missing"), str(self.tmp))
        self.assertIn("Binary not found", errors[0])
        self.assertIn("Not a file", errors[1])

        with mock.patch.object(paths.shutil, "which", return_value=None):
            self.assertIn("PATH", paths.validate_binaries("ffmpeg", str(ffmpeg))[0])


if __name__ == "__main__":
    unittest.main()
