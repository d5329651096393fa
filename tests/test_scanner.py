import tempfile
import unittest
from pathlib import Path

from dnxhd_transcoder.core.scanner import (
    dedupe_files,
    file_dialog_filters,
    is_video_file,
    parse_uri_list,
    plan_outputs,
    resolve_output_dir,
)


class ParseUriListTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.clip = self.tmp / "My Clip.mov"
        self.clip.write_bytes(b"")
        self.other = self.tmp / "other.mp4"
        self.other.write_bytes(b"")

    def tearDown(self):
        self._tmp.cleanup()

    def test_file_uris_are_decoded(self):
        payload = f"{self.clip.as_uri()}\r\n{self.other.as_uri()}\r\n"
        self.assertIn("%20", payload)
        self.assertEqual(parse_uri_list(payload), [self.clip, self.other])

    def test_comments_blanks_and_missing_are_skipped(self):
        payload = "\n".join([
            "# dropped from a file manager",
            "",
            self.clip.as_uri(),
            (self.tmp / "gone.mov").as_uri(),
            self.tmp.as_uri(),
        ])
        self.assertEqual(parse_uri_list(payload), [self.clip])

    def test_bare_paths(self):
        self.assertEqual(parse_uri_list(str(self.other)), [self.other])


class DedupeFilesTest(unittest.TestCase):
    def test_keeps_order_and_drops_repeats(self):
        a, b, c = Path("/rushes/a.mp4"), Path("/rushes/b.mp4"), Path("/rushes/c.mp4")
        merged = dedupe_files([a, b], [b, c, Path("/rushes/sub/../a.mp4")])
        self.assertEqual(merged, [a, b, c])


class OutputPlanningTest(unittest.TestCase):
    def test_output_dir_next_to_first_input(self):
        files = [Path("/rushes/day1/a.mp4"), Path("/rushes/day2/b.mp4")]
        self.assertEqual(resolve_output_dir(files, None), Path("/rushes/day1/transcoded"))

    def test_output_dir_under_chosen_folder(self):
        self.assertEqual(
            resolve_output_dir([Path("/rushes/a.mp4")], Path("/exports")),
            Path("/exports/transcoded"),
        )
        self.assertEqual(resolve_output_dir([], None), Path("transcoded"))

    def test_plan_outputs_resolves_stem_collisions(self):
        files = [
            Path("/a/clip.mp4"),
            Path("/b/clip.mov"),
            Path("/c/other.mp4"),
            Path("/d/CLIP.mp4"),
        ]
        out = Path("/out")
        self.assertEqual(plan_outputs(files, out, ".mov"), [
            out / "clip.mov",
            out / "clip_1.mov",
            out / "other.mov",
            out / "CLIP_2.mov",
        ])

    def test_video_detection_and_filters(self):
        self.assertTrue(is_video_file(Path("A001.MXF")))
        self.assertFalse(is_video_file(Path("notes.txt")))
        filters = file_dialog_filters()
        self.assertIn("*.MOV", filters)
        self.assertTrue(filters.endswith("All files (*)"))


if __name__ == "__main__":
    unittest.main()
