import os
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication

from dnxhd_transcoder.core.models import JobConfig
from dnxhd_transcoder.ui.pages._options_panel import OptionsPanel


class OptionsPanelTest(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._app = QApplication.instance() or QApplication([])

    def setUp(self):
        self.panel = OptionsPanel()
        self.changes = []
        self.panel.options_changed.connect(lambda: self.changes.append(True))

    def tearDown(self):
        self.panel.deleteLater()

    def _select(self, combo, value):
        combo.setCurrentIndex(combo.findData(value))

    def test_defaults(self):
        self.assertEqual(self.panel.get_job_config(), JobConfig())
        self.assertFalse(self.panel.fps_spin.isEnabled())
        self.assertFalse(self.panel.timecode_edit.isEnabled())

    def test_mxf_disables_444(self):
        self._select(self.panel.container_combo, "mxf")
        self.assertFalse(self.panel.profile_enabled("dnxhr_444"))
        self.assertTrue(self.panel.profile_enabled("dnxhr_hqx"))

        self._select(self.panel.container_combo, "mov")
        self.assertTrue(self.panel.profile_enabled("dnxhr_444"))

    def test_switching_to_mxf_moves_off_444(self):
        self._select(self.panel.profile_combo, "dnxhr_444")
        self.assertEqual(self.panel.current_profile(), "dnxhr_444")

        self._select(self.panel.container_combo, "mxf")
        self.assertEqual(self.panel.current_profile(), "dnxhr_hq")

    def test_fps_spin_follows_preserve_checkbox(self):
        self.panel.preserve_fps_chk.setChecked(False)
        self.assertTrue(self.panel.fps_spin.isEnabled())
        self.panel.preserve_fps_chk.setChecked(True)
        self.assertFalse(self.panel.fps_spin.isEnabled())

    def test_timecode_entry_follows_checkbox(self):
        self.panel.timecode_chk.setChecked(True)
        self.assertTrue(self.panel.timecode_edit.isEnabled())

        self.panel.timecode_edit.setText("99:99")
        self.assertIn("border", self.panel.timecode_edit.styleSheet())
        self.panel.timecode_edit.setText("01:00:00:00")
        self.assertEqual(self.panel.timecode_edit.styleSheet(), "")

    def test_populate_round_trip_without_signals(self):
        config = JobConfig(profile="dnxhr_lb", container="mxf", audio_bits=24,
                           audio_channels=8, preserve_fps=False, target_fps=29.97,
                           set_timecode=True, timecode="01:00:00:00",
                           normalize_loudness=True)
        self.panel.populate_from_config(config)

        self.assertEqual(self.panel.get_job_config(), config)
        self.assertEqual(self.changes, [])

    def test_populate_coerces_incompatible_profile(self):
        self.panel.populate_from_config(JobConfig(profile="dnxhr_444", container="mxf"))
        self.assertEqual(self.panel.current_profile(), "dnxhr_hq")

        self.panel.populate_from_config(JobConfig(profile="unknown", container="nope"))
        self.assertEqual(self.panel.current_profile(), "dnxhr_hq")
        self.assertEqual(self.panel.container_combo.currentData(), "mov")

    def test_user_changes_are_signalled(self):
        self.panel.normalize_chk.setChecked(True)
        self.assertTrue(self.changes)

    def test_locking(self):
        self.panel.preserve_fps_chk.setChecked(False)
        self.panel.set_locked(True)
        self.assertFalse(self.panel.container_combo.isEnabled())
        self.assertFalse(self.panel.fps_spin.isEnabled())

        self.panel.set_locked(False)
        self.assertTrue(self.panel.container_combo.isEnabled())
        self.assertTrue(self.panel.fps_spin.isEnabled())
        self.assertFalse(self.panel.timecode_edit.isEnabled())


if __name__ == "__main__":
    unittest.main()
