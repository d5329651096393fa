# ui/pages/_options_panel.py

from PySide6.QtWidgets import (
    QWidget, QFormLayout, QHBoxLayout, QComboBox, QCheckBox,
    QDoubleSpinBox, QLineEdit,
)
from PySide6.QtGui import QStandardItem, QStandardItemModel
from PySide6.QtCore import Qt, Signal

from dnxhd_transcoder.core.models import JobConfig
from dnxhd_transcoder.core.presets import (
    AUDIO_CHANNELS, AUDIO_DEPTHS, CONTAINER_PRESETS, DEFAULT_CONTAINER,
    DEFAULT_PROFILE, FPS_RANGE, PROFILE_PRESETS, coerce_profile, get_container,
)
from dnxhd_transcoder.core.timecode import is_valid_timecode
from dnxhd_transcoder.ui.theme import ERROR_COLOR


class OptionsPanel(QWidget):
    """
    Encoding options for the whole batch.

    Keeps the widgets consistent with each other: profiles the chosen
    container can't hold are disabled, the FPS spin box only matters when
    the source rate is not preserved, and the timecode entry only when a
    timecode is requested.
    """

    options_changed = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._loading = False
        self._build_ui()
        self._populate()
        self._wire_signals()
        self.populate_from_config(JobConfig())

    # ── UI construction ───────────────────────────────────────────────────────

    def _build_ui(self):
        form = QFormLayout(self)
        form.setContentsMargins(0, 0, 0, 0)

        self.profile_combo = QComboBox()
        self._profile_model = QStandardItemModel(self.profile_combo)
        self.profile_combo.setModel(self._profile_model)
        form.addRow("Profile:", self.profile_combo)

        self.container_combo = QComboBox()
        form.addRow("Container:", self.container_combo)

        audio_row = QHBoxLayout()
        self.audio_combo = QComboBox()
        self.channels_combo = QComboBox()
        audio_row.addWidget(self.audio_combo, 1)
        audio_row.addWidget(self.channels_combo, 1)
        form.addRow("Audio:", audio_row)

        fps_row = QHBoxLayout()
        self.preserve_fps_chk = QCheckBox("Preserve FPS")
        self.fps_spin = QDoubleSpinBox()
        self.fps_spin.setRange(*FPS_RANGE)
        self.fps_spin.setSingleStep(0.1)
        self.fps_spin.setDecimals(3)
        self.fps_spin.setSuffix(" fps")
        fps_row.addWidget(self.preserve_fps_chk)
        fps_row.addWidget(self.fps_spin, 1)
        form.addRow("Frame rate:", fps_row)

        tc_row = QHBoxLayout()
        self.timecode_chk = QCheckBox("Define timecode")
        self.timecode_edit = QLineEdit()
        self.timecode_edit.setPlaceholderText("HH:MM:SS:FF")
        self.timecode_edit.setMaxLength(11)
        tc_row.addWidget(self.timecode_chk)
        tc_row.addWidget(self.timecode_edit, 1)
        form.addRow("Timecode:", tc_row)

        self.normalize_chk = QCheckBox("Normalize audio (EBU R128 -23 LUFS)")
        form.addRow("", self.normalize_chk)

    def _populate(self):
        for preset in PROFILE_PRESETS:
            item = QStandardItem(preset.display_name)
            item.setData(preset.ffmpeg_id, Qt.ItemDataRole.UserRole)
            self._profile_model.appendRow(item)

        for preset in CONTAINER_PRESETS:
            self.container_combo.addItem(preset.display_name, userData=preset.ffmpeg_id)

        for depth in AUDIO_DEPTHS:
            self.audio_combo.addItem(depth.display_name, userData=depth.bits)

        for ch in AUDIO_CHANNELS:
            self.channels_combo.addItem(f"{ch} ch", userData=ch)

    def _wire_signals(self):
        self.container_combo.currentIndexChanged.connect(self._on_container_changed)
        self.preserve_fps_chk.toggled.connect(self._on_preserve_fps_toggled)
        self.timecode_chk.toggled.connect(self._on_timecode_toggled)
        self.timecode_edit.textChanged.connect(self._validate_timecode)

        for combo in (self.profile_combo, self.container_combo,
                      self.audio_combo, self.channels_combo):
            combo.currentIndexChanged.connect(self._emit_changed)
        for chk in (self.preserve_fps_chk, self.timecode_chk, self.normalize_chk):
            chk.toggled.connect(self._emit_changed)
        self.fps_spin.valueChanged.connect(self._emit_changed)
        self.timecode_edit.textChanged.connect(self._emit_changed)

    # ── Dependent widgets ─────────────────────────────────────────────────────

    def _on_container_changed(self):
        container = get_container(self.container_combo.currentData())

        for row in range(self._profile_model.rowCount()):
            item = self._profile_model.item(row)
            item.setEnabled(item.data(Qt.ItemDataRole.UserRole) in container.allowed_profiles)

        current = self.current_profile()
        allowed = coerce_profile(container.ffmpeg_id, current)
        if allowed != current:
            self._select_data(self.profile_combo, allowed)

    def _on_preserve_fps_toggled(self, checked: bool):
        self.fps_spin.setEnabled(not checked)

    def _on_timecode_toggled(self, checked: bool):
        self.timecode_edit.setEnabled(checked)
        self._validate_timecode()

    def _validate_timecode(self):
        ok = (not self.timecode_chk.isChecked()) or is_valid_timecode(self.timecode_edit.text())
        self.timecode_edit.setStyleSheet("" if ok else f"border: 1px solid {ERROR_COLOR};")
        self.timecode_edit.setToolTip("" if ok else "Expected HH:MM:SS:FF")

    def _emit_changed(self, *_):
        if not self._loading:
            self.options_changed.emit()

    # ── Pre-populate from saved settings ──────────────────────────────────────

    def populate_from_config(self, config: JobConfig) -> None:
        """
        Fill every control from *config*. Unknown ids fall back to the
        defaults instead of leaving an empty combo.
        """
        self._loading = True
        try:
            if not self._select_data(self.container_combo, config.container):
                self._select_data(self.container_combo, DEFAULT_CONTAINER)
            self._on_container_changed()

            profile = coerce_profile(self.container_combo.currentData(), config.profile) \
                if config.profile in {p.ffmpeg_id for p in PROFILE_PRESETS} else DEFAULT_PROFILE
            self._select_data(self.profile_combo, profile)

            self._select_data(self.audio_combo, config.audio_bits)
            self._select_data(self.channels_combo, config.audio_channels)

            self.preserve_fps_chk.setChecked(config.preserve_fps)
            self.fps_spin.setValue(config.target_fps)
            self._on_preserve_fps_toggled(config.preserve_fps)

            self.timecode_edit.setText(config.timecode)
            self.timecode_chk.setChecked(config.set_timecode)
            self._on_timecode_toggled(config.set_timecode)

            self.normalize_chk.setChecked(config.normalize_loudness)
        finally:
            self._loading = False

    # ── Result ────────────────────────────────────────────────────────────────

    def current_profile(self) -> str:
        return self.profile_combo.currentData(Qt.ItemDataRole.UserRole)

    def profile_enabled(self, profile_id: str) -> bool:
        for row in range(self._profile_model.rowCount()):
            item = self._profile_model.item(row)
            if item.data(Qt.ItemDataRole.UserRole) == profile_id:
                return item.isEnabled()
        return False

    def get_job_config(self) -> JobConfig:
        return JobConfig(
            profile=self.current_profile(),
            container=self.container_combo.currentData(),
            audio_bits=self.audio_combo.currentData(),
            audio_channels=self.channels_combo.currentData(),
            preserve_fps=self.preserve_fps_chk.isChecked(),
            target_fps=round(self.fps_spin.value(), 3),
            set_timecode=self.timecode_chk.isChecked(),
            timecode=self.timecode_edit.text().strip(),
            normalize_loudness=self.normalize_chk.isChecked(),
        )

    def set_locked(self, locked: bool) -> None:
        """Freeze the options while a batch is running."""
        for widget in (self.profile_combo, self.container_combo, self.audio_combo,
                       self.channels_combo, self.preserve_fps_chk, self.timecode_chk,
                       self.normalize_chk):
            widget.setEnabled(not locked)
        self.fps_spin.setEnabled(not locked and not self.preserve_fps_chk.isChecked())
        self.timecode_edit.setEnabled(not locked and self.timecode_chk.isChecked())

    # ── Helpers ───────────────────────────────────────────────────────────────

    @staticmethod
    def _select_data(combo: QComboBox, value) -> bool:
        index = combo.findData(value, Qt.ItemDataRole.UserRole)
        if index < 0:
            return False
        combo.setCurrentIndex(index)
        return True
