from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QFormLayout,
    QLineEdit, QSpinBox, QFileDialog,
)
from PySide6.QtCore import Qt, Signal

from dnxhd_transcoder.core.config import MAX_PARALLEL_LIMIT, save_settings
from dnxhd_transcoder.core.models import AppSettings
from dnxhd_transcoder.core.paths import find_ffmpeg, find_ffprobe, validate_binaries
from dnxhd_transcoder.ui.theme import ERROR_COLOR, MUTED_COLOR


class SettingsPage(QWidget):
    """ffmpeg/ffprobe locations and how many files run at once."""

    settings_changed = Signal()

    def __init__(self, switch_callback, settings: AppSettings, parent=None):
        super().__init__(parent)
        self.switch_callback = switch_callback
        self.settings = settings

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(0)

        # ── Page header bar ───────────────────────────────────────────────────
        header_bar = QWidget()
        header_bar.setFixedHeight(56)
        header_layout = QHBoxLayout(header_bar)
        header_layout.setContentsMargins(16, 0, 16, 0)

        back_btn = QPushButton("← Back")
        back_btn.setFixedHeight(32)
        back_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        back_btn.clicked.connect(lambda: switch_callback("home"))
        header_layout.addWidget(back_btn)

        page_title = QLabel("Settings")
        page_title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        page_title.setStyleSheet("font-size: 14pt; font-weight: 700;")
        header_layout.addWidget(page_title)
        header_layout.addStretch()

        root.addWidget(header_bar)

        # ── Content ───────────────────────────────────────────────────────────
        content = QWidget()
        form = QFormLayout(content)
        form.setContentsMargins(24, 16, 24, 16)
        form.setSpacing(12)

        self.ffmpeg_edit = QLineEdit(settings.ffmpeg_path)
        self.ffmpeg_edit.setPlaceholderText("Auto-detect")
        form.addRow("ffmpeg:", self._with_browse(self.ffmpeg_edit, "Select ffmpeg binary"))

        self.ffprobe_edit = QLineEdit(settings.ffprobe_path)
        self.ffprobe_edit.setPlaceholderText("Auto-detect")
        form.addRow("ffprobe:", self._with_browse(self.ffprobe_edit, "Select ffprobe binary"))

        self.parallel_spin = QSpinBox()
        self.parallel_spin.setRange(1, MAX_PARALLEL_LIMIT)
        self.parallel_spin.setValue(settings.max_parallel)
        self.parallel_spin.setToolTip("How many ffmpeg processes run at the same time")
        form.addRow("Parallel jobs:", self.parallel_spin)

        self.binary_status = QLabel()
        self.binary_status.setWordWrap(True)
        self.binary_status.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        form.addRow("Resolved:", self.binary_status)

        root.addWidget(content, 1)

        self.ffmpeg_edit.editingFinished.connect(self._on_changed)
        self.ffprobe_edit.editingFinished.connect(self._on_changed)
        self.parallel_spin.valueChanged.connect(self._on_changed)

        self.refresh_binary_status()

    # ── Public API ────────────────────────────────────────────────────────────

    def refresh_binary_status(self) -> list[str]:
        """Show which binaries will be used; return any problems found."""
        ffmpeg = find_ffmpeg(self.settings.ffmpeg_path or None)
        ffprobe = find_ffprobe(self.settings.ffprobe_path or None, ffmpeg)
        errors = validate_binaries(ffmpeg, ffprobe)
        lines = [f"ffmpeg: {ffmpeg}", f"ffprobe: {ffprobe}", *errors]
        self.binary_status.setText("\n".join(lines))
        color = ERROR_COLOR if errors else MUTED_COLOR
        self.binary_status.setStyleSheet(f"color: {color};")
        return errors

    # ── Internal ──────────────────────────────────────────────────────────────

    def _with_browse(self, edit: QLineEdit, caption: str) -> QWidget:
        row = QWidget()
        layout = QHBoxLayout(row)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(edit, 1)
        btn = QPushButton("Browse...")
        btn.clicked.connect(lambda: self._browse(edit, caption))
        layout.addWidget(btn)
        return row

    def _browse(self, edit: QLineEdit, caption: str):
        path, _ = QFileDialog.getOpenFileName(self, caption)
        if path:
            edit.setText(path)
            self._on_changed()

    def _on_changed(self, *_):
        self.settings.ffmpeg_path = self.ffmpeg_edit.text().strip()
        self.settings.ffprobe_path = self.ffprobe_edit.text().strip()
        self.settings.max_parallel = self.parallel_spin.value()
        save_settings(self.settings)
        self.refresh_binary_status()
        self.settings_changed.emit()
