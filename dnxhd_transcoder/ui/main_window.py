import logging
from pathlib import Path

from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QHBoxLayout, QVBoxLayout,
    QLabel, QStackedWidget, QSizePolicy, QMessageBox,
)
from PySide6.QtCore import Qt, QTimer

from dnxhd_transcoder.core import BatchOverseer
from dnxhd_transcoder.core.command_builder import build_encoding_flags
from dnxhd_transcoder.core.config import save_settings
from dnxhd_transcoder.core.errors import TranscoderError
from dnxhd_transcoder.core.formatting import format_time
from dnxhd_transcoder.core.models import AppSettings
from dnxhd_transcoder.ui.pages import HomePage, SettingsPage
from dnxhd_transcoder.ui.pages._file_row import FileRow
from dnxhd_transcoder.ui.theme import MUTED_COLOR, apply_theme, other_theme

logger = logging.getLogger(__name__)


class _Row(QWidget):
    """A label/value pair for the details panel."""

    def __init__(self, label: str, parent=None):
        super().__init__(parent)
        col = QVBoxLayout(self)
        col.setContentsMargins(0, 0, 0, 0)
        col.setSpacing(1)

        lbl = QLabel(label.upper())
        lbl.setStyleSheet(f"color: {MUTED_COLOR}; font-size: 8pt; font-weight: 700; letter-spacing: 1px;")
        col.addWidget(lbl)

        self.value = QLabel("—")
        self.value.setStyleSheet("font-size: 10pt;")
        self.value.setWordWrap(True)
        self.value.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        col.addWidget(self.value)

    def set(self, text: str):
        self.value.setText(text or "—")


class _SidePanel(QWidget):
    """Right-hand details panel for the selected file."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Expanding)

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 16, 0, 16)
        root.setSpacing(0)

        # ── Header ────────────────────────────────────────────────────────────
        title = QLabel("DETAILS")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet(
            f"color: {MUTED_COLOR}; font-size: 8pt; font-weight: 700; letter-spacing: 2px;"
        )
        root.addWidget(title)

        # ── Stacked: placeholder vs content ───────────────────────────────────
        self._stack = QStackedWidget()
        root.addWidget(self._stack, 1)

        # Page 0: placeholder
        ph = QLabel("Select a file\nto see details.")
        ph.setAlignment(Qt.AlignmentFlag.AlignCenter)
        ph.setStyleSheet(f"color: {MUTED_COLOR}; font-size: 9pt;")
        self._stack.addWidget(ph)

        # Page 1: file details
        content = QWidget()
        col = QVBoxLayout(content)
        col.setContentsMargins(16, 0, 16, 0)
        col.setSpacing(12)

        col.addStretch()

        self._r_name     = _Row("File")
        self._r_status   = _Row("Status")
        self._r_input    = _Row("Input Folder")
        self._r_output   = _Row("Output File")
        self._r_video    = _Row("Video")
        self._r_duration = _Row("Duration")
        self._r_audio    = _Row("Audio")
        self._r_flags    = _Row("ffmpeg Flags")

        for row in (
            self._r_name, self._r_status, self._r_input, self._r_output,
            self._r_video, self._r_duration, self._r_audio, self._r_flags,
        ):
            col.addWidget(row)

        col.addStretch()
        self._stack.addWidget(content)

    # ── Public API ────────────────────────────────────────────────────────────

    def show_file(self, row: FileRow, flags: list[str]) -> None:
        """Populate the panel with the given row's data."""
        info = row.probe

        if info and info.width:
            video = f"{info.video_codec or '?'}  {info.width}x{info.height}"
            if info.fps:
                video += f"  @ {info.fps:.3f}".rstrip("0").rstrip(".") + " fps"
        else:
            video = ""

        audio = ""
        if info and info.audio_codec:
            audio = info.audio_codec
            if info.audio_channels:
                audio += f", {info.audio_channels} ch"

        duration = format_time(info.duration_seconds) if info and info.duration_seconds else ""

        self._r_name.set(row.path.name)
        self._r_status.set(row.status_text)
        self._r_input.set(str(row.path.parent))
        self._r_output.set(str(row.output_file) if row.output_file else "")
        self._r_video.set(video)
        self._r_duration.set(duration)
        self._r_audio.set(audio)
        self._r_flags.set(" ".join(flags))

        self._stack.setCurrentIndex(1)

    def clear(self) -> None:
        """Go back to the placeholder."""
        self._stack.setCurrentIndex(0)


# ── Main Window ───────────────────────────────────────────────────────────────

class MainWindow(QMainWindow):
    """Top-level application window."""

    def __init__(self, settings: AppSettings, start_files: list[Path] | None = None):
        super().__init__()
        self.settings = settings

        self.overseer = BatchOverseer(self)
        self._apply_engine_settings()

        self.setWindowTitle("DNxHD Transcoder")
        self.resize(1000, 720)
        self.setMinimumSize(760, 520)
        self.setContentsMargins(0, 0, 0, 0)

        central = QWidget()
        self.setCentralWidget(central)

        outer = QHBoxLayout(central)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)

        self._stack = QStackedWidget()
        self._home_page = HomePage(self._switch_page, self._toggle_theme, self.overseer, settings)
        self._settings_page = SettingsPage(self._switch_page, settings)
        self._stack.addWidget(self._home_page)
        self._stack.addWidget(self._settings_page)
        self._stack.setCurrentWidget(self._home_page)

        self._side_panel = _SidePanel()
        self._side_panel.setFixedWidth(260)

        separator = QWidget()
        separator.setFixedWidth(1)
        separator.setStyleSheet("background-color: #2e2e2e;")

        outer.addWidget(self._stack, 1)
        outer.addWidget(separator)
        outer.addWidget(self._side_panel)

        # ── Wire detail panel signals ─────────────────────────────────────────
        self._home_page.file_selected.connect(self._show_file_details)
        self._home_page.file_deselected.connect(self._side_panel.clear)
        self._settings_page.settings_changed.connect(self._apply_engine_settings)

        if start_files:
            self._home_page.add_files([p for p in start_files if p.is_file()])

        # ── Binary check, once the window is up so the dialog has a parent ───
        QTimer.singleShot(0, self._check_binaries)

    def _apply_engine_settings(self) -> None:
        self.overseer.max_parallel = self.settings.max_parallel
        self.overseer.set_binary_overrides(self.settings.ffmpeg_path, self.settings.ffprobe_path)

    def _check_binaries(self) -> None:
        errors = self._settings_page.refresh_binary_status()
        if errors:
            logger.warning("Binary check failed: %s", "; ".join(errors))
            QMessageBox.warning(
                self,
                "ffmpeg not found",
                "\n".join(errors) + "\n\nSet the paths on the Settings page.",
            )
            self._switch_page("settings")

    def _show_file_details(self, row: FileRow) -> None:
        try:
            flags = build_encoding_flags(self._home_page.options.get_job_config())
        except TranscoderError:
            flags = []
        self._side_panel.show_file(row, flags)

    def _toggle_theme(self) -> None:
        app = QApplication.instance()
        self.settings.theme = apply_theme(app, other_theme(self.settings.theme))
        logger.debug("Theme switched to %s", self.settings.theme)
        save_settings(self.settings)

    def _switch_page(self, page_name: str):
        pages = {
            "home":     self._home_page,
            "settings": self._settings_page,
        }
        widget = pages.get(page_name)
        if widget:
            self._stack.setCurrentWidget(widget)

    def closeEvent(self, event):
        if self.overseer.is_running():
            reply = QMessageBox.question(
                self,
                "Quit",
                "A batch is still running.\n\nStop it and quit?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.Cancel,
            )
            if reply != QMessageBox.StandardButton.Yes:
                event.ignore()
                return
            self.overseer.cancel()
            self.overseer.wait_for_workers()
        super().closeEvent(event)
