import logging
from pathlib import Path

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QGroupBox,
    QPushButton, QScrollArea, QFrame, QFileDialog, QMessageBox,
)
from PySide6.QtCore import Qt, Signal

from dnxhd_transcoder.core.config import save_settings
from dnxhd_transcoder.core.errors import TranscoderError
from dnxhd_transcoder.core.models import AppSettings, BatchStatus, WorkItem
from dnxhd_transcoder.core.overseer import BatchOverseer
from dnxhd_transcoder.core.scanner import dedupe_files, file_dialog_filters, parse_uri_list
from dnxhd_transcoder.ui.pages._file_row import FileRow
from dnxhd_transcoder.ui.pages._options_panel import OptionsPanel
from dnxhd_transcoder.ui.theme import ACCENT, ACCENT_HOVER, MUTED_COLOR

logger = logging.getLogger(__name__)


def _header_button(label: str, tooltip: str) -> QPushButton:
    btn = QPushButton(label)
    btn.setFixedSize(32, 32)
    btn.setToolTip(tooltip)
    btn.setCursor(Qt.CursorShape.PointingHandCursor)
    return btn


class HomePage(QWidget):
    """Options, file list and batch controls."""

    file_selected   = Signal(object)   # FileRow
    file_deselected = Signal()

    def __init__(self, switch_callback, theme_callback, overseer: BatchOverseer,
                 settings: AppSettings, parent=None):
        super().__init__(parent)
        self.switch_callback = switch_callback
        self.overseer = overseer
        self.settings = settings
        self._rows: list[FileRow] = []
        self._selected_row: FileRow | None = None

        self.setAcceptDrops(True)

        # Connect overseer signals
        self.overseer.batch_started.connect(self._on_batch_started)
        self.overseer.batch_status_changed.connect(self._on_batch_status_changed)
        self.overseer.batch_finished.connect(self._on_batch_finished)
        self.overseer.item_probed.connect(self._on_item_probed)
        self.overseer.item_status.connect(self._on_item_status)
        self.overseer.item_progress.connect(self._on_item_progress)
        self.overseer.item_error.connect(self._on_item_error)

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(0)

        # ── Header bar ────────────────────────────────────────────────────────
        header_bar = QWidget()
        header_bar.setFixedHeight(56)
        header_layout = QHBoxLayout(header_bar)
        header_layout.setContentsMargins(16, 0, 16, 0)

        page_title = QLabel("DNxHD Transcoder")
        page_title.setStyleSheet("font-size: 14pt; font-weight: 700;")
        header_layout.addWidget(page_title)
        header_layout.addStretch()

        self.theme_btn = _header_button("◐", "Toggle theme")
        self.theme_btn.clicked.connect(theme_callback)
        header_layout.addWidget(self.theme_btn)

        self.settings_btn = _header_button("⚙", "Settings")
        self.settings_btn.clicked.connect(lambda: switch_callback("settings"))
        header_layout.addWidget(self.settings_btn)

        root.addWidget(header_bar)

        body = QVBoxLayout()
        body.setContentsMargins(16, 8, 16, 8)
        body.setSpacing(8)
        root.addLayout(body, 1)

        # ── Toolbar ───────────────────────────────────────────────────────────
        toolbar = QHBoxLayout()
        self.select_files_btn  = QPushButton("Select files…")
        self.select_output_btn = QPushButton("Output folder…")
        self.clear_btn         = QPushButton("Clear")
        self.start_btn         = QPushButton("▶  Start")
        self.stop_btn          = QPushButton("■  Stop")
        self.start_btn.setStyleSheet(f"""
            QPushButton {{
                background-color: {ACCENT};
                color: white;
                border: none;
                border-radius: 6px;
                padding: 0 14px;
                font-weight: 600;
            }}
            QPushButton:hover    {{ background-color: {ACCENT_HOVER}; }}
            QPushButton:disabled {{ background-color: #3a3a3a; color: #777; }}
        """)
        self.stop_btn.setEnabled(False)

        self.select_files_btn.clicked.connect(self._select_files)
        self.select_output_btn.clicked.connect(self._select_output)
        self.clear_btn.clicked.connect(self.clear_files)
        self.start_btn.clicked.connect(self._start)
        self.stop_btn.clicked.connect(self._stop)

        toolbar.addWidget(self.select_files_btn)
        toolbar.addWidget(self.select_output_btn)
        toolbar.addWidget(self.clear_btn)
        toolbar.addStretch()
        toolbar.addWidget(self.start_btn)
        toolbar.addWidget(self.stop_btn)
        body.addLayout(toolbar)

        # ── Options ───────────────────────────────────────────────────────────
        options_box = QGroupBox("Encoding")
        options_layout = QVBoxLayout(options_box)
        self.options = OptionsPanel()
        self.options.populate_from_config(settings.job)
        self.options.options_changed.connect(self._on_options_changed)
        options_layout.addWidget(self.options)
        body.addWidget(options_box)

        self.output_label = QLabel()
        self.output_label.setWordWrap(True)
        self._refresh_output_label()
        body.addWidget(self.output_label)

        # ── Scroll area ───────────────────────────────────────────────────────
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.Shape.NoFrame)
        body.addWidget(scroll, 1)

        self._files_column = QWidget()
        self._files_layout = QVBoxLayout(self._files_column)
        self._files_layout.setSpacing(8)
        self._files_layout.setContentsMargins(0, 0, 0, 0)
        self._files_layout.setAlignment(Qt.AlignmentFlag.AlignTop)
        scroll.setWidget(self._files_column)

        # ── Empty-state label ─────────────────────────────────────────────────
        self._empty_label = QLabel("Select or drag files here!")
        self._empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._empty_label.setStyleSheet(f"color: {MUTED_COLOR}; font-size: 11pt;")
        self._empty_label.setMinimumHeight(120)
        self._files_layout.addWidget(self._empty_label)

        self.summary_label = QLabel()
        self.summary_label.setStyleSheet(f"color: {MUTED_COLOR};")
        body.addWidget(self.summary_label)

    # ── Public: file list ─────────────────────────────────────────────────────

    def files(self) -> list[Path]:
        return [row.path for row in self._rows]

    def set_files(self, paths: list[Path]) -> None:
        """Replace the list (file dialog behaviour)."""
        self.clear_files()
        self.add_files(paths)

    def add_files(self, paths: list[Path]) -> None:
        """Append *paths*, skipping ones already listed (drag-and-drop behaviour)."""
        if self.overseer.is_running():
            return
        merged = dedupe_files(self.files(), paths)
        new = merged[len(self._rows):]
        for path in new:
            row = FileRow(path)
            row.row_selected.connect(self._on_row_selected)
            self._rows.append(row)
            self._files_layout.addWidget(row)
        if new:
            logger.info("Added %d file(s), %d in list", len(new), len(self._rows))
        self._update_empty_state()

    def clear_files(self) -> None:
        if self.overseer.is_running():
            return
        for row in self._rows:
            self._files_layout.removeWidget(row)
            row.deleteLater()
        self._rows.clear()
        if self._selected_row is not None:
            self._selected_row = None
            self.file_deselected.emit()
        self.summary_label.clear()
        self._update_empty_state()

    # ── Drag and drop ─────────────────────────────────────────────────────────

    def dragEnterEvent(self, event):
        mime = event.mimeData()
        if not self.overseer.is_running() and (mime.hasUrls() or mime.hasText()):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event):
        mime = event.mimeData()
        if mime.hasUrls():
            paths = [Path(url.toLocalFile()) for url in mime.urls() if url.isLocalFile()]
            paths = [p for p in paths if p.is_file()]
        else:
            paths = parse_uri_list(mime.text())
        logger.debug("Dropped %d file(s)", len(paths))
        self.add_files(paths)
        event.acceptProposedAction()

    # ── Dialogs ───────────────────────────────────────────────────────────────

    def _select_files(self):
        start_dir = str(self._rows[0].path.parent) if self._rows else ""
        names, _ = QFileDialog.getOpenFileNames(self, "Select videos", start_dir, file_dialog_filters())
        if names:
            self.set_files([Path(n) for n in names])

    def _select_output(self):
        start_dir = str(self.settings.output_dir or "")
        path = QFileDialog.getExistingDirectory(self, "Select output folder", start_dir)
        if path:
            self.settings.output_dir = Path(path)
            self._refresh_output_label()
            self._save_settings()

    def _refresh_output_label(self):
        if self.settings.output_dir:
            self.output_label.setText(f"Output: {self.settings.output_dir}")
        else:
            self.output_label.setText("Output: (not selected, next to the first input)")

    # ── Batch control ─────────────────────────────────────────────────────────

    def _start(self):
        self.settings.job = self.options.get_job_config()
        self._save_settings()
        try:
            self.overseer.start(self.files(), self.settings.job, self.settings.output_dir)
        except TranscoderError as exc:
            logger.warning("Cannot start batch: %s", exc)
            QMessageBox.warning(self, "Cannot start", str(exc))

    def _stop(self):
        self.overseer.cancel()

    def _on_options_changed(self):
        self.settings.job = self.options.get_job_config()
        self._save_settings()

    def _save_settings(self):
        save_settings(self.settings)

    # ── Row selection ─────────────────────────────────────────────────────────

    def _on_row_selected(self, row: FileRow):
        if self._selected_row is row:
            row.set_selected(False)
            self._selected_row = None
            self.file_deselected.emit()
            return
        if self._selected_row is not None:
            self._selected_row.set_selected(False)
        row.set_selected(True)
        self._selected_row = row
        self.file_selected.emit(row)

    # ── Overseer signal handlers ──────────────────────────────────────────────

    def _on_batch_started(self, items: list[WorkItem]):
        for item in items:
            self._rows[item.index].reset(item.output_file)
        self.summary_label.setText(f"Processing {len(items)} file(s)…")

    def _on_batch_status_changed(self, status: BatchStatus):
        running = status in (BatchStatus.RUNNING, BatchStatus.CANCELLING)
        self.options.set_locked(running)
        for btn in (self.select_files_btn, self.select_output_btn, self.clear_btn, self.start_btn):
            btn.setEnabled(not running)
        self.stop_btn.setEnabled(status == BatchStatus.RUNNING)
        self.setAcceptDrops(not running)
        if status == BatchStatus.CANCELLING:
            self.summary_label.setText("Stopping…")

    def _on_batch_finished(self, done: int, failed: int, cancelled: int):
        parts = [f"{done} completed"]
        if failed:
            parts.append(f"{failed} failed")
        if cancelled:
            parts.append(f"{cancelled} cancelled")
        self.summary_label.setText("Finished: " + ", ".join(parts))

    def _row(self, index: int) -> FileRow | None:
        return self._rows[index] if 0 <= index < len(self._rows) else None

    def _on_item_probed(self, index: int, info):
        row = self._row(index)
        if row:
            row.set_probe(info)
            if row is self._selected_row:
                self.file_selected.emit(row)

    def _on_item_status(self, index: int, status, text: str):
        row = self._row(index)
        if row:
            row.update_status(status, text)
            if row is self._selected_row:
                self.file_selected.emit(row)

    def _on_item_progress(self, index: int, percent, eta):
        row = self._row(index)
        if row:
            row.update_progress(percent, eta)

    def _on_item_error(self, index: int, message: str):
        row = self._row(index)
        if row:
            row.show_error(message)

    # ── Empty-state helpers ───────────────────────────────────────────────────

    def _update_empty_state(self):
        self._empty_label.setVisible(not self._rows)
