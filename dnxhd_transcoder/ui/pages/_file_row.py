from pathlib import Path

from PySide6.QtWidgets import (
    QFrame, QVBoxLayout, QSizePolicy, QLabel, QHBoxLayout, QProgressBar,
)
from PySide6.QtCore import Qt, Signal

from dnxhd_transcoder.core.formatting import format_probe_summary, format_progress_text
from dnxhd_transcoder.core.models import ProbeResult, WorkerStatus
from dnxhd_transcoder.ui.theme import ACCENT, ERROR_COLOR, MUTED_COLOR


class StatusBadge(QLabel):
    """A colored status indicator badge."""

    def __init__(self, status: WorkerStatus, parent=None):
        super().__init__(parent)
        self.set_status(status)

    def set_status(self, status: WorkerStatus):
        status_map = {
            WorkerStatus.PENDING:   ("Waiting",    "#666666"),
            WorkerStatus.PROBING:   ("Probing",    "#3d7ec9"),
            WorkerStatus.ANALYSING: ("Analysing",  "#f39c12"),
            WorkerStatus.RUNNING:   ("Converting", "#27ae60"),
            WorkerStatus.DONE:      ("Done",       ACCENT),
            WorkerStatus.ERROR:     ("Error",      ERROR_COLOR),
            WorkerStatus.CANCELLED: ("Cancelled",  "#7f8c8d"),
        }
        text, color = status_map.get(status, ("Unknown", MUTED_COLOR))
        self.setText(text)
        self.setStyleSheet(f"""
            QLabel {{
                background-color: {color};
                color: white;
                padding: 4px 12px;
                border-radius: 4px;
                font-size: 8pt;
                font-weight: 600;
            }}
        """)


class FileRow(QFrame):
    """
    One input file in the list: name, probed details, status badge and
    a progress bar whose text follows the worker
    (Waiting → Probing… → Converting… 42% (ETA 01:10) → Completed).

    Signals
    -------
    row_selected(FileRow)   – emitted when the row is clicked
    """

    row_selected = Signal(object)

    _STYLE_BASE = """
        QFrame#FileRow {{
            border: 1px solid {border};
            border-radius: 8px;
        }}
    """

    def __init__(self, path: Path, parent=None):
        super().__init__(parent)
        self.path = path
        self.status = WorkerStatus.PENDING
        self.probe: ProbeResult | None = None
        self.output_file: Path | None = None
        self.status_text = "Waiting"

        self.setObjectName("FileRow")
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.set_selected(False)
        self._setup_ui()

    # ── UI construction ───────────────────────────────────────────────────────

    def _setup_ui(self):
        root = QVBoxLayout(self)
        root.setContentsMargins(14, 10, 14, 10)
        root.setSpacing(6)

        top_row = QHBoxLayout()
        top_row.setSpacing(12)

        info_col = QVBoxLayout()
        info_col.setSpacing(2)
        info_col.setContentsMargins(0, 0, 0, 0)

        self.title_label = QLabel(self.path.name or "(no name)")
        self.title_label.setStyleSheet("font-size: 11pt; font-weight: 600; background: transparent;")
        info_col.addWidget(self.title_label)

        self.details_label = QLabel(str(self.path.parent))
        self.details_label.setStyleSheet(f"color: {MUTED_COLOR}; font-size: 8pt; background: transparent;")
        self.details_label.setWordWrap(True)
        info_col.addWidget(self.details_label)

        top_row.addLayout(info_col)
        top_row.addStretch()

        self.status_badge = StatusBadge(self.status)
        top_row.addWidget(self.status_badge)
        root.addLayout(top_row)

        # ── Progress bar ──────────────────────────────────────────────────────
        self.progress_bar = QProgressBar()
        self.progress_bar.setStyleSheet(f"""
            QProgressBar {{
                border: 1px solid #444;
                border-radius: 4px;
                text-align: center;
                min-height: 20px;
            }}
            QProgressBar::chunk {{ background-color: {ACCENT}; }}
        """)
        self.progress_bar.setRange(0, 1000)
        self.progress_bar.setValue(0)
        self.progress_bar.setTextVisible(True)
        self.progress_bar.setFormat(self.status_text)
        root.addWidget(self.progress_bar)

        # ── Error label ───────────────────────────────────────────────────────
        self.error_label = QLabel()
        self.error_label.setStyleSheet(f"color: {ERROR_COLOR}; font-size: 8pt; background: transparent;")
        self.error_label.setVisible(False)
        self.error_label.setWordWrap(True)
        self.error_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        root.addWidget(self.error_label)

    # ── Selection ─────────────────────────────────────────────────────────────

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.row_selected.emit(self)
        super().mousePressEvent(event)

    def set_selected(self, selected: bool):
        border = ACCENT if selected else "#3a3a3a"
        self.setStyleSheet(self._STYLE_BASE.format(border=border))

    # ── Updates (called by HomePage) ──────────────────────────────────────────

    def reset(self, output_file: Path | None = None):
        """Back to 'Waiting' before a new batch."""
        self.output_file = output_file
        self.error_label.setVisible(False)
        self._set_determinate()
        self.progress_bar.setValue(0)
        self.update_status(WorkerStatus.PENDING, "Waiting")

    def set_probe(self, info: ProbeResult):
        self.probe = info
        summary = format_probe_summary(info)
        if summary:
            self.details_label.setText(summary)

    def update_status(self, status: WorkerStatus, text: str):
        self.status = status
        self.status_text = text
        self.status_badge.set_status(status)

        if status == WorkerStatus.DONE:
            self._set_determinate()
            self.progress_bar.setValue(self.progress_bar.maximum())
        elif status in (WorkerStatus.ERROR, WorkerStatus.CANCELLED):
            self._set_determinate()
        elif status in (WorkerStatus.PROBING, WorkerStatus.ANALYSING, WorkerStatus.RUNNING):
            self._set_determinate()
            self.progress_bar.setValue(0)

        self.progress_bar.setFormat(text)

    def update_progress(self, percent, eta_seconds):
        """*percent* None means the duration is unknown: pulse instead."""
        if percent is None:
            # min == max == 0 makes QProgressBar show a busy indicator
            self.progress_bar.setRange(0, 0)
            self.progress_bar.setFormat(self._phase_label())
            return

        self._set_determinate()
        self.progress_bar.setValue(int(min(percent, 100.0) * 10))
        if self.status == WorkerStatus.ANALYSING:
            self.progress_bar.setFormat(f"Analysing audio… {percent:.0f}%")
        else:
            self.progress_bar.setFormat(format_progress_text(percent, eta_seconds))

    def show_error(self, message: str):
        self.error_label.setText(f"Error: {message}")
        self.error_label.setVisible(True)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _set_determinate(self):
        if self.progress_bar.maximum() == 0:
            self.progress_bar.setRange(0, 1000)

    def _phase_label(self) -> str:
        return "Analysing audio…" if self.status == WorkerStatus.ANALYSING else "Converting…"
