"""Light/dark qt_material themes and the few accent colours used inline."""

from PySide6.QtWidgets import QApplication
from qt_material import apply_stylesheet

THEME_FILES = {
    "dark":  "dark_lightgreen.xml",
    "light": "light_lightgreen.xml",
}

ACCENT       = "#558B6E"
ACCENT_HOVER = "#67a382"
ERROR_COLOR  = "#e74c3c"
MUTED_COLOR  = "#888888"


def apply_theme(app: QApplication, theme: str) -> str:
    """Apply *theme* ('dark' or 'light'); unknown names fall back to dark."""
    if theme not in THEME_FILES:
        theme = "dark"
    apply_stylesheet(app, theme=THEME_FILES[theme], invert_secondary=(theme == "light"))
    return theme


def other_theme(theme: str) -> str:
    return "light" if theme == "dark" else "dark"
