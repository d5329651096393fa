from .home_page import HomePage
from .settings_page import SettingsPage

__all__ = ["HomePage", "SettingsPage"]
