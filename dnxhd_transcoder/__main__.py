import argparse
import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication
from PySide6.QtGui import QFont

from dnxhd_transcoder import __description__, __version__
from dnxhd_transcoder.core.config import SETTINGS_FILE, load_settings
from dnxhd_transcoder.ui import MainWindow
from dnxhd_transcoder.ui.theme import apply_theme

logger = logging.getLogger("dnxhd_transcoder")


def setup_logging(level: str, log_file: str | None, colorless: bool) -> None:
    class Fore:
        GREEN = "\x1b[32m"
        CYAN = "\x1b[36m"
        RED = "\x1b[31m"
        YELLOW = "\x1b[33m"
        RESET = "\x1b[39m"

    colored = not colorless and log_file is None
    green = Fore.GREEN if colored else ""
    cyan = Fore.CYAN if colored else ""
    reset = Fore.RESET if colored else ""

    if level == "debug":
        fmt = f"{green}%(asctime)s{reset} - {cyan}%(name)s:%(funcName)s:%(lineno)d{reset} - %(levelname)s - %(message)s"
    else:
        fmt = f"{green}%(asctime)s{reset} - {cyan}%(name)s{reset} - %(levelname)s - %(message)s"

    if colored:
        logging.addLevelName(logging.CRITICAL, f"{Fore.RED}CRITICAL{Fore.RESET}")
        logging.addLevelName(logging.ERROR, f"{Fore.RED}ERROR{Fore.RESET}")
        logging.addLevelName(logging.WARNING, f"{Fore.YELLOW}WARNING{Fore.RESET}")
        logging.addLevelName(logging.INFO, f"{Fore.GREEN}INFO{Fore.RESET}")
        logging.addLevelName(logging.DEBUG, f"{Fore.CYAN}DEBUG{Fore.RESET}")

    handler = logging.FileHandler(log_file, encoding="utf-8") if log_file else logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    root.addHandler(handler)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dnxhd-transcoder",
        description=__description__,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("-l", "--log", default="info",
                        choices=["debug", "info", "warning", "error", "critical"],
                        help="Log level. 'debug' also prints every ffmpeg progress line")
    parser.add_argument("--log-file", type=str, help="Write the log to this file instead of stderr")
    parser.add_argument("--colorless", action="store_true", help="Disable colored output")
    parser.add_argument("--theme", choices=["dark", "light"],
                        help="Override the saved theme for this session")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("input", nargs="*", help="Video files to preload into the list")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log, args.log_file, args.colorless)
    logger.info("DNxHD Transcoder %s, settings at %s", __version__, SETTINGS_FILE)

    settings = load_settings()
    if args.theme:
        settings.theme = args.theme

    app = QApplication(sys.argv[:1])
    app.setApplicationName("DNxHD Transcoder")
    app.setDesktopFileName("com.davinciconvert.DNxHDTranscoder")

    # Base font
    font = QFont("Segoe UI", 10)
    app.setFont(font)

    settings.theme = apply_theme(app, settings.theme)

    window = MainWindow(settings, [Path(p) for p in args.input])
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
