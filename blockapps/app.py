"""Application entry point and setup for blockapps."""

import logging
import sys

from PySide6.QtCore import QLocale, QSettings
from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QApplication

from blockapps.core.levels import LevelRepository
from blockapps.core.messages import MessageCatalog, available_languages, choose_language
from blockapps.core.progress import ProgressStore
from blockapps.core.urls import Location
from blockapps.ui.main_window import MainWindow
from blockapps.ui.qt_support import QtScheduler

DEFAULT_ADDRESS = "blockapps://levels/?level=1"


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def select_language(location: Location) -> str:
    """Pick the UI language and remember an explicit choice."""
    settings = QSettings("blockapps", "blockapps")
    requested = location.string_param("lang", "")
    lang = choose_language(
        available_languages(),
        requested=requested,
        stored=settings.value("lang"),
        system=QLocale.system().name().lower(),
    )
    if requested == lang:
        settings.setValue("lang", lang)
    return lang


def run() -> None:
    """Initialize the application, load levels, and open the requested level."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("blockapps")
    app.setApplicationDisplayName("blockapps")

    address = app.arguments()[1] if len(app.arguments()) > 1 else DEFAULT_ADDRESS
    location = Location.parse(address)
    messages = MessageCatalog.load(select_language(location))
    levels = LevelRepository()
    progress_store = ProgressStore()

    window = MainWindow(
        levels=levels,
        progress_store=progress_store,
        messages=messages,
        location=location,
    )
    screen = QGuiApplication.primaryScreen()
    if screen is not None:
        geometry = screen.availableGeometry()
        window.resize(int(geometry.width() * 0.8), int(geometry.height() * 0.8))
    window.show()
    # Runs once the event loop starts; failures are only logged.
    progress_store.restore_later(QtScheduler())

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
