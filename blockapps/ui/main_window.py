from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QEvent, Qt, QUrl
from PySide6.QtGui import QCloseEvent, QDesktopServices
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from blockapps.core.levels import LevelRepository
from blockapps.core.messages import MessageCatalog
from blockapps.core.overlay import KEY_ENTER, KEY_ESCAPE, KEY_SPACE
from blockapps.core.progress import LevelProgress, Mode, ProgressStore
from blockapps.core.report import report_url
from blockapps.core.session import CODE, CODE_BUTTON, HELP, HELP_BUTTON, FeedbackSession
from blockapps.core.timing import run_deferred
from blockapps.core.urls import Location
from blockapps.core.workspace import BlockWorkspace
from blockapps.ui.colors import Palette
from blockapps.ui.feedback_dialog import CodePanel, HelpPanel, stars_markup
from blockapps.ui.overlay_view import OverlayView
from blockapps.ui.qt_support import QtScheduler, WidgetRegistry
from blockapps.ui.reporter import QtReporter
from blockapps.ui.workspace_editor import WorkspaceEditor

logger = logging.getLogger(__name__)

_KEY_CODES = {
    Qt.Key.Key_Return: KEY_ENTER,
    Qt.Key.Key_Enter: KEY_ENTER,
    Qt.Key.Key_Escape: KEY_ESCAPE,
    Qt.Key.Key_Space: KEY_SPACE,
}


class MainWindow(QMainWindow):
    """Hosts one level at a time; navigating to a level address rebuilds it."""

    def __init__(
        self,
        levels: LevelRepository,
        progress_store: ProgressStore,
        messages: MessageCatalog,
        location: Location,
    ) -> None:
        super().__init__()
        self._levels = levels
        self._progress_store = progress_store
        self._messages = messages
        self._scheduler = QtScheduler()
        self._location = location
        self._session: Optional[FeedbackSession] = None
        self._reporter: Optional[QtReporter] = None
        self._overlay_view: Optional[OverlayView] = None
        self._best_label: Optional[QLabel] = None
        self._run_button: Optional[QPushButton] = None
        self._reset_button: Optional[QPushButton] = None
        self._code_panel: Optional[CodePanel] = None
        self._editor: Optional[WorkspaceEditor] = None

        self.setStyleSheet(f"QMainWindow {{ background: {Palette.BG}; }}")
        self._progress_store.add_listener(self._refresh_best)
        app = QApplication.instance()
        if app is not None:
            app.installEventFilter(self)
        self.load_location(location)

    @property
    def session(self) -> Optional[FeedbackSession]:
        return self._session

    @property
    def location(self) -> Location:
        return self._location

    def navigate(self, url: str) -> None:
        location = self._location.resolve(url)
        if location.is_http:
            logger.info("Opening external level address %s", location.url)
            QDesktopServices.openUrl(QUrl(location.url))
            return
        # The current level's widgets may still be handling the click.
        run_deferred(self._scheduler, lambda: self.load_location(location), f"load {url}")

    def load_location(self, location: Location) -> None:
        number = int(location.number_param("level", 1, self._levels.max_level))
        config = self._levels.get(self._levels.clamp(number))
        mode_value = int(location.number_param("mode", 0, max(Mode)))
        page = int(location.number_param("page", 0, 10**6)) or config.page
        progress = LevelProgress(
            level=config.number,
            max_level=self._levels.max_level,
            lang=self._messages.lang,
            page=page,
            skin_id=location.string_param("skin", "") or config.skin_id,
            mode=Mode(mode_value) if mode_value else None,
            interstitials=config.interstitials,
        )
        workspace = BlockWorkspace(config.templates, config.max_blocks)
        registry = WidgetRegistry()
        if self._reporter is not None:
            self._reporter.deleteLater()
        self._reporter = QtReporter(report_url(location), location, self)
        self._location = location
        self._session = FeedbackSession(
            config,
            progress,
            workspace,
            self._messages,
            self._scheduler,
            registry,
            self.navigate,
            location=location,
            reporter=self._reporter,
            store=self._progress_store,
            on_reset=self._sync_controls,
        )
        self._build_ui(registry)
        self.setWindowTitle(f"{config.title} - blockapps")
        logger.info("Loaded level %s (%s)", config.number, config.title)
        self._session.on_page_ready()

    def _build_ui(self, registry: WidgetRegistry) -> None:
        session = self._session
        central = QWidget()
        registry.set_root(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(12)

        header = QHBoxLayout()
        title = QLabel(session.config.title)
        title.setStyleSheet(f"color: {Palette.PRIMARY}; font-size: 20px; font-weight: 800;")
        header.addWidget(title)
        level_pill = QLabel(f"{session.progress.level} / {session.progress.max_level}")
        level_pill.setStyleSheet(f"color: {Palette.TEXT_SECONDARY}; font-weight: 700;")
        header.addWidget(level_pill)
        self._best_label = QLabel()
        self._best_label.setTextFormat(Qt.TextFormat.RichText)
        header.addWidget(self._best_label)
        header.addStretch(1)
        layout.addLayout(header)

        self._editor = WorkspaceEditor(session.workspace, session.config.toolbox)
        self._editor.changed.connect(self._update_capacity)
        layout.addWidget(self._editor, 1)

        controls = QHBoxLayout()
        self._run_button = QPushButton(self._messages.get("runProgram"))
        self._run_button.clicked.connect(self._run_clicked)
        self._reset_button = QPushButton(self._messages.get("resetProgram"))
        self._reset_button.clicked.connect(self._reset_clicked)
        help_button = QPushButton(self._messages.get("help"))
        help_button.clicked.connect(lambda: session.show_help(True))
        code_button = QPushButton(self._messages.get("showCode"))
        code_button.clicked.connect(self._show_code)
        for button in (self._run_button, self._reset_button, help_button, code_button):
            button.setCursor(Qt.CursorShape.PointingHandCursor)
            controls.addWidget(button)
        controls.addStretch(1)
        layout.addLayout(controls)
        self.setCentralWidget(central)

        self._code_panel = CodePanel(self._messages.get("codeTitle"))
        registry.register(HELP, HelpPanel(session))
        registry.register(CODE, self._code_panel)
        registry.register(HELP_BUTTON, help_button)
        registry.register(CODE_BUTTON, code_button)
        self._overlay_view = OverlayView(session.overlay, registry, central)
        session.overlay.add_listener(self._sync_controls)

        self._editor.refresh()
        self._refresh_best()
        self._sync_controls()

    def _run_clicked(self) -> None:
        self._session.run()
        self._sync_controls()

    def _reset_clicked(self) -> None:
        self._session.navigator.reset()
        self._sync_controls()

    def _show_code(self) -> None:
        self._code_panel.set_code(self._session.workspace.to_code())
        self._session.show_code()

    def _update_capacity(self) -> None:
        message = self._session.capacity_message()
        self._editor.capacity_label.setVisible(message is not None)
        self._editor.capacity_label.setText(message or "")

    def _refresh_best(self) -> None:
        if self._session is None or self._best_label is None:
            return
        record = self._progress_store.get_record(self._session.config.key)
        self._best_label.setText(stars_markup(record.best_stars))

    def _sync_controls(self) -> None:
        if self._run_button is None:
            return
        controls = self._session.controls
        self._run_button.setVisible(controls.run_visible)
        self._reset_button.setVisible(controls.reset_visible)

    def eventFilter(self, obj, event) -> bool:
        """Offer Enter, Escape and Space to the open dialog before any widget sees them."""
        if event.type() == QEvent.Type.KeyPress and self._session is not None:
            code = _KEY_CODES.get(event.key())
            if code is not None and self._session.handle_key(code):
                return True
        return super().eventFilter(obj, event)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._progress_store.save()
        super().closeEvent(event)
