"""Qt implementations of the core scheduling and geometry protocols."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from PySide6.QtCore import QPoint, QTimer
from PySide6.QtWidgets import QWidget

from blockapps.core.overlay import Rect
from blockapps.core.timing import TransitionHandle

logger = logging.getLogger(__name__)


class QtScheduler:
    """Runs deferred callbacks on the Qt event loop."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TransitionHandle:
        handle = TransitionHandle(callback)
        QTimer.singleShot(max(0, int(delay_ms)), handle.fire)
        return handle


class WidgetRegistry:
    """Resolves stable node identifiers to widgets and reports their bounds."""

    def __init__(self, root: Optional[QWidget] = None) -> None:
        self._root = root
        self._widgets: Dict[Any, QWidget] = {}

    def set_root(self, root: QWidget) -> None:
        self._root = root

    def register(self, node: Any, widget: QWidget) -> None:
        self._widgets[node] = widget

    def widget(self, node: Any) -> Optional[QWidget]:
        widget = self._widgets.get(node)
        if widget is None:
            logger.warning("No widget registered for %r", node)
        return widget

    def bounds(self, node: Any) -> Optional[Rect]:
        widget = self.widget(node)
        if widget is None:
            return None
        root = self._root or widget.window()
        top_left = widget.mapTo(root, QPoint(0, 0)) if widget is not root else QPoint(0, 0)
        return Rect(top_left.x(), top_left.y(), widget.width(), widget.height())
