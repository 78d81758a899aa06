"""In-window rendering of the overlay controller's state."""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from PySide6.QtCore import QEvent, QPropertyAnimation, QRect
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QFrame,
    QGraphicsDropShadowEffect,
    QGraphicsOpacityEffect,
    QVBoxLayout,
    QWidget,
)

from blockapps.core.overlay import DIALOG, OverlayController
from blockapps.core.timing import TRANSITION_MS
from blockapps.ui.colors import Palette
from blockapps.ui.qt_support import WidgetRegistry

logger = logging.getLogger(__name__)

_EM_PX = 16


def _dialog_container(radius: int = 20) -> QFrame:
    container = QFrame()
    container.setObjectName("dialogContainer")
    container.setStyleSheet(
        f"""
        QFrame#dialogContainer {{
            background: {Palette.PANEL_BG};
            border: 1px solid {Palette.BORDER};
            border-radius: {radius}px;
        }}
        """
    )
    shadow = QGraphicsDropShadowEffect(container)
    shadow.setBlurRadius(20)
    shadow.setOffset(0, 6)
    shadow.setColor(QColor(0, 40, 100, 25))
    container.setGraphicsEffect(shadow)
    return container


def _length(value: Optional[str], total: int) -> Optional[int]:
    """Pixels for a CSS-like length: '50%', '3em' or '120px'."""
    if not value:
        return None
    m = re.match(r"^\s*([\d.]+)\s*(%|em|px)?\s*$", value)
    if not m:
        logger.warning("Ignoring dialog style value %r", value)
        return None
    number = float(m.group(1))
    unit = m.group(2) or "px"
    if unit == "%":
        return int(total * number / 100.0)
    if unit == "em":
        return int(number * _EM_PX)
    return int(number)


class OverlayView(QWidget):
    """Scrim, dialog container and ghost border covering the parent widget.

    Content widgets are looked up by node id in the registry; attached nodes
    are moved into the dialog and parked nodes into a hidden holder.
    """

    def __init__(
        self,
        controller: OverlayController,
        registry: WidgetRegistry,
        parent: QWidget,
    ) -> None:
        super().__init__(parent)
        self._controller = controller
        self._registry = registry
        self._border_anim: Optional[QPropertyAnimation] = None

        self._scrim = QWidget(self)
        self._scrim.setStyleSheet(f"background: {Palette.SCRIM};")
        self._scrim_effect = QGraphicsOpacityEffect(self._scrim)
        self._scrim_effect.setOpacity(0.0)
        self._scrim.setGraphicsEffect(self._scrim_effect)
        self._scrim.mousePressEvent = lambda _e: self._controller.hide(True)

        self._dialog = _dialog_container()
        self._dialog.setParent(self)
        self._dialog_layout = QVBoxLayout(self._dialog)
        self._dialog_layout.setContentsMargins(24, 20, 24, 20)
        self._dialog_layout.setSpacing(12)

        self._border = QFrame(self)
        self._border.setStyleSheet(
            f"background: transparent; border: 2px solid {Palette.GHOST_BORDER}; border-radius: 8px;"
        )
        self._border_effect = QGraphicsOpacityEffect(self._border)
        self._border.setGraphicsEffect(self._border_effect)
        self._border.hide()

        self._holder = QWidget(self)
        self._holder.hide()

        registry.register(DIALOG, self._dialog)
        controller.add_listener(self.render)
        self.hide()

    def render(self) -> None:
        state = self._controller.state
        self._update_geometry()
        self._layout_dialog(state.style)

        for node in self._controller.attached:
            widget = self._registry.widget(node)
            if widget is not None and widget.parent() is not self._dialog:
                self._dialog_layout.addWidget(widget)
            if widget is not None:
                widget.show()
        for node in self._controller.holding_area:
            widget = self._registry.widget(node)
            if widget is not None and widget.parent() is self._dialog:
                self._dialog_layout.removeWidget(widget)
                widget.setParent(self._holder)
                widget.hide()

        self._scrim.setVisible(state.scrim_visible)
        self._scrim_effect.setOpacity(state.scrim_opacity)
        self._dialog.setVisible(state.dialog_visible)
        self._render_border()

        active = state.scrim_visible or state.dialog_visible or state.border.visible
        self.setVisible(active)
        if active:
            self.raise_()
            self._dialog.raise_()
            self._border.raise_()

    def _render_border(self) -> None:
        border = self._controller.state.border
        if not border.visible or border.rect is None:
            self._border.hide()
            return
        target = QRect(int(border.rect.x), int(border.rect.y), int(border.rect.width), int(border.rect.height))
        self._border_effect.setOpacity(border.opacity)
        if self._border_anim is not None:
            self._border_anim.stop()
        if border.animated and self._border.isVisible():
            self._border_anim = QPropertyAnimation(self._border, b"geometry", self)
            self._border_anim.setDuration(TRANSITION_MS)
            self._border_anim.setStartValue(self._border.geometry())
            self._border_anim.setEndValue(target)
            self._border_anim.start()
        else:
            self._border.setGeometry(target)
        self._border.show()

    def _layout_dialog(self, style: Dict[str, str]) -> None:
        total_w = self.width()
        width = _length(style.get("width"), total_w) or min(560, total_w)
        top = _length(style.get("top"), self.height()) or _EM_PX * 3
        left = _length(style.get("left"), total_w)
        if left is None:
            right = _length(style.get("right"), total_w)
            left = total_w - width - right if right is not None else (total_w - width) // 2
        self._dialog.adjustSize()
        height = min(max(self._dialog.sizeHint().height(), 160), max(160, self.height() - top - _EM_PX))
        self._dialog.setGeometry(left, top, width, height)

    def _update_geometry(self) -> None:
        parent = self.parentWidget()
        if parent is not None:
            self.setGeometry(parent.rect())
            self._scrim.setGeometry(self.rect())

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self._update_geometry()

    def eventFilter(self, obj: QWidget, event: QEvent) -> bool:
        if obj is self.parentWidget() and event.type() == QEvent.Type.Resize:
            self._update_geometry()
            self._layout_dialog(self._controller.state.style)
        return super().eventFilter(obj, event)

    def showEvent(self, event) -> None:
        super().showEvent(event)
        self._update_geometry()
        parent = self.parentWidget()
        if parent is not None:
            parent.installEventFilter(self)

    def hideEvent(self, event) -> None:
        parent = self.parentWidget()
        if parent is not None:
            parent.removeEventFilter(self)
        super().hideEvent(event)
