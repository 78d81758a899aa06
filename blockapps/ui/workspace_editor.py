"""Minimal block editor: a toolbox list and a tree of placed blocks."""

from __future__ import annotations

from typing import Dict, List, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QListWidget,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from blockapps.core.workspace import Block, BlockWorkspace
from blockapps.ui.colors import Palette


class WorkspaceEditor(QWidget):
    """Edits a :class:`BlockWorkspace`; emits ``changed`` after every edit."""

    changed = Signal()

    def __init__(self, workspace: BlockWorkspace, toolbox: List[str], parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._workspace = workspace
        self._items: Dict[int, Block] = {}

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(12)

        self._toolbox = QListWidget()
        self._toolbox.addItems(toolbox)
        self._toolbox.setMaximumWidth(220)
        self._toolbox.itemDoubleClicked.connect(lambda _item: self._add(inside=False))
        layout.addWidget(self._toolbox)

        right = QVBoxLayout()
        self._tree = QTreeWidget()
        self._tree.setHeaderHidden(True)
        self._tree.setStyleSheet(f"QTreeWidget {{ background: {Palette.PANEL_BG}; border: 1px solid {Palette.BORDER}; }}")
        right.addWidget(self._tree, 1)

        buttons = QHBoxLayout()
        for text, slot in (
            ("Add", lambda: self._add(inside=False)),
            ("Add inside", lambda: self._add(inside=True)),
            ("Delete", self._delete),
            ("Disable / enable", self._toggle_disabled),
        ):
            button = QPushButton(text)
            button.clicked.connect(slot)
            buttons.addWidget(button)
        right.addLayout(buttons)

        self.capacity_label = QLabel()
        self.capacity_label.setStyleSheet(f"color: {Palette.TEXT_MUTED};")
        right.addWidget(self.capacity_label)
        layout.addLayout(right, 1)

    def _selected_block(self) -> Optional[Block]:
        item = self._tree.currentItem()
        if item is None:
            return None
        return self._items.get(item.data(0, Qt.UserRole))

    def _add(self, inside: bool) -> None:
        item = self._toolbox.currentItem()
        if item is None or self._workspace.remaining_capacity() <= 0:
            return
        parent = self._selected_block() if inside else None
        if parent is not None and not self._workspace.accepts_children(parent.type):
            parent = None
        self._workspace.add_block(item.text(), parent)
        self.refresh()

    def _delete(self) -> None:
        block = self._selected_block()
        if block is None or not block.deletable:
            return
        self._workspace.remove_block(block)
        self.refresh()

    def _toggle_disabled(self) -> None:
        block = self._selected_block()
        if block is None:
            return
        block.disabled = not block.disabled
        self.refresh()

    def refresh(self) -> None:
        self._tree.clear()
        self._items = {}
        for block in self._workspace.top_blocks:
            self._tree.addTopLevelItem(self._make_item(block))
        self._tree.expandAll()
        self.changed.emit()

    def _make_item(self, block: Block) -> QTreeWidgetItem:
        label = block.type + (" (disabled)" if block.disabled else "")
        item = QTreeWidgetItem([label])
        item.setData(0, Qt.UserRole, block.id)
        self._items[block.id] = block
        for child in block.children:
            item.addChild(self._make_item(child))
        return item
