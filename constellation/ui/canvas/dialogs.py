from __future__ import annotations

from typing import Iterable

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QComboBox, QDialog, QDialogButtonBox, QFormLayout, QLineEdit, QListWidget,
    QListWidgetItem, QPlainTextEdit, QVBoxLayout
)

from ...core.enums import StarShape
from ...core.model import Star


class StarDialog(QDialog):
    """編輯星星標題、描述、標籤與形狀"""

    def __init__(self, star: Star, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle(f"編輯星星 #{star.id}")
        self.starId = star.id

        layout = QFormLayout(self)

        self.titleEdit = QLineEdit(star.title)
        layout.addRow("標題", self.titleEdit)

        self.descriptionEdit = QPlainTextEdit(star.description)
        self.descriptionEdit.setFixedHeight(80)
        layout.addRow("描述", self.descriptionEdit)

        self.tagsEdit = QLineEdit(", ".join(star.tags))
        self.tagsEdit.setPlaceholderText("以逗號分隔")
        layout.addRow("標籤", self.tagsEdit)

        self.shapeCombo = QComboBox()
        for shape in StarShape:
            self.shapeCombo.addItem(shape.value, shape)
        self.shapeCombo.setCurrentIndex(list(StarShape).index(star.shape))
        layout.addRow("形狀", self.shapeCombo)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def getValues(self) -> dict:
        """回傳可直接交給 EditorSession.updateStar 的欄位"""
        return {
            'title': self.titleEdit.text(),
            'description': self.descriptionEdit.toPlainText(),
            'tags': self.tagsEdit.text(),
            'shape': self.shapeCombo.currentData(),
        }


class TagFilterDialog(QDialog):
    """勾選要顯示的標籤；變更立即套用"""

    def __init__(self, session, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("標籤過濾")
        self.session = session

        layout = QVBoxLayout(self)
        self.tagList = QListWidget()
        layout.addWidget(self.tagList)
        self._populate(session.model.allTags())
        self.tagList.itemChanged.connect(self._onItemChanged)

        buttons = QDialogButtonBox(QDialogButtonBox.Close)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _populate(self, tags: Iterable[str]) -> None:
        tagFilter = self.session.tagFilter
        for tag in tags:
            item = QListWidgetItem(tag)
            item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
            item.setCheckState(Qt.Checked if tagFilter.isTagVisible(tag) else Qt.Unchecked)
            self.tagList.addItem(item)

    def _onItemChanged(self, item: QListWidgetItem) -> None:
        self.session.toggleTag(item.text())
