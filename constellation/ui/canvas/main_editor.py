from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from PyQt5.QtCore import Qt
from PyQt5.QtGui import QColor, QKeySequence
from PyQt5.QtWidgets import (
    QAction, QActionGroup, QApplication, QColorDialog, QDialog, QFileDialog,
    QInputDialog, QLabel, QMenuBar, QMessageBox, QVBoxLayout
)

from ...core.editor import EditorSession
from ...core.enums import EditorMode, ImportMode, LineStyle
from ...core.errors import EmptySceneError, SnapshotValidationError, UnknownTemplateError
from ...core.interaction import InteractionController
from ...core.model import Star
from ...io.export import exportJson, exportSvg
from ...io.templates import templateNames
from .dialogs import StarDialog, TagFilterDialog
from .view import ConstellationCanvas

logger = logging.getLogger(__name__)

MODE_LABELS = {
    EditorMode.ADD: "新增星星(&A)\t1",
    EditorMode.CONNECT: "連線(&C)\t2",
    EditorMode.MOVE: "移動(&M)\t3",
    EditorMode.DELETE: "刪除(&D)\t4",
    EditorMode.SELECT: "選取(&S)",
}


class ConstellationEditor(QDialog):
    """星座編輯器 - 主視窗"""

    def __init__(self, session: EditorSession, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("星座編輯器")
        self.resize(session.config.canvasWidth, session.config.canvasHeight)

        self.setWindowFlags(
            Qt.Window |
            Qt.WindowTitleHint |
            Qt.WindowSystemMenuHint |
            Qt.WindowMinimizeButtonHint |
            Qt.WindowMaximizeButtonHint |
            Qt.WindowCloseButtonHint
        )

        self.session = session
        self.controller = InteractionController(session)
        self._openDialogs: List[QDialog] = []

        self.setupUI()

        self.controller.onEditStar = self.editStar
        self.controller.onOpenSearch = self.showSearch
        self.controller.onCloseModals = self.closeModals
        self.controller.onModeChanged = self._syncModeActions
        self.session.addListener(self.updateUndoRedoState)
        self.updateUndoRedoState()

    def setupUI(self) -> None:
        """設定使用者介面"""
        layout = QVBoxLayout(self)

        menuBar = QMenuBar(self)
        layout.setMenuBar(menuBar)

        # 檔案選單
        fileMenu = menuBar.addMenu("檔案(&F)")

        importAction = QAction("匯入(&I)...", self)
        importAction.setShortcut(QKeySequence.Open)
        importAction.triggered.connect(self.importScene)
        fileMenu.addAction(importAction)

        fileMenu.addSeparator()

        exportJsonAction = QAction("匯出 JSON(&J)...", self)
        exportJsonAction.setShortcut(QKeySequence.SaveAs)
        exportJsonAction.triggered.connect(self.exportJsonFile)
        fileMenu.addAction(exportJsonAction)

        exportSvgAction = QAction("匯出 SVG(&S)...", self)
        exportSvgAction.triggered.connect(self.exportSvgFile)
        fileMenu.addAction(exportSvgAction)

        exportPngAction = QAction("匯出 PNG(&P)...", self)
        exportPngAction.triggered.connect(self.exportPngFile)
        fileMenu.addAction(exportPngAction)

        shareAction = QAction("複製分享連結(&L)", self)
        shareAction.triggered.connect(self.copyShareLink)
        fileMenu.addAction(shareAction)

        fileMenu.addSeparator()
        templateMenu = fileMenu.addMenu("套用範本(&T)")
        for name in templateNames():
            action = QAction(name, self)
            action.triggered.connect(lambda checked=False, n=name: self.applyTemplate(n))
            templateMenu.addAction(action)

        # 編輯選單
        editMenu = menuBar.addMenu("編輯(&E)")

        # Ctrl+Z / Ctrl+Y 由畫布的互動狀態機處理，這裡只顯示提示
        self.undoAction = QAction("撤銷(&U)\tCtrl+Z", self)
        self.undoAction.triggered.connect(self.session.undo)
        self.undoAction.setEnabled(False)
        editMenu.addAction(self.undoAction)

        self.redoAction = QAction("重做(&R)\tCtrl+Y", self)
        self.redoAction.triggered.connect(self.session.redo)
        self.redoAction.setEnabled(False)
        editMenu.addAction(self.redoAction)

        editMenu.addSeparator()

        connectByTagAction = QAction("依標籤連線(&T)", self)
        connectByTagAction.triggered.connect(self.connectByTag)
        editMenu.addAction(connectByTagAction)

        deleteSelectedAction = QAction("刪除選取(&D)", self)
        deleteSelectedAction.triggered.connect(self.session.deleteSelected)
        editMenu.addAction(deleteSelectedAction)

        recolorAction = QAction("變更選取顏色(&O)...", self)
        recolorAction.triggered.connect(self.recolorSelected)
        editMenu.addAction(recolorAction)

        editMenu.addSeparator()

        clearAction = QAction("清除全部(&C)", self)
        clearAction.triggered.connect(self.confirmClear)
        editMenu.addAction(clearAction)

        # 工具選單
        toolMenu = menuBar.addMenu("工具(&T)")

        self.modeGroup = QActionGroup(self)
        self.modeActions = {}
        for mode, label in MODE_LABELS.items():
            action = QAction(label, self)
            action.setCheckable(True)
            action.triggered.connect(lambda checked=False, m=mode: self.controller.setMode(m))
            self.modeGroup.addAction(action)
            toolMenu.addAction(action)
            self.modeActions[mode] = action
        self.modeActions[self.controller.mode].setChecked(True)

        toolMenu.addSeparator()

        colorAction = QAction("目前顏色(&K)...", self)
        colorAction.triggered.connect(self.chooseColor)
        toolMenu.addAction(colorAction)

        styleMenu = toolMenu.addMenu("連線樣式(&L)")
        styleGroup = QActionGroup(self)
        for style in LineStyle:
            action = QAction(style.value, self)
            action.setCheckable(True)
            action.setChecked(style is self.session.currentLineStyle)
            action.triggered.connect(lambda checked=False, s=style: self.setLineStyle(s))
            styleGroup.addAction(action)
            styleMenu.addAction(action)

        # 檢視選單
        viewMenu = menuBar.addMenu("檢視(&V)")

        zoomInAction = QAction("放大(&I)", self)
        zoomInAction.setShortcut(QKeySequence.ZoomIn)
        zoomInAction.triggered.connect(self.session.zoomIn)
        viewMenu.addAction(zoomInAction)

        zoomOutAction = QAction("縮小(&O)", self)
        zoomOutAction.setShortcut(QKeySequence.ZoomOut)
        zoomOutAction.triggered.connect(self.session.zoomOut)
        viewMenu.addAction(zoomOutAction)

        resetViewAction = QAction("重設視圖(&R)", self)
        resetViewAction.triggered.connect(self.session.resetView)
        viewMenu.addAction(resetViewAction)

        viewMenu.addSeparator()

        tagFilterAction = QAction("標籤過濾(&F)...", self)
        tagFilterAction.triggered.connect(self.showTagFilter)
        viewMenu.addAction(tagFilterAction)

        showAllTagsAction = QAction("顯示全部標籤(&A)", self)
        showAllTagsAction.triggered.connect(self.session.showAllTags)
        viewMenu.addAction(showAllTagsAction)

        searchAction = QAction("搜尋(&S)...\tCtrl+F", self)
        searchAction.triggered.connect(self.showSearch)
        viewMenu.addAction(searchAction)

        statsAction = QAction("統計(&T)...", self)
        statsAction.triggered.connect(self.showStatistics)
        viewMenu.addAction(statsAction)

        # 畫布與狀態列
        self.canvas = ConstellationCanvas(self.session, self.controller, self)
        layout.addWidget(self.canvas)

        self.statusLabel = QLabel(self)
        layout.addWidget(self.statusLabel)
        self.session.addListener(self.updateStatus)
        self.updateStatus()

    # ------------------------------------------------------------------
    # 狀態同步
    # ------------------------------------------------------------------
    def updateUndoRedoState(self) -> None:
        """更新撤銷/重做按鈕狀態"""
        history = self.session.history
        self.undoAction.setEnabled(history.canUndo)
        self.redoAction.setEnabled(history.canRedo)

    def updateStatus(self) -> None:
        model = self.session.model
        self.statusLabel.setText(
            f"星星 {len(model.stars)} | 連線 {len(model.connections)} | "
            f"選取 {len(self.session.selection)} | 模式 {self.controller.mode.value}"
        )

    def _syncModeActions(self, mode: EditorMode) -> None:
        self.modeActions[mode].setChecked(True)
        self.updateStatus()

    # ------------------------------------------------------------------
    # 對話框
    # ------------------------------------------------------------------
    def _runDialog(self, dialog: QDialog) -> int:
        self._openDialogs.append(dialog)
        try:
            return dialog.exec_()
        finally:
            self._openDialogs.remove(dialog)

    def closeModals(self) -> None:
        """Escape：關閉所有開啟中的對話框"""
        for dialog in list(self._openDialogs):
            dialog.reject()

    def editStar(self, star: Star) -> None:
        dialog = StarDialog(star, self)
        if self._runDialog(dialog) == QDialog.Accepted:
            self.session.updateStar(star.id, **dialog.getValues())

    def showTagFilter(self) -> None:
        if not self.session.model.allTags():
            QMessageBox.information(self, "標籤過濾", "目前沒有任何標籤")
            return
        self._runDialog(TagFilterDialog(self.session, self))

    def showSearch(self) -> None:
        query, ok = QInputDialog.getText(self, "搜尋", "標題或標籤：")
        if not ok:
            return
        matches = self.session.search(query)
        if not matches:
            QMessageBox.information(self, "搜尋", "找不到符合的星星")
            return
        lines = [f"#{star.id} {star.title}" for star in matches]
        QMessageBox.information(self, "搜尋", "\n".join(lines))

    def showStatistics(self) -> None:
        stats = self.session.statistics()
        text = "\n".join(f"{label}: {value}" for label, value in stats.asRows())
        QMessageBox.information(self, "統計", text)

    def chooseColor(self) -> None:
        color = QColorDialog.getColor(QColor(self.session.currentColor), self)
        if color.isValid():
            self.session.currentColor = color.name()

    def setLineStyle(self, style: LineStyle) -> None:
        self.session.currentLineStyle = style

    def recolorSelected(self) -> None:
        if not len(self.session.selection):
            QMessageBox.information(self, "變更顏色", "請先在選取模式中選取星星")
            return
        color = QColorDialog.getColor(QColor(self.session.currentColor), self)
        if color.isValid():
            self.session.recolorSelected(color.name())

    def connectByTag(self) -> None:
        created = self.session.connectByTag()
        QMessageBox.information(self, "依標籤連線", f"建立了 {created} 條連線")

    def confirmClear(self) -> None:
        answer = QMessageBox.question(self, "清除全部", "確定要清除所有星星與連線？")
        if answer == QMessageBox.Yes:
            self.session.clearAll()

    def applyTemplate(self, name: str) -> None:
        try:
            self.session.applyTemplate(name)
        except UnknownTemplateError as exc:
            QMessageBox.warning(self, "範本", str(exc))

    # ------------------------------------------------------------------
    # 匯入匯出
    # ------------------------------------------------------------------
    def importScene(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "匯入星座", "", "JSON (*.json)")
        if not path:
            return
        modes = [ImportMode.APPEND.value, ImportMode.REPLACE.value]
        choice, ok = QInputDialog.getItem(self, "匯入方式", "模式：", modes, 0, False)
        if not ok:
            return
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
            count = self.session.applyImportedSnapshot(data, ImportMode(choice))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("讀取匯入檔失敗 %s: %s", path, exc)
            QMessageBox.critical(self, "匯入失敗", f"無法讀取檔案：{exc}")
            return
        except SnapshotValidationError as exc:
            QMessageBox.warning(self, "匯入失敗", f"檔案格式不正確：{exc}")
            return
        QMessageBox.information(self, "匯入", f"已匯入 {count} 顆星星")

    def _saveText(self, title: str, pattern: str, content: str) -> None:
        path, _ = QFileDialog.getSaveFileName(self, title, "", pattern)
        if not path:
            return
        try:
            Path(path).write_text(content, encoding="utf-8")
        except OSError as exc:
            QMessageBox.critical(self, "匯出失敗", str(exc))

    def exportJsonFile(self) -> None:
        self._saveText("匯出 JSON", "JSON (*.json)", exportJson(self.session.model.serialize()))

    def exportSvgFile(self) -> None:
        try:
            content = exportSvg(self.session.model.serialize())
        except EmptySceneError as exc:
            QMessageBox.information(self, "匯出 SVG", str(exc))
            return
        self._saveText("匯出 SVG", "SVG (*.svg)", content)

    def exportPngFile(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "匯出 PNG", "", "PNG (*.png)")
        if path and not self.canvas.exportPng(path):
            QMessageBox.critical(self, "匯出失敗", f"無法寫入 {path}")

    def copyShareLink(self) -> None:
        try:
            url = self.session.shareUrl()
        except EmptySceneError as exc:
            QMessageBox.information(self, "分享", str(exc))
            return
        QApplication.clipboard().setText(url)
        QMessageBox.information(self, "分享", "分享連結已複製到剪貼簿")

    def closeEvent(self, event):
        self.canvas.stopAnimation()
        super().closeEvent(event)


def runEditor(session: EditorSession) -> int:
    """建立 QApplication 並開啟編輯器"""
    app = QApplication.instance() or QApplication([])
    editor = ConstellationEditor(session)
    editor.show()
    return app.exec_()
