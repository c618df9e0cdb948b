from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtGui import QImage, QPainter
from PyQt5.QtWidgets import QWidget

from ...core.editor import EditorSession
from ...core.enums import PointerButton
from ...core.interaction import InteractionController, KeyEvent, PointerEvent
from .minimap import MinimapWidget
from .painter import paintScene
from .particles import ParticleSystem

FRAME_INTERVAL_MS = 16

QT_BUTTONS = {
    Qt.LeftButton: PointerButton.LEFT,
    Qt.MiddleButton: PointerButton.MIDDLE,
    Qt.RightButton: PointerButton.RIGHT,
}


def keyName(key: int, text: str = "") -> str:
    """把 Qt 按鍵碼轉成狀態機使用的按鍵名稱"""
    if key == Qt.Key_Escape:
        return "Escape"
    if key == Qt.Key_Space:
        return " "
    if Qt.Key_0 <= key <= Qt.Key_9:
        return chr(key)
    if Qt.Key_A <= key <= Qt.Key_Z:
        return chr(key).lower()
    return text


class ConstellationCanvas(QWidget):
    """星座畫布

    只負責把 Qt 事件轉譯給 InteractionController，並以計時器重繪。
    """

    def __init__(self, session: EditorSession,
                 controller: Optional[InteractionController] = None, parent=None) -> None:
        super().__init__(parent)
        self.session = session
        self.controller = controller or InteractionController(session)
        self.particles = ParticleSystem()
        self.controller.onBurst = self.particles.burst

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(400, 300)

        self.session.addListener(self.update)

        self.minimap = MinimapWidget(session, self)
        self._placeMinimap()

        self._timer = QTimer(self)
        self._timer.timeout.connect(self._tick)
        self._timer.start(FRAME_INTERVAL_MS)

    def _tick(self) -> None:
        if self.particles.particles:
            self.particles.step()
        self.update()
        self.minimap.update()

    def _placeMinimap(self) -> None:
        # 左下角，右下角留給縮放指示
        margin = 10
        self.minimap.move(margin, max(self.height() - self.minimap.height() - margin, 0))

    def stopAnimation(self) -> None:
        self._timer.stop()

    # ------------------------------------------------------------------
    # 繪製
    # ------------------------------------------------------------------
    def resizeEvent(self, event):
        self.session.setCanvasSize(self.width(), self.height())
        self._placeMinimap()
        super().resizeEvent(event)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        paintScene(painter, self.session, self.controller, self.particles,
                   self.width(), self.height())
        painter.end()

    def renderToImage(self, width: int, height: int) -> QImage:
        """離屏繪製目前場景（匯出與測試用）"""
        image = QImage(width, height, QImage.Format_ARGB32)
        painter = QPainter(image)
        painter.setRenderHint(QPainter.Antialiasing)
        paintScene(painter, self.session, self.controller, None, width, height)
        painter.end()
        return image

    def exportPng(self, path: str) -> bool:
        """將目前畫面輸出成 PNG"""
        return self.renderToImage(self.width(), self.height()).save(path, "PNG")

    # ------------------------------------------------------------------
    # 事件轉譯
    # ------------------------------------------------------------------
    @staticmethod
    def _pointerEvent(event) -> PointerEvent:
        modifiers = event.modifiers()
        return PointerEvent(
            x=event.pos().x(),
            y=event.pos().y(),
            button=QT_BUTTONS.get(event.button(), PointerButton.LEFT),
            shift=bool(modifiers & Qt.ShiftModifier),
            ctrl=bool(modifiers & (Qt.ControlModifier | Qt.MetaModifier)),
        )

    def mousePressEvent(self, event):
        self.setFocus()
        self.controller.pointerDown(self._pointerEvent(event))
        self.update()

    def mouseMoveEvent(self, event):
        self.controller.pointerMove(self._pointerEvent(event))
        self.update()

    def mouseReleaseEvent(self, event):
        self.controller.pointerUp(self._pointerEvent(event))
        self.update()

    def mouseDoubleClickEvent(self, event):
        self.controller.doubleClick(self._pointerEvent(event))
        self.update()

    def leaveEvent(self, event):
        self.controller.pointerLeave()
        self.update()
        super().leaveEvent(event)

    def wheelEvent(self, event):
        # Qt 的 angleDelta 向上為正，狀態機以向下為正
        pos = event.pos()
        self.controller.wheel(pos.x(), pos.y(), -event.angleDelta().y())
        self.update()
        event.accept()

    def keyPressEvent(self, event):
        modifiers = event.modifiers()
        handled = self.controller.keyPress(KeyEvent(
            key=keyName(event.key(), event.text()),
            ctrl=bool(modifiers & (Qt.ControlModifier | Qt.MetaModifier)),
        ))
        if handled:
            self.update()
            event.accept()
        else:
            super().keyPressEvent(event)
