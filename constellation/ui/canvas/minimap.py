from __future__ import annotations

from PyQt5.QtCore import QPointF, QRectF, Qt
from PyQt5.QtGui import QColor, QPainter, QPen
from PyQt5.QtWidgets import QWidget

from ...core.editor import EditorSession
from ...core.geometry import MINIMAP_SCALE
from .painter import BACKGROUND, SELECTION_COLOR, toQColor

MINIMAP_WIDTH = 200
MINIMAP_HEIGHT = 150


class MinimapWidget(QWidget):
    """小地圖：以 MINIMAP_SCALE 縮小顯示星星與目前視口，點擊後置中該位置"""

    def __init__(self, session: EditorSession, parent=None) -> None:
        super().__init__(parent)
        self.session = session
        self.setFixedSize(MINIMAP_WIDTH, MINIMAP_HEIGHT)
        self.setCursor(Qt.PointingHandCursor)
        self.session.addListener(self.update)

    def viewportRect(self) -> QRectF:
        """目前可見的世界範圍（小地圖座標）"""
        width, height = self.session.canvasSize
        left, top = self.session.toWorld((0, 0))
        zoom = self.session.viewport.zoom
        return QRectF(left * MINIMAP_SCALE, top * MINIMAP_SCALE,
                      width / zoom * MINIMAP_SCALE, height / zoom * MINIMAP_SCALE)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), BACKGROUND)
        painter.setPen(QPen(QColor(255, 255, 255, 60), 1))
        painter.drawRect(self.rect().adjusted(0, 0, -1, -1))

        model = self.session.model
        byId = {star.id: star for star in model.stars}
        for conn in model.connections:
            src = byId.get(conn.fromId)
            dst = byId.get(conn.toId)
            if src is None or dst is None:
                continue
            painter.setPen(QPen(toQColor(conn.color, 0.5), 1))
            painter.drawLine(QPointF(src.x * MINIMAP_SCALE, src.y * MINIMAP_SCALE),
                             QPointF(dst.x * MINIMAP_SCALE, dst.y * MINIMAP_SCALE))

        painter.setPen(Qt.NoPen)
        for star in model.stars:
            painter.setBrush(toQColor(star.color, self.session.tagFilter.starOpacity(star)))
            painter.drawEllipse(QPointF(star.x * MINIMAP_SCALE, star.y * MINIMAP_SCALE), 2, 2)

        painter.setBrush(Qt.NoBrush)
        painter.setPen(QPen(SELECTION_COLOR, 1, Qt.DashLine))
        painter.drawRect(self.viewportRect())
        painter.end()

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton:
            return
        self.session.navigateMinimap((event.pos().x(), event.pos().y()))
        self.update()
        if self.parentWidget() is not None:
            self.parentWidget().update()
        event.accept()
