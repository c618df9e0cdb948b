"""場景繪製

每一幀從 EditorSession / InteractionController 讀取狀態後繪製，
只讀不寫。形狀以 SHAPE_PAINTERS 對照表分派，每種形狀一個函式。
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from PyQt5.QtCore import Qt, QPointF, QRectF
from PyQt5.QtGui import (
    QBrush, QColor, QFont, QLinearGradient, QPainter, QPainterPath, QPen, QPolygonF
)

from ...core.enums import LineStyle, StarShape
from ...core.geometry import curveControlPoint
from ...core.shapes import CIRCLE_CORE_RADIUS, CIRCLE_GLOW_RADIUS, shapeVertices

if TYPE_CHECKING:
    from ...core.editor import EditorSession
    from ...core.interaction import InteractionController
    from ...core.model import Star
    from .particles import ParticleSystem

BACKGROUND = QColor(10, 10, 26)
SELECTION_COLOR = QColor(255, 215, 0)
HIGHLIGHT_COLOR = QColor(0, 191, 255)

# 以畫筆寬度為單位的虛線樣式
DASH_PATTERNS = {
    LineStyle.SOLID: None,
    LineStyle.DASHED: [5.0, 5.0],
    LineStyle.DOTTED: [1.5, 4.0],
}


def toQColor(color: str, alpha: float = 1.0) -> QColor:
    qcolor = QColor(color)
    if not qcolor.isValid():
        qcolor = QColor(Qt.white)
    qcolor.setAlphaF(max(0.0, min(1.0, alpha)))
    return qcolor


def toPolygon(vertices) -> QPolygonF:
    return QPolygonF([QPointF(float(x), float(y)) for x, y in vertices])


def paintConnection(painter: QPainter, src: Star, dst: Star, color: str,
                    style: LineStyle, opacity: float) -> None:
    """以二次曲線與漸層繪製連線"""
    cx, cy = curveControlPoint(src.position, dst.position, src.id)
    path = QPainterPath(QPointF(src.x, src.y))
    path.quadTo(QPointF(cx, cy), QPointF(dst.x, dst.y))

    gradient = QLinearGradient(QPointF(src.x, src.y), QPointF(dst.x, dst.y))
    gradient.setColorAt(0.0, toQColor(src.color, 0.8 * opacity))
    gradient.setColorAt(0.5, toQColor(color, 0.6 * opacity))
    gradient.setColorAt(1.0, toQColor(dst.color, 0.8 * opacity))

    pen = QPen(QBrush(gradient), 2)
    pattern = DASH_PATTERNS.get(style)
    if pattern:
        pen.setDashPattern(pattern)
    painter.setPen(pen)
    painter.setBrush(Qt.NoBrush)
    painter.drawPath(path)


def paintCircle(painter: QPainter, star: Star, opacity: float) -> None:
    center = QPointF(star.x, star.y)
    painter.setPen(Qt.NoPen)
    painter.setBrush(toQColor(star.color, 0.3 * opacity))
    painter.drawEllipse(center, CIRCLE_GLOW_RADIUS, CIRCLE_GLOW_RADIUS)
    painter.setBrush(toQColor(star.color, opacity))
    painter.setPen(QPen(toQColor("#ffffff", opacity), 2))
    painter.drawEllipse(center, CIRCLE_CORE_RADIUS, CIRCLE_CORE_RADIUS)


def _paintPolygon(painter: QPainter, star: Star, opacity: float) -> None:
    painter.setPen(Qt.NoPen)
    painter.setBrush(toQColor(star.color, 0.3 * opacity))
    painter.drawPolygon(toPolygon(shapeVertices(star.shape, star.x, star.y)))
    painter.setBrush(toQColor(star.color, opacity))
    painter.setPen(QPen(toQColor("#ffffff", opacity), 2))
    painter.drawPolygon(toPolygon(shapeVertices(star.shape, star.x, star.y, scale=0.7)))


def paintDiamond(painter: QPainter, star: Star, opacity: float) -> None:
    _paintPolygon(painter, star, opacity)


def paintHexagon(painter: QPainter, star: Star, opacity: float) -> None:
    _paintPolygon(painter, star, opacity)


def paintStarShape(painter: QPainter, star: Star, opacity: float) -> None:
    _paintPolygon(painter, star, opacity)


SHAPE_PAINTERS = {
    StarShape.CIRCLE: paintCircle,
    StarShape.DIAMOND: paintDiamond,
    StarShape.HEXAGON: paintHexagon,
    StarShape.STAR: paintStarShape,
}


def paintStar(painter: QPainter, star: Star, opacity: float,
              selected: bool = False, highlighted: bool = False) -> None:
    SHAPE_PAINTERS[star.shape](painter, star, opacity)

    if selected or highlighted:
        ringColor = SELECTION_COLOR if selected else HIGHLIGHT_COLOR
        painter.setBrush(Qt.NoBrush)
        painter.setPen(QPen(ringColor, 2, Qt.DashLine))
        painter.drawEllipse(QPointF(star.x, star.y), 24, 24)

    if star.title:
        painter.setPen(toQColor("#ffffff", opacity))
        painter.setFont(QFont("Segoe UI", 9))
        painter.drawText(QRectF(star.x - 80, star.y + 22, 160, 20),
                         int(Qt.AlignHCenter | Qt.AlignTop), star.title)


def paintScene(painter: QPainter, session: EditorSession,
               controller: Optional[InteractionController] = None,
               particles: Optional[ParticleSystem] = None,
               width: Optional[float] = None, height: Optional[float] = None) -> None:
    """繪製整個場景（背景、連線、星星、框選、粒子與縮放指示）"""
    if width is None or height is None:
        width, height = session.canvasSize
    painter.fillRect(QRectF(0, 0, width, height), BACKGROUND)

    viewport = session.viewport
    painter.save()
    painter.translate(viewport.panX, viewport.panY)
    painter.scale(viewport.zoom, viewport.zoom)

    model = session.model
    tagFilter = session.tagFilter
    byId = {star.id: star for star in model.stars}

    for conn in model.connections:
        src = byId.get(conn.fromId)
        dst = byId.get(conn.toId)
        if src is None or dst is None:
            continue
        paintConnection(painter, src, dst, conn.color, conn.style,
                        tagFilter.connectionOpacity(src, dst))

    if controller is not None and controller.pendingConnection is not None:
        start, end = controller.pendingConnection
        painter.setPen(QPen(toQColor(session.currentColor, 0.6), 2, Qt.DashLine))
        painter.drawLine(QPointF(*start), QPointF(*end))

    selected = set(session.selection.ids)
    highlighted = set(session.highlightedIds)
    for star in model.stars:
        paintStar(painter, star, tagFilter.starOpacity(star),
                  selected=star.id in selected, highlighted=star.id in highlighted)

    if controller is not None and controller.marquee is not None:
        (minX, minY), (maxX, maxY) = controller.marquee
        painter.setBrush(Qt.NoBrush)
        painter.setPen(QPen(SELECTION_COLOR, 2 / viewport.zoom, Qt.DashLine))
        painter.drawRect(QRectF(minX, minY, maxX - minX, maxY - minY))

    if particles is not None:
        painter.setPen(Qt.NoPen)
        for particle in particles.particles:
            painter.setBrush(toQColor(particle.color, particle.life))
            painter.drawEllipse(QPointF(particle.x, particle.y), particle.size, particle.size)

    painter.restore()

    # 縮放指示（螢幕座標）
    painter.setPen(QColor(255, 255, 255, 180))
    painter.setFont(QFont("Segoe UI", 9))
    painter.drawText(QRectF(width - 90, height - 28, 80, 20),
                     int(Qt.AlignRight | Qt.AlignVCenter), f"{viewport.zoom * 100:.0f}%")
