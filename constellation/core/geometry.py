"""座標轉換

螢幕座標與世界座標之間的純函式轉換：

    screen = world * zoom + pan

滾輪縮放、縮放按鈕與小地圖導覽都共用這裡的數學，避免視覺漂移。
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Tuple

Point = Tuple[float, float]

MIN_ZOOM = 0.25
MAX_ZOOM = 4.0
MINIMAP_SCALE = 0.1


@dataclass(frozen=True)
class Viewport:
    """世界座標到螢幕座標的相似變換"""
    zoom: float = 1.0
    panX: float = 0.0
    panY: float = 0.0

    def panned(self, dx: float, dy: float) -> Viewport:
        """以螢幕像素平移（不受縮放影響）"""
        return replace(self, panX=self.panX + dx, panY=self.panY + dy)


def clampZoom(zoom: float, minZoom: float = MIN_ZOOM, maxZoom: float = MAX_ZOOM) -> float:
    return max(minZoom, min(maxZoom, zoom))


def worldFromScreen(point: Point, viewport: Viewport) -> Point:
    """螢幕座標轉世界座標"""
    x, y = point
    return ((x - viewport.panX) / viewport.zoom,
            (y - viewport.panY) / viewport.zoom)


def screenFromWorld(point: Point, viewport: Viewport) -> Point:
    """世界座標轉螢幕座標"""
    x, y = point
    return (x * viewport.zoom + viewport.panX,
            y * viewport.zoom + viewport.panY)


def zoomAt(anchor: Point, factor: float, viewport: Viewport,
           minZoom: float = MIN_ZOOM, maxZoom: float = MAX_ZOOM) -> Viewport:
    """以螢幕上的錨點為中心縮放。

    先求出錨點下方的世界座標，縮放後再反推平移量，
    讓同一個世界座標仍落在錨點上。

    Args:
        anchor: 螢幕座標錨點（滑鼠位置或畫布中心）。
        factor: 縮放倍率。
        viewport: 目前的視口。
        minZoom: 最小縮放。
        maxZoom: 最大縮放。

    Returns:
        Viewport: 縮放後的新視口。
    """
    worldX, worldY = worldFromScreen(anchor, viewport)
    zoom = clampZoom(viewport.zoom * factor, minZoom, maxZoom)
    return Viewport(zoom=zoom,
                    panX=anchor[0] - worldX * zoom,
                    panY=anchor[1] - worldY * zoom)


def centerOn(worldPoint: Point, canvasSize: Tuple[float, float], viewport: Viewport) -> Viewport:
    """平移視口，使指定世界座標位於畫布中心（縮放不變）"""
    width, height = canvasSize
    return Viewport(zoom=viewport.zoom,
                    panX=width / 2 - worldPoint[0] * viewport.zoom,
                    panY=height / 2 - worldPoint[1] * viewport.zoom)


def minimapToWorld(point: Point, scale: float = MINIMAP_SCALE) -> Point:
    """小地圖座標轉世界座標"""
    return (point[0] / scale, point[1] / scale)


def normalizeRect(a: Point, b: Point) -> Tuple[Point, Point]:
    """回傳 (左上, 右下) 角點"""
    return ((min(a[0], b[0]), min(a[1], b[1])),
            (max(a[0], b[0]), max(a[1], b[1])))


def curveControlPoint(p1: Point, p2: Point, fromId: int) -> Point:
    """計算連線二次曲線的控制點。

    控制點沿著垂直於連線的方向偏移，彎曲方向只取決於起點 id 的奇偶，
    讓平行的連線不會完全重疊。
    """
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    midX = (p1[0] + p2[0]) / 2
    midY = (p1[1] + p2[1]) / 2
    distance = math.hypot(dx, dy)
    if distance == 0:
        return (midX, midY)

    intensity = min(distance * 0.15, 50.0)
    direction = 1 if fromId % 2 == 0 else -1
    return (midX + (-dy / distance) * intensity * direction,
            midY + (dx / distance) * intensity * direction)
