"""星星形狀幾何

每種形狀各有一個頂點函式，以封閉的對照表分派；
Qt 繪製與 SVG 匯出共用同一份幾何。
"""
from __future__ import annotations

from typing import Callable, Dict

import numpy as np

from .enums import StarShape

CIRCLE_CORE_RADIUS = 8.0
CIRCLE_GLOW_RADIUS = 20.0
DIAMOND_SIZE = 18.0
HEXAGON_SIZE = 16.0
STAR_OUTER_RADIUS = 16.0
STAR_INNER_RADIUS = 6.0


def circleVertices(x: float, y: float, size: float = CIRCLE_CORE_RADIUS, segments: int = 24) -> np.ndarray:
    angles = np.linspace(0.0, 2 * np.pi, segments, endpoint=False)
    return np.column_stack((x + size * np.cos(angles), y + size * np.sin(angles)))


def diamondVertices(x: float, y: float, size: float = DIAMOND_SIZE) -> np.ndarray:
    offsets = np.array([[0.0, -1.0], [1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]])
    return np.array([x, y]) + offsets * size


def hexagonVertices(x: float, y: float, size: float = HEXAGON_SIZE) -> np.ndarray:
    angles = np.arange(6) * (2 * np.pi / 6) - np.pi / 2
    return np.column_stack((x + size * np.cos(angles), y + size * np.sin(angles)))


def starVertices(x: float, y: float, size: float = STAR_OUTER_RADIUS,
                 innerRatio: float = STAR_INNER_RADIUS / STAR_OUTER_RADIUS) -> np.ndarray:
    """五角星，外圈與內圈頂點交錯"""
    radii = np.where(np.arange(10) % 2 == 0, size, size * innerRatio)
    angles = np.arange(10) * (np.pi / 5) - np.pi / 2
    return np.column_stack((x + radii * np.cos(angles), y + radii * np.sin(angles)))


SHAPE_VERTICES: Dict[StarShape, Callable[..., np.ndarray]] = {
    StarShape.CIRCLE: circleVertices,
    StarShape.DIAMOND: diamondVertices,
    StarShape.HEXAGON: hexagonVertices,
    StarShape.STAR: starVertices,
}

DEFAULT_SIZES: Dict[StarShape, float] = {
    StarShape.CIRCLE: CIRCLE_CORE_RADIUS,
    StarShape.DIAMOND: DIAMOND_SIZE,
    StarShape.HEXAGON: HEXAGON_SIZE,
    StarShape.STAR: STAR_OUTER_RADIUS,
}


def shapeVertices(shape: StarShape, x: float, y: float, scale: float = 1.0) -> np.ndarray:
    """回傳形狀外框頂點 (N, 2)"""
    return SHAPE_VERTICES[shape](x, y, DEFAULT_SIZES[shape] * scale)
