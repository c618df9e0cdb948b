"""匯出

JSON 與 SVG 皆由 SceneModel.serialize() 的快照推導，不會改動場景。
點陣圖匯出直接擷取畫布，見 ui.canvas.view。
"""
from __future__ import annotations

import html
import json
import logging
from typing import Dict

from ..core.enums import StarShape
from ..core.errors import EmptySceneError
from ..core.geometry import curveControlPoint
from ..core.model import SceneSnapshot, nowIso
from ..core.shapes import CIRCLE_CORE_RADIUS, CIRCLE_GLOW_RADIUS, shapeVertices

logger = logging.getLogger(__name__)

SVG_PADDING = 50
BACKGROUND_COLOR = "#0a0a1a"


def exportJson(snapshot: SceneSnapshot) -> str:
    """輸出 {stars, connections, exportedAt}"""
    data = snapshot.toDict()
    data.pop("nextStarId", None)
    data["exportedAt"] = nowIso()
    return json.dumps(data, ensure_ascii=False, indent=2)


def hexToRgba(color: str, alpha: float) -> str:
    """將 #rrggbb 轉為 rgba() 字串；無法解析時以白色處理"""
    value = color.lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    try:
        r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        r = g = b = 255
    return f"rgba({r}, {g}, {b}, {alpha})"


def _fmt(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _points(vertices) -> str:
    return " ".join(f"{_fmt(px)},{_fmt(py)}" for px, py in vertices)


def exportSvg(snapshot: SceneSnapshot, background: str = BACKGROUND_COLOR) -> str:
    """輸出 SVG 向量圖。

    以世界座標繪製，viewBox 為所有星星的外框向外留白 SVG_PADDING。

    Raises:
        EmptySceneError: 沒有任何星星。
    """
    if not snapshot.stars:
        raise EmptySceneError("沒有可匯出的星星")

    xs = [star.x for star in snapshot.stars]
    ys = [star.y for star in snapshot.stars]
    minX = min(xs) - SVG_PADDING
    minY = min(ys) - SVG_PADDING
    width = max(xs) + SVG_PADDING - minX
    height = max(ys) + SVG_PADDING - minY

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="{_fmt(minX)} {_fmt(minY)} '
        f'{_fmt(width)} {_fmt(height)}" width="{_fmt(width)}" height="{_fmt(height)}">',
        f'  <rect x="{_fmt(minX)}" y="{_fmt(minY)}" width="{_fmt(width)}" '
        f'height="{_fmt(height)}" fill="{background}"/>',
    ]

    # 先畫連線，星星在上層
    byId: Dict[int, object] = {star.id: star for star in snapshot.stars}
    for conn in snapshot.connections:
        src = byId.get(conn.fromId)
        dst = byId.get(conn.toId)
        if src is None or dst is None:
            continue
        cx, cy = curveControlPoint(src.position, dst.position, src.id)
        lines.append(
            f'  <path d="M {_fmt(src.x)} {_fmt(src.y)} Q {_fmt(cx)} {_fmt(cy)} '
            f'{_fmt(dst.x)} {_fmt(dst.y)}" stroke="{conn.color}" stroke-width="2" '
            f'fill="none" opacity="0.8"/>'
        )

    for star in snapshot.stars:
        glow = hexToRgba(star.color, 0.3)
        lines.append(f'  <g class="star shape-{star.shape.value}">')
        if star.shape is StarShape.CIRCLE:
            lines.append(f'    <circle cx="{_fmt(star.x)}" cy="{_fmt(star.y)}" '
                         f'r="{_fmt(CIRCLE_GLOW_RADIUS)}" fill="{glow}"/>')
            lines.append(f'    <circle cx="{_fmt(star.x)}" cy="{_fmt(star.y)}" '
                         f'r="{_fmt(CIRCLE_CORE_RADIUS)}" fill="{star.color}" '
                         f'stroke="#ffffff" stroke-width="2"/>')
        else:
            outline = shapeVertices(star.shape, star.x, star.y)
            core = shapeVertices(star.shape, star.x, star.y, scale=0.7)
            lines.append(f'    <polygon points="{_points(outline)}" fill="{glow}"/>')
            lines.append(f'    <polygon points="{_points(core)}" fill="{star.color}" '
                         f'stroke="#ffffff" stroke-width="2"/>')
        if star.title:
            lines.append(
                f'    <text x="{_fmt(star.x)}" y="{_fmt(star.y + 35)}" text-anchor="middle" '
                f'font-family="Segoe UI, sans-serif" font-size="12" fill="#ffffff">'
                f'{html.escape(star.title, quote=True)}</text>'
            )
        lines.append('  </g>')

    lines.append('</svg>')
    logger.debug("匯出 SVG：%d 顆星星、%d 條連線", len(snapshot.stars), len(snapshot.connections))
    return "\n".join(lines) + "\n"
