"""場景範本

每個範本都用一個全新的 SceneModel 建立，確保 id 與連線規則與一般編輯一致。
"""
from __future__ import annotations

import math
import random
from typing import Callable, Dict, List, Optional

from ..core.enums import LineStyle, StarShape
from ..core.errors import UnknownTemplateError
from ..core.model import SceneModel, SceneSnapshot, Star

PALETTE = ["#ffd700", "#00bfff", "#ff6b6b", "#98fb98", "#dda0dd", "#ffffff"]
CENTER_X = 400
CENTER_Y = 300


def _place(model: SceneModel, x: float, y: float, color: str, title: str,
           description: str, tags: List[str], shape: StarShape) -> Star:
    star = model.addNode((x, y), color)
    model.updateNode(star.id, title=title, description=description, tags=tags, shape=shape)
    return model.getNode(star.id)


def buildMindMap(model: SceneModel, rng: random.Random, style: LineStyle) -> None:
    """中心目標向外放射六個分支"""
    branches = ["Project", "Research", "Development", "Design", "Marketing", "Testing"]
    center = _place(model, CENTER_X, CENTER_Y, "#ffffff", "Main Goal",
                    "Central objective", ["goal", "main"], StarShape.STAR)
    for index, branch in enumerate(branches):
        angle = index / len(branches) * math.pi * 2 - math.pi / 2
        color = PALETTE[index % 4]
        star = _place(model,
                      CENTER_X + math.cos(angle) * 250,
                      CENTER_Y + math.sin(angle) * 250,
                      color, branch, f"Key aspect: {branch.lower()}",
                      [branch.lower()], StarShape.CIRCLE)
        model.addEdge(center.id, star.id, color, style)


def buildOrgChart(model: SceneModel, rng: random.Random, style: LineStyle) -> None:
    """五層組織圖，每層 1-3 人，連到上一層對應的主管"""
    levels = ["CEO", "VP", "Manager", "Team", "Member"]
    shapes = [StarShape.CIRCLE, StarShape.DIAMOND, StarShape.HEXAGON]
    totalWidth = 800
    previous: List[Star] = []
    for levelIndex, level in enumerate(levels):
        count = 1 + rng.randrange(3)
        current = []
        for i in range(count):
            star = _place(model,
                          totalWidth / (count + 1) * (i + 1),
                          100 + levelIndex * 120,
                          PALETTE[levelIndex % 5], f"{level} {i + 1}",
                          f"{level} position", [level.lower()],
                          shapes[levelIndex % 3])
            if previous:
                parent = previous[min(i * len(previous) // count, len(previous) - 1)]
                model.addEdge(parent.id, star.id, "#ffffff", style)
            current.append(star)
        previous = current


def buildFlowChart(model: SceneModel, rng: random.Random, style: LineStyle) -> None:
    """由左到右的流程，判斷與審查步驟為菱形"""
    steps = ["Start", "Decision", "Process", "Review", "Approval", "End"]
    previous: Optional[Star] = None
    for index, step in enumerate(steps):
        star = _place(model, 100 + index * 150, CENTER_Y, PALETTE[index % 6], step,
                      f"Process step {index + 1}", ["process", step.lower()],
                      StarShape.DIAMOND if index in (1, 3) else StarShape.CIRCLE)
        if previous is not None:
            model.addEdge(previous.id, star.id, "#ffffff", style)
        previous = star


def buildProjectMap(model: SceneModel, rng: random.Random, style: LineStyle) -> None:
    """四個角落的分類連到中央的 Resources"""
    categories = ["Goals", "Milestones", "Tasks", "Resources", "Risks"]
    positions = [(200, 200), (600, 200), (200, 500), (600, 500), (400, 350)]
    shapes = list(StarShape)
    stars = []
    for index, category in enumerate(categories):
        x, y = positions[index]
        stars.append(_place(model, x, y, PALETTE[index % 5], category,
                            f"Project {category.lower()}", ["project", category.lower()],
                            shapes[index % 4]))
    hub = stars[4]
    for star in stars[:4]:
        model.addEdge(star.id, hub.id, "#ffffff", style)


TEMPLATES: Dict[str, Callable[[SceneModel, random.Random, LineStyle], None]] = {
    "mindmap": buildMindMap,
    "orgchart": buildOrgChart,
    "flowchart": buildFlowChart,
    "project": buildProjectMap,
}


def templateNames() -> List[str]:
    return list(TEMPLATES)


def buildTemplate(name: str, rng: Optional[random.Random] = None,
                  style=LineStyle.SOLID) -> SceneSnapshot:
    """建立範本快照。

    Args:
        name: 範本名稱（mindmap / orgchart / flowchart / project）。
        rng: 亂數產生器，組織圖的每層人數由此決定。
        style: 範本連線樣式。

    Raises:
        UnknownTemplateError: 範本名稱不存在。
    """
    builder = TEMPLATES.get(name)
    if builder is None:
        raise UnknownTemplateError(f"未知的範本：{name}")
    model = SceneModel()
    builder(model, rng or random.Random(), LineStyle.parse(style))
    return model.serialize()
