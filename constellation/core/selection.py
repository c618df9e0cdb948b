"""選取與標籤可見性

兩者皆為場景模型的衍生子集：
- Selection 永遠是目前星星 id 的子集，刪除星星後會被修剪
- TagFilter 只影響呈現權重（透明度），從不刪除資料
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional, Set

from .geometry import Point

if TYPE_CHECKING:
    from .model import SceneModel, Star

STAR_VISIBLE_OPACITY = 1.0
STAR_HIDDEN_OPACITY = 0.15
EDGE_VISIBLE_OPACITY = 1.0
EDGE_HALF_HIDDEN_OPACITY = 0.3
EDGE_HIDDEN_OPACITY = 0.1


class Selection:
    """已選取的星星 id 集合"""

    def __init__(self, model: SceneModel) -> None:
        self.model = model
        self._ids: List[int] = []

    @property
    def ids(self) -> List[int]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, starId: int) -> bool:
        return starId in self._ids

    def contains(self, starId: int) -> bool:
        return starId in self._ids

    def stars(self) -> List[Star]:
        chosen = set(self._ids)
        return [star for star in self.model.stars if star.id in chosen]

    def selectSingle(self, starId: int) -> None:
        """以單一星星取代選取"""
        self._ids = [starId] if self.model.getNode(starId) is not None else []

    def toggle(self, starId: int) -> None:
        """切換星星是否在選取中（多選修飾鍵）"""
        if starId in self._ids:
            self._ids.remove(starId)
        elif self.model.getNode(starId) is not None:
            self._ids.append(starId)

    def replace(self, starIds: Iterable[int]) -> None:
        valid = set(self.model.nodeIds())
        self._ids = [starId for starId in dict.fromkeys(starIds) if starId in valid]

    def clear(self) -> None:
        self._ids = []

    def selectInRect(self, cornerA: Point, cornerB: Point) -> List[int]:
        """以封閉矩形（世界座標）內的星星取代選取"""
        self.replace(star.id for star in self.model.nodesInRect(cornerA, cornerB))
        return self.ids

    def prune(self) -> None:
        """移除已不存在的星星"""
        valid = set(self.model.nodeIds())
        self._ids = [starId for starId in self._ids if starId in valid]


class TagFilter:
    """標籤可見性過濾器

    visibleTags 為 None 代表全部可見；否則只有具備其中至少一個標籤的星星可見，
    沒有標籤的星星永遠可見。
    """

    def __init__(self) -> None:
        self.visibleTags: Optional[Set[str]] = None

    @property
    def active(self) -> bool:
        return self.visibleTags is not None

    def showAll(self) -> None:
        self.visibleTags = None

    def setVisibleTags(self, tags: Optional[Iterable[str]]) -> None:
        self.visibleTags = None if tags is None else set(tags)

    def toggleTag(self, tag: str, allTags: Iterable[str]) -> bool:
        """切換標籤可見性。

        第一次切換時先將所有現有標籤視為可見，再隱藏指定標籤。

        Returns:
            bool: 切換後該標籤是否可見。
        """
        if self.visibleTags is None:
            self.visibleTags = set(allTags)
        if tag in self.visibleTags:
            self.visibleTags.discard(tag)
            return False
        self.visibleTags.add(tag)
        return True

    def isTagVisible(self, tag: str) -> bool:
        return self.visibleTags is None or tag in self.visibleTags

    def isStarVisible(self, star: Star) -> bool:
        if self.visibleTags is None or not star.tags:
            return True
        return any(tag in self.visibleTags for tag in star.tags)

    def starOpacity(self, star: Star) -> float:
        return STAR_VISIBLE_OPACITY if self.isStarVisible(star) else STAR_HIDDEN_OPACITY

    def connectionOpacity(self, starA: Star, starB: Star) -> float:
        """依兩端可見性決定連線透明度：全可見 / 一端隱藏 / 兩端隱藏"""
        hidden = (not self.isStarVisible(starA)) + (not self.isStarVisible(starB))
        if hidden == 0:
            return EDGE_VISIBLE_OPACITY
        if hidden == 1:
            return EDGE_HALF_HIDDEN_OPACITY
        return EDGE_HIDDEN_OPACITY
