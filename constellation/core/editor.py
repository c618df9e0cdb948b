"""編輯器工作階段

取代原本整個頁面共用的單例：每個 EditorSession 擁有自己的
SceneModel、Selection、TagFilter、History 與 Viewport，
並明確傳給互動控制器與繪製元件。

所有會改變場景的操作都經過這裡，流程固定為：

    變更模型 -> 修剪選取 -> 記錄歷史 -> 寫入持久化 -> 通知監聽者

沒有產生變化的操作（刪除不存在的星星、重複連線等）不會留下歷史紀錄。
"""
from __future__ import annotations

import logging
import random
from typing import Callable, Iterable, List, Optional, Tuple

from ..config import EditorConfig
from .enums import ImportMode, LineStyle
from .geometry import (
    Point, Viewport, centerOn, minimapToWorld, screenFromWorld, worldFromScreen, zoomAt,
)
from .history import History
from .model import SceneModel, SceneSnapshot, Star
from .selection import Selection, TagFilter

logger = logging.getLogger(__name__)

BUTTON_ZOOM = 1.25


class EditorSession:
    """單一編輯器實例的狀態擁有者"""

    def __init__(self, config: Optional[EditorConfig] = None, store=None) -> None:
        self.config = config or EditorConfig()
        self.store = store

        self.model = SceneModel(hitRadius=self.config.hitRadius)
        self.selection = Selection(self.model)
        self.tagFilter = TagFilter()
        self.history = History(self.model, limit=self.config.historyLimit)
        self.viewport = Viewport()

        self.currentColor = self.config.defaultColor
        self.currentLineStyle = LineStyle.parse(self.config.defaultLineStyle)
        self.highlightedIds: List[int] = []

        self._listeners: List[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # 監聽與共用流程
    # ------------------------------------------------------------------
    def addListener(self, callback: Callable[[], None]) -> None:
        """註冊狀態變更通知（例如更新撤銷/重做按鈕）"""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    def _syncDerived(self) -> None:
        self.selection.prune()
        valid = set(self.model.nodeIds())
        self.highlightedIds = [starId for starId in self.highlightedIds if starId in valid]

    def persist(self) -> bool:
        """寫入持久化儲存；失敗只記錄，不影響記憶體中的場景"""
        if self.store is None:
            return False
        return self.store.save(self.model.serialize())

    def _commit(self, action: str) -> None:
        self._syncDerived()
        self.history.record(action)
        self.persist()
        self._notify()

    def hydrate(self, snapshot: Optional[SceneSnapshot]) -> None:
        """啟動時載入場景，不寫入歷史"""
        self.model.restore(snapshot or SceneSnapshot())
        self.selection.clear()
        self.highlightedIds = []
        self.history.reset()
        self._notify()

    # ------------------------------------------------------------------
    # 場景變更
    # ------------------------------------------------------------------
    def addStar(self, position: Point, color: Optional[str] = None) -> Star:
        star = self.model.addNode(position, color or self.currentColor)
        self._commit("add star")
        return star

    def deleteStar(self, starId: int) -> bool:
        if not self.model.deleteNode(starId):
            return False
        self._commit("delete star")
        return True

    def deleteSelected(self) -> int:
        """批次刪除選取的星星（連帶移除相關連線）"""
        removed = self.model.deleteNodes(self.selection.ids)
        if removed:
            self.selection.clear()
            self._commit("batch delete")
        return removed

    def recolorSelected(self, color: str) -> int:
        changed = self.model.recolorNodes(self.selection.ids, color)
        if changed:
            self._commit("batch color change")
        return changed

    def addConnection(self, idA: int, idB: int, color: Optional[str] = None,
                      style=None):
        conn = self.model.addEdge(idA, idB, color or self.currentColor,
                                  style or self.currentLineStyle)
        if conn is not None:
            self._commit("add connection")
        return conn

    def connectByTag(self) -> int:
        """依共同標籤建立連線，整批視為一次變更"""
        created = self.model.connectByTag(self.currentColor, self.currentLineStyle)
        if created:
            self._commit("connect by tag")
        logger.info("依標籤建立 %d 條連線", created)
        return created

    def updateStar(self, starId: int, **fields) -> Optional[Star]:
        star = self.model.updateNode(starId, **fields)
        if star is not None:
            self._commit("edit star")
        return star

    def moveStarLive(self, starId: int, position: Point) -> bool:
        """拖曳中更新位置，不寫入歷史"""
        return self.model.moveNode(starId, position)

    def commitMove(self, starId: int, origin: Point) -> bool:
        """拖曳結束：位置有變才記錄歷史並儲存"""
        star = self.model.getNode(starId)
        if star is None or star.position == tuple(origin):
            return False
        self._commit("move star")
        return True

    def clearAll(self) -> bool:
        if not self.model.clear():
            return False
        self.selection.clear()
        self._commit("clear all")
        return True

    def applyImportedSnapshot(self, data, mode=ImportMode.APPEND) -> int:
        """I/O 轉接層讀完資料後呼叫的同步入口。

        Raises:
            SnapshotValidationError: 資料不合法，場景不變。
        """
        count = self.model.importSnapshot(data, mode)
        self._commit("import")
        return count

    def applyTemplate(self, name: str, rng: Optional[random.Random] = None) -> int:
        from ..io.templates import buildTemplate

        snapshot = buildTemplate(name, rng, self.currentLineStyle)
        self.model.restore(snapshot)
        self.selection.clear()
        self._commit("apply template")
        return len(snapshot.stars)

    def undo(self) -> bool:
        if not self.history.undo():
            return False
        self._syncDerived()
        self.persist()
        self._notify()
        return True

    def redo(self) -> bool:
        if not self.history.redo():
            return False
        self._syncDerived()
        self.persist()
        self._notify()
        return True

    # ------------------------------------------------------------------
    # 查詢
    # ------------------------------------------------------------------
    def search(self, query: str) -> List[Star]:
        """以標題或標籤（不分大小寫、部分符合）搜尋，結果成為高亮集合"""
        needle = (query or "").strip().lower()
        if not needle:
            return []
        matches = [star for star in self.model.stars
                   if needle in star.title.lower()
                   or any(needle in tag.lower() for tag in star.tags)]
        self.highlightedIds = [star.id for star in matches]
        self._notify()
        return matches

    def clearHighlights(self) -> None:
        self.highlightedIds = []
        self._notify()

    def statistics(self):
        from ..analysis.stats import computeStatistics

        return computeStatistics(self.model.serialize())

    def shareUrl(self) -> str:
        from ..io.persistence import buildShareUrl

        return buildShareUrl(self.model.serialize(), self.config.shareBaseUrl)

    # ------------------------------------------------------------------
    # 選取與標籤
    # ------------------------------------------------------------------
    def selectionChanged(self) -> None:
        """選取直接改動後通知監聽者（選取不寫入歷史）"""
        self._notify()

    def selectInRect(self, cornerA: Point, cornerB: Point) -> List[int]:
        ids = self.selection.selectInRect(cornerA, cornerB)
        self._notify()
        return ids

    def toggleTag(self, tag: str) -> bool:
        visible = self.tagFilter.toggleTag(tag, self.model.allTags())
        self._notify()
        return visible

    def showAllTags(self) -> None:
        self.tagFilter.showAll()
        self._notify()

    # ------------------------------------------------------------------
    # 視口
    # ------------------------------------------------------------------
    @property
    def canvasSize(self) -> Tuple[float, float]:
        return (self.config.canvasWidth, self.config.canvasHeight)

    def setCanvasSize(self, width: float, height: float) -> None:
        self.config.canvasWidth = int(width)
        self.config.canvasHeight = int(height)

    def toWorld(self, screenPoint: Point) -> Point:
        return worldFromScreen(screenPoint, self.viewport)

    def toScreen(self, worldPoint: Point) -> Point:
        return screenFromWorld(worldPoint, self.viewport)

    def zoomAt(self, anchor: Point, factor: float) -> Viewport:
        self.viewport = zoomAt(anchor, factor, self.viewport,
                               self.config.minZoom, self.config.maxZoom)
        return self.viewport

    def zoomIn(self) -> Viewport:
        width, height = self.canvasSize
        return self.zoomAt((width / 2, height / 2), BUTTON_ZOOM)

    def zoomOut(self) -> Viewport:
        width, height = self.canvasSize
        return self.zoomAt((width / 2, height / 2), 1 / BUTTON_ZOOM)

    def pan(self, dx: float, dy: float) -> Viewport:
        self.viewport = self.viewport.panned(dx, dy)
        return self.viewport

    def resetView(self) -> Viewport:
        self.viewport = Viewport()
        return self.viewport

    def navigateMinimap(self, minimapPoint: Point) -> Viewport:
        """點擊小地圖：讓對應的世界座標置中"""
        self.viewport = centerOn(minimapToWorld(minimapPoint), self.canvasSize, self.viewport)
        return self.viewport

    def visibleStars(self) -> Iterable[Star]:
        return (star for star in self.model.stars if self.tagFilter.isStarVisible(star))
