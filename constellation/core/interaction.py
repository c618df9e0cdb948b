"""互動狀態機

將原始的指標、滾輪與鍵盤事件轉換為對 EditorSession 的操作。
事件型別與 GUI 工具組無關，Qt 畫布只負責轉譯事件。

模式（EditorMode）同一時間只有一個；拖曳狀態（DragState）與模式正交。
平移可從任何模式以中鍵或 Shift+左鍵進入，期間暫停模式專屬的拖曳邏輯。
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Tuple

from .enums import DragState, EditorMode, PointerButton
from .geometry import Point, normalizeRect

if TYPE_CHECKING:
    from .editor import EditorSession
    from .model import Star

logger = logging.getLogger(__name__)

MODE_KEYS = {
    "1": EditorMode.ADD,
    "2": EditorMode.CONNECT,
    "3": EditorMode.MOVE,
    "4": EditorMode.DELETE,
}
RANDOM_MARGIN = 50
WHEEL_ZOOM_IN = 1.1
WHEEL_ZOOM_OUT = 0.9


@dataclass(frozen=True)
class PointerEvent:
    """螢幕座標的指標事件"""
    x: float
    y: float
    button: PointerButton = PointerButton.LEFT
    shift: bool = False
    ctrl: bool = False

    @property
    def pos(self) -> Point:
        return (self.x, self.y)


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    inTextField: bool = False


class InteractionController:
    """指標/鍵盤狀態機"""

    def __init__(self, session: EditorSession, rng: Optional[random.Random] = None) -> None:
        self.session = session
        self.rng = rng or random.Random()

        self.mode = EditorMode.ADD
        self.dragState = DragState.IDLE

        # 拖曳狀態
        self.anchorStarId: Optional[int] = None
        self.dragOrigin: Optional[Point] = None
        self.marqueeStart: Optional[Point] = None
        self.marqueeEnd: Optional[Point] = None
        self.lastPanPos: Optional[Point] = None
        self.pointerWorld: Optional[Point] = None

        # 外部協作者掛勾
        self.onEditStar: Optional[Callable[[Star], None]] = None
        self.onBurst: Optional[Callable[[float, float, str], None]] = None
        self.onOpenSearch: Optional[Callable[[], None]] = None
        self.onCloseModals: Optional[Callable[[], None]] = None
        self.onModeChanged: Optional[Callable[[EditorMode], None]] = None

    # ------------------------------------------------------------------
    # 狀態查詢（供繪製使用）
    # ------------------------------------------------------------------
    @property
    def marquee(self) -> Optional[Tuple[Point, Point]]:
        if self.dragState is not DragState.DRAGGING_MARQUEE:
            return None
        return normalizeRect(self.marqueeStart, self.marqueeEnd)

    @property
    def pendingConnection(self) -> Optional[Tuple[Point, Point]]:
        """建立連線中的暫時線段（世界座標）"""
        if self.dragState is not DragState.DRAGGING_CONNECTION or self.pointerWorld is None:
            return None
        star = self.session.model.getNode(self.anchorStarId)
        if star is None:
            return None
        return (star.position, self.pointerWorld)

    # ------------------------------------------------------------------
    # 模式
    # ------------------------------------------------------------------
    def setMode(self, mode: EditorMode) -> None:
        """切換模式；進入 select 以外的模式時清除選取"""
        mode = EditorMode(mode)
        self._finishDrag()
        self.mode = mode
        if mode is not EditorMode.SELECT and len(self.session.selection):
            self.session.selection.clear()
            self.session.selectionChanged()
        logger.debug("切換模式：%s", mode.value)
        if self.onModeChanged:
            self.onModeChanged(mode)

    def _resetDrag(self) -> None:
        self.dragState = DragState.IDLE
        self.anchorStarId = None
        self.dragOrigin = None
        self.marqueeStart = None
        self.marqueeEnd = None
        self.lastPanPos = None

    # ------------------------------------------------------------------
    # 指標事件
    # ------------------------------------------------------------------
    def pointerDown(self, event: PointerEvent) -> None:
        if self.dragState is not DragState.IDLE:
            return

        if event.button is PointerButton.MIDDLE or (
                event.button is PointerButton.LEFT and event.shift):
            self.dragState = DragState.PANNING
            self.lastPanPos = event.pos
            return

        if event.button is not PointerButton.LEFT:
            return

        world = self.session.toWorld(event.pos)
        self.pointerWorld = world
        hit = self.session.model.findNodeAt(world)

        if self.mode is EditorMode.ADD:
            if hit is None:
                self._createStar(world)
        elif self.mode is EditorMode.DELETE:
            if hit is not None:
                self.session.deleteStar(hit.id)
        elif self.mode is EditorMode.CONNECT:
            if hit is not None:
                self.dragState = DragState.DRAGGING_CONNECTION
                self.anchorStarId = hit.id
        elif self.mode is EditorMode.MOVE:
            if hit is not None:
                self.dragState = DragState.DRAGGING_NODE
                self.anchorStarId = hit.id
                self.dragOrigin = hit.position
        elif self.mode is EditorMode.SELECT:
            self._selectPress(hit, world, event.ctrl)

    def _selectPress(self, hit: Optional[Star], world: Point, toggle: bool) -> None:
        selection = self.session.selection
        if toggle:
            if hit is not None:
                selection.toggle(hit.id)
        elif hit is not None:
            selection.selectSingle(hit.id)
        else:
            self.dragState = DragState.DRAGGING_MARQUEE
            self.marqueeStart = world
            self.marqueeEnd = world
        self.session.selectionChanged()

    def _createStar(self, world: Point) -> Star:
        star = self.session.addStar(world)
        if self.onBurst:
            self.onBurst(star.x, star.y, star.color)
        if self.onEditStar:
            self.onEditStar(star)
        return star

    def pointerMove(self, event: PointerEvent) -> None:
        if self.dragState is DragState.PANNING:
            # 平移直接以螢幕像素計算，不受縮放影響
            lastX, lastY = self.lastPanPos
            self.session.pan(event.x - lastX, event.y - lastY)
            self.lastPanPos = event.pos
            return

        world = self.session.toWorld(event.pos)
        self.pointerWorld = world

        if self.dragState is DragState.DRAGGING_NODE:
            self.session.moveStarLive(self.anchorStarId, world)
        elif self.dragState is DragState.DRAGGING_MARQUEE:
            self.marqueeEnd = world

    def pointerUp(self, event: PointerEvent) -> None:
        state = self.dragState
        if state is DragState.IDLE:
            return

        if state is DragState.DRAGGING_CONNECTION:
            world = self.session.toWorld(event.pos)
            target = self.session.model.findNodeAt(world)
            if target is not None and target.id != self.anchorStarId:
                conn = self.session.addConnection(self.anchorStarId, target.id)
                source = self.session.model.getNode(self.anchorStarId)
                if conn is not None and self.onBurst and source is not None:
                    self.onBurst((source.x + target.x) / 2, (source.y + target.y) / 2, conn.color)
        elif state is DragState.DRAGGING_NODE:
            self.session.commitMove(self.anchorStarId, self.dragOrigin)
        elif state is DragState.DRAGGING_MARQUEE:
            self.marqueeEnd = self.session.toWorld(event.pos)
            if self.session.model.nodesInRect(self.marqueeStart, self.marqueeEnd):
                self.session.selectInRect(self.marqueeStart, self.marqueeEnd)

        self._resetDrag()

    def _finishDrag(self) -> None:
        """結束拖曳：放棄進行中的連線與框選，已拖曳的位置照常提交"""
        if self.dragState is DragState.DRAGGING_NODE:
            self.session.commitMove(self.anchorStarId, self.dragOrigin)
        self._resetDrag()

    def doubleClick(self, event: PointerEvent) -> Optional[Star]:
        """雙擊星星：開啟編輯（任何模式皆可）"""
        if self.dragState is not DragState.IDLE or event.button is not PointerButton.LEFT:
            return None
        star = self.session.model.findNodeAt(self.session.toWorld(event.pos))
        if star is not None and self.onEditStar:
            self.onEditStar(star)
        return star

    def pointerLeave(self) -> None:
        self._finishDrag()
        self.pointerWorld = None

    # ------------------------------------------------------------------
    # 滾輪與鍵盤
    # ------------------------------------------------------------------
    def wheel(self, x: float, y: float, deltaY: float) -> None:
        """滾輪永遠是以指標為中心的縮放，不改變模式與選取"""
        factor = WHEEL_ZOOM_OUT if deltaY > 0 else WHEEL_ZOOM_IN
        self.session.zoomAt((x, y), factor)

    def keyPress(self, event: KeyEvent) -> bool:
        """處理快捷鍵；焦點在文字欄位時不處理。

        Returns:
            bool: 事件是否已被處理。
        """
        if event.inTextField:
            return False

        key = event.key
        lowered = key.lower() if len(key) == 1 else key

        if key == "Escape":
            if self.onCloseModals:
                self.onCloseModals()
            return True
        if self.dragState is not DragState.IDLE:
            # 拖曳中不接受會改變場景、歷史或模式的按鍵
            return False
        if event.ctrl and lowered == "z":
            self.session.undo()
            return True
        if event.ctrl and lowered == "y":
            self.session.redo()
            return True
        if event.ctrl and lowered == "f":
            if self.onOpenSearch:
                self.onOpenSearch()
            return True
        if key == " ":
            self._addRandomStar()
            return True
        if not event.ctrl and key in MODE_KEYS:
            self.setMode(MODE_KEYS[key])
            return True
        return False

    def _addRandomStar(self) -> Star:
        """空白鍵：在畫布範圍內的隨機位置新增星星"""
        width, height = self.session.canvasSize
        x = RANDOM_MARGIN + self.rng.random() * max(width - 2 * RANDOM_MARGIN, 0)
        y = RANDOM_MARGIN + self.rng.random() * max(height - 2 * RANDOM_MARGIN, 0)
        world = self.session.toWorld((x, y))
        star = self.session.addStar(world)
        if self.onBurst:
            self.onBurst(star.x, star.y, star.color)
        return star
