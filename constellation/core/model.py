"""場景模型

擁有星星（節點）集合、連線（邊）集合與 id 配置器，並維持參照完整性：

- 星星 id 單調遞增、不重複
- 連線兩端必須存在，且不允許自我迴圈
- 同一組無序端點最多只有一條連線

星星與連線皆為不可變資料，快照只複製參照，
因此復原堆疊中的快照彼此共享未變動的資料。
"""
from __future__ import annotations

import itertools
import logging
import math
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .enums import ImportMode, LineStyle, StarShape
from .errors import SnapshotValidationError
from .geometry import Point, normalizeRect

logger = logging.getLogger(__name__)

HIT_RADIUS = 15.0
DEFAULT_COLOR = "#ffffff"
UNTITLED = "Untitled"


def nowIso() -> str:
    """目前 UTC 時間的 ISO-8601 字串"""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def parseTags(value) -> Tuple[str, ...]:
    """解析標籤。

    字串以逗號分割；序列則逐項處理。每個標籤去除前後空白，空字串捨棄。

    Args:
        value: 逗號分隔字串或字串序列。

    Returns:
        Tuple[str, ...]: 整理後的標籤。
    """
    if value is None:
        return ()
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = [str(item) for item in value]
    return tuple(part.strip() for part in parts if part.strip())


def _asInt(value, field: str) -> int:
    if isinstance(value, bool):
        raise SnapshotValidationError(f"{field} 必須為整數")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise SnapshotValidationError(f"{field} 必須為整數，收到 {value!r}")


def _asFloat(value, field: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise SnapshotValidationError(f"{field} 必須為數值，收到 {value!r}")


def _asTags(value, field: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (str, list, tuple)):
        raise SnapshotValidationError(f"{field} 必須為字串或陣列，收到 {value!r}")
    return parseTags(value)


@dataclass(frozen=True)
class Star:
    """星星節點"""
    id: int
    x: float
    y: float
    color: str = DEFAULT_COLOR
    title: str = ""
    description: str = ""
    tags: Tuple[str, ...] = ()
    shape: StarShape = StarShape.CIRCLE
    createdAt: str = ""

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    def toDict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "color": self.color,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "shape": self.shape.value,
            "createdAt": self.createdAt,
        }

    @classmethod
    def fromDict(cls, data: Mapping) -> Star:
        """由 JSON 物件建立星星，缺少的選填欄位套用預設值"""
        if not isinstance(data, Mapping):
            raise SnapshotValidationError("星星資料必須為物件")
        starId = _asInt(data.get("id"), "star.id")
        return cls(
            id=starId,
            x=_asFloat(data.get("x", 0.0), "star.x"),
            y=_asFloat(data.get("y", 0.0), "star.y"),
            color=str(data.get("color") or DEFAULT_COLOR),
            title=str(data.get("title") or f"Star {starId}"),
            description=str(data.get("description") or ""),
            tags=_asTags(data.get("tags"), "star.tags"),
            shape=StarShape.parse(data.get("shape") or StarShape.CIRCLE),
            createdAt=str(data.get("createdAt") or nowIso()),
        )


@dataclass(frozen=True)
class Connection:
    """兩顆星星之間的無向連線"""
    id: int
    fromId: int
    toId: int
    color: str = DEFAULT_COLOR
    style: LineStyle = LineStyle.SOLID
    createdAt: str = ""

    @property
    def key(self) -> frozenset:
        return frozenset((self.fromId, self.toId))

    def involves(self, starId: int) -> bool:
        return self.fromId == starId or self.toId == starId

    def toDict(self) -> dict:
        return {
            "id": self.id,
            "from": self.fromId,
            "to": self.toId,
            "color": self.color,
            "style": self.style.value,
            "createdAt": self.createdAt,
        }

    @classmethod
    def fromDict(cls, data: Mapping) -> Connection:
        if not isinstance(data, Mapping):
            raise SnapshotValidationError("連線資料必須為物件")
        return cls(
            id=_asInt(data.get("id", 0), "connection.id"),
            fromId=_asInt(data.get("from"), "connection.from"),
            toId=_asInt(data.get("to"), "connection.to"),
            color=str(data.get("color") or DEFAULT_COLOR),
            style=LineStyle.parse(data.get("style") or LineStyle.SOLID),
            createdAt=str(data.get("createdAt") or nowIso()),
        )


def validateSnapshotData(data) -> None:
    """檢查外部資料是否具備合法的快照結構。

    Raises:
        SnapshotValidationError: 缺少 stars 陣列或 connections 型別錯誤。
    """
    if not isinstance(data, Mapping):
        raise SnapshotValidationError("星座資料必須為 JSON 物件")
    if not isinstance(data.get("stars"), list):
        raise SnapshotValidationError("無效的星座資料：缺少 stars 陣列或型別錯誤")
    connections = data.get("connections")
    if connections is not None and not isinstance(connections, list):
        raise SnapshotValidationError("無效的星座資料：connections 必須為陣列")


@dataclass(frozen=True)
class SceneSnapshot:
    """場景的完整快照（供復原、持久化與匯出使用）"""
    stars: Tuple[Star, ...] = ()
    connections: Tuple[Connection, ...] = ()
    nextStarId: int = 1

    def toDict(self) -> dict:
        return {
            "stars": [star.toDict() for star in self.stars],
            "connections": [conn.toDict() for conn in self.connections],
            "nextStarId": self.nextStarId,
        }

    @classmethod
    def fromDict(cls, data) -> SceneSnapshot:
        """由持久化資料還原快照；nextStarId 至少為最大 id + 1"""
        validateSnapshotData(data)
        stars = tuple(Star.fromDict(item) for item in data["stars"])
        connections = tuple(Connection.fromDict(item) for item in data.get("connections") or [])
        floor = max((star.id for star in stars), default=0) + 1
        stored = data.get("nextStarId")
        try:
            nextStarId = _asInt(stored, "nextStarId") if stored is not None else floor
        except SnapshotValidationError:
            nextStarId = floor
        return cls(stars, connections, max(nextStarId, floor))


class SceneModel:
    """場景模型：星星、連線與 id 計數器"""

    def __init__(self, hitRadius: float = HIT_RADIUS) -> None:
        self.stars: List[Star] = []
        self.connections: List[Connection] = []
        self.nextStarId = 1
        self.hitRadius = hitRadius
        self._lastConnectionId = 0

    # ------------------------------------------------------------------
    # 查詢
    # ------------------------------------------------------------------
    def _indexOf(self, starId: int) -> int:
        for i, star in enumerate(self.stars):
            if star.id == starId:
                return i
        return -1

    def getNode(self, starId: int) -> Optional[Star]:
        idx = self._indexOf(starId)
        return self.stars[idx] if idx >= 0 else None

    def nodeIds(self) -> List[int]:
        return [star.id for star in self.stars]

    def hasEdge(self, idA: int, idB: int) -> bool:
        key = frozenset((idA, idB))
        return any(conn.key == key for conn in self.connections)

    def edgesOf(self, starId: int) -> List[Connection]:
        return [conn for conn in self.connections if conn.involves(starId)]

    def findNodeAt(self, point: Point, radius: Optional[float] = None) -> Optional[Star]:
        """點擊測試：回傳最上層（最後加入）且中心距離小於半徑的星星"""
        hitRadius = self.hitRadius if radius is None else radius
        x, y = point
        for star in reversed(self.stars):
            if math.hypot(x - star.x, y - star.y) < hitRadius:
                return star
        return None

    def nodesInRect(self, cornerA: Point, cornerB: Point) -> List[Star]:
        """回傳位於封閉矩形內的星星"""
        (minX, minY), (maxX, maxY) = normalizeRect(cornerA, cornerB)
        return [star for star in self.stars
                if minX <= star.x <= maxX and minY <= star.y <= maxY]

    def tagGroups(self) -> Dict[str, List[int]]:
        """標籤 -> 星星 id 清單（依出現順序）"""
        groups: Dict[str, List[int]] = {}
        for star in self.stars:
            for tag in dict.fromkeys(star.tags):
                groups.setdefault(tag, []).append(star.id)
        return groups

    def allTags(self) -> List[str]:
        return sorted(self.tagGroups())

    # ------------------------------------------------------------------
    # 變更
    # ------------------------------------------------------------------
    def addNode(self, position: Point, color: str = DEFAULT_COLOR) -> Star:
        """配置新 id 並建立星星"""
        starId = self.nextStarId
        self.nextStarId += 1
        star = Star(
            id=starId,
            x=float(position[0]),
            y=float(position[1]),
            color=color,
            title=f"Star {starId}",
            createdAt=nowIso(),
        )
        self.stars.append(star)
        logger.debug("新增星星 %s 於 (%.1f, %.1f)", starId, star.x, star.y)
        return star

    def deleteNode(self, starId: int) -> bool:
        """刪除星星並連帶移除所有相關連線；id 不存在時不做任何事"""
        return self.deleteNodes([starId]) > 0

    def deleteNodes(self, starIds: Iterable[int]) -> int:
        targets = set(starIds) & set(self.nodeIds())
        if not targets:
            return 0
        self.connections = [conn for conn in self.connections
                            if conn.fromId not in targets and conn.toId not in targets]
        self.stars = [star for star in self.stars if star.id not in targets]
        logger.debug("刪除星星 %s", sorted(targets))
        return len(targets)

    def _newConnectionId(self) -> int:
        candidate = int(time.time() * 1000)
        if candidate <= self._lastConnectionId:
            candidate = self._lastConnectionId + 1
        self._lastConnectionId = candidate
        return candidate

    def _syncConnectionCounter(self) -> None:
        self._lastConnectionId = max(
            [self._lastConnectionId] + [conn.id for conn in self.connections])

    def addEdge(self, idA: int, idB: int, color: str = DEFAULT_COLOR,
                style=LineStyle.SOLID) -> Optional[Connection]:
        """新增連線。

        自我迴圈、端點不存在或已有同組端點的連線時不做任何事。

        Returns:
            Optional[Connection]: 新連線，未建立時為 None。
        """
        if idA == idB or self.getNode(idA) is None or self.getNode(idB) is None:
            return None
        if self.hasEdge(idA, idB):
            return None
        conn = Connection(
            id=self._newConnectionId(),
            fromId=idA,
            toId=idB,
            color=color,
            style=LineStyle.parse(style),
            createdAt=nowIso(),
        )
        self.connections.append(conn)
        logger.debug("新增連線 %s-%s", idA, idB)
        return conn

    def connectByTag(self, color: str = DEFAULT_COLOR, style=LineStyle.SOLID) -> int:
        """將擁有相同標籤的星星兩兩相連，回傳實際建立的連線數"""
        created = 0
        for starIds in self.tagGroups().values():
            for idA, idB in itertools.combinations(starIds, 2):
                if self.addEdge(idA, idB, color, style) is not None:
                    created += 1
        return created

    def updateNode(self, starId: int, **fields) -> Optional[Star]:
        """部分更新星星的標題、描述、標籤與形狀。

        Args:
            starId: 星星 id。
            **fields: title / description / tags / shape。

        Returns:
            Optional[Star]: 更新後的星星；id 不存在或內容未變時為 None。

        Raises:
            TypeError: 含有不可更新的欄位。
            ValueError: 形狀名稱未知。
        """
        unknown = set(fields) - {"title", "description", "tags", "shape"}
        if unknown:
            raise TypeError(f"無法更新的欄位：{sorted(unknown)}")
        idx = self._indexOf(starId)
        if idx < 0:
            return None

        star = self.stars[idx]
        changes = {}
        if "title" in fields:
            changes["title"] = str(fields["title"] or "").strip() or UNTITLED
        if "description" in fields:
            changes["description"] = str(fields["description"] or "")
        if "tags" in fields:
            changes["tags"] = parseTags(fields["tags"])
        if "shape" in fields:
            changes["shape"] = StarShape.parse(fields["shape"] or StarShape.CIRCLE, strict=True)

        updated = replace(star, **changes)
        if updated == star:
            return None
        self.stars[idx] = updated
        return updated

    def moveNode(self, starId: int, position: Point) -> bool:
        """即時移動星星（拖曳中使用，不寫入歷史）"""
        idx = self._indexOf(starId)
        if idx < 0:
            return False
        star = self.stars[idx]
        x, y = float(position[0]), float(position[1])
        if (star.x, star.y) == (x, y):
            return False
        self.stars[idx] = replace(star, x=x, y=y)
        return True

    def recolorNodes(self, starIds: Iterable[int], color: str) -> int:
        targets = set(starIds)
        changed = 0
        for i, star in enumerate(self.stars):
            if star.id in targets and star.color != color:
                self.stars[i] = replace(star, color=color)
                changed += 1
        return changed

    def clear(self) -> bool:
        """清空場景並將 id 計數器重設為 1"""
        if not self.stars and not self.connections and self.nextStarId == 1:
            return False
        self.stars = []
        self.connections = []
        self.nextStarId = 1
        return True

    def _sanitizeConnections(self, stars: List[Star],
                             connections: Iterable[Connection],
                             existing: Iterable[Connection] = ()) -> List[Connection]:
        """丟棄懸空、自我迴圈或重複的連線"""
        ids = {star.id for star in stars}
        seen = {conn.key for conn in existing}
        kept = []
        for conn in connections:
            if conn.fromId == conn.toId:
                continue
            if conn.fromId not in ids or conn.toId not in ids:
                continue
            if conn.key in seen:
                continue
            seen.add(conn.key)
            kept.append(conn)
        return kept

    def _claimIds(self, stars: Iterable[Star], taken: set,
                  freshId: int) -> Tuple[List[Star], Dict[int, int]]:
        """為匯入的星星配置不衝突的 id，回傳 (星星, 舊 id -> 新 id)"""
        claimed: List[Star] = []
        remap: Dict[int, int] = {}
        for star in stars:
            if star.id in taken:
                newStar = replace(star, id=freshId)
                freshId += 1
            else:
                newStar = star
            remap.setdefault(star.id, newStar.id)
            taken.add(newStar.id)
            claimed.append(newStar)
        moved = sum(1 for old, new in remap.items() if old != new)
        if moved:
            logger.info("匯入時重新配置 %d 個衝突的星星 id", moved)
        return claimed, remap

    @staticmethod
    def _remapConnections(connections: Iterable[Connection],
                          remap: Dict[int, int]) -> List[Connection]:
        return [replace(conn, fromId=remap[conn.fromId], toId=remap[conn.toId])
                for conn in connections
                if conn.fromId in remap and conn.toId in remap]

    def importSnapshot(self, data, mode=ImportMode.APPEND) -> int:
        """匯入外部快照資料。

        replace 會覆寫星星與連線，計數器為
        max(原有 id, 匯入 id, 匯入的 nextStarId - 1) + 1；
        append 會合併兩者，與既有 id 衝突的匯入星星改配新 id，
        計數器為 max(所有 id, 原計數器 - 1) + 1。

        Args:
            data: 已解析的 JSON 物件。
            mode: ImportMode 或其字串值。

        Returns:
            int: 匯入的星星數。

        Raises:
            SnapshotValidationError: 缺少 stars 陣列或資料格式錯誤，此時場景不變。
        """
        mode = ImportMode(mode)
        incoming = SceneSnapshot.fromDict(data)
        incomingIds = {star.id for star in incoming.stars}

        if mode is ImportMode.REPLACE:
            ceiling = max(set(self.nodeIds()) | incomingIds | {incoming.nextStarId - 1})
            stars, remap = self._claimIds(incoming.stars, set(), ceiling + 1)
            self.connections = self._sanitizeConnections(
                stars, self._remapConnections(incoming.connections, remap))
            self.stars = stars
            self.nextStarId = max([ceiling] + [star.id for star in stars]) + 1
        else:
            floor = self.nextStarId - 1
            taken = set(self.nodeIds())
            appended, remap = self._claimIds(
                incoming.stars, taken, max(taken | incomingIds | {floor}) + 1)
            merged = self.stars + appended
            self.connections = self.connections + self._sanitizeConnections(
                merged, self._remapConnections(incoming.connections, remap),
                existing=self.connections)
            self.stars = merged
            self.nextStarId = max(self.nodeIds() + [floor]) + 1

        self._syncConnectionCounter()
        logger.info("匯入 %d 顆星星（模式：%s）", len(incoming.stars), mode.value)
        return len(incoming.stars)

    def serialize(self) -> SceneSnapshot:
        """保持順序的完整快照"""
        return SceneSnapshot(tuple(self.stars), tuple(self.connections), self.nextStarId)

    def restore(self, snapshot: SceneSnapshot) -> None:
        """將場景還原為指定快照"""
        self.stars = list(snapshot.stars)
        self.connections = list(snapshot.connections)
        self.nextStarId = snapshot.nextStarId
        self._syncConnectionCounter()
