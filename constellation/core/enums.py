from enum import Enum


class EditorMode(Enum):
    """編輯器工具模式枚舉"""
    ADD = "add"
    CONNECT = "connect"
    MOVE = "move"
    DELETE = "delete"
    SELECT = "select"


class DragState(Enum):
    """與模式正交的暫態拖曳狀態"""
    IDLE = "idle"
    DRAGGING_NODE = "dragging-node"
    DRAGGING_CONNECTION = "dragging-connection"
    DRAGGING_MARQUEE = "dragging-marquee"
    PANNING = "panning"


class PointerButton(Enum):
    """指標按鍵"""
    LEFT = 0
    MIDDLE = 1
    RIGHT = 2


class StarShape(Enum):
    """星星形狀（封閉集合）"""
    CIRCLE = "circle"
    DIAMOND = "diamond"
    HEXAGON = "hexagon"
    STAR = "star"

    @classmethod
    def parse(cls, value, strict: bool = False) -> "StarShape":
        """將字串轉為形狀。

        Args:
            value: 形狀名稱或 StarShape。
            strict: 為 True 時未知名稱會拋出 ValueError，否則回退為圓形。

        Returns:
            StarShape: 對應的形狀。
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            if strict:
                raise ValueError(f"未知的形狀：{value!r}")
            return cls.CIRCLE


class LineStyle(Enum):
    """連線樣式"""
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"

    @classmethod
    def parse(cls, value) -> "LineStyle":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.SOLID


class ImportMode(Enum):
    """匯入模式"""
    REPLACE = "replace"
    APPEND = "append"
