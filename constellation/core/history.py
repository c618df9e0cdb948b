from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from .model import SceneModel, SceneSnapshot

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


class History:
    """以快照為基礎的線性撤銷/重做歷史

    record() 在每次成功變更之後呼叫，記下變更後的狀態作為基準，
    並把前一個基準（也就是變更前的狀態）推入撤銷堆疊。
    因此 undo() 一次就會回到最後一次變更之前的狀態。
    """

    def __init__(self, model: SceneModel, limit: int = HISTORY_LIMIT) -> None:
        self.model = model
        self.limit = limit
        self.undoStack: List[Tuple[SceneSnapshot, str]] = []
        self.redoStack: List[Tuple[SceneSnapshot, str]] = []
        self._baseline = model.serialize()

    @property
    def canUndo(self) -> bool:
        return bool(self.undoStack)

    @property
    def canRedo(self) -> bool:
        return bool(self.redoStack)

    @property
    def undoLabel(self) -> Optional[str]:
        return self.undoStack[-1][1] if self.undoStack else None

    @property
    def redoLabel(self) -> Optional[str]:
        return self.redoStack[-1][1] if self.redoStack else None

    def reset(self) -> None:
        """清空兩個堆疊，並以目前場景作為新基準（載入場景時使用）"""
        self.undoStack = []
        self.redoStack = []
        self._baseline = self.model.serialize()

    def record(self, action: str) -> None:
        """記錄一次已完成的變更"""
        self.undoStack.append((self._baseline, action))
        if len(self.undoStack) > self.limit:
            # 超出上限時丟棄最舊的項目
            self.undoStack.pop(0)
        self.redoStack = []
        self._baseline = self.model.serialize()
        logger.debug("記錄歷史：%s（撤銷堆疊 %d）", action, len(self.undoStack))

    def undo(self) -> bool:
        """撤銷；堆疊為空時不做任何事"""
        if not self.undoStack:
            return False
        snapshot, action = self.undoStack.pop()
        self.redoStack.append((self.model.serialize(), action))
        self._restore(snapshot)
        logger.debug("撤銷：%s", action)
        return True

    def redo(self) -> bool:
        """重做；堆疊為空時不做任何事"""
        if not self.redoStack:
            return False
        snapshot, action = self.redoStack.pop()
        self.undoStack.append((self.model.serialize(), action))
        if len(self.undoStack) > self.limit:
            self.undoStack.pop(0)
        self._restore(snapshot)
        logger.debug("重做：%s", action)
        return True

    def _restore(self, snapshot: SceneSnapshot) -> None:
        self.model.restore(snapshot)
        self._baseline = snapshot
