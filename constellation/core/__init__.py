"""星座編輯器核心

模組結構：
- geometry.py: 螢幕/世界座標轉換與縮放
- model.py: SceneModel 場景模型（星星、連線、id 配置）
- selection.py: 選取與標籤可見性
- history.py: 快照式撤銷/重做
- interaction.py: 指標/鍵盤互動狀態機
- editor.py: EditorSession 工作階段（擁有以上所有狀態）
- shapes.py: 星星形狀幾何
- enums.py: 枚舉定義
- errors.py: 錯誤類別
"""

from .enums import DragState, EditorMode, ImportMode, LineStyle, PointerButton, StarShape
from .errors import (
    ConstellationError, EmptySceneError, SnapshotValidationError, UnknownTemplateError
)
from .geometry import Viewport, screenFromWorld, worldFromScreen, zoomAt
from .model import Connection, SceneModel, SceneSnapshot, Star
from .selection import Selection, TagFilter
from .history import History
from .editor import EditorSession
from .interaction import InteractionController, KeyEvent, PointerEvent

__all__ = [
    # 枚舉
    'DragState', 'EditorMode', 'ImportMode', 'LineStyle', 'PointerButton', 'StarShape',

    # 錯誤
    'ConstellationError', 'EmptySceneError', 'SnapshotValidationError', 'UnknownTemplateError',

    # 座標
    'Viewport', 'screenFromWorld', 'worldFromScreen', 'zoomAt',

    # 場景
    'Connection', 'SceneModel', 'SceneSnapshot', 'Star',
    'Selection', 'TagFilter', 'History',

    # 工作階段與互動
    'EditorSession', 'InteractionController', 'KeyEvent', 'PointerEvent',
]
