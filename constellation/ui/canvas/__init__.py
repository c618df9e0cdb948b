"""星座畫布（PyQt5）

模組結構：
- painter.py: 場景繪製
- particles.py: 粒子特效
- view.py: ConstellationCanvas 畫布元件
- minimap.py: 小地圖
- dialogs.py: 星星編輯與標籤過濾對話框
- main_editor.py: ConstellationEditor 主視窗
"""

from .main_editor import ConstellationEditor, runEditor
from .view import ConstellationCanvas

__all__ = ['ConstellationEditor', 'ConstellationCanvas', 'runEditor']
