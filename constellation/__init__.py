"""Constellation 星座圖編輯器

- core: 場景模型、座標轉換、選取、歷史與互動狀態機（不依賴 GUI）
- io: 持久化、分享連結、匯出與範本
- analysis: 統計資訊
- ui: PyQt5 畫布編輯器
"""

__version__ = "0.1.0"
