"""核心錯誤類別

核心內沒有致命錯誤：驗證錯誤回報給使用者並中止操作，
解析錯誤與寫入失敗則在轉接層記錄後吞下。
"""


class ConstellationError(Exception):
    """所有星座編輯器錯誤的基類"""


class SnapshotValidationError(ConstellationError, ValueError):
    """匯入或分享資料結構不合法（例如缺少 stars 陣列）"""


class EmptySceneError(ConstellationError):
    """場景為空，無法分享或匯出向量圖"""


class UnknownTemplateError(ConstellationError, KeyError):
    """指定的範本不存在"""
