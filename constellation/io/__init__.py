"""輸入輸出：持久化、分享連結、匯出與範本"""

from .persistence import (
    LocalStore, buildShareUrl, decodeSharePayload, encodeSharePayload,
    loadInitialSnapshot, snapshotFromShareUrl
)
from .export import exportJson, exportSvg
from .templates import buildTemplate, templateNames

__all__ = [
    'LocalStore', 'buildShareUrl', 'decodeSharePayload', 'encodeSharePayload',
    'loadInitialSnapshot', 'snapshotFromShareUrl',
    'exportJson', 'exportSvg',
    'buildTemplate', 'templateNames',
]
