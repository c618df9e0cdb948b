"""持久化轉接層

- LocalStore：將場景快照存成本機 JSON 檔
- 分享連結：JSON -> zlib 壓縮 -> URL 安全 base64，放在 ``constellation`` 查詢參數
- loadInitialSnapshot：啟動時依 URL -> 本機檔 -> 空場景的順序取得資料

解析錯誤只記錄並視為沒有資料，寫入失敗只記錄，不影響記憶體中的場景。
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import zlib
from pathlib import Path
from typing import Optional, Union
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from ..core.errors import EmptySceneError, SnapshotValidationError
from ..core.model import SceneSnapshot, nowIso, validateSnapshotData

logger = logging.getLogger(__name__)

SHARE_PARAM = "constellation"


class LocalStore:
    """本機持久化儲存"""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Optional[dict]:
        """讀取已儲存的資料；不存在或毀損時回傳 None"""
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            validateSnapshotData(data)
        except (OSError, json.JSONDecodeError, SnapshotValidationError) as e:
            logger.error("讀取已儲存的星座失敗：%s", e)
            return None
        return data

    def save(self, snapshot: SceneSnapshot) -> bool:
        """寫入快照；失敗時記錄錯誤並回傳 False"""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmpPath = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmpPath, "w", encoding="utf-8") as f:
                json.dump(snapshot.toDict(), f, ensure_ascii=False)
            tmpPath.replace(self.path)
        except OSError as e:
            logger.error("儲存星座失敗：%s", e)
            return False
        return True

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


def encodeSharePayload(data: dict) -> str:
    """將資料編碼為可放入網址的字串"""
    raw = json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(zlib.compress(raw, 9)).decode("ascii")


def decodeSharePayload(token: str) -> dict:
    """encodeSharePayload 的反函式。

    Raises:
        ValueError: 內容無法解碼或解析（含 binascii.Error、zlib.error）。
    """
    try:
        raw = zlib.decompress(base64.urlsafe_b64decode(token.encode("ascii")))
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, zlib.error, UnicodeError) as e:
        raise ValueError(f"無法解碼分享內容：{e}") from e


def buildShareUrl(snapshot: SceneSnapshot, baseUrl: str) -> str:
    """產生分享連結。

    Raises:
        EmptySceneError: 場景沒有任何星星。
    """
    if not snapshot.stars:
        raise EmptySceneError("沒有可分享的星座，請先新增星星")
    data = snapshot.toDict()
    data.pop("nextStarId", None)
    data["sharedAt"] = nowIso()

    parts = urlsplit(baseUrl)
    query = parse_qs(parts.query)
    query[SHARE_PARAM] = [encodeSharePayload(data)]
    return urlunsplit(parts._replace(query=urlencode(query, doseq=True)))


def snapshotFromShareUrl(url: str) -> Optional[SceneSnapshot]:
    """解析分享連結；沒有參數或內容無效時回傳 None"""
    values = parse_qs(urlsplit(url).query).get(SHARE_PARAM)
    if not values:
        return None
    try:
        data = decodeSharePayload(values[0])
        snapshot = SceneSnapshot.fromDict(data)
    except SnapshotValidationError as e:
        logger.error("網址中的星座資料無效：%s", e)
        return None
    except ValueError as e:
        logger.error("載入分享星座失敗：%s", e)
        return None

    # 以最大 id 重新計算計數器，避免與分享內容衝突
    maxId = max((star.id for star in snapshot.stars), default=0)
    return SceneSnapshot(snapshot.stars, snapshot.connections, maxId + 1)


def loadInitialSnapshot(shareUrl: Optional[str], store: Optional[LocalStore]) -> Optional[SceneSnapshot]:
    """依 分享網址 -> 本機儲存 的優先順序載入場景，皆無時回傳 None"""
    if shareUrl:
        snapshot = snapshotFromShareUrl(shareUrl)
        if snapshot is not None:
            logger.info("已從分享網址載入星座")
            if store is not None:
                store.save(snapshot)
            return snapshot

    if store is not None:
        data = store.load()
        if data is not None:
            try:
                return SceneSnapshot.fromDict(data)
            except SnapshotValidationError as e:
                logger.error("已儲存的星座格式錯誤：%s", e)
    return None
