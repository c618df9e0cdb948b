"""
設定管理
========
集中定義編輯器的可調參數，並從 config.json 讀取覆寫值。
檔案不存在或解析失敗時一律使用預設值。
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.json"


def defaultStoragePath() -> str:
    return str(Path.home() / ".constellation" / "constellation.json")


@dataclass
class EditorConfig:
    minZoom: float = 0.25
    maxZoom: float = 4.0
    historyLimit: int = 50
    hitRadius: float = 15.0
    storagePath: str = field(default_factory=defaultStoragePath)
    shareBaseUrl: str = "https://constellation.local/"
    defaultColor: str = "#ffffff"
    defaultLineStyle: str = "solid"
    canvasWidth: int = 1200
    canvasHeight: int = 800
    logLevel: str = "INFO"

    @classmethod
    def fromDict(cls, data: dict) -> EditorConfig:
        """以字典覆寫預設值，忽略未知欄位"""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("忽略未知的設定欄位：%s", ", ".join(unknown))
        return cls(**{key: value for key, value in data.items() if key in known})


def loadConfig(path: Optional[str] = DEFAULT_CONFIG_PATH) -> EditorConfig:
    """讀取設定檔。

    Args:
        path: 設定檔路徑，None 代表只使用預設值。

    Returns:
        EditorConfig: 合併後的設定。
    """
    if not path:
        return EditorConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug("找不到設定檔 %s，使用預設值", path)
        return EditorConfig()
    except (OSError, json.JSONDecodeError) as e:
        # 解析失敗時以預設值處理
        logger.error("設定檔 %s 讀取失敗：%s", path, e)
        return EditorConfig()

    if not isinstance(data, dict):
        logger.error("設定檔 %s 必須為 JSON 物件", path)
        return EditorConfig()
    return EditorConfig.fromDict(data.get("editor", data))
