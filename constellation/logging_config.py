"""
日誌設定
為 constellation 命名空間建立 console 與選用的檔案輸出。
"""
import logging
import sys
from typing import Optional, Union


def setupLogging(level: Union[int, str] = logging.INFO, logFile: Optional[str] = None) -> logging.Logger:
    """
    設定 constellation 套件的 logger。

    Args:
        level: 日誌層級（logging.DEBUG、"INFO" 等）
        logFile: 選用的日誌檔路徑
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("constellation")
    logger.setLevel(level)

    # 重新設定時避免重複輸出
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    consoleHandler = logging.StreamHandler(sys.stdout)
    consoleHandler.setLevel(level)
    consoleHandler.setFormatter(formatter)
    logger.addHandler(consoleHandler)

    if logFile:
        fileHandler = logging.FileHandler(logFile, mode='w', encoding='utf-8')
        fileHandler.setLevel(level)
        fileHandler.setFormatter(formatter)
        logger.addHandler(fileHandler)

    logger.debug("日誌已初始化")
    return logger
