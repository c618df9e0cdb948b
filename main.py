import argparse
import json
import logging
import sys
from pathlib import Path

from constellation.config import loadConfig
from constellation.core import EditorSession, ImportMode
from constellation.core.errors import ConstellationError
from constellation.io import LocalStore, exportJson, exportSvg, loadInitialSnapshot, templateNames
from constellation.logging_config import setupLogging

logger = logging.getLogger("constellation.cli")


def parse_arguments(argv=None):
    """解析命令列參數"""
    parser = argparse.ArgumentParser(description="星座編輯器")
    parser.add_argument("--config", default="config.json", help="設定檔路徑")
    parser.add_argument("--gui", action="store_true", help="開啟圖形編輯器")
    parser.add_argument("--url", metavar="URL", help="從分享連結載入星座")
    parser.add_argument(
        "--import", dest="importPath", metavar="PATH", help="匯入 JSON 星座檔")
    parser.add_argument(
        "--mode", choices=[mode.value for mode in ImportMode],
        default=ImportMode.APPEND.value, help="匯入方式 (預設 append)")
    parser.add_argument(
        "--template", metavar="NAME", choices=templateNames(), help="套用範本")
    parser.add_argument(
        "--connect-by-tag", action="store_true", help="依共同標籤建立連線")
    parser.add_argument("--search", metavar="QUERY", help="以標題或標籤搜尋星星")
    parser.add_argument("--stats", action="store_true", help="顯示星座統計")
    parser.add_argument(
        "--export-json", metavar="PATH", help="匯出 JSON")
    parser.add_argument(
        "--export-svg", metavar="PATH", help="匯出 SVG")
    parser.add_argument("--share", action="store_true", help="輸出分享連結")
    parser.add_argument("--clear", action="store_true", help="清除全部星星與連線")
    parser.add_argument("--verbose", action="store_true", help="輸出除錯訊息")
    return parser.parse_args(argv)


def build_session(args):
    """依設定建立工作階段，並依 分享網址 -> 本機儲存 的順序載入場景"""
    config = loadConfig(args.config)
    setupLogging("DEBUG" if args.verbose else config.logLevel)
    store = LocalStore(config.storagePath)
    session = EditorSession(config, store)
    session.hydrate(loadInitialSnapshot(args.url, store))
    return session


def run_operations(args, session):
    """依序執行命令列指定的操作"""
    if args.clear:
        session.clearAll()
        print("已清除星座")

    if args.template:
        count = session.applyTemplate(args.template)
        print(f"已套用範本 {args.template}（{count} 顆星星）")

    if args.importPath:
        with open(args.importPath, "r", encoding="utf-8") as f:
            data = json.load(f)
        count = session.applyImportedSnapshot(data, ImportMode(args.mode))
        print(f"已匯入 {count} 顆星星（{args.mode}）")

    if args.connect_by_tag:
        created = session.connectByTag()
        print(f"依標籤建立了 {created} 條連線")

    if args.search:
        matches = session.search(args.search)
        print(f"找到 {len(matches)} 顆星星")
        for star in matches:
            print(f"  #{star.id} {star.title} [{', '.join(star.tags)}]")

    if args.stats:
        for label, value in session.statistics().asRows():
            print(f"{label}: {value}")

    snapshot = session.model.serialize()
    if args.export_json:
        Path(args.export_json).write_text(exportJson(snapshot), encoding="utf-8")
        print(f"已匯出 JSON 至 {args.export_json}")
    if args.export_svg:
        Path(args.export_svg).write_text(exportSvg(snapshot), encoding="utf-8")
        print(f"已匯出 SVG 至 {args.export_svg}")

    if args.share:
        print(session.shareUrl())


def main(argv=None):
    """主執行流程"""
    args = parse_arguments(argv)
    session = build_session(args)

    try:
        run_operations(args, session)
    except ConstellationError as e:
        print(f"錯誤：{e}", file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        logger.error("檔案讀寫失敗：%s", e)
        print(f"錯誤：{e}", file=sys.stderr)
        return 1

    if args.gui:
        from constellation.ui.canvas import runEditor
        return runEditor(session)
    return 0


if __name__ == "__main__":
    sys.exit(main())
