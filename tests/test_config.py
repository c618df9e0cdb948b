import json

from constellation.config import EditorConfig, loadConfig
from constellation.core import EditorSession, LineStyle


def test_missing_config_uses_defaults(tmp_path):
    config = loadConfig(str(tmp_path / "missing.json"))
    assert config == EditorConfig(storagePath=config.storagePath)
    assert config.historyLimit == 50
    assert loadConfig(None).maxZoom == 4.0


def test_corrupt_config_uses_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken", encoding="utf-8")
    assert loadConfig(str(path)).minZoom == 0.25
    path.write_text("[1, 2]", encoding="utf-8")
    assert loadConfig(str(path)).minZoom == 0.25


def test_editor_section_and_unknown_keys(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "editor": {"historyLimit": 3, "defaultLineStyle": "dotted", "bogus": 1},
        "other": {},
    }), encoding="utf-8")
    config = loadConfig(str(path))
    assert config.historyLimit == 3
    assert not hasattr(config, "bogus")

    session = EditorSession(config)
    assert session.currentLineStyle is LineStyle.DOTTED
    for i in range(5):
        session.addStar((i * 40, 0))
    assert len(session.history.undoStack) == 3


def test_zoom_bounds_from_config():
    session = EditorSession(EditorConfig(minZoom=0.5, maxZoom=2.0))
    for _ in range(10):
        session.zoomIn()
    assert session.viewport.zoom == 2.0
    session.resetView()
    for _ in range(10):
        session.zoomOut()
    assert session.viewport.zoom == 0.5
