import json

import pytest

from constellation.core import SceneModel, SceneSnapshot
from constellation.core.errors import EmptySceneError
from constellation.io import exportJson, exportSvg
from constellation.io.export import hexToRgba


def _model():
    model = SceneModel()
    a = model.addNode((0, 0), "#00bfff")
    b = model.addNode((100, 50), "#ff6b6b")
    c = model.addNode((200, -20))
    model.updateNode(b.id, title="<b>&co", shape="hexagon")
    model.updateNode(c.id, shape="star")
    model.addEdge(a.id, b.id)
    model.addEdge(b.id, c.id)
    return model


def test_export_json():
    data = json.loads(exportJson(_model().serialize()))
    assert set(data) == {"stars", "connections", "exportedAt"}
    assert len(data["stars"]) == 3
    assert data["connections"][0]["from"] == 1
    assert data["stars"][1]["shape"] == "hexagon"


def test_export_json_can_be_imported():
    model = _model()
    copy = SceneModel()
    copy.importSnapshot(json.loads(exportJson(model.serialize())), "replace")
    assert copy.stars == model.stars
    assert copy.connections == model.connections


def test_export_svg():
    svg = exportSvg(_model().serialize())
    assert svg.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert 'viewBox="-50 -70 300 170"' in svg
    assert svg.count("<path ") == 2
    assert svg.count('<g class="star') == 3
    assert 'class="star shape-hexagon"' in svg
    assert 'class="star shape-star"' in svg
    assert "&lt;b&gt;&amp;co" in svg
    assert "rgba(0, 191, 255, 0.3)" in svg


def test_export_svg_requires_stars():
    with pytest.raises(EmptySceneError):
        exportSvg(SceneSnapshot())


def test_hex_to_rgba():
    assert hexToRgba("#fff", 0.5) == "rgba(255, 255, 255, 0.5)"
    assert hexToRgba("#102030", 1) == "rgba(16, 32, 48, 1)"
    assert hexToRgba("bogus!", 0.3) == "rgba(255, 255, 255, 0.3)"
