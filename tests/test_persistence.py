import json
from urllib.parse import parse_qs, urlsplit

import pytest

from constellation.config import EditorConfig
from constellation.core import EditorSession, SceneModel, SceneSnapshot
from constellation.core.errors import EmptySceneError, SnapshotValidationError
from constellation.io import (
    LocalStore, buildShareUrl, decodeSharePayload, encodeSharePayload, loadInitialSnapshot,
    snapshotFromShareUrl,
)
from constellation.io.persistence import SHARE_PARAM


def _snapshot():
    model = SceneModel()
    a = model.addNode((10, 20), "#ff0000")
    b = model.addNode((-30, 40))
    model.updateNode(a.id, title="北極星", tags=["nav", "bright"])
    model.addEdge(a.id, b.id)
    return model.serialize()


def test_local_store_round_trip(tmp_path):
    store = LocalStore(tmp_path / "nested" / "scene.json")
    assert store.load() is None
    snapshot = _snapshot()
    assert store.save(snapshot)
    assert SceneSnapshot.fromDict(store.load()) == snapshot
    store.clear()
    assert store.load() is None


def test_local_store_corrupt_file(tmp_path):
    """毀損的檔案視為沒有資料"""
    path = tmp_path / "scene.json"
    path.write_text("{not json", encoding="utf-8")
    assert LocalStore(path).load() is None
    path.write_text(json.dumps({"connections": []}), encoding="utf-8")
    assert LocalStore(path).load() is None


def test_local_store_write_failure(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    store = LocalStore(blocker / "scene.json")
    assert store.save(_snapshot()) is False


def test_share_payload_round_trip():
    data = {"stars": [{"id": 1, "title": "é ✨"}], "connections": []}
    token = encodeSharePayload(data)
    assert all(ch.isalnum() or ch in "-_=" for ch in token)
    assert decodeSharePayload(token) == data
    with pytest.raises(ValueError):
        decodeSharePayload("!!!not-base64")


def test_share_url_round_trip():
    snapshot = _snapshot()
    url = buildShareUrl(snapshot, "https://example.com/app?lang=zh")
    query = parse_qs(urlsplit(url).query)
    assert query["lang"] == ["zh"]
    payload = decodeSharePayload(query[SHARE_PARAM][0])
    assert "sharedAt" in payload
    assert "nextStarId" not in payload

    loaded = snapshotFromShareUrl(url)
    assert loaded.stars == snapshot.stars
    assert loaded.connections == snapshot.connections
    assert loaded.nextStarId == 3


def test_share_requires_stars():
    with pytest.raises(EmptySceneError):
        buildShareUrl(SceneSnapshot(), "https://example.com/")


def test_invalid_share_url_is_ignored():
    assert snapshotFromShareUrl("https://example.com/") is None
    assert snapshotFromShareUrl(f"https://example.com/?{SHARE_PARAM}=garbage") is None
    token = encodeSharePayload({"connections": []})
    assert snapshotFromShareUrl(f"https://example.com/?{SHARE_PARAM}={token}") is None


def test_load_precedence(tmp_path):
    """分享網址優先於本機儲存，兩者皆無時為空場景"""
    store = LocalStore(tmp_path / "scene.json")
    assert loadInitialSnapshot(None, store) is None

    stored = SceneModel()
    stored.addNode((0, 0))
    store.save(stored.serialize())
    assert len(loadInitialSnapshot(None, store).stars) == 1

    url = buildShareUrl(_snapshot(), "https://example.com/")
    fromUrl = loadInitialSnapshot(url, store)
    assert len(fromUrl.stars) == 2
    # 從網址載入後會寫回本機儲存
    assert len(store.load()["stars"]) == 2

    broken = loadInitialSnapshot("https://example.com/?constellation=zzz", store)
    assert len(broken.stars) == 2


def test_session_persists_every_mutation(tmp_path):
    store = LocalStore(tmp_path / "scene.json")
    session = EditorSession(EditorConfig(storagePath=str(tmp_path / "scene.json")), store)
    star = session.addStar((5, 5))
    assert store.load()["stars"][0]["id"] == star.id
    session.undo()
    assert store.load()["stars"] == []

    restored = EditorSession(store=store)
    restored.hydrate(loadInitialSnapshot(None, store))
    assert restored.model.stars == []
    assert not restored.history.canUndo


def test_corrupt_tags_fall_through_to_empty_scene(tmp_path):
    """標籤型別錯誤的資料視為無效，不會中斷啟動流程"""
    corrupt = {"stars": [{"id": 1, "x": 0, "y": 0, "tags": 5}], "connections": []}
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(corrupt), encoding="utf-8")
    store = LocalStore(path)
    assert loadInitialSnapshot(None, store) is None

    url = f"https://example.com/?{SHARE_PARAM}={encodeSharePayload(corrupt)}"
    assert snapshotFromShareUrl(url) is None

    stored = SceneModel()
    stored.addNode((0, 0))
    store.save(stored.serialize())
    fallback = loadInitialSnapshot(url, store)
    assert len(fallback.stars) == 1


def test_session_import_rejects_corrupt_tags():
    session = EditorSession()
    session.addStar((0, 0))
    depth = len(session.history.undoStack)
    with pytest.raises(SnapshotValidationError):
        session.applyImportedSnapshot({"stars": [{"id": 7, "tags": 5}]})
    assert len(session.model.stars) == 1
    assert len(session.history.undoStack) == depth
