import random

import pytest

from constellation.core import (
    DragState, EditorMode, EditorSession, InteractionController, KeyEvent, PointerButton,
    PointerEvent,
)


def _controller():
    session = EditorSession()
    controller = InteractionController(session, rng=random.Random(7))
    return session, controller


def _click(controller, x, y, **kwargs):
    controller.pointerDown(PointerEvent(x, y, **kwargs))
    controller.pointerUp(PointerEvent(x, y, **kwargs))


def test_add_mode_creates_star_and_opens_editor():
    session, controller = _controller()
    edited = []
    bursts = []
    controller.onEditStar = edited.append
    controller.onBurst = lambda x, y, color: bursts.append((x, y))

    _click(controller, 100, 120)
    assert len(session.model.stars) == 1
    assert edited[0].position == (100.0, 120.0)
    assert bursts == [(100.0, 120.0)]

    # 點在既有星星上不會新增
    _click(controller, 105, 120)
    assert len(session.model.stars) == 1


def test_add_mode_respects_viewport():
    session, controller = _controller()
    session.pan(100, 50)
    session.zoomAt((100, 50), 2.0)
    _click(controller, 300, 250)
    assert session.model.stars[0].position == pytest.approx((100.0, 100.0))


def test_connect_drag():
    session, controller = _controller()
    a = session.addStar((0, 0))
    b = session.addStar((200, 0))
    controller.setMode(EditorMode.CONNECT)

    controller.pointerDown(PointerEvent(2, 2))
    assert controller.dragState is DragState.DRAGGING_CONNECTION
    controller.pointerMove(PointerEvent(120, 0))
    assert controller.pendingConnection == ((0.0, 0.0), (120.0, 0.0))
    controller.pointerUp(PointerEvent(198, 3))

    assert session.model.hasEdge(a.id, b.id)
    assert controller.dragState is DragState.IDLE

    # 放開在空白處或同一顆星星上不會建立連線
    controller.pointerDown(PointerEvent(0, 0))
    controller.pointerUp(PointerEvent(0, 0))
    controller.pointerDown(PointerEvent(0, 0))
    controller.pointerUp(PointerEvent(500, 500))
    assert len(session.model.connections) == 1


def test_move_drag_records_once():
    session, controller = _controller()
    a = session.addStar((0, 0))
    depth = len(session.history.undoStack)
    controller.setMode(EditorMode.MOVE)

    controller.pointerDown(PointerEvent(0, 0))
    for x in range(10, 60, 10):
        controller.pointerMove(PointerEvent(x, x))
    controller.pointerUp(PointerEvent(50, 50))

    assert session.model.getNode(a.id).position == (50.0, 50.0)
    assert len(session.history.undoStack) == depth + 1
    assert session.history.undoLabel == "move star"


def test_delete_mode():
    session, controller = _controller()
    a = session.addStar((0, 0))
    b = session.addStar((100, 0))
    session.addConnection(a.id, b.id)
    controller.setMode(EditorMode.DELETE)
    _click(controller, 300, 300)
    assert len(session.model.stars) == 2
    _click(controller, 1, 1)
    assert session.model.nodeIds() == [b.id]
    assert session.model.connections == []


def test_select_mode_marquee_and_toggle():
    session, controller = _controller()
    a = session.addStar((10, 10))
    b = session.addStar((40, 40))
    c = session.addStar((300, 300))
    controller.setMode(EditorMode.SELECT)

    controller.pointerDown(PointerEvent(100, 0))
    assert controller.dragState is DragState.DRAGGING_MARQUEE
    controller.pointerMove(PointerEvent(0, 100))
    assert controller.marquee == ((0.0, 0.0), (100.0, 100.0))
    controller.pointerUp(PointerEvent(0, 100))
    assert session.selection.ids == [a.id, b.id]

    _click(controller, 300, 300, ctrl=True)
    assert session.selection.ids == [a.id, b.id, c.id]
    _click(controller, 10, 10, ctrl=True)
    assert session.selection.ids == [b.id, c.id]

    _click(controller, 300, 300)
    assert session.selection.ids == [c.id]


def test_empty_marquee_keeps_selection():
    session, controller = _controller()
    a = session.addStar((10, 10))
    controller.setMode(EditorMode.SELECT)
    session.selection.selectSingle(a.id)
    controller.pointerDown(PointerEvent(500, 500))
    controller.pointerUp(PointerEvent(600, 600))
    assert session.selection.ids == [a.id]


def test_leaving_select_mode_clears_selection():
    session, controller = _controller()
    a = session.addStar((10, 10))
    controller.setMode(EditorMode.SELECT)
    session.selection.selectSingle(a.id)
    controller.setMode(EditorMode.SELECT)
    assert session.selection.ids == [a.id]
    controller.setMode(EditorMode.MOVE)
    assert len(session.selection) == 0


@pytest.mark.parametrize("kwargs", [
    {"button": PointerButton.MIDDLE},
    {"button": PointerButton.LEFT, "shift": True},
])
def test_panning_from_any_mode(kwargs):
    session, controller = _controller()
    controller.pointerDown(PointerEvent(100, 100, **kwargs))
    assert controller.dragState is DragState.PANNING
    controller.pointerMove(PointerEvent(130, 90, **kwargs))
    controller.pointerUp(PointerEvent(130, 90, **kwargs))
    assert (session.viewport.panX, session.viewport.panY) == (30, -10)
    # 平移不會在 add 模式下新增星星
    assert session.model.stars == []


def test_pointer_leave_cancels_connection():
    session, controller = _controller()
    session.addStar((0, 0))
    session.addStar((100, 0))
    controller.setMode(EditorMode.CONNECT)
    controller.pointerDown(PointerEvent(0, 0))
    controller.pointerLeave()
    controller.pointerUp(PointerEvent(100, 0))
    assert session.model.connections == []
    assert controller.dragState is DragState.IDLE


def test_wheel_zoom_at_pointer():
    session, controller = _controller()
    controller.wheel(200, 100, -120)
    assert session.viewport.zoom == pytest.approx(1.1)
    assert session.toWorld((200, 100)) == pytest.approx((200, 100))
    controller.wheel(200, 100, 120)
    assert session.viewport.zoom == pytest.approx(0.99)
    assert controller.mode is EditorMode.ADD


def test_mode_keys():
    session, controller = _controller()
    changed = []
    controller.onModeChanged = changed.append
    for key, mode in [("2", EditorMode.CONNECT), ("3", EditorMode.MOVE),
                      ("4", EditorMode.DELETE), ("1", EditorMode.ADD)]:
        assert controller.keyPress(KeyEvent(key))
        assert controller.mode is mode
    assert changed[-1] is EditorMode.ADD


def test_keys_ignored_in_text_field():
    session, controller = _controller()
    assert not controller.keyPress(KeyEvent("2", inTextField=True))
    assert not controller.keyPress(KeyEvent(" ", inTextField=True))
    assert controller.mode is EditorMode.ADD
    assert session.model.stars == []


def test_undo_redo_shortcuts():
    session, controller = _controller()
    session.addStar((0, 0))
    assert controller.keyPress(KeyEvent("z", ctrl=True))
    assert session.model.stars == []
    assert controller.keyPress(KeyEvent("Y", ctrl=True))
    assert len(session.model.stars) == 1


def test_space_adds_star_within_margin():
    session, controller = _controller()
    for _ in range(20):
        controller.keyPress(KeyEvent(" "))
    width, height = session.canvasSize
    assert len(session.model.stars) == 20
    for star in session.model.stars:
        assert 50 <= star.x <= width - 50
        assert 50 <= star.y <= height - 50


def test_search_and_escape_hooks():
    session, controller = _controller()
    calls = []
    controller.onOpenSearch = lambda: calls.append("search")
    controller.onCloseModals = lambda: calls.append("close")
    assert controller.keyPress(KeyEvent("f", ctrl=True))
    assert controller.keyPress(KeyEvent("Escape"))
    assert calls == ["search", "close"]
    assert not controller.keyPress(KeyEvent("q"))


def test_mode_switch_mid_drag_commits_move():
    """拖曳中切換模式會先提交移動，之後的撤銷只還原最後一次變更"""
    session, controller = _controller()
    a = session.addStar((0, 0))
    controller.setMode(EditorMode.MOVE)
    controller.pointerDown(PointerEvent(0, 0))
    controller.pointerMove(PointerEvent(100, 100))
    controller.setMode(EditorMode.CONNECT)
    controller.pointerUp(PointerEvent(100, 100))

    assert session.history.undoLabel == "move star"
    b = session.addStar((300, 300))
    session.undo()
    assert session.model.getNode(b.id) is None
    assert session.model.getNode(a.id).position == (100.0, 100.0)
    session.undo()
    assert session.model.getNode(a.id).position == (0.0, 0.0)


def test_mutating_keys_ignored_while_dragging():
    session, controller = _controller()
    a = session.addStar((0, 0))
    controller.setMode(EditorMode.MOVE)
    controller.pointerDown(PointerEvent(0, 0))
    controller.pointerMove(PointerEvent(100, 100))

    for event in (KeyEvent(" "), KeyEvent("2"), KeyEvent("z", ctrl=True), KeyEvent("y", ctrl=True)):
        assert not controller.keyPress(event)
    assert controller.mode is EditorMode.MOVE
    assert len(session.model.stars) == 1

    controller.pointerUp(PointerEvent(100, 100))
    labels = [label for _, label in session.history.undoStack]
    assert labels == ["add star", "move star"]
    session.undo()
    assert session.model.getNode(a.id).position == (0.0, 0.0)


def test_double_click_opens_editor_in_any_mode():
    session, controller = _controller()
    a = session.addStar((40, 40))
    edited = []
    controller.onEditStar = edited.append
    for mode in EditorMode:
        if mode is EditorMode.DELETE:
            continue
        controller.setMode(mode)
        assert controller.doubleClick(PointerEvent(42, 38)).id == a.id
    assert controller.doubleClick(PointerEvent(300, 300)) is None
    assert len(edited) == 4
    assert len(session.model.stars) == 1


def test_selection_changes_notify_listeners():
    session, controller = _controller()
    session.addStar((10, 10))
    session.addStar((40, 40))
    controller.setMode(EditorMode.SELECT)
    counts = []
    session.addListener(lambda: counts.append(len(session.selection)))

    controller.pointerDown(PointerEvent(-5, -5))
    controller.pointerMove(PointerEvent(60, 60))
    controller.pointerUp(PointerEvent(60, 60))
    assert counts[-1] == 2

    _click(controller, 10, 10)
    assert counts[-1] == 1

    controller.setMode(EditorMode.ADD)
    assert counts[-1] == 0
