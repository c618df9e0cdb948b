import os
os.environ["QT_QPA_PLATFORM"] = "offscreen"

from PyQt5.QtCore import QEvent, QPoint, QPointF, Qt  # noqa: E402
from PyQt5.QtGui import QMouseEvent  # noqa: E402
from PyQt5.QtTest import QTest  # noqa: E402
from PyQt5.QtWidgets import QApplication  # noqa: E402

from constellation.core import EditorMode, EditorSession  # noqa: E402
from constellation.ui.canvas import ConstellationCanvas, ConstellationEditor  # noqa: E402
from constellation.ui.canvas.dialogs import TagFilterDialog  # noqa: E402
from constellation.ui.canvas.particles import ParticleSystem  # noqa: E402
from constellation.ui.canvas.view import keyName  # noqa: E402


def test_undo_redo_actions_follow_history():
    """撤銷/重做選單狀態隨歷史更新"""
    app = QApplication.instance() or QApplication([])
    session = EditorSession()
    editor = ConstellationEditor(session)
    assert not editor.undoAction.isEnabled()

    session.addStar((10, 10))
    assert editor.undoAction.isEnabled()
    assert not editor.redoAction.isEnabled()

    editor.undoAction.trigger()
    assert session.model.stars == []
    assert editor.redoAction.isEnabled()
    editor.close()
    app.quit()


def test_canvas_mouse_connects_stars():
    app = QApplication.instance() or QApplication([])
    session = EditorSession()
    editor = ConstellationEditor(session)
    editor.show()
    canvas = editor.canvas
    a = session.addStar((60, 60))
    b = session.addStar((200, 120))

    editor.controller.setMode(EditorMode.CONNECT)
    assert editor.modeActions[EditorMode.CONNECT].isChecked()
    QTest.mousePress(canvas, Qt.LeftButton, Qt.NoModifier, QPoint(60, 60))
    QTest.mouseRelease(canvas, Qt.LeftButton, Qt.NoModifier, QPoint(200, 120))
    assert session.model.hasEdge(a.id, b.id)
    editor.close()
    app.quit()


def test_canvas_keys_switch_modes():
    app = QApplication.instance() or QApplication([])
    session = EditorSession()
    editor = ConstellationEditor(session)
    QTest.keyClick(editor.canvas, Qt.Key_3)
    assert editor.controller.mode is EditorMode.MOVE
    QTest.keyClick(editor.canvas, Qt.Key_Space)
    assert len(session.model.stars) == 1
    editor.close()
    app.quit()


def test_canvas_renders_scene():
    app = QApplication.instance() or QApplication([])
    session = EditorSession()
    a = session.addStar((20, 20), "#ff0000")
    b = session.addStar((120, 80))
    session.updateStar(b.id, shape="star", tags="x")
    session.addConnection(a.id, b.id)
    session.search("star")
    canvas = ConstellationCanvas(session)
    image = canvas.renderToImage(200, 150)
    assert not image.isNull()
    assert image.width() == 200
    canvas.stopAnimation()
    app.quit()


def test_key_name_and_particles():
    assert keyName(Qt.Key_Escape) == "Escape"
    assert keyName(Qt.Key_Space) == " "
    assert keyName(Qt.Key_Z) == "z"
    assert keyName(Qt.Key_2) == "2"

    particles = ParticleSystem()
    particles.burst(0, 0, "#ffffff", count=10)
    assert len(particles) == 10
    for _ in range(60):
        particles.step()
    assert len(particles) == 0


def test_double_click_edits_existing_star():
    """雙擊既有星星會開啟編輯"""
    app = QApplication.instance() or QApplication([])
    session = EditorSession()
    canvas = ConstellationCanvas(session)
    star = session.addStar((60, 60))
    edited = []
    canvas.controller.onEditStar = edited.append
    canvas.controller.setMode(EditorMode.MOVE)

    event = QMouseEvent(QEvent.MouseButtonDblClick, QPointF(62, 58),
                        Qt.LeftButton, Qt.LeftButton, Qt.NoModifier)
    QApplication.sendEvent(canvas, event)
    assert [s.id for s in edited] == [star.id]
    canvas.stopAnimation()
    app.quit()


def test_minimap_click_centers_view():
    app = QApplication.instance() or QApplication([])
    session = EditorSession()
    session.addStar((300, 200))
    canvas = ConstellationCanvas(session)
    minimap = canvas.minimap
    width, height = session.canvasSize

    rect = minimap.viewportRect()
    assert (rect.x(), rect.y()) == (0.0, 0.0)
    assert (rect.width(), rect.height()) == (width * 0.1, height * 0.1)

    QTest.mouseClick(minimap, Qt.LeftButton, Qt.NoModifier, QPoint(30, 20))
    assert session.toScreen((300, 200)) == (width / 2, height / 2)
    assert not minimap.grab().isNull()
    canvas.stopAnimation()
    app.quit()


def test_tag_filter_dialog_applies_immediately():
    app = QApplication.instance() or QApplication([])
    session = EditorSession()
    star = session.addStar((10, 10))
    session.updateStar(star.id, tags="north, south")
    dialog = TagFilterDialog(session)
    items = {dialog.tagList.item(i).text(): dialog.tagList.item(i)
             for i in range(dialog.tagList.count())}
    assert set(items) == {"north", "south"}
    assert all(item.checkState() == Qt.Checked for item in items.values())

    items["south"].setCheckState(Qt.Unchecked)
    assert not session.tagFilter.isTagVisible("south")
    assert session.tagFilter.isTagVisible("north")
    dialog.close()
    app.quit()
