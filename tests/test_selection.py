from constellation.core import SceneModel, Selection, TagFilter


def _scene():
    model = SceneModel()
    a = model.addNode((0, 0))
    b = model.addNode((50, 50))
    c = model.addNode((200, 200))
    return model, a, b, c


def test_select_single_and_toggle():
    model, a, b, c = _scene()
    selection = Selection(model)
    selection.selectSingle(a.id)
    assert selection.ids == [a.id]
    selection.toggle(b.id)
    assert a.id in selection and b.id in selection
    selection.toggle(a.id)
    assert selection.ids == [b.id]
    selection.selectSingle(99)
    assert len(selection) == 0


def test_select_in_rect_replaces_selection():
    model, a, b, c = _scene()
    selection = Selection(model)
    selection.selectSingle(c.id)
    ids = selection.selectInRect((60, 60), (-10, -10))
    assert ids == [a.id, b.id]
    assert not selection.contains(c.id)


def test_selection_pruned_after_delete():
    """選取永遠是現有星星的子集"""
    model, a, b, c = _scene()
    selection = Selection(model)
    selection.replace([a.id, b.id, 42])
    assert selection.ids == [a.id, b.id]
    model.deleteNode(a.id)
    selection.prune()
    assert selection.ids == [b.id]
    assert [star.id for star in selection.stars()] == [b.id]


def test_tag_filter_toggle():
    model, a, b, c = _scene()
    model.updateNode(a.id, tags=["x"])
    model.updateNode(b.id, tags=["y"])
    tagFilter = TagFilter()

    assert not tagFilter.active
    assert tagFilter.toggleTag("x", model.allTags()) is False
    assert tagFilter.visibleTags == {"y"}

    a, b, c = (model.getNode(i) for i in (a.id, b.id, c.id))
    assert not tagFilter.isStarVisible(a)
    assert tagFilter.isStarVisible(b)
    # 沒有標籤的星星永遠可見
    assert tagFilter.isStarVisible(c)

    assert tagFilter.toggleTag("x", model.allTags()) is True
    assert tagFilter.isStarVisible(a)
    tagFilter.showAll()
    assert tagFilter.visibleTags is None


def test_opacity_weights():
    model, a, b, c = _scene()
    model.updateNode(a.id, tags=["x"])
    model.updateNode(b.id, tags=["x"])
    model.updateNode(c.id, tags=["y"])
    a, b, c = (model.getNode(i) for i in (a.id, b.id, c.id))

    tagFilter = TagFilter()
    assert tagFilter.starOpacity(a) == 1.0
    assert tagFilter.connectionOpacity(a, c) == 1.0

    tagFilter.setVisibleTags({"y"})
    assert tagFilter.starOpacity(a) == 0.15
    assert tagFilter.starOpacity(c) == 1.0
    assert tagFilter.connectionOpacity(a, c) == 0.3
    assert tagFilter.connectionOpacity(a, b) == 0.1
