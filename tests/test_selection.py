from pixel_store import Pixel, PixelStore
from selection import (
    Bounds,
    Selection,
    capture_content,
    clamp,
    extend_path,
    lasso_mask,
    paste_origin,
)


class TestBounds:
    def test_dimensions(self):
        bounds = Bounds(2, 3, 4, 3)
        assert bounds.width == 3
        assert bounds.height == 1

    def test_from_points_normalises(self):
        assert Bounds.from_points((5, 1), (2, 4)) == Bounds(2, 1, 5, 4)

    def test_clamped(self):
        assert Bounds(-2, 1, 12, 5).clamped(10) == Bounds(0, 1, 9, 5)

    def test_enclosing(self):
        assert Bounds.enclosing([(3, 1), (1, 4)]) == Bounds(1, 1, 3, 4)
        assert Bounds.enclosing([]) is None

    def test_clamp(self):
        assert clamp(-1, 0, 9) == 0
        assert clamp(12, 0, 9) == 9
        assert clamp(4, 0, 9) == 4


class TestSelection:
    def test_live_bounds_follow_raw_pointer(self):
        selection = Selection((2, 2), (9, 9), raw_current_pos=(14, 12))
        assert selection.live_bounds() == Bounds(2, 2, 14, 12)
        assert selection.capture_bounds(10) == Bounds(2, 2, 9, 9)

    def test_contains_uses_mask(self):
        selection = Selection((0, 0), (2, 2), mask=frozenset({(1, 1)}))
        assert selection.contains(1, 1)
        assert not selection.contains(0, 0)

    def test_around(self):
        content = {(0, 0): Pixel("#000000", 1)}
        selection = Selection.around(Bounds(1, 2, 3, 4), content)
        assert selection.start_pos == (1, 2)
        assert selection.end_pos == (3, 4)
        assert selection.content == content
        assert selection.content is not content


class TestCapture:
    def test_relative_keys_and_layer_filter(self):
        store = PixelStore()
        store.set(2, 2, "#FF0000", 1)
        store.set(3, 2, "#00FF00", 2)
        store.set(7, 7, "#FF0000", 1)
        content = capture_content(store, Bounds(2, 2, 4, 4), 1)
        assert content == {(0, 0): Pixel("#FF0000", 1)}

    def test_mask(self):
        store = PixelStore()
        store.set(0, 0, "#FF0000", 1)
        store.set(1, 0, "#FF0000", 1)
        content = capture_content(store, Bounds(0, 0, 1, 0), 1, frozenset({(1, 0)}))
        assert list(content) == [(1, 0)]

    def test_paste_origin_centres(self):
        assert paste_origin(Bounds(2, 2, 2, 2), 10) == (5, 5)
        assert paste_origin(Bounds(0, 0, 3, 1), 10) == (3, 4)


class TestLasso:
    def test_path_has_no_gaps(self):
        path = [(0, 0)]
        extend_path(path, (3, 0))
        extend_path(path, (3, 0))
        assert path == [(0, 0), (1, 0), (2, 0), (3, 0)]

    def test_mask_includes_interior(self):
        path = []
        for corner in [(0, 0), (4, 0), (4, 4), (0, 4), (0, 0)]:
            extend_path(path, corner)
        mask = lasso_mask(path, 10)
        assert (2, 2) in mask
        assert (0, 0) in mask and (4, 4) in mask
        assert (6, 6) not in mask

    def test_short_path_is_just_its_cells(self):
        assert lasso_mask([(1, 1), (2, 1)], 10) == frozenset({(1, 1), (2, 1)})
