import pytest

from brush import BRUSH_SIZES, apply_brush_pattern, generate_brush_pattern


def stamp(thickness, x, y):
    cells = []
    apply_brush_pattern(generate_brush_pattern(thickness), x, y, lambda px, py: cells.append((px, py)))
    return sorted(cells)


class TestBrushPatterns:
    def test_sizes(self):
        assert BRUSH_SIZES == (1, 2, 3, 4)

    def test_single_pixel(self):
        assert stamp(1, 5, 5) == [(5, 5)]

    def test_two_by_two_anchors_top_left(self):
        assert stamp(2, 5, 5) == [(5, 5), (5, 6), (6, 5), (6, 6)]

    def test_three_by_three_is_centred(self):
        cells = stamp(3, 5, 5)
        assert len(cells) == 9
        assert cells[0] == (4, 4)
        assert cells[-1] == (6, 6)

    def test_four_has_rounded_corners(self):
        cells = stamp(4, 5, 5)
        assert len(cells) == 12
        for corner in [(4, 4), (7, 4), (4, 7), (7, 7)]:
            assert corner not in cells
        assert (5, 5) in cells

    @pytest.mark.parametrize("thickness", [0, 5, -1])
    def test_unknown_thickness_falls_back(self, thickness):
        assert generate_brush_pattern(thickness) == generate_brush_pattern(1)
