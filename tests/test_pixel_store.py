import pytest

from pixel_store import TRANSPARENT, Pixel, PixelChange, PixelStore, diff_snapshots, pack_key, unpack_key


@pytest.fixture
def store():
    return PixelStore()


class TestKeys:
    @pytest.mark.parametrize("x, y", [(0, 0), (5, 7), (-1, 3), (2, -9), (-2147483648, 2147483647)])
    def test_pack_unpack(self, x, y):
        assert unpack_key(pack_key(x, y)) == (x, y)

    def test_distinct_cells_have_distinct_keys(self):
        assert pack_key(1, 0) != pack_key(0, 1)


class TestPixelStore:
    def test_missing_cell_reads_transparent(self, store):
        assert store.get(3, 4) == TRANSPARENT
        assert store.get_pixel(3, 4) is None

    def test_set_and_get(self, store):
        store.set(2, 2, "#FF0000", 1)
        assert store.get(2, 2) == "#FF0000"
        assert store.get_pixel(2, 2) == Pixel("#FF0000", 1)
        assert (2, 2) in store
        assert len(store) == 1

    def test_writing_transparent_deletes(self, store):
        store.set(1, 1, "#000000", 1)
        store.set(1, 1, TRANSPARENT, 1)
        assert (1, 1) not in store
        assert len(store) == 0

    def test_never_holds_transparent(self, store):
        store.set(0, 0, TRANSPARENT, 1)
        assert len(store) == 0
        assert all(pixel.color != TRANSPARENT for _, pixel in store.items())

    def test_items_tolerates_writes(self, store):
        for x in range(4):
            store.set(x, 0, "#000000", 1)
        for (x, y), _ in store.items():
            store.delete(x, y)
        assert len(store) == 0

    def test_snapshot_is_isolated(self, store):
        store.set(0, 0, "#000000", 1)
        snap = store.snapshot()
        store.set(0, 0, "#FFFFFF", 1)
        store.set(1, 1, "#FFFFFF", 1)
        assert snap == {pack_key(0, 0): Pixel("#000000", 1)}
        assert store.as_dict() == {(0, 0): Pixel("#FFFFFF", 1), (1, 1): Pixel("#FFFFFF", 1)}


class TestDiff:
    def test_identical_snapshots_have_no_diff(self, store):
        store.set(0, 0, "#000000", 1)
        assert diff_snapshots(store.snapshot(), store.snapshot()) == []

    def test_minimal_diff(self, store):
        store.set(0, 0, "#000000", 1)
        store.set(1, 0, "#000000", 1)
        before = store.snapshot()
        store.set(0, 0, "#000000", 1)  # rewrite, same colour
        store.set(1, 0, TRANSPARENT, 1)
        store.set(0, 2, "#FF0000", 1)
        changes = diff_snapshots(before, store.snapshot())
        assert changes == [
            PixelChange(1, 0, "#000000", TRANSPARENT, 1, None),
            PixelChange(0, 2, TRANSPARENT, "#FF0000", None, 1),
        ]
        assert all(change.previous_color != change.new_color for change in changes)

    def test_layer_only_change_is_not_a_diff(self, store):
        store.set(0, 0, "#000000", 1)
        before = store.snapshot()
        store.set(0, 0, "#000000", 2)
        assert diff_snapshots(before, store.snapshot()) == []
