import pytest

from history import HistoryManager, Tool, apply_changes
from pixel_store import TRANSPARENT, Pixel, PixelChange, PixelStore


def make_op(manager, x=0, tool=Tool.PENCIL):
    return manager.create_operation(tool, 1, [PixelChange(x, 0, TRANSPARENT, "#000000")])


class TestTool:
    def test_lookup_by_name(self):
        assert Tool("magic-wand") is Tool.MAGIC_WAND

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            Tool("spray-can")


class TestHistoryManager:
    def test_create_operation(self):
        manager = HistoryManager()
        first, second = make_op(manager), make_op(manager)
        assert first.id != second.id
        assert first.tool is Tool.PENCIL
        assert first.timestamp > 0

    def test_undo_redo_moves_between_stacks(self):
        manager = HistoryManager()
        op = make_op(manager)
        manager.push(op)
        assert manager.can_undo() and not manager.can_redo()
        assert manager.undo() is op
        assert manager.can_redo() and not manager.can_undo()
        assert manager.redo() is op
        assert manager.undo_count == 1 and manager.redo_count == 0

    def test_empty_stacks_return_none(self):
        manager = HistoryManager()
        assert manager.undo() is None
        assert manager.redo() is None

    def test_push_clears_redo(self):
        manager = HistoryManager()
        manager.push(make_op(manager, 0))
        manager.undo()
        manager.push(make_op(manager, 1))
        assert not manager.can_redo()

    def test_size_is_bounded_dropping_oldest(self):
        manager = HistoryManager(max_size=3)
        ops = [make_op(manager, x) for x in range(5)]
        for op in ops:
            manager.push(op)
        assert manager.undo_stack == ops[2:]

    def test_get_state_is_a_copy(self):
        manager = HistoryManager(max_size=7)
        manager.push(make_op(manager))
        state = manager.get_state()
        manager.clear()
        assert len(state.undo_stack) == 1
        assert state.max_history_size == 7
        assert manager.undo_count == 0


class TestApplyChanges:
    def test_forward_and_reverse(self):
        manager = HistoryManager()
        store = PixelStore()
        store.set(1, 0, "#FF0000", 1)
        op = manager.create_operation(
            Tool.PENCIL,
            1,
            [PixelChange(0, 0, TRANSPARENT, "#000000"), PixelChange(1, 0, "#FF0000", "#000000")],
        )
        apply_changes(store, op, reverse=False)
        assert store.get(0, 0) == "#000000"
        assert store.get(1, 0) == "#000000"
        apply_changes(store, op, reverse=True)
        assert (0, 0) not in store
        assert store.get(1, 0) == "#FF0000"

    def test_restores_owning_layers(self):
        manager = HistoryManager()
        store = PixelStore()
        store.set(2, 2, "#0000FF", 2)
        store.set(3, 2, "#00FF00", 3)
        op = manager.create_operation(
            Tool.PENCIL,
            2,
            [
                PixelChange(2, 2, "#FF0000", "#0000FF", 1, 2),
                PixelChange(3, 2, TRANSPARENT, "#00FF00", None, 3),
            ],
        )
        apply_changes(store, op, reverse=True)
        assert store.get_pixel(2, 2) == Pixel("#FF0000", 1)
        assert (3, 2) not in store
        apply_changes(store, op, reverse=False)
        assert store.get_pixel(2, 2) == Pixel("#0000FF", 2)
        assert store.get_pixel(3, 2) == Pixel("#00FF00", 3)
