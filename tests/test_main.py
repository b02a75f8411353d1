from asciimatics.screen import Screen

from editor import EditorConfig, SpriteEditor
from history import Tool
from main import _rgb_to_colour_index, compose_frame, handle_key


def make_editor():
    return SpriteEditor(EditorConfig(canvas_size=6))


class TestColourMapping:
    def test_basic_colours(self):
        assert _rgb_to_colour_index(250, 10, 10) == Screen.COLOUR_RED
        assert _rgb_to_colour_index(240, 240, 240) == Screen.COLOUR_WHITE
        assert _rgb_to_colour_index(20, 20, 20) == Screen.COLOUR_BLACK

    def test_transparent_is_black(self):
        assert _rgb_to_colour_index(255, 255, 255, 0) == Screen.COLOUR_BLACK


class TestKeys:
    def test_tool_hotkey(self):
        editor = make_editor()
        assert handle_key(editor, ord("R")) == "Tool -> rectangle-filled"
        assert editor.tool is Tool.RECTANGLE_FILLED

    def test_brush_size(self):
        editor = make_editor()
        handle_key(editor, ord("3"))
        assert editor.brush_size == 3

    def test_undo_redo(self):
        editor = make_editor()
        assert handle_key(editor, Screen.ctrl("z")) == "Nothing to undo"
        editor.pointer_down(1, 1)
        editor.pointer_up()
        assert handle_key(editor, Screen.ctrl("z")) == "Undone"
        assert editor.get_pixels() == {}
        assert handle_key(editor, Screen.ctrl("y")) == "Redone"
        assert len(editor.get_pixels()) == 1

    def test_new_layer(self):
        editor = make_editor()
        assert handle_key(editor, ord("n")) == "Added Layer 2"
        assert editor.active_layer.id == 2

    def test_unbound_key(self):
        assert handle_key(make_editor(), ord("z")) is None


class TestComposeFrame:
    def test_pixels_and_selection_outline(self):
        editor = make_editor()
        editor.set_primary_color("#FF0000")
        editor.pointer_down(0, 5)
        editor.pointer_up()
        editor.pointer_down(1, 1, "select")
        editor.pointer_move(3, 3)
        frame = compose_frame(editor)
        assert frame.shape == (6, 6, 4)
        assert tuple(frame[5, 0]) == (255, 0, 0, 255)
        assert tuple(frame[1, 1]) == (255, 255, 0, 255)
        assert tuple(frame[2, 2]) == (0, 0, 0, 0)

    def test_shape_preview(self):
        editor = make_editor()
        editor.set_primary_color("#00FF00")
        editor.pointer_down(0, 0, "line")
        editor.pointer_move(3, 0)
        frame = compose_frame(editor)
        assert tuple(frame[0, 3]) == (0, 255, 0, 255)
        assert editor.get_pixels() == {}
