import logging
import os
import sys
import time
from functools import lru_cache
from typing import Optional

import numpy as np
from asciimatics.effects import Effect
from asciimatics.event import KeyboardEvent, MouseEvent
from asciimatics.exceptions import ResizeScreenError
from asciimatics.scene import Scene
from asciimatics.screen import Screen

from editor import EditorConfig, SpriteEditor
from exporter import color_to_rgba, save_png, to_rgba_array
from history import Tool
from ui import UIFrame

logger = logging.getLogger(__name__)

SELECTION_RGBA = (255, 255, 0, 255)
PANEL_WIDTH = 24

TOOL_KEYS = {
    ord("p"): Tool.PENCIL,
    ord("e"): Tool.ERASER,
    ord("f"): Tool.FILL,
    ord("i"): Tool.EYEDROPPER,
    ord("l"): Tool.LINE,
    ord("r"): Tool.RECTANGLE_BORDER,
    ord("R"): Tool.RECTANGLE_FILLED,
    ord("o"): Tool.CIRCLE_BORDER,
    ord("O"): Tool.CIRCLE_FILLED,
    ord("s"): Tool.SELECT,
    ord("a"): Tool.LASSO,
    ord("w"): Tool.MAGIC_WAND,
    ord("m"): Tool.MOVE_SELECTION,
}


def _setup_logging() -> None:
    """Logs to the file named by SPRITE_PAINTER_LOG; the terminal belongs to the canvas."""
    log_path = os.environ.get("SPRITE_PAINTER_LOG")
    root_logger = logging.getLogger()
    if not log_path:
        root_logger.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(handler)
    root_logger.info("Sprite painter logging enabled at %s", log_path)


_BASIC_COLOURS = [
    ((0, 0, 0), Screen.COLOUR_BLACK),
    ((255, 0, 0), Screen.COLOUR_RED),
    ((0, 255, 0), Screen.COLOUR_GREEN),
    ((255, 255, 0), Screen.COLOUR_YELLOW),
    ((0, 0, 255), Screen.COLOUR_BLUE),
    ((255, 0, 255), Screen.COLOUR_MAGENTA),
    ((0, 255, 255), Screen.COLOUR_CYAN),
    ((255, 255, 255), Screen.COLOUR_WHITE),
]


@lru_cache(maxsize=4096)
def _rgb_to_colour_index(r: int, g: int, b: int, a: int = 255) -> int:
    """Nearest of the 8 basic terminal colours; transparent shows as black."""
    if a == 0:
        return Screen.COLOUR_BLACK
    _, index = min(
        _BASIC_COLOURS,
        key=lambda entry: (entry[0][0] - r) ** 2 + (entry[0][1] - g) ** 2 + (entry[0][2] - b) ** 2,
    )
    return index


def compose_frame(editor: SpriteEditor) -> np.ndarray:
    """Canvas raster with the shape preview and selection outline drawn on top."""
    visible = [layer.id for layer in editor.layers if layer.visible]
    buffer = to_rgba_array(editor.get_pixels(), editor.size, visible)

    preview = color_to_rgba(editor.primary_color)
    for x, y in editor.preview_cells():
        buffer[y, x] = preview

    selection = editor.get_selection()
    if selection is not None:
        bounds = editor.move_preview_bounds() or selection.live_bounds()
        for x in range(bounds.start_x, bounds.end_x + 1):
            for y in (bounds.start_y, bounds.end_y):
                if 0 <= x < editor.size and 0 <= y < editor.size:
                    buffer[y, x] = SELECTION_RGBA
        for y in range(bounds.start_y, bounds.end_y + 1):
            for x in (bounds.start_x, bounds.end_x):
                if 0 <= x < editor.size and 0 <= y < editor.size:
                    buffer[y, x] = SELECTION_RGBA
        for x, y in editor.lasso_path:
            if 0 <= x < editor.size and 0 <= y < editor.size:
                buffer[y, x] = SELECTION_RGBA
    return buffer


def half_block_render(screen, buffer: np.ndarray) -> None:
    """Renders an RGBA buffer to the screen using half-blocks."""
    height, width = buffer.shape[0], buffer.shape[1]
    if height % 2:
        buffer = np.concatenate([buffer, np.zeros((1, width, 4), dtype=buffer.dtype)])
        height += 1
    # Each character cell shows two pixel rows: upper (y) and lower (y+1).
    for y in range(0, min(height, screen.height * 2), 2):
        row = y // 2
        for x in range(min(width, screen.width - PANEL_WIDTH)):
            upper_pixel = buffer[y, x]
            lower_pixel = buffer[y + 1, x]

            fg = _rgb_to_colour_index(*(int(c) for c in upper_pixel))
            bg = _rgb_to_colour_index(*(int(c) for c in lower_pixel))

            # If both halves share the same colour, draw a full-block for crisper output.
            if fg == bg:
                screen.print_at('█', x, row, colour=fg, bg=bg)
            else:
                screen.print_at('▀', x, row, colour=fg, bg=bg)


class SpriteEffect(Effect):
    """Draws the editor canvas, preview and selection overlay each frame."""

    def __init__(self, screen: Screen, editor: SpriteEditor):
        super().__init__(screen)
        self._editor = editor

    def reset(self):
        pass

    def stop_frame(self):
        # Run indefinitely; Scene duration is -1.
        return 0

    def _update(self, frame_no):
        half_block_render(self._screen, compose_frame(self._editor))


def export_png(editor: SpriteEditor) -> str:
    filename = f"sprite-{editor.size}x{editor.size}.png"
    visible = [layer.id for layer in editor.layers if layer.visible]
    try:
        save_png(editor.get_pixels(), editor.size, filename, scale=8, visible_layers=visible)
    except OSError as exc:
        logger.exception("PNG export to %s failed", filename)
        return f"Export failed: {exc.strerror or exc}"
    return f"Saved {filename}"


def handle_key(editor: SpriteEditor, key_code: int) -> Optional[str]:
    """Applies a keyboard shortcut; returns a status message when there is one."""
    if key_code in TOOL_KEYS:
        editor.set_tool(TOOL_KEYS[key_code])
        return f"Tool -> {editor.tool.value}"
    if ord("1") <= key_code <= ord("4"):
        editor.set_brush_size(key_code - ord("0"))
        return f"Brush -> {editor.brush_size}"
    if key_code == Screen.ctrl("z"):
        return "Undone" if editor.undo() else "Nothing to undo"
    if key_code == Screen.ctrl("y"):
        return "Redone" if editor.redo() else "Nothing to redo"
    if key_code == ord("c"):
        editor.copy()
    elif key_code == ord("x"):
        editor.cut()
    elif key_code == ord("v"):
        editor.paste()
    elif key_code == Screen.KEY_ESCAPE:
        editor.escape_selection()
    elif key_code == ord("n"):
        layer = editor.add_layer()
        return f"Added {layer.name}"
    elif key_code == ord("h"):
        layer = editor.active_layer
        if layer is not None:
            editor.toggle_layer(layer.id)
    elif key_code == Screen.ctrl("s"):
        return export_png(editor)
    return None


def main(screen):
    size = int(os.environ.get("SPRITE_PAINTER_SIZE", "32"))
    editor = SpriteEditor(EditorConfig(canvas_size=size))
    canvas_width = screen.width - PANEL_WIDTH
    ui = UIFrame(
        screen,
        canvas_width,
        editor.config.palette,
        editor.set_primary_color,
        editor.set_brush_size,
        editor.set_tool,
    )
    editor.add_listener(lambda event: ui.show_status(editor))
    ui.show_status(editor)

    class AppState:
        def __init__(self):
            self.drawing = False

    app_state = AppState()

    screen.set_scenes([Scene([SpriteEffect(screen, editor), ui], duration=-1)])

    while True:
        event = screen.get_event()

        # Let the UI consume the event first (e.g., button clicks).
        if not app_state.drawing:
            event = ui.process_event(event)

        if isinstance(event, KeyboardEvent):
            if event.key_code in (ord('q'), ord('Q')):
                return
            message = handle_key(editor, event.key_code)
            ui.show_status(editor, message or "")
        elif isinstance(event, MouseEvent):
            ui.has_focus = event.x >= canvas_width

            # One character column per pixel, two pixel rows per character row.
            pixel_x = event.x
            pixel_y = event.y * 2

            if event.buttons == MouseEvent.LEFT_CLICK:
                if not app_state.drawing:
                    # Gestures only start on the canvas, but may drag past it.
                    if not ui.has_focus:
                        app_state.drawing = True
                        editor.pointer_down(pixel_x, pixel_y)
                else:
                    editor.pointer_move(pixel_x, pixel_y)
            elif app_state.drawing:
                app_state.drawing = False
                editor.pointer_up()

        # Canvas effect and UI frame redraw together.
        screen.draw_next_frame()

        # ~30 FPS.
        time.sleep(1 / 30)


def run():
    _setup_logging()
    while True:
        try:
            Screen.wrapper(main)
            sys.exit(0)
        except ResizeScreenError:
            logger.debug("Terminal resized, restarting screen")


if __name__ == "__main__":
    run()
