"""
Gesture-driven sprite editor.

``SpriteEditor`` owns the pixel store, selection, clipboard and history and is
driven by grid coordinates: ``pointer_down`` starts a gesture, ``pointer_move``
previews it (freehand tools write live), and ``pointer_up`` diffs the store
against the snapshot taken at pointer-down and pushes at most one history
entry for the whole gesture.

Commands that cannot apply (no active layer, empty clipboard, nothing to undo)
do nothing and raise nothing, so callers may issue them speculatively.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from brush import BRUSH_SIZES, generate_brush_pattern
from geometry import (
    circle_cells,
    flood_fill,
    in_canvas,
    line_cells,
    magic_wand_region,
    rectangle_cells,
    stroke_cells,
)
from history import (
    DEFAULT_MAX_HISTORY,
    FREEHAND_TOOLS,
    SELECTION_TOOLS,
    SHAPE_TOOLS,
    CopyMetadata,
    CutMetadata,
    HistoryManager,
    HistoryState,
    PasteMetadata,
    SelectMetadata,
    StrokeOperation,
    Tool,
    apply_changes,
)
from pixel_store import TRANSPARENT, Pixel, PixelChange, PixelStore, Snapshot, diff_snapshots
from selection import (
    LASSO,
    MAGIC_WAND,
    Bounds,
    Clipboard,
    Point,
    Selection,
    capture_content,
    clamp,
    extend_path,
    lasso_mask,
    paste_origin,
)

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


@dataclass
class EditorConfig:
    canvas_size: int = 32
    max_history: int = DEFAULT_MAX_HISTORY
    primary_color: str = "#000000"
    brush_size: int = 1
    palette: List[Tuple[str, str]] = field(
        default_factory=lambda: [
            ("Black", "#000000"),
            ("White", "#FFFFFF"),
            ("Red", "#FF0000"),
            ("Green", "#00FF00"),
            ("Blue", "#0000FF"),
            ("Yellow", "#FFFF00"),
            ("Cyan", "#00FFFF"),
            ("Magenta", "#FF00FF"),
        ]
    )


@dataclass
class Layer:
    id: int
    name: str
    visible: bool = True
    active: bool = False


class GestureState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class DrawingAction:
    """What one pointer-down started, kept until the matching pointer-up."""

    tool: Tool
    layer_id: int
    start_pos: Point
    before: Snapshot
    last_pos: Point


@dataclass
class ShapePreview:
    tool: Tool
    start_pos: Point
    current_pos: Point


class SpriteEditor:
    def __init__(self, config: Optional[EditorConfig] = None):
        self.config = config or EditorConfig()
        if self.config.canvas_size <= 0:
            raise ValueError(f"canvas size must be positive, got {self.config.canvas_size}")
        self.size = self.config.canvas_size
        self.store = PixelStore()
        self.history = HistoryManager(self.config.max_history)
        self.layers: List[Layer] = [Layer(id=1, name="Layer 1", visible=True, active=True)]
        self.tool = Tool.PENCIL
        self.primary_color = self.config.primary_color
        self.brush_size = self.config.brush_size
        self.selection: Optional[Selection] = None
        self.clipboard: Optional[Clipboard] = None
        self.state = GestureState.IDLE
        self.shape_preview: Optional[ShapePreview] = None
        self.move_offset: Point = (0, 0)
        self._action: Optional[DrawingAction] = None
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Observers

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, *events: str) -> None:
        for event in events:
            for listener in list(self._listeners):
                listener(event)

    # ------------------------------------------------------------------
    # Settings and layers

    @property
    def active_layer(self) -> Optional[Layer]:
        for layer in self.layers:
            if layer.visible and layer.active:
                return layer
        return None

    def add_layer(self, name: Optional[str] = None) -> Layer:
        layer_id = max((layer.id for layer in self.layers), default=0) + 1
        for layer in self.layers:
            layer.active = False
        layer = Layer(id=layer_id, name=name or f"Layer {len(self.layers) + 1}", active=True)
        self.layers.append(layer)
        self._notify("layers")
        return layer

    def select_layer(self, layer_id: int) -> None:
        if not any(layer.id == layer_id for layer in self.layers):
            return
        for layer in self.layers:
            layer.active = layer.id == layer_id
        self._notify("layers")

    def toggle_layer(self, layer_id: int) -> None:
        for layer in self.layers:
            if layer.id == layer_id:
                layer.visible = not layer.visible
                self._notify("layers")
                return

    def set_tool(self, tool: Union[Tool, str]) -> None:
        self.tool = Tool(tool)

    def set_primary_color(self, color: str) -> None:
        self.primary_color = color
        self._notify("color")

    def set_brush_size(self, size: int) -> None:
        self.brush_size = size if size in BRUSH_SIZES else 1

    def set_canvas_size(self, size: int) -> None:
        """
        Starts a blank canvas; old coordinates no longer mean anything.

        The clipboard is kept: its pixels are relative to its own origin, and
        paste drops whatever no longer fits.
        """
        if size <= 0:
            raise ValueError(f"canvas size must be positive, got {size}")
        self.size = size
        self.config.canvas_size = size
        self.store.clear()
        self.selection = None
        self.shape_preview = None
        self._action = None
        self.state = GestureState.IDLE
        self.history.clear()
        logger.debug("Canvas resized to %s", size)
        self._notify("pixels", "selection", "history")

    # ------------------------------------------------------------------
    # Queries

    def get_pixels(self) -> Dict[Point, Pixel]:
        return self.store.as_dict()

    def get_color_at(self, x: int, y: int) -> str:
        return self.store.get(x, y)

    def get_selection(self) -> Optional[Selection]:
        return self.selection

    def get_clipboard(self) -> Optional[Clipboard]:
        return self.clipboard

    def get_history_state(self) -> HistoryState:
        return self.history.get_state()

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    @property
    def lasso_path(self) -> List[Point]:
        if self.selection is None or self.selection.kind != LASSO:
            return []
        return list(self.selection.path)

    def preview_cells(self) -> List[Point]:
        """Cells the pending shape would cover if the pointer were released now."""
        if self.shape_preview is None:
            return []
        return self._shape_cells(self.shape_preview)

    def move_preview_bounds(self) -> Optional[Bounds]:
        if self.selection is None or self._action is None or self._action.tool is not Tool.MOVE_SELECTION:
            return None
        return self.selection.live_bounds().translated(*self.move_offset)

    # ------------------------------------------------------------------
    # Pointer gestures

    def pointer_down(self, x: int, y: int, tool: Union[Tool, str, None] = None) -> None:
        if tool is not None:
            self.tool = Tool(tool)
        tool = self.tool
        self._finish_gesture()

        layer = self.active_layer
        if layer is None or tool in (Tool.COPY, Tool.CUT, Tool.PASTE, Tool.TEMPLATE):
            return
        if tool is not Tool.SELECT and not in_canvas(x, y, self.size):
            return

        if self.selection is not None and tool is not Tool.MOVE_SELECTION:
            if tool in SELECTION_TOOLS or not self.selection.live_bounds().contains(x, y):
                self._set_selection(None)

        if tool is Tool.FILL:
            changes = flood_fill(self.store, x, y, self.primary_color, layer.id, self.size)
            self._record(Tool.FILL, layer.id, changes)
            return
        if tool is Tool.EYEDROPPER:
            color = self.store.get(x, y)
            if color != TRANSPARENT:
                self.set_primary_color(color)
            return
        if tool is Tool.MAGIC_WAND:
            self._magic_wand(x, y)
            return
        if tool is Tool.MOVE_SELECTION:
            if self.selection is None or not self.selection.live_bounds().contains(x, y):
                return
            self.move_offset = (0, 0)

        self._action = DrawingAction(tool, layer.id, (x, y), self.store.snapshot(), (x, y))
        self.state = GestureState.ACTIVE

        if tool in SHAPE_TOOLS:
            self.shape_preview = ShapePreview(tool, (x, y), (x, y))
        elif tool in (Tool.SELECT, Tool.LASSO):
            point = (clamp(x, 0, self.size - 1), clamp(y, 0, self.size - 1))
            selection = Selection(point, point, raw_current_pos=point, kind=tool.value)
            if tool is Tool.LASSO:
                selection.path = [point]
            self._set_selection(selection)
        elif tool in FREEHAND_TOOLS:
            self._stamp(x, y, x, y)

    def pointer_move(self, x: int, y: int) -> None:
        action = self._action
        if self.state is GestureState.IDLE or action is None:
            return

        if action.tool is Tool.MOVE_SELECTION:
            self.move_offset = (x - action.start_pos[0], y - action.start_pos[1])
            return
        if action.tool in (Tool.SELECT, Tool.LASSO) and self.selection is not None:
            point = (clamp(x, 0, self.size - 1), clamp(y, 0, self.size - 1))
            self.selection.current_pos = point
            self.selection.raw_current_pos = (x, y)
            if action.tool is Tool.LASSO:
                extend_path(self.selection.path, point)
            self._notify("selection")
            return

        if not in_canvas(x, y, self.size):
            return
        if action.tool in SHAPE_TOOLS and self.shape_preview is not None:
            self.shape_preview.current_pos = (x, y)
        elif action.tool in FREEHAND_TOOLS:
            last_x, last_y = action.last_pos
            self._stamp(last_x, last_y, x, y)
        action.last_pos = (x, y)

    def pointer_up(self) -> None:
        action = self._action
        if self.state is GestureState.IDLE or action is None:
            return
        self._action = None
        self.state = GestureState.IDLE

        if action.tool in SHAPE_TOOLS:
            preview = self.shape_preview
            self.shape_preview = None
            if preview is not None:
                for x, y in self._shape_cells(preview):
                    self._paint(x, y, self.primary_color, action.layer_id)
            self._commit(action)
        elif action.tool in FREEHAND_TOOLS:
            self._commit(action)
        elif action.tool is Tool.SELECT:
            self._finish_rectangle_selection(action.layer_id)
        elif action.tool is Tool.LASSO:
            self._finish_lasso(action.layer_id)
        elif action.tool is Tool.MOVE_SELECTION:
            offset = self.move_offset
            self.move_offset = (0, 0)
            self._move_selection(offset, action.layer_id)

    def pointer_leave(self) -> None:
        """Leaving the drawing surface ends the gesture like a release."""
        self.pointer_up()

    def _stamp(self, x0: int, y0: int, x1: int, y1: int) -> None:
        action = self._action
        color = self.primary_color if action.tool is Tool.PENCIL else TRANSPARENT
        pattern = generate_brush_pattern(self.brush_size)
        # One write per cell per move event, however many stamps overlap it.
        updates = [
            (px, py)
            for px, py in stroke_cells(pattern, x0, y0, x1, y1, self.size)
            if self.store.get(px, py) != color
        ]
        for px, py in updates:
            self.store.set(px, py, color, action.layer_id)
        if updates:
            self._notify("pixels")

    def _paint(self, x: int, y: int, color: str, layer_id: int) -> None:
        # Same colour keeps the current owner, so undo never has to restore a layer alone.
        if self.store.get(x, y) != color:
            self.store.set(x, y, color, layer_id)

    def _shape_cells(self, preview: ShapePreview) -> List[Point]:
        (x0, y0), (x1, y1) = preview.start_pos, preview.current_pos
        if preview.tool is Tool.LINE:
            return line_cells(x0, y0, x1, y1, self.size)
        if preview.tool in (Tool.RECTANGLE_BORDER, Tool.RECTANGLE_FILLED):
            return rectangle_cells(x0, y0, x1, y1, preview.tool is Tool.RECTANGLE_FILLED, self.size)
        return circle_cells(x0, y0, x1, y1, preview.tool is Tool.CIRCLE_FILLED, self.size)

    # ------------------------------------------------------------------
    # Commit

    def _commit(self, action: DrawingAction) -> None:
        changes = diff_snapshots(action.before, self.store.snapshot())
        self._record(action.tool, action.layer_id, changes)

    def _record(self, tool: Tool, layer_id: int, changes: Sequence[PixelChange]) -> None:
        """Pushes one operation for a non-empty diff and refreshes a touched selection."""
        if not changes:
            return
        self._push(self.history.create_operation(tool, layer_id, changes))
        self._notify("pixels")

        selection = self.selection
        if selection is None:
            return
        bounds = selection.live_bounds()
        if not any(bounds.contains(change.x, change.y) for change in changes):
            return
        capture = selection.capture_bounds(self.size)
        selection.content = capture_content(self.store, capture, layer_id, selection.mask)
        self._push(
            self.history.create_operation(
                Tool.SELECT,
                layer_id,
                [],
                SelectMetadata(capture, dict(selection.content), selection.kind, selection.mask),
            )
        )
        self._notify("selection")

    def _push(self, operation: StrokeOperation) -> None:
        self.history.push(operation)
        self._notify("history")

    # ------------------------------------------------------------------
    # Selection

    def _set_selection(self, selection: Optional[Selection]) -> None:
        self.selection = selection
        self._notify("selection")

    def _finish_rectangle_selection(self, layer_id: int) -> None:
        selection = self.selection
        if selection is None:
            return
        bounds = selection.capture_bounds(self.size)
        selection.content = capture_content(self.store, bounds, layer_id)
        logger.debug("Selection captured bounds=%s pixels=%s", bounds, len(selection.content))
        self._notify("selection")

    def _finish_lasso(self, layer_id: int) -> None:
        selection = self.selection
        if selection is None:
            return
        mask = lasso_mask(selection.path, self.size)
        bounds = Bounds.enclosing(mask)
        if bounds is None:
            self._set_selection(None)
            return
        selection.start_pos = (bounds.start_x, bounds.start_y)
        selection.current_pos = (bounds.end_x, bounds.end_y)
        selection.raw_current_pos = None
        selection.mask = mask
        selection.content = capture_content(self.store, bounds, layer_id, mask)
        logger.debug("Lasso captured cells=%s pixels=%s", len(mask), len(selection.content))
        self._notify("selection")

    def _magic_wand(self, x: int, y: int) -> None:
        region = magic_wand_region(self.store, x, y, self.size)
        if not region:
            return
        bounds = Bounds.enclosing(region)
        content = {
            (px - bounds.start_x, py - bounds.start_y): pixel
            for (px, py), pixel in region.items()
        }
        self._set_selection(Selection.around(bounds, content, MAGIC_WAND, frozenset(region)))
        logger.debug("Magic wand selected %s pixels", len(region))

    def escape_selection(self) -> None:
        if self.selection is not None:
            self._set_selection(None)

    def _move_selection(self, offset: Point, layer_id: int) -> None:
        selection = self.selection
        if selection is None or offset == (0, 0):
            return
        origin = selection.capture_bounds(self.size)
        new_x = clamp(origin.start_x + offset[0], 0, self.size - 1)
        new_y = clamp(origin.start_y + offset[1], 0, self.size - 1)
        dx = new_x - origin.start_x
        dy = new_y - origin.start_y
        if (dx, dy) == (0, 0):
            return

        before = self.store.snapshot()
        for (x, y), _ in self.store.items():
            if selection.contains(x, y):
                self.store.delete(x, y)
        for (rx, ry), pixel in selection.content.items():
            ax, ay = new_x + rx, new_y + ry
            if in_canvas(ax, ay, self.size):
                self._paint(ax, ay, pixel.color, pixel.layer_id)

        target = origin.translated(dx, dy)
        mask = None
        if selection.mask is not None:
            mask = frozenset((x + dx, y + dy) for x, y in selection.mask)
        moved = Selection.around(target, selection.content, selection.kind, mask)
        moved.current_pos = (min(target.end_x, self.size - 1), min(target.end_y, self.size - 1))
        moved.raw_current_pos = (target.end_x, target.end_y)
        moved.path = [(x + dx, y + dy) for x, y in selection.path]
        self._set_selection(moved)

        # Diffing snapshots keeps overlapping source/target cells out of the record.
        changes = diff_snapshots(before, self.store.snapshot())
        if changes:
            self._push(self.history.create_operation(Tool.MOVE_SELECTION, layer_id, changes))
            self._notify("pixels")

    # ------------------------------------------------------------------
    # Clipboard

    def copy(self) -> None:
        self._finish_gesture()
        selection, layer = self.selection, self.active_layer
        if selection is None or layer is None:
            return
        bounds = selection.capture_bounds(self.size)
        content = dict(selection.content)
        self.clipboard = Clipboard(content, bounds, "copy")
        self._push(self.history.create_operation(Tool.COPY, layer.id, [], CopyMetadata(bounds, content)))
        self._notify("clipboard")

    def cut(self) -> None:
        self._finish_gesture()
        selection, layer = self.selection, self.active_layer
        if selection is None or layer is None:
            return
        bounds = selection.capture_bounds(self.size)
        content = dict(selection.content)

        changes: List[PixelChange] = []
        for rx, ry in sorted(content, key=lambda point: (point[1], point[0])):
            x, y = bounds.start_x + rx, bounds.start_y + ry
            current = self.store.get_pixel(x, y)
            if current is not None:
                changes.append(PixelChange(x, y, current.color, TRANSPARENT, current.layer_id, None))
                self.store.delete(x, y)

        self.clipboard = Clipboard(content, bounds, "cut")
        metadata = CutMetadata(bounds, content, selection.kind, selection.mask)
        self._push(self.history.create_operation(Tool.CUT, layer.id, changes, metadata))
        self._set_selection(None)
        self._notify("pixels", "clipboard")

    def paste(self) -> None:
        self._finish_gesture()
        clipboard, layer = self.clipboard, self.active_layer
        if clipboard is None or layer is None:
            return
        origin_x, origin_y = paste_origin(clipboard.bounds, self.size)

        written: Dict[Point, str] = {}
        changes: List[PixelChange] = []
        for rx, ry in sorted(clipboard.pixels, key=lambda point: (point[1], point[0])):
            color = clipboard.pixels[(rx, ry)].color
            x, y = origin_x + rx, origin_y + ry
            if color == TRANSPARENT or not in_canvas(x, y, self.size):
                continue
            previous = self.store.get_pixel(x, y)
            written[(x, y)] = color
            if previous is None or previous.color != color:
                changes.append(
                    PixelChange(
                        x,
                        y,
                        previous.color if previous is not None else TRANSPARENT,
                        color,
                        previous.layer_id if previous is not None else None,
                        layer.id,
                    )
                )
                self.store.set(x, y, color, layer.id)
        if not written:
            return

        bounds = Bounds.enclosing(written)
        content = {
            (x - bounds.start_x, y - bounds.start_y): Pixel(color, layer.id)
            for (x, y), color in written.items()
        }
        metadata = PasteMetadata(bounds, clipboard.bounds, content)
        self._push(self.history.create_operation(Tool.PASTE, layer.id, changes, metadata))
        self._set_selection(Selection.around(bounds, content))
        logger.debug("Pasted %s pixels at %s", len(written), bounds)
        self._notify("pixels")

    # ------------------------------------------------------------------
    # History

    def _finish_gesture(self) -> None:
        """Commits a pending gesture so a command never lands inside its diff."""
        if self.state is GestureState.ACTIVE:
            self.pointer_up()

    def undo(self) -> Optional[StrokeOperation]:
        self._finish_gesture()
        operation = self.history.undo()
        if operation is not None:
            self.apply_operation(operation, reverse=True)
            self._notify("history")
        return operation

    def redo(self) -> Optional[StrokeOperation]:
        self._finish_gesture()
        operation = self.history.redo()
        if operation is not None:
            self.apply_operation(operation, reverse=False)
            self._notify("history")
        return operation

    def apply_operation(self, operation: StrokeOperation, reverse: bool = False) -> None:
        """Replays an operation forwards or backwards, by operation kind."""
        metadata = operation.metadata
        if operation.tool is Tool.SELECT and isinstance(metadata, SelectMetadata):
            if reverse:
                self._set_selection(None)
            else:
                self._set_selection(Selection.around(metadata.bounds, metadata.content, metadata.kind, metadata.mask))
            return

        if operation.tool is Tool.COPY and isinstance(metadata, CopyMetadata):
            if reverse:
                self.clipboard = None
            else:
                self.clipboard = Clipboard(dict(metadata.content), metadata.bounds, "copy")
            self._notify("clipboard")
            return

        if operation.tool is Tool.CUT and isinstance(metadata, CutMetadata):
            apply_changes(self.store, operation, reverse)
            self._set_selection(Selection.around(metadata.bounds, metadata.content, metadata.kind, metadata.mask))
            self._notify("pixels")
            return

        if operation.tool is Tool.PASTE and isinstance(metadata, PasteMetadata):
            apply_changes(self.store, operation, reverse)
            if reverse:
                self._set_selection(None)
            else:
                self._set_selection(Selection.around(metadata.paste_bounds, metadata.clipboard_content))
            self._notify("pixels")
            return

        # Templates and every plain stroke replay their pixel diff.
        apply_changes(self.store, operation, reverse)
        self._notify("pixels")

    # ------------------------------------------------------------------
    # Templates

    def apply_template(self, pixels: Mapping[Point, Union[Pixel, str]]) -> None:
        """
        Replaces the whole canvas with ``pixels`` as one undoable step.

        Values may be ``Pixel`` records or bare colours (stored on the active
        layer). Transparent and off-canvas entries are ignored. Cells that
        keep their colour keep their layer.
        """
        self._finish_gesture()
        layer = self.active_layer
        layer_id = layer.id if layer is not None else self.layers[0].id

        targets: Dict[Point, Pixel] = {}
        for (x, y), value in pixels.items():
            pixel = value if isinstance(value, Pixel) else Pixel(value, layer_id)
            if in_canvas(x, y, self.size) and pixel.color != TRANSPARENT:
                targets[(x, y)] = pixel

        before = self.store.snapshot()
        for (x, y), _ in self.store.items():
            if (x, y) not in targets:
                self.store.delete(x, y)
        for (x, y), pixel in targets.items():
            self._paint(x, y, pixel.color, pixel.layer_id)

        changes = diff_snapshots(before, self.store.snapshot())
        if changes:
            self._push(self.history.create_operation(Tool.TEMPLATE, layer_id, changes))
        self._notify("pixels")
