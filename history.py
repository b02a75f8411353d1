"""
Undo/redo history built from per-gesture pixel diffs.

Each ``StrokeOperation`` records only the cells whose colour changed, so
reversing it writes ``previous_color`` back and replaying it writes
``new_color``. Operations that also move selection or clipboard state carry a
typed metadata record.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence, Union

from pixel_store import TRANSPARENT, PixelChange, PixelStore
from selection import Bounds, Content, Point

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 100


class Tool(str, Enum):
    PENCIL = "pencil"
    ERASER = "eraser"
    FILL = "fill"
    EYEDROPPER = "eyedropper"
    RECTANGLE_BORDER = "rectangle-border"
    RECTANGLE_FILLED = "rectangle-filled"
    CIRCLE_BORDER = "circle-border"
    CIRCLE_FILLED = "circle-filled"
    LINE = "line"
    SELECT = "select"
    LASSO = "lasso"
    MAGIC_WAND = "magic-wand"
    COPY = "copy"
    CUT = "cut"
    PASTE = "paste"
    MOVE_SELECTION = "move-selection"
    TEMPLATE = "template"


FREEHAND_TOOLS = frozenset({Tool.PENCIL, Tool.ERASER})
SHAPE_TOOLS = frozenset({
    Tool.RECTANGLE_BORDER,
    Tool.RECTANGLE_FILLED,
    Tool.CIRCLE_BORDER,
    Tool.CIRCLE_FILLED,
    Tool.LINE,
})
SELECTION_TOOLS = frozenset({Tool.SELECT, Tool.LASSO, Tool.MAGIC_WAND})


@dataclass(frozen=True)
class SelectMetadata:
    bounds: Bounds
    content: Content
    kind: str = Tool.SELECT.value
    mask: Optional[FrozenSet[Point]] = None


@dataclass(frozen=True)
class CopyMetadata:
    bounds: Bounds
    content: Content


@dataclass(frozen=True)
class CutMetadata:
    bounds: Bounds
    content: Content
    kind: str = Tool.SELECT.value
    mask: Optional[FrozenSet[Point]] = None


@dataclass(frozen=True)
class PasteMetadata:
    paste_bounds: Bounds
    original_bounds: Bounds
    clipboard_content: Content


Metadata = Union[SelectMetadata, CopyMetadata, CutMetadata, PasteMetadata]


@dataclass
class StrokeOperation:
    id: str
    tool: Tool
    layer_id: int
    pixels: List[PixelChange]
    timestamp: float
    metadata: Optional[Metadata] = None


@dataclass
class HistoryState:
    undo_stack: List[StrokeOperation] = field(default_factory=list)
    redo_stack: List[StrokeOperation] = field(default_factory=list)
    max_history_size: int = DEFAULT_MAX_HISTORY


class HistoryManager:
    """Two bounded stacks of operations; pushing forgets the redo branch."""

    def __init__(self, max_size: int = DEFAULT_MAX_HISTORY):
        self.max_size = max_size
        self.undo_stack: List[StrokeOperation] = []
        self.redo_stack: List[StrokeOperation] = []

    def create_operation(
        self,
        tool: Tool,
        layer_id: int,
        pixels: Sequence[PixelChange],
        metadata: Optional[Metadata] = None,
    ) -> StrokeOperation:
        return StrokeOperation(
            id=uuid.uuid4().hex,
            tool=Tool(tool),
            layer_id=layer_id,
            pixels=list(pixels),
            timestamp=time.time(),
            metadata=metadata,
        )

    def push(self, operation: StrokeOperation) -> None:
        self.redo_stack.clear()
        self.undo_stack.append(operation)
        overflow = len(self.undo_stack) - self.max_size
        if overflow > 0:
            # Drop from the oldest end.
            del self.undo_stack[:overflow]
        logger.debug(
            "History push tool=%s pixels=%s undo=%s",
            operation.tool.value,
            len(operation.pixels),
            len(self.undo_stack),
        )

    def undo(self) -> Optional[StrokeOperation]:
        if not self.undo_stack:
            return None
        operation = self.undo_stack.pop()
        self.redo_stack.append(operation)
        logger.debug("History undo tool=%s remaining=%s", operation.tool.value, len(self.undo_stack))
        return operation

    def redo(self) -> Optional[StrokeOperation]:
        if not self.redo_stack:
            return None
        operation = self.redo_stack.pop()
        self.undo_stack.append(operation)
        logger.debug("History redo tool=%s remaining=%s", operation.tool.value, len(self.redo_stack))
        return operation

    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    @property
    def undo_count(self) -> int:
        return len(self.undo_stack)

    @property
    def redo_count(self) -> int:
        return len(self.redo_stack)

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()

    def get_state(self) -> HistoryState:
        return HistoryState(list(self.undo_stack), list(self.redo_stack), self.max_size)


def apply_changes(store: PixelStore, operation: StrokeOperation, reverse: bool) -> None:
    """
    Writes each change's previous (reverse) or new colour; TRANSPARENT deletes.

    Pixels go back to the layer recorded in the change, falling back to the
    operation's layer for changes recorded without one.
    """
    changes = reversed(operation.pixels) if reverse else operation.pixels
    for change in changes:
        color = change.previous_color if reverse else change.new_color
        layer_id = change.previous_layer if reverse else change.new_layer
        if color == TRANSPARENT:
            store.delete(change.x, change.y)
        else:
            store.set(change.x, change.y, color, layer_id if layer_id is not None else operation.layer_id)
