"""
Selection and clipboard model.

A selection keeps two versions of its moving corner: ``current_pos`` is
clamped to the canvas for drawing the outline, while ``raw_current_pos`` keeps
the unclamped pointer so a drag can keep growing outside the canvas. Captured
content is keyed relative to the top-left of the (clamped) capture bounds.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from geometry import bresenham_line, in_canvas, point_in_polygon
from pixel_store import Pixel, PixelStore

Point = Tuple[int, int]
Content = Dict[Point, Pixel]

RECTANGLE = "select"
LASSO = "lasso"
MAGIC_WAND = "magic-wand"


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


@dataclass(frozen=True)
class Bounds:
    """Inclusive rectangle of cells."""

    start_x: int
    start_y: int
    end_x: int
    end_y: int

    @property
    def width(self) -> int:
        return self.end_x - self.start_x + 1

    @property
    def height(self) -> int:
        return self.end_y - self.start_y + 1

    def contains(self, x: int, y: int) -> bool:
        return self.start_x <= x <= self.end_x and self.start_y <= y <= self.end_y

    def clamped(self, size: int) -> "Bounds":
        return Bounds(
            max(0, self.start_x),
            max(0, self.start_y),
            min(size - 1, self.end_x),
            min(size - 1, self.end_y),
        )

    def translated(self, dx: int, dy: int) -> "Bounds":
        return Bounds(self.start_x + dx, self.start_y + dy, self.end_x + dx, self.end_y + dy)

    @classmethod
    def from_points(cls, a: Point, b: Point) -> "Bounds":
        return cls(min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1]))

    @classmethod
    def enclosing(cls, points) -> Optional["Bounds"]:
        points = list(points)
        if not points:
            return None
        xs = [x for x, _ in points]
        ys = [y for _, y in points]
        return cls(min(xs), min(ys), max(xs), max(ys))


@dataclass
class Selection:
    start_pos: Point
    current_pos: Point
    raw_current_pos: Optional[Point] = None
    content: Content = field(default_factory=dict)
    kind: str = RECTANGLE
    # Absolute member cells for lasso and magic-wand selections; None means the
    # whole rectangle belongs to the selection.
    mask: Optional[FrozenSet[Point]] = None
    path: List[Point] = field(default_factory=list)

    @property
    def end_pos(self) -> Point:
        return self.raw_current_pos if self.raw_current_pos is not None else self.current_pos

    def live_bounds(self) -> Bounds:
        """Unclamped bounds, used for on-screen tracking while dragging."""
        return Bounds.from_points(self.start_pos, self.end_pos)

    def capture_bounds(self, size: int) -> Bounds:
        """Bounds clamped to the canvas, used for pixel content."""
        return self.live_bounds().clamped(size)

    def contains(self, x: int, y: int) -> bool:
        if self.mask is not None:
            return (x, y) in self.mask
        return self.live_bounds().contains(x, y)

    @classmethod
    def around(cls, bounds: Bounds, content: Content, kind: str = RECTANGLE,
               mask: Optional[FrozenSet[Point]] = None) -> "Selection":
        return cls(
            start_pos=(bounds.start_x, bounds.start_y),
            current_pos=(bounds.end_x, bounds.end_y),
            content=dict(content),
            kind=kind,
            mask=mask,
        )


@dataclass(frozen=True)
class Clipboard:
    pixels: Content
    bounds: Bounds
    operation: str  # "copy" or "cut"


def capture_content(
    store: PixelStore, bounds: Bounds, layer_id: int, mask: Optional[FrozenSet[Point]] = None
) -> Content:
    """Active-layer pixels inside ``bounds``, keyed relative to its top-left."""
    content: Content = {}
    for (x, y), pixel in store.items():
        if not bounds.contains(x, y) or pixel.layer_id != layer_id:
            continue
        if mask is not None and (x, y) not in mask:
            continue
        content[(x - bounds.start_x, y - bounds.start_y)] = pixel
    return content


def paste_origin(bounds: Bounds, size: int) -> Point:
    """Top-left that centres a block of ``bounds``' dimensions on the canvas."""
    center = size // 2
    return center - bounds.width // 2, center - bounds.height // 2


def extend_path(path: List[Point], point: Point) -> None:
    """Appends ``point`` to a lasso path, filling gaps with line points."""
    if not path:
        path.append(point)
        return
    last = path[-1]
    if last == point:
        return
    for cell in list(bresenham_line(last[0], last[1], point[0], point[1]))[1:]:
        path.append(cell)


def lasso_mask(path: List[Point], size: int) -> FrozenSet[Point]:
    """Cells on the path or inside the polygon it closes."""
    members = {cell for cell in path if in_canvas(cell[0], cell[1], size)}
    bounds = Bounds.enclosing(path)
    if bounds is None or len(path) < 3:
        return frozenset(members)
    bounds = bounds.clamped(size)
    for y in range(bounds.start_y, bounds.end_y + 1):
        for x in range(bounds.start_x, bounds.end_x + 1):
            if point_in_polygon(x, y, path):
                members.add((x, y))
    return frozenset(members)
