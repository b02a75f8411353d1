"""
Rasterisation and region search over the pixel grid.

Shape helpers return the list of canvas cells a shape covers, already clipped
to ``[0, size)`` and free of duplicates. Flood fill writes to the store and
returns its diff; the magic wand only reads.
"""
import math
from typing import Dict, Iterator, List, Sequence, Tuple

from brush import BrushPattern, apply_brush_pattern
from pixel_store import TRANSPARENT, Pixel, PixelChange, PixelStore

Cell = Tuple[int, int]

_NEIGHBOURS = ((1, 0), (-1, 0), (0, 1), (0, -1))


def in_canvas(x: int, y: int, size: int) -> bool:
    return 0 <= x < size and 0 <= y < size


def bresenham_line(x0: int, y0: int, x1: int, y1: int) -> Iterator[Cell]:
    """Yields every integer point from (x0, y0) to (x1, y1), both included."""
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy

    while True:
        yield x0, y0
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x0 += sx
        if e2 < dx:
            err += dx
            y0 += sy


def _collect(cells, size: int) -> List[Cell]:
    seen: Dict[Cell, None] = {}
    for x, y in cells:
        if in_canvas(x, y, size):
            seen.setdefault((x, y), None)
    return list(seen)


def stroke_cells(pattern: BrushPattern, x0: int, y0: int, x1: int, y1: int, size: int) -> List[Cell]:
    """Brush stamped at every point of the line, so fast pointer moves leave no gaps."""
    stamped: List[Cell] = []
    for cx, cy in bresenham_line(x0, y0, x1, y1):
        apply_brush_pattern(pattern, cx, cy, lambda px, py: stamped.append((px, py)))
    return _collect(stamped, size)


def line_cells(x0: int, y0: int, x1: int, y1: int, size: int) -> List[Cell]:
    return _collect(bresenham_line(x0, y0, x1, y1), size)


def rectangle_cells(x0: int, y0: int, x1: int, y1: int, filled: bool, size: int) -> List[Cell]:
    """
    Cells of the half-open rectangle [min_x, max_x) x [min_y, max_y).

    The border uses max_x - 1 and max_y - 1 as its far edges.
    """
    min_x, max_x = sorted((x0, x1))
    min_y, max_y = sorted((y0, y1))

    cells: List[Cell] = []
    if filled:
        for y in range(min_y, max_y):
            for x in range(min_x, max_x):
                cells.append((x, y))
    else:
        for x in range(min_x, max_x):
            cells.append((x, min_y))
            cells.append((x, max_y - 1))
        for y in range(min_y, max_y):
            cells.append((min_x, y))
            cells.append((max_x - 1, y))
    return _collect(cells, size)


def circle_params(x0: int, y0: int, x1: int, y1: int) -> Tuple[int, int, int]:
    """Centre (floor of the box midpoint) and radius (floor distance to the far corner)."""
    center_x = (x0 + x1) // 2
    center_y = (y0 + y1) // 2
    radius = max(1, int(math.floor(math.sqrt((x1 - center_x) ** 2 + (y1 - center_y) ** 2))))
    return center_x, center_y, radius


def _circle_border(center_x: int, center_y: int, radius: int, size: int) -> List[Cell]:
    drawn: Dict[Cell, None] = {}
    x = radius
    y = 0
    err = 0
    while x >= y:
        for px, py in (
            (center_x + x, center_y + y), (center_x + y, center_y + x),
            (center_x - y, center_y + x), (center_x - x, center_y + y),
            (center_x - x, center_y - y), (center_x - y, center_y - x),
            (center_x + y, center_y - x), (center_x + x, center_y - y),
        ):
            if in_canvas(px, py, size):
                drawn.setdefault((px, py), None)
        if err <= 0:
            y += 1
            err += 2 * y + 1
        if err > 0:
            x -= 1
            err -= 2 * x + 1

    # Octant symmetry leaves 1px notches at N/E/S/W on small circles.
    if radius <= 4:
        for px, py, vertical in (
            (center_x, center_y - radius, True),
            (center_x + radius, center_y, False),
            (center_x, center_y + radius, True),
            (center_x - radius, center_y, False),
        ):
            if (px, py) not in drawn:
                continue
            if vertical:
                adjacent = ((px - 1, py), (px + 1, py))
            else:
                adjacent = ((px, py - 1), (px, py + 1))
            for ax, ay in adjacent:
                if in_canvas(ax, ay, size):
                    drawn.setdefault((ax, ay), None)
    return list(drawn)


def circle_cells(x0: int, y0: int, x1: int, y1: int, filled: bool, size: int) -> List[Cell]:
    center_x, center_y, radius = circle_params(x0, y0, x1, y1)
    if not filled:
        return _circle_border(center_x, center_y, radius, size)

    cells: List[Cell] = []
    r2 = radius * radius
    for y in range(max(0, center_y - radius), min(size - 1, center_y + radius) + 1):
        dy2 = (y - center_y) ** 2
        for x in range(max(0, center_x - radius), min(size - 1, center_x + radius) + 1):
            if (x - center_x) ** 2 + dy2 <= r2:
                cells.append((x, y))
    return cells


def flood_fill(
    store: PixelStore, start_x: int, start_y: int, replacement: str, layer_id: int, size: int
) -> List[PixelChange]:
    """
    4-connected fill from the seed, driven by an explicit stack.

    Writes directly into ``store`` and returns one change per filled cell.
    Filling with TRANSPARENT erases the contiguous region.
    """
    if not in_canvas(start_x, start_y, size):
        return []
    target = store.get(start_x, start_y)
    if target == replacement and replacement != TRANSPARENT:
        return []

    changes: List[PixelChange] = []
    visited = set()
    stack = [(start_x, start_y)]
    while stack:
        x, y = stack.pop()
        if (x, y) in visited:
            continue
        visited.add((x, y))

        current = store.get(x, y)
        if current != target:
            continue
        if current != replacement:
            owner = store.get_pixel(x, y)
            changes.append(
                PixelChange(
                    x,
                    y,
                    current,
                    replacement,
                    owner.layer_id if owner is not None else None,
                    layer_id if replacement != TRANSPARENT else None,
                )
            )
            store.set(x, y, replacement, layer_id)

        for dx, dy in _NEIGHBOURS:
            nx, ny = x + dx, y + dy
            if in_canvas(nx, ny, size):
                stack.append((nx, ny))
    return changes


def magic_wand_region(store: PixelStore, start_x: int, start_y: int, size: int) -> Dict[Cell, Pixel]:
    """Contiguous same-coloured pixels around the seed; the store is not touched."""
    region: Dict[Cell, Pixel] = {}
    if not in_canvas(start_x, start_y, size):
        return region
    target = store.get(start_x, start_y)

    visited = set()
    stack = [(start_x, start_y)]
    while stack:
        x, y = stack.pop()
        if (x, y) in visited:
            continue
        visited.add((x, y))

        if store.get(x, y) != target:
            continue
        pixel = store.get_pixel(x, y)
        if pixel is not None:
            region[(x, y)] = pixel

        for dx, dy in _NEIGHBOURS:
            nx, ny = x + dx, y + dy
            if in_canvas(nx, ny, size):
                stack.append((nx, ny))
    return region


def point_in_polygon(px: int, py: int, polygon: Sequence[Cell]) -> bool:
    """Even-odd rule test against a closed polygon of cell coordinates."""
    inside = False
    count = len(polygon)
    if count < 3:
        return False
    j = count - 1
    for i in range(count):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py):
            cross_x = (xj - xi) * (py - yi) / (yj - yi) + xi
            if px < cross_x:
                inside = not inside
        j = i
    return inside
