from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Tuple


@dataclass(frozen=True)
class BrushPattern:
    """A stamp grid and the cell that sits under the pointer."""

    width: int
    height: int
    pattern: Tuple[Tuple[bool, ...], ...]
    center_x: int
    center_y: int


_PATTERNS = {
    1: BrushPattern(1, 1, ((True,),), 0, 0),
    2: BrushPattern(2, 2, ((True, True), (True, True)), 0, 0),
    3: BrushPattern(
        3,
        3,
        (
            (True, True, True),
            (True, True, True),
            (True, True, True),
        ),
        1,
        1,
    ),
    4: BrushPattern(
        4,
        4,
        (
            (False, True, True, False),
            (True, True, True, True),
            (True, True, True, True),
            (False, True, True, False),
        ),
        1,
        1,
    ),
}

BRUSH_SIZES = tuple(sorted(_PATTERNS))


@lru_cache(maxsize=None)
def generate_brush_pattern(thickness: int) -> BrushPattern:
    """Returns the stamp for a brush thickness, falling back to 1px."""
    return _PATTERNS.get(thickness, _PATTERNS[1])


def apply_brush_pattern(
    pattern: BrushPattern, center_x: int, center_y: int, visit: Callable[[int, int], None]
) -> None:
    """Calls ``visit`` once per set cell of the stamp placed at the centre."""
    start_x = center_x - pattern.center_x
    start_y = center_y - pattern.center_y
    for dy, row in enumerate(pattern.pattern):
        for dx, on in enumerate(row):
            if on:
                visit(start_x + dx, start_y + dy)

