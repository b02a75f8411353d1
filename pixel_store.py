"""Sparse pixel storage for the sprite canvas.

Only non-transparent pixels are materialised. Reading a coordinate that has no
entry yields ``TRANSPARENT``, and writing ``TRANSPARENT`` removes the entry, so
the store never holds a transparent value.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

TRANSPARENT = "transparent"

_MASK32 = 0xFFFFFFFF
_SIGN32 = 0x80000000


@dataclass(frozen=True)
class Pixel:
    color: str
    layer_id: int


@dataclass(frozen=True)
class PixelChange:
    """
    One cell of a diff: the colour before and after an action.

    The layers say which layer owned the cell on each side; None means the
    cell was transparent there.
    """

    x: int
    y: int
    previous_color: str
    new_color: str
    previous_layer: Optional[int] = None
    new_layer: Optional[int] = None


def _to_signed(value: int) -> int:
    return value - (1 << 32) if value & _SIGN32 else value


def pack_key(x: int, y: int) -> int:
    """Folds two signed 32-bit coordinates into one integer key."""
    return ((y & _MASK32) << 32) | (x & _MASK32)


def unpack_key(key: int) -> Tuple[int, int]:
    return _to_signed(key & _MASK32), _to_signed((key >> 32) & _MASK32)


Snapshot = Dict[int, Pixel]


class PixelStore:
    """
    Maps integer coordinates to ``Pixel`` records.

    Bounds are not enforced here; brush, shape and fill routines clip to the
    canvas before writing.
    """

    def __init__(self):
        self._pixels: Snapshot = {}

    def __len__(self) -> int:
        return len(self._pixels)

    def __contains__(self, point) -> bool:
        x, y = point
        return pack_key(x, y) in self._pixels

    def get(self, x: int, y: int) -> str:
        """Returns the colour at (x, y), TRANSPARENT when nothing is stored."""
        pixel = self._pixels.get(pack_key(x, y))
        return pixel.color if pixel is not None else TRANSPARENT

    def get_pixel(self, x: int, y: int) -> Optional[Pixel]:
        return self._pixels.get(pack_key(x, y))

    def set(self, x: int, y: int, color: str, layer_id: int) -> None:
        """Writes a colour, deleting the entry when the colour is TRANSPARENT."""
        key = pack_key(x, y)
        if color == TRANSPARENT:
            self._pixels.pop(key, None)
        else:
            self._pixels[key] = Pixel(color, layer_id)

    def delete(self, x: int, y: int) -> None:
        self._pixels.pop(pack_key(x, y), None)

    def clear(self) -> None:
        self._pixels.clear()

    def items(self) -> Iterator[Tuple[Tuple[int, int], Pixel]]:
        # Copy first so callers may write to the store while iterating.
        for key, pixel in list(self._pixels.items()):
            yield unpack_key(key), pixel

    def snapshot(self) -> Snapshot:
        """
        Full-value copy of the store. Pixels are immutable, so a shallow copy
        can never be aliased by later writes.
        """
        return dict(self._pixels)

    def as_dict(self) -> Dict[Tuple[int, int], Pixel]:
        return {unpack_key(key): pixel for key, pixel in self._pixels.items()}


def diff_snapshots(before: Snapshot, after: Snapshot) -> List[PixelChange]:
    """Minimal list of cells whose effective colour differs between snapshots."""
    changes: List[PixelChange] = []
    for key in before.keys() | after.keys():
        old = before.get(key)
        new = after.get(key)
        old_color = old.color if old is not None else TRANSPARENT
        new_color = new.color if new is not None else TRANSPARENT
        if old_color != new_color:
            x, y = unpack_key(key)
            changes.append(
                PixelChange(
                    x,
                    y,
                    old_color,
                    new_color,
                    old.layer_id if old is not None else None,
                    new.layer_id if new is not None else None,
                )
            )
    changes.sort(key=lambda change: (change.y, change.x))
    return changes
