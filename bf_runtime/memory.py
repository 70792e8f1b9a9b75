"""
bfvm runtime: Growable cell memory with a configurable value band.

The addressed memory is conceptually infinite:
  - reads past the current length return 0 and do not grow storage
  - writes past the current length grow storage, zero-filling the gap
  - writes far beyond the current length go to a sparse side table

Every store carries a closed value band [min_cell_value, max_cell_value]
that cell arithmetic wraps within. The band defaults to the cell type's
natural range but may be narrower, e.g. a classic byte machine keeps
[0, 255] even when the cells are 64 bits wide.
"""

from typing import Dict, List, Optional

from .cells import CellType, U8

# Writes further than this past the dense end are kept sparse
MAX_DENSE_GAP = 1 << 16


class CellStore:
    """Index-addressed cell array with band-wrapping arithmetic.

    None of the cell operations fail for a non-negative index. Out of
    range indices are handled by growth or by the zero default.
    """

    def __init__(self, cell_type: CellType = U8,
                 min_cell_value: Optional[int] = None,
                 max_cell_value: Optional[int] = None):
        self.cell_type = cell_type
        self.data: List[int] = []
        self.sparse: Dict[int, int] = {}
        self.data_pointer: int = 0
        self.min_cell_value: int = cell_type.min_value
        self.max_cell_value: int = cell_type.max_value
        if min_cell_value is not None or max_cell_value is not None:
            self.set_bounds(
                self.min_cell_value if min_cell_value is None else min_cell_value,
                self.max_cell_value if max_cell_value is None else max_cell_value,
            )

    def __len__(self) -> int:
        return len(self.data)

    # --- Core read/write ---

    def _grow(self, i: int) -> bool:
        """Extend the dense list to cover i. False when i stays sparse."""
        if i < len(self.data):
            return True
        if i - len(self.data) > MAX_DENSE_GAP:
            return False
        self.data.extend([0] * (i + 1 - len(self.data)))
        for j in [j for j in self.sparse if j < len(self.data)]:
            self.data[j] = self.sparse.pop(j)
        return True

    def read_cell(self, i: int) -> int:
        """Read cell i. Cells never written read as 0."""
        if i >= len(self.data):
            return self.sparse.get(i, 0)
        return self.data[i]

    def write_cell(self, i: int, value: int):
        """Write cell i, growing storage as needed.

        The value is truncated to the cell type's native width but is NOT
        moved into the band; use clamp_cell() for that.
        """
        value = self.cell_type.coerce(value)
        if self._grow(i):
            self.data[i] = value
        else:
            self.sparse[i] = value

    # --- Band arithmetic ---

    def increment_cell(self, i: int):
        cell = self.read_cell(i)
        if cell >= self.max_cell_value:
            self.write_cell(i, self.min_cell_value)
        else:
            self.write_cell(i, cell + 1)

    def decrement_cell(self, i: int):
        cell = self.read_cell(i)
        if cell <= self.min_cell_value:
            self.write_cell(i, self.max_cell_value)
        else:
            self.write_cell(i, cell - 1)

    def clamp_cell(self, i: int):
        """Move an externally set value back into the band.

        Repeatedly subtracts (above max) or adds (below min) the band width
        max - min, computed in closed form. A zero-width band pins the cell
        to min. Already in-band values are untouched.
        """
        low, high = self.min_cell_value, self.max_cell_value
        width = high - low
        value = self.read_cell(i)
        if width == 0:
            value = low
        elif value > high:
            value -= -(-(value - high) // width) * width
        elif value < low:
            value += -(-(low - value) // width) * width
        self.write_cell(i, value)

    def set_bounds(self, lower: int, upper: int):
        """Set the value band.

        Existing cells are left as they are, even when they now fall
        outside the band.
        """
        if not (self.cell_type.contains(lower) and self.cell_type.contains(upper)):
            raise ValueError(
                f"bounds [{lower}, {upper}] outside the {self.cell_type} range "
                f"[{self.cell_type.min_value}, {self.cell_type.max_value}]"
            )
        if lower > upper:
            raise ValueError(f"lower bound {lower} is above upper bound {upper}")
        self.min_cell_value = lower
        self.max_cell_value = upper

    def clear(self):
        self.data.clear()
        self.sparse.clear()
        self.data_pointer = 0

    def dump(self) -> str:
        """The dense cells as a list, then any sparse cells as index: value."""
        text = repr(self.data)
        if self.sparse:
            text += " " + repr(dict(sorted(self.sparse.items())))
        return text
