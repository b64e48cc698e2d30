"""
Cell occupancy bitmap.
"""

from typing import Optional

import numpy as np

from .pool import FootRect


class OccupancyGrid:
    """
    Boolean ``rows x cols`` occupancy with forbidden cells pre-marked.

    ``try_claim`` checks and marks in one step, so a claimed rectangle can
    never overlap an earlier claim or a forbidden cell.
    """

    def __init__(self, rows: int, cols: int, forbidden: Optional[np.ndarray] = None):
        self.rows = rows
        self.cols = cols
        if forbidden is not None:
            if forbidden.shape != (rows, cols):
                raise ValueError(f"Forbidden mask shape {forbidden.shape} != {(rows, cols)}")
            self.used = forbidden.copy()
        else:
            self.used = np.zeros((rows, cols), dtype=bool)

    def can_place(self, r0: int, c0: int, w: int, h: int) -> bool:
        if r0 < 0 or c0 < 0 or r0 + h > self.rows or c0 + w > self.cols:
            return False
        return not self.used[r0:r0 + h, c0:c0 + w].any()

    def mark(self, r0: int, c0: int, w: int, h: int) -> None:
        self.used[r0:r0 + h, c0:c0 + w] = True

    def try_claim(self, r0: int, c0: int, w: int, h: int) -> Optional[FootRect]:
        if not self.can_place(r0, c0, w, h):
            return None
        self.mark(r0, c0, w, h)
        return FootRect(r0=r0, c0=c0, w=w, h=h)

    @property
    def free_cells(self) -> int:
        return int((~self.used).sum())
