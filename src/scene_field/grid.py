"""
Square-cell grid geometry and forbidden zones.

Geometry is derived from the viewport and a GridSpec. Forbidden cells come
from per-row margin rules and are materialised as a numpy boolean mask.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .catalog import SceneMode
from .rules import PERCENT_RE, GridSpec, RowRuleSpec

logger = logging.getLogger(__name__)

MIN_USE_TOP_RATIO = 0.01


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


# ============================================================================
# Geometry
# ============================================================================


@dataclass(frozen=True)
class GridGeometry:
    rows: int
    cols: int
    cell: float
    used_rows: int
    usable_height: int

    @property
    def is_degenerate(self) -> bool:
        return self.rows <= 0 or self.cols <= 0 or self.cell <= 0

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.rows, self.cols)


def build_grid(width: float, height: float, rows: int, use_top_ratio: float = 1.0) -> GridGeometry:
    """
    Compute square-cell geometry for a viewport.

    Args:
        width: Viewport width in pixels
        height: Viewport height in pixels
        rows: Total grid rows
        use_top_ratio: Fraction of the height (and rows) in use, clamped to [0.01, 1]

    Returns:
        GridGeometry. Degenerate input (non-positive rows or size) gives
        ``cols = 0``, ``cell = 0`` and ``used_rows = 0``.
    """
    u = max(MIN_USE_TOP_RATIO, min(1.0, float(use_top_ratio)))

    if rows <= 0 or width <= 0 or height <= 0:
        logger.debug(f"Degenerate grid: {width}x{height}, rows={rows}")
        return GridGeometry(rows=max(0, int(rows)), cols=0, cell=0.0, used_rows=0, usable_height=0)

    usable_height = max(1, round_half_up(height * u))
    cell = usable_height / rows
    cols = int(math.ceil(width / cell))
    used_rows = max(1, round_half_up(rows * u))

    return GridGeometry(rows=rows, cols=cols, cell=cell, used_rows=used_rows, usable_height=usable_height)


# ============================================================================
# Row rules
# ============================================================================


@dataclass(frozen=True)
class RowRule:
    """Row margins resolved to whole columns."""

    left_cols: int = 0
    right_cols: int = 0
    center_cols: int = 0


def parse_margin(value: Union[str, float, None], cols: int) -> int:
    """
    Resolve one margin against ``cols``.

    ``"NN%"`` is a percentage of the columns, a number >= 1 is an absolute
    column count and a number below 1 is a fraction of the columns. All
    results are floored.
    """
    if value is None:
        return 0
    if isinstance(value, str):
        match = PERCENT_RE.match(value)
        if not match:
            raise ValueError(f"Invalid row rule margin: {value!r}")
        return max(0, math.floor(float(match.group(1)) / 100 * cols))
    value = float(value)
    if value >= 1:
        return math.floor(value)
    return math.floor(max(0.0, min(1.0, value)) * cols)


def parse_row_rule(raw: Union[RowRuleSpec, dict], cols: int) -> RowRule:
    if isinstance(raw, dict):
        raw = RowRuleSpec.from_dict(raw)
    return RowRule(
        left_cols=parse_margin(raw.left, cols),
        right_cols=parse_margin(raw.right, cols),
        center_cols=parse_margin(raw.center, cols),
    )


def center_block(center_cols: int, cols: int) -> Optional[Tuple[int, int]]:
    """Inclusive column range of a centred block, or None when empty."""
    if center_cols <= 0:
        return None
    start = max(0, (cols - center_cols) // 2)
    end = min(cols - 1, start + center_cols - 1)
    return (start, end)


def make_forbidden(rules: Sequence[RowRule], cols: int) -> Callable[[int, int], bool]:
    """Pure predicate ``(r, c) -> bool``; row r uses ``rules[min(r, len - 1)]``."""
    rules = list(rules)
    blocks = [center_block(rule.center_cols, cols) for rule in rules]

    def is_forbidden(r: int, c: int) -> bool:
        if not rules:
            return False
        k = min(r, len(rules) - 1)
        rule = rules[k]
        if c < rule.left_cols or c >= cols - rule.right_cols:
            return True
        block = blocks[k]
        return block is not None and block[0] <= c <= block[1]

    return is_forbidden


def forbidden_mask(spec: GridSpec, rows: int, cols: int) -> np.ndarray:
    """Boolean ``rows x cols`` mask of forbidden cells."""
    mask = np.zeros((max(0, rows), max(0, cols)), dtype=bool)
    if rows <= 0 or cols <= 0 or not spec.row_rules:
        return mask

    rules = [parse_row_rule(raw, cols) for raw in spec.row_rules]
    column = np.arange(cols)
    for r in range(rows):
        rule = rules[min(r, len(rules) - 1)]
        row = (column < rule.left_cols) | (column >= cols - rule.right_cols)
        block = center_block(rule.center_cols, cols)
        if block is not None:
            row |= (column >= block[0]) & (column <= block[1])
        mask[r] = row
    return mask


# ============================================================================
# Footprint legality
# ============================================================================


def footprint_allowed(r0: int, c0: int, w: int, h: int, mask: np.ndarray) -> bool:
    """True when the footprint lies in the grid and touches no forbidden cell."""
    rows, cols = mask.shape
    if r0 < 0 or c0 < 0 or r0 + h > rows or c0 + w > cols:
        return False
    return not mask[r0:r0 + h, c0:c0 + w].any()


def allowed_segments(r0: int, w: int, h: int, mask: np.ndarray) -> List[Tuple[int, int]]:
    """
    Runs of legal top-left columns for a ``w x h`` footprint at row ``r0``.

    Returns:
        List of inclusive ``(c_start, c_end)`` ranges, left to right
    """
    rows, cols = mask.shape
    if r0 < 0 or w <= 0 or h <= 0 or r0 + h > rows or w > cols:
        return []

    blocked_cols = mask[r0:r0 + h].any(axis=0)
    legal = ~sliding_window_view(blocked_cols, w).any(axis=1)

    segments = []
    start = None
    for c0, ok in enumerate(legal):
        if ok and start is None:
            start = c0
        elif not ok and start is not None:
            segments.append((start, c0 - 1))
            start = None
    if start is not None:
        segments.append((start, len(legal) - 1))
    return segments


# ============================================================================
# Cache
# ============================================================================


@dataclass(frozen=True)
class GridLayout:
    geometry: GridGeometry
    mask: np.ndarray


class GridCache:
    """
    Memo of geometry and forbidden mask keyed by ``(width, height, mode)``.

    Owned by the caller; nothing here is process-wide.
    """

    def __init__(self):
        self._entries: Dict[Tuple[int, int, SceneMode], GridLayout] = {}
        self.hits = 0
        self.misses = 0

    def get(self, width: int, height: int, mode: SceneMode, spec: GridSpec) -> GridLayout:
        key = (width, height, mode)
        layout = self._entries.get(key)
        if layout is not None:
            self.hits += 1
            return layout

        self.misses += 1
        layout = build_layout(width, height, spec)
        self._entries[key] = layout
        return layout

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key) -> bool:
        return key in self._entries


def build_layout(width: int, height: int, spec: GridSpec) -> GridLayout:
    geometry = build_grid(width, height, spec.rows, spec.use_top_ratio)
    mask = forbidden_mask(spec, geometry.rows, geometry.cols)
    mask.setflags(write=False)
    return GridLayout(geometry=geometry, mask=mask)
