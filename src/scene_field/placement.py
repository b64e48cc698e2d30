"""
Footprint placement on the occupancy grid.

Each item with an assigned variant is placed inside its vertical band at
the best-scoring free position. Items whose band offers no legal position
go through a fallback scan of all free cells; items that still do not fit
are dropped.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .bands import resolve_band
from .catalog import DeviceClass, Variant
from .coords import cell_center_to_px
from .grid import GridGeometry, allowed_segments, footprint_allowed
from .occupancy import OccupancyGrid
from .pool import FootRect, PoolItem
from .rules import SceneRules, load_default_rules
from .scoring import CENTER_WEIGHT, JITTER_SCALE, SEPARATION_WEIGHT, score_candidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementConfig:
    """Scoring weights and fallback tuning."""

    center_weight: float = CENTER_WEIGHT
    separation_weight: float = SEPARATION_WEIGHT
    jitter_scale: float = JITTER_SCALE
    cursor_backoff: int = 2
    below_fold_row_stretch: float = 2.0

    @classmethod
    def from_dict(cls, config: dict) -> "PlacementConfig":
        """Create config from dictionary."""
        placement = cls(
            center_weight=float(config.get("center_weight", CENTER_WEIGHT)),
            separation_weight=float(config.get("separation_weight", SEPARATION_WEIGHT)),
            jitter_scale=float(config.get("jitter_scale", JITTER_SCALE)),
            cursor_backoff=int(config.get("cursor_backoff", 2)),
            below_fold_row_stretch=float(config.get("below_fold_row_stretch", 2.0)),
        )
        if placement.cursor_backoff < 0:
            raise ValueError(f"cursor_backoff must be >= 0, got {placement.cursor_backoff}")
        if placement.center_weight < 0 or placement.separation_weight < 0 or placement.jitter_scale < 0:
            raise ValueError("Placement weights must be non-negative")
        return placement


@dataclass(frozen=True)
class PlacedItem:
    id: int
    x: float
    y: float
    variant: Optional[Variant]
    footprint: FootRect


@dataclass
class PlacementResult:
    placed: List[PlacedItem]
    pool: List[PoolItem]
    dropped: List[int]


def build_fallback_cells(
    mask: np.ndarray,
    used_rows: int,
    overlay: bool = False,
    row_stretch: float = 2.0,
) -> List[Tuple[int, int]]:
    """
    Non-forbidden cells in fallback scan order.

    Row-major in overlay mode; otherwise ordered by squared distance to the
    centre of the used area. Rows below the used area count as ``row_stretch``
    times farther away per row.
    """
    rows, cols = mask.shape
    cells = [(r, c) for r in range(rows) for c in range(cols) if not mask[r, c]]
    if overlay:
        return cells

    cx = (cols - 1) / 2
    cy = (used_rows - 1) / 2

    def distance2(cell: Tuple[int, int]) -> float:
        r, c = cell
        ry = r if r < used_rows else (used_rows - 1) + (r - used_rows + 1) * row_stretch
        return (c - cx) ** 2 + (ry - cy) ** 2

    return sorted(cells, key=distance2)


class OccupancyPlacer:
    """
    Places pool items on a grid one at a time.

    Args:
        geometry: Grid geometry
        mask: Forbidden-cell mask matching the geometry
        device: Device class, for band lookup
        salt: Jitter salt
        questionnaire: Use questionnaire band overrides
        overlay: Use overlay band overrides and disable the centre pull
        rules: Rule tables
        config: Scoring weights
    """

    def __init__(
        self,
        geometry: GridGeometry,
        mask: np.ndarray,
        device: DeviceClass,
        salt: int,
        questionnaire: bool = False,
        overlay: bool = False,
        rules: Optional[SceneRules] = None,
        config: Optional[PlacementConfig] = None,
    ):
        self.geometry = geometry
        self.mask = mask
        self.device = device
        self.salt = salt
        self.questionnaire = questionnaire
        self.overlay = overlay
        self.rules = rules or load_default_rules()
        self.config = config or PlacementConfig()

        self.occupancy = OccupancyGrid(geometry.rows, geometry.cols, mask)
        self.fallback_cells = build_fallback_cells(
            mask, geometry.used_rows, overlay, self.config.below_fold_row_stretch
        )
        self.cursor = 0
        self._placed: List[Tuple[FootRect, Optional[Variant]]] = []

    def place_all(self, pool: Sequence[PoolItem]) -> PlacementResult:
        """
        Place every item in pool order.

        Returns:
            PlacementResult with the placed items, a copy of the pool with
            ``placement``/``x``/``y`` filled for placed items, and the ids
            of items that did not fit
        """
        placed: List[PlacedItem] = []
        out_pool: List[PoolItem] = []
        dropped: List[int] = []

        for item in pool:
            base = replace(item, placement=None, x=None, y=None)
            if item.variant is None or item.footprint is None:
                out_pool.append(base)
                continue

            hit = self.place_one(item.variant, *item.footprint)
            if hit is None:
                logger.debug(f"Dropped item {item.id} ({item.variant.value}): no free position")
                dropped.append(item.id)
                out_pool.append(base)
                continue

            x, y = self.pixel_position(hit, item.variant)
            placed.append(PlacedItem(id=item.id, x=x, y=y, variant=item.variant, footprint=hit))
            out_pool.append(replace(base, placement=hit, x=x, y=y))

        return PlacementResult(placed=placed, pool=out_pool, dropped=dropped)

    def place_one(self, variant: Variant, w: int, h: int) -> Optional[FootRect]:
        """Claim a rectangle for one ``w x h`` item, or None."""
        geo = self.geometry
        top, bot = resolve_band(
            variant, geo.used_rows, self.device, h, self.questionnaire, self.overlay, self.rules
        )

        candidates = []
        for r0 in range(top, min(bot, geo.rows - h) + 1):
            for c_start, c_end in allowed_segments(r0, w, h, self.mask):
                for c0 in range(c_start, c_end + 1):
                    score = score_candidate(
                        r0,
                        c0,
                        w,
                        h,
                        geo.cols,
                        geo.used_rows,
                        self._placed,
                        self.salt,
                        variant,
                        self.rules,
                        center_bias=not self.overlay,
                        center_weight=self.config.center_weight,
                        separation_weight=self.config.separation_weight,
                        jitter_scale=self.config.jitter_scale,
                    )
                    candidates.append((score, r0, c0))

        hit = None
        if candidates:
            # Stable: equal scores keep scan order
            candidates.sort(key=lambda cand: cand[0], reverse=True)
            for _, r0, c0 in candidates:
                hit = self.occupancy.try_claim(r0, c0, w, h)
                if hit is not None:
                    break
        else:
            hit = self._fallback(top, bot, w, h)

        if hit is not None:
            self._placed.append((hit, variant))
        return hit

    def _fallback(self, top: int, bot: int, w: int, h: int) -> Optional[FootRect]:
        for k in range(self.cursor, len(self.fallback_cells)):
            r, c = self.fallback_cells[k]
            if r < top or r > bot:
                continue
            if not footprint_allowed(r, c, w, h, self.mask):
                continue
            hit = self.occupancy.try_claim(r, c, w, h)
            if hit is not None:
                self.cursor = max(k - self.config.cursor_backoff, 0)
                return hit
        return None

    def pixel_position(self, rect: FootRect, variant: Optional[Variant]) -> Tuple[float, float]:
        cell = self.geometry.cell
        if variant == self.rules.landmark_variant:
            return ((rect.c0 + rect.w / 2) * cell, (rect.r0 + rect.h / 2) * cell)
        return cell_center_to_px(cell, rect.r0 + rect.h // 2, rect.c0 + rect.w // 2)
