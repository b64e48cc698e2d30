"""
Pool items and pool sizing policy.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .catalog import Category, DeviceClass, SceneMode, Variant
from .rules import SceneRules, load_default_rules

logger = logging.getLogger(__name__)

SMALL_MAX_WIDTH = 767
MEDIUM_MAX_WIDTH = 1024


@dataclass(frozen=True)
class FootRect:
    """Claimed grid rectangle: top-left cell plus size in cells."""

    r0: int
    c0: int
    w: int
    h: int

    @property
    def center(self) -> Tuple[float, float]:
        """Centre in cell units as ``(x, y)``."""
        return (self.c0 + self.w / 2, self.r0 + self.h / 2)

    def cells(self):
        for r in range(self.r0, self.r0 + self.h):
            for c in range(self.c0, self.c0 + self.w):
                yield (r, c)

    def overlaps(self, other: "FootRect") -> bool:
        return not (
            self.c0 + self.w <= other.c0
            or other.c0 + other.w <= self.c0
            or self.r0 + self.h <= other.r0
            or other.r0 + other.h <= self.r0
        )


@dataclass(frozen=True)
class PoolItem:
    """
    One element of the scene pool.

    Only ``category`` carries over between passes; ``variant``,
    ``footprint`` (w, h), ``placement`` and pixel position are recomputed.
    """

    id: int
    category: Category = Category.A
    variant: Optional[Variant] = None
    footprint: Optional[Tuple[int, int]] = None
    placement: Optional[FootRect] = None
    x: Optional[float] = None
    y: Optional[float] = None

    def cleared(self) -> "PoolItem":
        """Copy keeping only identity and category."""
        return PoolItem(id=self.id, category=self.category)

    def with_category(self, category: Category) -> "PoolItem":
        return replace(self, category=category)


def device_class(width: Optional[float]) -> DeviceClass:
    """Classify a viewport width. Unknown width is treated as large."""
    if width is None:
        return DeviceClass.LARGE
    if width <= SMALL_MAX_WIDTH:
        return DeviceClass.SMALL
    if width <= MEDIUM_MAX_WIDTH:
        return DeviceClass.MEDIUM
    return DeviceClass.LARGE


def pool_size(mode: SceneMode, device: DeviceClass, rules: Optional[SceneRules] = None) -> int:
    rules = rules or load_default_rules()
    return rules.pool_sizes[mode][device]


def target_pool_size(
    mode: SceneMode,
    width: Optional[float] = None,
    rules: Optional[SceneRules] = None,
) -> int:
    """Pool size for a mode at a viewport width (unknown width -> large)."""
    return pool_size(mode, device_class(width), rules)


def make_default_pool(n: int) -> List[PoolItem]:
    """Pool of ``n`` items with ids 1..n, all in category A."""
    return [PoolItem(id=i, category=Category.A) for i in range(1, max(0, n) + 1)]


def ensure_pool_size(pool: Sequence[PoolItem], desired: int) -> List[PoolItem]:
    """
    Truncate or extend a pool to ``desired`` items.

    New items get ids after the current maximum and category A. Existing
    items are returned unchanged.
    """
    if desired <= 0:
        return []
    items = list(pool)
    if len(items) >= desired:
        return items[:desired]

    next_id = max((p.id for p in items), default=0) + 1
    added = desired - len(items)
    items.extend(PoolItem(id=next_id + k, category=Category.A) for k in range(added))
    logger.debug(f"Extended pool by {added} items to {desired}")
    return items
