"""
Layout validation utilities.
"""

import logging
from typing import Iterable, Sequence

import numpy as np

logger = logging.getLogger(__name__)


def validate_layout(placed: Sequence, mask: np.ndarray) -> bool:
    """
    Validate placed footprints against a grid.

    Args:
        placed: Items with a ``footprint`` rectangle (r0, c0, w, h)
        mask: Forbidden-cell mask; its shape is the grid shape

    Returns:
        True if every footprint is in bounds, avoids forbidden cells and
        overlaps no other footprint
    """
    rows, cols = mask.shape
    claimed = np.zeros((rows, cols), dtype=bool)
    valid = True

    for item in placed:
        f = item.footprint
        if f.r0 < 0 or f.c0 < 0 or f.r0 + f.h > rows or f.c0 + f.w > cols:
            logger.error(f"Item {item.id} out of bounds: {f} on {rows}x{cols} grid")
            valid = False
            continue

        region = (slice(f.r0, f.r0 + f.h), slice(f.c0, f.c0 + f.w))
        if mask[region].any():
            logger.error(f"Item {item.id} covers forbidden cells: {f}")
            valid = False
        if claimed[region].any():
            logger.error(f"Item {item.id} overlaps an earlier item: {f}")
            valid = False
        claimed[region] = True

    if valid:
        logger.debug(f"Layout validated: {len(placed)} items")
    return valid


def validate_pool(pool: Iterable) -> bool:
    """
    Validate pool identity.

    Returns:
        True if all ids are unique positive integers
    """
    seen = set()
    for item in pool:
        if item.id <= 0:
            logger.error(f"Pool item has non-positive id: {item.id}")
            return False
        if item.id in seen:
            logger.error(f"Duplicate pool id: {item.id}")
            return False
        seen.add(item.id)
    return True
