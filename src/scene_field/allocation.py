"""
Sticky category reallocation.

Moves the pool toward target category counts while relabelling as few
items as possible, so most items keep their category between passes.
"""

import logging
from typing import Dict, List, Mapping, Sequence

from .catalog import Category, CATEGORY_ORDER
from .quota import scale_to_count

logger = logging.getLogger(__name__)


def reallocate_categories(
    current: Sequence[Category],
    target_counts: Mapping[Category, int],
) -> List[Category]:
    """
    Relabel the fewest items so category counts match ``target_counts``.

    Args:
        current: Category of each pool item, by position
        target_counts: Desired count per category. If the counts do not sum
            to ``len(current)`` they are re-apportioned first.

    Returns:
        New category list of the same length. Positions whose category was
        already wanted keep it.
    """
    n = len(current)
    target = [max(0, int(target_counts.get(c, 0))) for c in CATEGORY_ORDER]
    if sum(target) != n:
        target = scale_to_count(target, n)

    out = list(current)
    idx: Dict[Category, List[int]] = {c: [] for c in CATEGORY_ORDER}
    for i, category in enumerate(out):
        idx[category].append(i)

    need = {c: target[k] - len(idx[c]) for k, c in enumerate(CATEGORY_ORDER)}
    surplus = {c: -need[c] for c in CATEGORY_ORDER}

    changes = 0
    for category in CATEGORY_ORDER:
        while need[category] > 0:
            donor = _largest_surplus(surplus)
            if donor is None:
                break
            i = idx[donor].pop()
            out[i] = category
            idx[category].append(i)
            surplus[donor] -= 1
            need[donor] += 1
            need[category] -= 1
            surplus[category] += 1
            changes += 1

    if changes:
        logger.debug(f"Reallocated {changes} of {n} items")
    return out


def _largest_surplus(surplus: Mapping[Category, int]):
    best = None
    best_value = 0
    for category in CATEGORY_ORDER:
        if surplus[category] > best_value:
            best = category
            best_value = surplus[category]
    return best


def category_counts(categories: Sequence[Category]) -> Dict[Category, int]:
    counts = {c: 0 for c in CATEGORY_ORDER}
    for category in categories:
        counts[category] += 1
    return counts
