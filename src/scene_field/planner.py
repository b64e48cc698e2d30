"""
Variant assignment within a category.

Items of one category are visited in a deterministic order and take the
first finite-capped variant with room left, then the category's unbounded
sink variant.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from .catalog import Category, CurveSet, Variant
from .pool import PoolItem
from .quota import variant_quotas
from .rules import UNBOUNDED, SceneRules, load_default_rules
from .utils.hashing import MASK32

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Assignment:
    variant: Variant
    footprint: Tuple[int, int]


def footprint_for(category: Category, variant: Variant, rules: SceneRules) -> Tuple[int, int]:
    """
    Footprint ``(w, h)`` of a variant within a category.

    Raises:
        KeyError: If neither the category table nor the default table has
            a footprint for the variant
    """
    footprint = rules.category_footprint(category, variant)
    if footprint is not None:
        return footprint

    default = rules.default_footprints.get(variant)
    if default is not None:
        logger.warning(f"Using default footprint for '{variant.value}' in category {category.value}")
        return default

    raise KeyError(f"No footprint for '{variant.value}' in category {category.value}")


def plan_category(
    category: Category,
    items: Sequence[PoolItem],
    t: Optional[float],
    salt: int = 0,
    curve_set: CurveSet = CurveSet.DEFAULT,
    rules: Optional[SceneRules] = None,
) -> Dict[int, Assignment]:
    """
    Assign a variant and footprint to every item of one category.

    Args:
        category: Category shared by ``items``
        items: Pool items of that category
        t: Control signal
        salt: Tie-break salt for the visiting order
        curve_set: Quota curve set to evaluate
        rules: Rule tables (packaged defaults when omitted)

    Returns:
        Mapping item id -> Assignment
    """
    rules = rules or load_default_rules()
    plan: Dict[int, Assignment] = {}
    if not items:
        return plan

    ordered = sorted(items, key=lambda p: (p.id, (p.id ^ salt) & MASK32))

    quotas = variant_quotas(category, t, curve_set, rules)
    finite = [(v, cap) for v, cap in quotas.items() if cap != UNBOUNDED]
    sinks = [v for v, cap in quotas.items() if cap == UNBOUNDED]
    sink = sinks[0] if sinks else None
    used = {v: 0 for v, _ in finite}

    for item in ordered:
        assigned = None
        for variant, cap in finite:
            if used[variant] < cap:
                used[variant] += 1
                assigned = variant
                break

        if assigned is None:
            assigned = sink if sink is not None else rules.declared_variants(category)[0]

        plan[item.id] = Assignment(variant=assigned, footprint=footprint_for(category, assigned, rules))

    return plan


def assign_variants(
    pool: Sequence[PoolItem],
    t: Optional[float],
    salt: int = 0,
    curve_set: CurveSet = CurveSet.DEFAULT,
    rules: Optional[SceneRules] = None,
) -> List[PoolItem]:
    """Run the planner per category; returns new items with variant and footprint set."""
    rules = rules or load_default_rules()

    by_category: Dict[Category, List[PoolItem]] = {c: [] for c in Category}
    for item in pool:
        by_category[item.category].append(item)

    plan: Dict[int, Assignment] = {}
    for category, items in by_category.items():
        plan.update(plan_category(category, items, t, salt, curve_set, rules))

    out = []
    for item in pool:
        hit = plan.get(item.id)
        if hit is None:
            out.append(item)
        else:
            out.append(replace(item, variant=hit.variant, footprint=hit.footprint))
    return out
