"""
Category mix interpolation and per-variant quota curves.

A control signal ``t`` in [0, 1] selects a float category mix by linear
interpolation between anchors; ``scale_to_count`` turns that mix into exact
integer counts with largest-remainder rounding.
"""

import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .catalog import Category, CurveSet, Variant
from .rules import UNBOUNDED, CategoryAnchor, QuotaAnchor, SceneRules

DEFAULT_SIGNAL = 0.5

SignalMapper = Callable[[Optional[float]], float]


def clamp01(value: Optional[float]) -> float:
    """Clamp to [0, 1]; a missing signal means the midpoint."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return DEFAULT_SIGNAL
    return max(0.0, min(1.0, float(value)))


def _bracket(t: float, anchors: Sequence) -> Tuple[object, object]:
    i = 0
    while i < len(anchors) - 1 and t > anchors[i + 1].t:
        i += 1
    return anchors[i], anchors[min(i + 1, len(anchors) - 1)]


def make_signal_mapper(checkpoints: Sequence[Tuple[float, float]] = ()) -> SignalMapper:
    """
    Build a piecewise-linear map from a raw slider value to the logical signal.

    Args:
        checkpoints: ``(x, t)`` pairs; sorted by ``x`` before use

    Returns:
        Function mapping a slider value to a signal in [0, 1]. With no
        checkpoints it is the clamp itself.
    """
    points = sorted((float(x), float(t)) for x, t in checkpoints)

    def mapper(value: Optional[float]) -> float:
        x = clamp01(value)
        if not points:
            return x
        if x <= points[0][0]:
            return clamp01(points[0][1])
        for (x0, t0), (x1, t1) in zip(points, points[1:]):
            if x <= x1:
                if x1 == x0:
                    return clamp01(t1)
                return clamp01(t0 + (t1 - t0) * (x - x0) / (x1 - x0))
        return clamp01(points[-1][1])

    return mapper


def interpolate_mix(
    t: Optional[float],
    anchors: Sequence[CategoryAnchor],
    mapper: Optional[SignalMapper] = None,
) -> List[float]:
    """
    Interpolate the anchor mixes at ``t``.

    Args:
        t: Control signal; ``None`` means 0.5
        anchors: Category anchors sorted by ``t``
        mapper: Optional slider-to-signal mapping applied after clamping

    Returns:
        Float mix in category order
    """
    signal = clamp01(t)
    if mapper is not None:
        signal = mapper(signal)

    a, b = _bracket(signal, anchors)
    if a.t == b.t:
        return list(a.mix)

    k = (signal - a.t) / (b.t - a.t)
    return [va + (vb - va) * k for va, vb in zip(a.mix, b.mix)]


def scale_to_count(mix: Sequence[float], k_total: int) -> List[int]:
    """
    Scale a float mix to integers summing exactly to ``k_total``.

    Floors each scaled value, then hands the leftover units to the largest
    fractional remainders. Ties go to the lower index.
    """
    k_total = max(0, int(k_total))
    total = sum(mix)
    factor = k_total / (total or 1)

    floats = [v * factor for v in mix]
    out = [math.floor(v) for v in floats]
    used = sum(out)

    if not out:
        return out

    # Stable sort: equal remainders keep index order
    order = sorted(range(len(floats)), key=lambda i: floats[i] - out[i], reverse=True)
    idx = 0
    # An all-zero mix has no remainders, so units go round the indices
    while used < k_total:
        out[order[idx % len(order)]] += 1
        used += 1
        idx += 1

    return out


def counts_from_signal(
    t: Optional[float],
    total: int,
    anchors: Sequence[CategoryAnchor],
    mapper: Optional[SignalMapper] = None,
) -> List[int]:
    """Category counts for ``total`` items at signal ``t``."""
    return scale_to_count(interpolate_mix(t, anchors, mapper), total)


def category_targets(
    t: Optional[float],
    total: int,
    rules: SceneRules,
) -> Dict[Category, int]:
    mapper = make_signal_mapper(rules.signal_mapper) if rules.signal_mapper else None
    counts = counts_from_signal(t, total, rules.category_anchors, mapper)
    return dict(zip(Category, counts))


# ============================================================================
# Per-variant quotas
# ============================================================================


def _blend_limit(a: float, b: float, k: float) -> float:
    if a == UNBOUNDED or b == UNBOUNDED:
        return UNBOUNDED
    return a + (b - a) * k


def variant_quotas(
    category: Category,
    t: Optional[float],
    curve_set: CurveSet,
    rules: SceneRules,
) -> Dict[Variant, float]:
    """
    Per-variant caps for a category at signal ``t``.

    Args:
        category: Category whose curve is evaluated
        t: Control signal
        curve_set: Which named curve set to use
        rules: Rule tables

    Returns:
        Ordered mapping variant -> cap. Finite caps are non-negative whole
        numbers; ``UNBOUNDED`` marks a sink. Every declared variant of the
        category is present.
    """
    anchors: Tuple[QuotaAnchor, ...] = rules.curves(curve_set, category)
    declared = rules.declared_variants(category)
    raw: Dict[Variant, float] = {}

    if anchors:
        signal = clamp01(t)
        a, b = _bracket(signal, anchors)
        if a.t == b.t:
            raw = dict(a.limits)
            for variant, value in b.limits.items():
                raw.setdefault(variant, value)
        else:
            k = (signal - a.t) / (b.t - a.t)
            keys = list(a.limits) + [v for v in b.limits if v not in a.limits]
            raw = {v: _blend_limit(a.limits.get(v, 0.0), b.limits.get(v, 0.0), k) for v in keys}

    out: Dict[Variant, float] = {}
    for variant, value in raw.items():
        out[variant] = UNBOUNDED if value == UNBOUNDED else float(max(0, math.floor(value)))
    for variant in declared:
        out.setdefault(variant, 0.0)
    return out
