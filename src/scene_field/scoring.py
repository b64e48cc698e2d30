"""
Candidate scoring for footprint placement.
"""

import math
from typing import Optional, Sequence, Tuple

from .catalog import Variant
from .pool import FootRect
from .rules import SceneRules
from .utils.hashing import rand01_keyed

CENTER_WEIGHT = 0.08
SEPARATION_WEIGHT = 3.0
JITTER_SCALE = 0.25


def candidate_key(r0: int, c0: int, w: int, h: int, salt: int) -> str:
    return f"cand|{r0},{c0},{w},{h}|{salt}"


def score_candidate(
    r0: int,
    c0: int,
    w: int,
    h: int,
    cols: int,
    used_rows: int,
    placed: Sequence[Tuple[FootRect, Optional[Variant]]],
    salt: int,
    variant: Optional[Variant],
    rules: SceneRules,
    center_bias: bool = True,
    center_weight: float = CENTER_WEIGHT,
    separation_weight: float = SEPARATION_WEIGHT,
    jitter_scale: float = JITTER_SCALE,
) -> float:
    """
    Score a top-left position for a ``w x h`` footprint. Higher is better.

    Sum of a mild pull toward the centre of the used area, a soft penalty
    for sitting closer than the variant's separation to an already placed
    item of the same group, and a small deterministic jitter.
    """
    cx = c0 + w / 2
    cy = r0 + h / 2

    center_term = 0.0
    if center_bias:
        d2 = (cx - (cols - 1) / 2) ** 2 + (cy - (used_rows - 1) / 2) ** 2
        center_term = -center_weight * d2

    sep_penalty = 0.0
    if variant is not None:
        sep = rules.separation(variant)
        if sep > 0:
            group = rules.group(variant)
            min_d = math.inf
            for rect, other in placed:
                if other is None or rules.group(other) != group:
                    continue
                px, py = rect.center
                d = math.hypot(cx - px, cy - py)
                if d < min_d:
                    min_d = d
            if min_d < sep:
                sep_penalty = -separation_weight * (sep - min_d) ** 2

    jitter = (rand01_keyed(candidate_key(r0, c0, w, h, salt)) - 0.5) * jitter_scale

    return center_term + sep_penalty + jitter
