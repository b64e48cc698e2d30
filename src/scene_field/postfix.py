"""
Post-placement fix-ups.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from .bands import resolve_band
from .catalog import DeviceClass
from .placement import PlacedItem
from .quota import clamp01
from .rules import SceneRules, load_default_rules

logger = logging.getLogger(__name__)

LANDMARK_SIGNAL_MAX = 0.02


def ensure_landmark(
    placed: List[PlacedItem],
    t: Optional[float],
    used_rows: int,
    device: DeviceClass,
    rules: Optional[SceneRules] = None,
) -> Optional[int]:
    """
    Guarantee one landmark at very low signal.

    When ``t <= 0.02`` and no landmark was placed, the first 1x1 item by
    preference (non-filler inside the landmark band, any inside the band,
    non-filler, any) becomes the landmark. ``placed`` is updated in place.

    Args:
        placed: Placed items, in placement order
        t: Control signal
        used_rows: Used rows of the grid
        device: Device class, for the landmark band
        rules: Rule tables

    Returns:
        Id of the converted item, or None if nothing changed
    """
    rules = rules or load_default_rules()
    landmark = rules.landmark_variant
    filler = rules.filler_variant

    if clamp01(t) > LANDMARK_SIGNAL_MAX:
        return None
    if any(p.variant == landmark for p in placed):
        return None

    top, bot = resolve_band(landmark, used_rows, device, 1, rules=rules)

    def unit(p: PlacedItem) -> bool:
        return p.footprint.w == 1 and p.footprint.h == 1

    def in_band(p: PlacedItem) -> bool:
        return top <= p.footprint.r0 <= bot

    preferences = (
        lambda p: unit(p) and p.variant != filler and in_band(p),
        lambda p: unit(p) and in_band(p),
        lambda p: unit(p) and p.variant != filler,
        unit,
    )

    for accept in preferences:
        for i, item in enumerate(placed):
            if accept(item):
                placed[i] = replace(
                    item,
                    variant=landmark,
                    footprint=replace(item.footprint, w=1, h=1),
                )
                logger.debug(f"Converted item {item.id} to {landmark.value}")
                return item.id

    return None
