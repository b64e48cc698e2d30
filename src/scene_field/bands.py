"""
Vertical placement bands per variant.

Bands are fractions of the used rows. Mode tables override the base table
variant by variant; unknown variants fall back to the clouds band (sky) or
the house band (ground).
"""

import math
from typing import Optional, Tuple

from .catalog import DeviceClass, Variant, is_sky_variant
from .rules import Band, SceneRules, load_default_rules


def pick_band(
    variant: Optional[Variant],
    device: DeviceClass,
    questionnaire: bool = False,
    overlay: bool = False,
    rules: Optional[SceneRules] = None,
) -> Band:
    """Select the raw band for a variant, honouring mode overrides."""
    rules = rules or load_default_rules()
    variant = variant or Variant.CLOUDS

    if overlay:
        hit = rules.bands.get("overlay", {}).get(device, {}).get(variant)
        if hit is not None:
            return hit

    if questionnaire:
        hit = rules.bands.get("questionnaire", {}).get(device, {}).get(variant)
        if hit is not None:
            return hit

    base = rules.bands["base"][device]
    hit = base.get(variant)
    if hit is not None:
        return hit
    return base[Variant.CLOUDS] if is_sky_variant(variant) else base[Variant.HOUSE]


def clamp_band(band: Band, used_rows: int, footprint_h: int = 1) -> Tuple[int, int]:
    """
    Resolve a fractional band to inclusive absolute rows.

    ``bot`` is pulled up so a footprint of height ``footprint_h`` still fits
    inside the used rows, and ``top`` never exceeds ``bot``.
    """
    top_k = max(0.0, min(1.0, band.top_k))
    bot_k = max(top_k, min(1.0, band.bot_k))

    top = math.floor(used_rows * top_k)
    bot = math.floor(used_rows * bot_k)

    bot = min(used_rows - footprint_h, bot)
    top = max(0, min(top, bot))
    return (top, bot)


def resolve_band(
    variant: Optional[Variant],
    used_rows: int,
    device: DeviceClass,
    footprint_h: int = 1,
    questionnaire: bool = False,
    overlay: bool = False,
    rules: Optional[SceneRules] = None,
) -> Tuple[int, int]:
    """Absolute ``(top, bot)`` row band for a variant."""
    band = pick_band(variant, device, questionnaire, overlay, rules)
    return clamp_band(band, used_rows, footprint_h)
