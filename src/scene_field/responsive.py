"""
Viewport helpers for hover bubbles and layout decisions.
"""

import logging
from typing import List

logger = logging.getLogger(__name__)

SMALL_SCREEN_WIDTH = 768
EDGE_SMALL = 100
EDGE_LARGE = 150

LEFT_PCT_DESKTOP = 0.80
RIGHT_PCT_DESKTOP = 0.20
LEFT_PCT_MOBILE = 0.60

_inverted_thresholds_reported = False


def classify_viewport_proximity(
    x: float,
    y: float,
    width: float,
    height: float,
    desktop_layout: bool = True,
) -> str:
    """
    Space-separated position classes for a point in the viewport.

    Vertical: ``is-top`` / ``is-bottom`` within 100 px (small screens) or
    150 px of an edge. Horizontal: ``is-left`` / ``is-right`` on mobile
    split at 60% of the width; on desktop ``is-mid`` is tested between the
    left and right thresholds.

    Note:
        The desktop thresholds are inverted (left 0.80 > right 0.20), so
        ``is-mid`` is never produced. The behaviour is kept as is.
    """
    small = width < SMALL_SCREEN_WIDTH
    edge = EDGE_SMALL if small else EDGE_LARGE

    classes: List[str] = []
    if y < edge:
        classes.append("is-top")
    if y > height - edge:
        classes.append("is-bottom")

    if small or not desktop_layout:
        classes.append("is-left" if x < width * LEFT_PCT_MOBILE else "is-right")
    else:
        _report_inverted_thresholds()
        in_mid = width * LEFT_PCT_DESKTOP <= x <= width * RIGHT_PCT_DESKTOP
        if in_mid:
            classes.append("is-mid")
        elif x < width * LEFT_PCT_DESKTOP:
            classes.append("is-left")
        else:
            classes.append("is-right")

    return " ".join(classes)


def _report_inverted_thresholds() -> None:
    global _inverted_thresholds_reported
    if _inverted_thresholds_reported or LEFT_PCT_DESKTOP <= RIGHT_PCT_DESKTOP:
        return
    _inverted_thresholds_reported = True
    logger.warning(
        f"Desktop proximity thresholds are inverted (left {LEFT_PCT_DESKTOP} > right "
        f"{RIGHT_PCT_DESKTOP}); 'is-mid' is unreachable"
    )
