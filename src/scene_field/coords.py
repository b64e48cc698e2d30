"""
Grid-to-pixel coordinate helpers.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .pool import FootRect

ANCHORS = (
    "center",
    "top-left",
    "top",
    "top-right",
    "left",
    "right",
    "bottom-left",
    "bottom",
    "bottom-right",
)


@dataclass(frozen=True)
class PixelRect:
    x: float
    y: float
    w: float
    h: float

    @property
    def cx(self) -> float:
        return self.x + self.w * 0.5

    @property
    def cy(self) -> float:
        return self.y + self.h * 0.5


def cell_center_to_px(cell: float, r: int, c: int) -> Tuple[float, float]:
    """Pixel centre of cell ``(r, c)``."""
    return (c * cell + cell / 2, r * cell + cell / 2)


def cell_rect_to_px(cell: float, rect: FootRect) -> PixelRect:
    """Top-left anchored pixel rectangle of a footprint."""
    return PixelRect(x=rect.c0 * cell, y=rect.r0 * cell, w=rect.w * cell, h=rect.h * cell)


def cell_anchor_to_px(cell: float, rect: FootRect, anchor: str = "top-left") -> Tuple[float, float]:
    """Pixel position of a footprint's top-left corner or centre."""
    if anchor not in ("top-left", "center"):
        raise ValueError(f"Unsupported anchor for cell_anchor_to_px: {anchor!r}")
    if anchor == "center":
        return (rect.c0 * cell + rect.w * cell / 2, rect.r0 * cell + rect.h * cell / 2)
    return (rect.c0 * cell, rect.r0 * cell)


def _clamp01(v: float) -> float:
    return max(0.0, min(1.0, v))


def _anchor_point(box: PixelRect, anchor: str) -> Tuple[float, float]:
    left, top = box.x, box.y
    right, bottom = box.x + box.w, box.y + box.h
    points = {
        "top-left": (left, top),
        "top": (box.cx, top),
        "top-right": (right, top),
        "left": (left, box.cy),
        "right": (right, box.cy),
        "bottom-left": (left, bottom),
        "bottom": (box.cx, bottom),
        "bottom-right": (right, bottom),
    }
    return points.get(anchor, (box.cx, box.cy))


def point_in_footprint(
    cell: float,
    rect: FootRect,
    xy_canvas: Optional[Tuple[float, float]] = None,
    rc: Optional[Tuple[int, int]] = None,
    frac_in_cell: Optional[Tuple[float, float]] = None,
    xy_frac: Optional[Tuple[float, float]] = None,
    anchor: str = "center",
    frac: Optional[Tuple[float, float]] = None,
    px: Tuple[float, float] = (0.0, 0.0),
) -> Tuple[float, float]:
    """
    Canvas-space point inside (or overriding) a footprint.

    Options are tried in priority order:

    1. ``xy_canvas``: absolute canvas coordinates
    2. ``rc``: a sub-cell ``(row, col)`` of the footprint, clamped to it,
       with ``frac_in_cell`` inside that cell (default its centre)
    3. ``xy_frac``: fractions across the whole footprint
    4. ``anchor`` + ``frac``: the midpoint between the anchor point and the
       fractional point (default ``frac`` is ``(0.5, 0.5)``)

    ``px`` is a pixel nudge applied last in every case.

    Returns:
        ``(x, y)`` in pixels

    Raises:
        ValueError: If ``anchor`` is not one of ``ANCHORS``
    """
    if anchor not in ANCHORS:
        raise ValueError(f"Unknown anchor {anchor!r}, expected one of {ANCHORS}")

    box = cell_rect_to_px(cell, rect)
    nx, ny = px

    if xy_canvas is not None:
        return (xy_canvas[0] + nx, xy_canvas[1] + ny)

    if rc is not None:
        rr = max(0, min(rect.h - 1, rc[0]))
        cc = max(0, min(rect.w - 1, rc[1]))
        fx, fy = frac_in_cell if frac_in_cell is not None else (0.5, 0.5)
        sub_x = box.x + cc * cell
        sub_y = box.y + rr * cell
        return (sub_x + _clamp01(fx) * cell + nx, sub_y + _clamp01(fy) * cell + ny)

    if xy_frac is not None:
        return (box.x + box.w * _clamp01(xy_frac[0]) + nx, box.y + box.h * _clamp01(xy_frac[1]) + ny)

    ax, ay = _anchor_point(box, anchor)
    fx, fy = frac if frac is not None else (0.5, 0.5)
    frac_x = box.x + box.w * _clamp01(fx)
    frac_y = box.y + box.h * _clamp01(fy)

    # Anchor and fractional point are averaged, neither overrides the other
    return ((ax + frac_x) * 0.5 + nx, (ay + frac_y) * 0.5 + ny)
