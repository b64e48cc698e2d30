"""
Debug previews of composed layouts as PNG images.
"""

from pathlib import Path
from typing import Optional, Sequence

import logging
import matplotlib.pyplot as plt
import numpy as np
from PIL import Image

from .catalog import Variant

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255)
FORBIDDEN = (200, 200, 200)
BELOW_FOLD = (238, 238, 246)
GRID_LINE = (225, 225, 225)

VARIANT_COLORS = {
    variant: tuple(int(v) for v in (rgba[:3] * 255).astype(np.uint8))
    for variant, rgba in zip(Variant, plt.cm.tab20(np.linspace(0, 1, len(Variant))))
}


def layout_image(
    placed: Sequence,
    mask: np.ndarray,
    cell_px: int = 16,
    used_rows: Optional[int] = None,
) -> np.ndarray:
    """
    Rasterise a layout.

    Args:
        placed: Placed items with ``variant`` and ``footprint``
        mask: Forbidden-cell mask (grid shape)
        cell_px: Pixel size of one cell
        used_rows: Rows in use; rows below are tinted

    Returns:
        ``(rows * cell_px, cols * cell_px, 3)`` uint8 RGB array
    """
    rows, cols = mask.shape
    image = np.zeros((rows * cell_px, cols * cell_px, 3), dtype=np.uint8)
    image[:] = BACKGROUND

    if used_rows is not None and used_rows < rows:
        image[used_rows * cell_px:] = BELOW_FOLD

    cells = np.kron(mask, np.ones((cell_px, cell_px), dtype=bool))
    image[cells] = FORBIDDEN

    image[::cell_px, :] = GRID_LINE
    image[:, ::cell_px] = GRID_LINE

    for item in placed:
        f = item.footprint
        color = np.array(VARIANT_COLORS.get(item.variant, (0, 0, 0)), dtype=np.uint8)
        y0, y1 = f.r0 * cell_px, (f.r0 + f.h) * cell_px
        x0, x1 = f.c0 * cell_px, (f.c0 + f.w) * cell_px
        image[y0:y1, x0:x1] = color
        # Darker outline so adjacent footprints stay distinguishable
        edge = (color * 0.6).astype(np.uint8)
        image[y0, x0:x1] = edge
        image[y1 - 1, x0:x1] = edge
        image[y0:y1, x0] = edge
        image[y0:y1, x1 - 1] = edge

    return image


def save_preview(
    placed: Sequence,
    mask: np.ndarray,
    output_path: Path,
    cell_px: int = 16,
    used_rows: Optional[int] = None,
) -> Path:
    """Render a layout and save it as PNG."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    image = Image.fromarray(layout_image(placed, mask, cell_px, used_rows))
    image.save(output_path)
    logger.info(f"Saved layout preview: {output_path}")
    return output_path
