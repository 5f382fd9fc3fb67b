"""Centered crop that matches a target aspect ratio."""

from __future__ import annotations

import logging
from typing import Optional

from .raster import DimensionError, Raster, check_dimensions

logger = logging.getLogger(__name__)


def crop_raster(src: Raster, left: int, top: int, width: int, height: int) -> Raster:
    check_dimensions(width, height)
    if left < 0 or top < 0 or left + width > src.width or top + height > src.height:
        raise DimensionError(
            f"Crop box ({left},{top},{width}x{height}) lies outside {src.width}x{src.height}"
        )

    row_bytes = src.width * 3
    start = left * 3
    end = start + width * 3
    data = src.data
    rows = [data[y * row_bytes + start : y * row_bytes + end] for y in range(top, top + height)]
    return Raster(width, height, b"".join(rows))


def crop_to_aspect(src: Raster, target_width: int, target_height: int) -> Optional[Raster]:
    """Crop ``src`` symmetrically so its aspect ratio matches the target.

    Too-wide sources lose columns on both sides, too-tall sources lose rows at
    top and bottom. Returns ``None`` when the aspect ratios already match; the
    caller keeps using ``src`` in that case.
    """
    check_dimensions(target_width, target_height)

    # Exact comparison of width/height against target_width/target_height.
    lhs = src.width * target_height
    rhs = target_width * src.height
    if lhs == rhs:
        return None

    target_aspect = target_width / target_height
    if lhs > rhs:
        new_width = max(1, int(src.height * target_aspect + 0.5))
        crop_x = (src.width - new_width) // 2
        logger.debug("crop columns: %d -> %d at x=%d", src.width, new_width, crop_x)
        return crop_raster(src, crop_x, 0, new_width, src.height)

    new_height = max(1, int(src.width / target_aspect + 0.5))
    crop_y = (src.height - new_height) // 2
    logger.debug("crop rows: %d -> %d at y=%d", src.height, new_height, crop_y)
    return crop_raster(src, 0, crop_y, src.width, new_height)
