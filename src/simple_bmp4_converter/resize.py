"""Nearest-neighbour resampling."""

from __future__ import annotations

import logging
from typing import List

from .raster import Raster, check_dimensions

logger = logging.getLogger(__name__)


def source_offsets(source_length: int, target_length: int) -> List[int]:
    """Return the source coordinate sampled for each target coordinate.

    ``floor(i * source_length / target_length)`` computed with integers so the
    result never depends on float rounding.
    """
    return [i * source_length // target_length for i in range(target_length)]


def resize_raster(src: Raster, new_width: int, new_height: int) -> Raster:
    """Resize ``src`` to ``new_width`` x ``new_height`` without filtering.

    Every destination pixel is a verbatim copy of one source pixel, so
    downscaling aliases and upscaling produces blocks.
    """
    check_dimensions(new_width, new_height)

    if src.size == (new_width, new_height):
        return Raster(new_width, new_height, bytes(src.data))

    logger.debug("resize %dx%d -> %dx%d", src.width, src.height, new_width, new_height)

    data = src.data
    row_bytes = src.width * 3
    xs = [x * 3 for x in source_offsets(src.width, new_width)]

    out = bytearray()
    previous_y = -1
    row = b""
    for src_y in source_offsets(src.height, new_height):
        if src_y != previous_y:
            base = src_y * row_bytes
            row = b"".join(data[base + x : base + x + 3] for x in xs)
            previous_y = src_y
        out += row

    return Raster(new_width, new_height, bytes(out))
