"""Palette selection and nearest-color mapping.

Two ways to pick the palette:

* fixed   : the 16 classic VGA colors in :data:`FIXED_PALETTE`
* adaptive: a median-cut palette built from the pixels themselves

Either way every pixel is then mapped to the palette entry with the smallest
squared RGB distance.

Exact ties are always resolved in favour of the earliest candidate: the first
box in box order when two boxes share the widest range, red before green
before blue when picking the split channel, the current member order when
sorting (``sorted`` is stable), and the lowest palette index when two entries
are equally close to a pixel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from operator import itemgetter
from typing import Dict, List, Optional, Sequence, Tuple

from .raster import Color, ConversionError, IndexedRaster, Palette, Raster

logger = logging.getLogger(__name__)

NUM_COLORS = 16
MAX_INDEXED_COLORS = 256
BLACK: Color = (0, 0, 0)

# Palette index reference:
#  0: Black         8: Dark Gray
#  1: Blue          9: Light Blue
#  2: Green        10: Light Green
#  3: Cyan         11: Light Cyan
#  4: Red          12: Light Red
#  5: Magenta      13: Light Magenta
#  6: Brown        14: Yellow
#  7: Light Gray   15: White
FIXED_PALETTE: Palette = (
    (0, 0, 0),
    (0, 0, 170),
    (0, 170, 0),
    (0, 170, 170),
    (170, 0, 0),
    (170, 0, 170),
    (170, 85, 0),
    (170, 170, 170),
    (85, 85, 85),
    (85, 85, 255),
    (85, 255, 85),
    (85, 255, 255),
    (255, 85, 85),
    (255, 85, 255),
    (255, 255, 85),
    (255, 255, 255),
)


@dataclass
class ColorBox:
    """A ``[start, end)`` slice of the shared color list plus its channel bounds."""

    start: int
    end: int
    low: Tuple[int, int, int]
    high: Tuple[int, int, int]

    @classmethod
    def from_range(cls, colors: Sequence[Color], start: int, end: int) -> "ColorBox":
        members = colors[start:end]
        low = tuple(min(c[ch] for c in members) for ch in range(3))
        high = tuple(max(c[ch] for c in members) for ch in range(3))
        return cls(start, end, low, high)  # type: ignore[arg-type]

    @property
    def count(self) -> int:
        return self.end - self.start

    def channel_ranges(self) -> Tuple[int, int, int]:
        return (
            self.high[0] - self.low[0],
            self.high[1] - self.low[1],
            self.high[2] - self.low[2],
        )

    def largest_range(self) -> int:
        return max(self.channel_ranges())

    def widest_channel(self) -> int:
        ranges = self.channel_ranges()
        # list.index returns the first match, giving R > G > B on ties.
        return ranges.index(max(ranges))

    def mean_color(self, colors: Sequence[Color]) -> Color:
        members = colors[self.start : self.end]
        n = len(members)
        r = sum(c[0] for c in members) // n
        g = sum(c[1] for c in members) // n
        b = sum(c[2] for c in members) // n
        return r, g, b


def _select_box(boxes: Sequence[ColorBox]) -> Optional[ColorBox]:
    best: Optional[ColorBox] = None
    best_range = 0
    for box in boxes:
        if box.count < 2:
            continue
        spread = box.largest_range()
        if spread > best_range:
            best = box
            best_range = spread
    return best


def _split_box(colors: List[Color], box: ColorBox) -> ColorBox:
    """Split ``box`` at its median in place and return the new upper half."""

    channel = box.widest_channel()
    colors[box.start : box.end] = sorted(colors[box.start : box.end], key=itemgetter(channel))
    middle = box.start + box.count // 2

    upper = ColorBox.from_range(colors, middle, box.end)
    lower = ColorBox.from_range(colors, box.start, middle)
    box.end = lower.end
    box.low = lower.low
    box.high = lower.high
    return upper


def build_median_cut_palette(raster: Raster, color_count: int = NUM_COLORS) -> Palette:
    """Build an adaptive palette with ``color_count`` entries by median cut.

    Colors are not deduplicated, so large flat areas weigh more when boxes are
    chosen and split. Splitting stops early when no box holds two or more
    distinct colors; the remaining palette slots are filled with black.
    """
    _check_color_count(color_count)

    colors: List[Color] = list(raster.iter_colors())
    boxes = [ColorBox.from_range(colors, 0, len(colors))]

    while len(boxes) < color_count:
        box = _select_box(boxes)
        if box is None:
            logger.debug("median cut stopped early with %d of %d boxes", len(boxes), color_count)
            break
        boxes.append(_split_box(colors, box))

    palette = [box.mean_color(colors) for box in boxes]
    palette.extend([BLACK] * (color_count - len(palette)))
    return tuple(palette)


def nearest_palette_index(rgb: Color, palette: Sequence[Color]) -> int:
    """
    Return the palette entry closest to ``rgb`` using squared distance.
    Iterates every palette entry and tracks the index with the smallest
    Euclidean distance in RGB space. Squared distances are used to avoid an
    unnecessary square root while preserving ordering.
    """
    r, g, b = rgb
    best_idx = 0
    best_dist = float("inf")
    for i, (pr, pg, pb) in enumerate(palette):
        dist = (r - pr) ** 2 + (g - pg) ** 2 + (b - pb) ** 2
        if dist < best_dist:
            best_idx = i
            best_dist = dist
    return best_idx


def map_to_palette(raster: Raster, palette: Sequence[Color]) -> IndexedRaster:
    """Replace every pixel with the index of its nearest palette entry."""

    if not palette:
        raise ConversionError("Palette must contain at least one color")
    if len(palette) > MAX_INDEXED_COLORS:
        raise ConversionError(f"Palette cannot exceed {MAX_INDEXED_COLORS} colors")

    data = raster.data
    cache: Dict[bytes, int] = {}
    indices = bytearray(raster.width * raster.height)
    for pos, offset in enumerate(range(0, len(data), 3)):
        key = data[offset : offset + 3]
        index = cache.get(key)
        if index is None:
            index = nearest_palette_index((key[0], key[1], key[2]), palette)
            cache[key] = index
        indices[pos] = index

    logger.debug("mapped %d distinct colors onto %d palette entries", len(cache), len(palette))
    return IndexedRaster(raster.width, raster.height, bytes(indices))


def quantize(
    raster: Raster, color_count: int = NUM_COLORS, adaptive: bool = False
) -> Tuple[Palette, IndexedRaster]:
    """Pick a palette for ``raster`` and map every pixel onto it."""

    if adaptive:
        palette = build_median_cut_palette(raster, color_count)
    else:
        if color_count != len(FIXED_PALETTE):
            raise ConversionError(
                f"The fixed palette has {len(FIXED_PALETTE)} colors; got color count {color_count}"
            )
        palette = FIXED_PALETTE
    mode = "adaptive" if adaptive else "fixed"
    logger.debug("quantize %dx%d with %s palette", raster.width, raster.height, mode)
    return palette, map_to_palette(raster, palette)


def _check_color_count(color_count: int) -> None:
    if color_count < 1 or color_count > MAX_INDEXED_COLORS:
        raise ConversionError(
            f"Color count must be between 1 and {MAX_INDEXED_COLORS}, got {color_count}"
        )


def format_palette_text(palette: Sequence[Color]) -> str:
    entries = [f"{idx}: ({r},{g},{b})" for idx, (r, g, b) in enumerate(palette)]
    return ", ".join(entries)
