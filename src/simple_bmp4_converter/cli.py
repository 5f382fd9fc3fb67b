"""Command line interface for the simple BMP4 converter."""

from __future__ import annotations

import argparse
import io
import logging
import sys
from pathlib import Path
from typing import Iterable, List

from .bmp import encode_bitmap
from .converter import (
    TARGET_HEIGHT,
    TARGET_WIDTH,
    ConvertOptions,
    convert_raster_to_bmp,
    load_raster,
    prepare_indexed_raster,
)
from .quantize import FIXED_PALETTE, NUM_COLORS, format_palette_text
from .raster import ConversionError, Raster, image_from_indexed

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}
STDIN_MARKER = "-"


def iter_images(paths: Iterable[str]) -> List[Path]:
    results: List[Path] = []
    for raw in paths:
        if raw == STDIN_MARKER:
            results.append(Path(STDIN_MARKER))
            continue
        path = Path(raw)
        if path.is_file():
            results.append(path)
        elif path.is_dir():
            for entry in sorted(path.iterdir()):
                if entry.is_file() and entry.suffix.lower() in IMAGE_SUFFIXES:
                    results.append(entry)
        else:
            raise ConversionError(f"Input path does not exist: {path}")
    if not results:
        raise ConversionError("No image files were found in the provided inputs.")
    if results.count(Path(STDIN_MARKER)) > 1:
        raise ConversionError("Standard input can only be given once.")
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Convert images into 16-color (4 bits per pixel) BMP files.\n"
            "Images are resized with nearest-neighbour sampling to the target size "
            f"(default {TARGET_WIDTH}x{TARGET_HEIGHT}) and mapped to the fixed VGA palette, "
            "or to a median-cut palette with --adaptive.\n"
            f"VGA palette: {format_palette_text(FIXED_PALETTE)}"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "inputs",
        nargs="+",
        help="Image files, folders containing images (non-recursive), or - for stdin",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        help="Destination directory for .bmp files (omit to write a single result to stdout)",
    )
    parser.add_argument("--prefix", default="", help="Optional prefix for output filenames")
    parser.add_argument("--suffix", default="", help="Optional suffix for output filenames")
    parser.add_argument("--width", type=int, default=TARGET_WIDTH, help="Output width")
    parser.add_argument("--height", type=int, default=TARGET_HEIGHT, help="Output height")
    parser.add_argument(
        "--crop",
        action="store_true",
        help="Crop the source to the output aspect ratio before resizing",
    )
    parser.add_argument(
        "--adaptive",
        action="store_true",
        help="Build the palette from the image with median cut instead of the VGA palette",
    )
    parser.add_argument(
        "--colors",
        type=int,
        default=NUM_COLORS,
        help="Palette size for --adaptive (1-16)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Also write a PNG preview next to each .bmp (requires --output-dir)",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite existing files without prompting",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Print debug logs")
    return parser


def ensure_unique_names(paths: List[Path], prefix: str, suffix: str, extension: str) -> List[str]:
    names: List[str] = []
    seen = set()
    for path in paths:
        stem = "stdin" if str(path) == STDIN_MARKER else path.stem
        name = f"{prefix}{stem}{suffix}.{extension}"
        if name in seen:
            raise ConversionError(f"Duplicate output name would occur: {name}")
        seen.add(name)
        names.append(name)
    return names


def _read_input(path: Path) -> Raster:
    if str(path) == STDIN_MARKER:
        return load_raster(io.BytesIO(sys.stdin.buffer.read()))
    return load_raster(path)


def write_outputs(
    inputs: List[Path],
    names: List[str],
    options: ConvertOptions,
    output_dir: Path,
    force: bool,
    preview: bool,
) -> None:
    conflicts = []
    for name in names:
        targets = [output_dir / name]
        if preview:
            targets.append((output_dir / name).with_suffix(".png"))
        for target in targets:
            if target.exists() and not force:
                conflicts.append(str(target))
    if conflicts:
        raise ConversionError(
            "Output files already exist (use --force to overwrite):\n" + "\n".join(conflicts)
        )

    # Convert everything first so a failing input leaves no files behind.
    results = []
    for src, name in zip(inputs, names):
        palette, indexed = prepare_indexed_raster(_read_input(src), options)
        preview_image = image_from_indexed(indexed, palette) if preview else None
        results.append((output_dir / name, encode_bitmap(indexed, palette), preview_image))

    output_dir.mkdir(parents=True, exist_ok=True)

    for target, data, preview_image in results:
        target.write_bytes(data)
        print(f"wrote {target}", file=sys.stderr)
        if preview_image is not None:
            preview_target = target.with_suffix(".png")
            preview_image.save(preview_target)
            print(f"wrote {preview_target}", file=sys.stderr)


def write_stdout(src: Path, options: ConvertOptions) -> None:
    data = convert_raster_to_bmp(_read_input(src), options)
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s [%(levelname)s] %(message)s")

    try:
        options = ConvertOptions()
        options.width = args.width
        options.height = args.height
        options.crop = args.crop
        options.adaptive = args.adaptive
        options.colors = args.colors
        options.validate()

        inputs = iter_images(args.inputs)
        if args.output_dir is None:
            if len(inputs) != 1:
                raise ConversionError("Writing to stdout needs exactly one input; use --output-dir.")
            if args.preview:
                raise ConversionError("--preview requires --output-dir.")
            write_stdout(inputs[0], options)
            return 0

        output_dir = Path(args.output_dir)
        names = ensure_unique_names(inputs, args.prefix, args.suffix, "bmp")
        write_outputs(inputs, names, options, output_dir, args.force, args.preview)
        return 0
    except ConversionError as exc:
        print(exc, file=sys.stderr)
        return 1
    except MemoryError:
        print("Error: out of memory while converting the image", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
