"""
Batch command line interface for the BlockSlice grid engine.

Runs grid detection (with the aspect-ratio fallback) over image files and
prints one suggestion per image. Handy for checking how a folder of sticker
sheets will be split before opening them in the slicer.

Usage examples
--------------

Suggest grids for every image in ``sheets/`` and save a CSV summary::

    python -m blockslice.cli sheets --metrics-path grids.csv

Only use the aspect-ratio heuristic, on the centred square crop::

    python -m blockslice.cli photo.jpg --heuristic-only --crop-mode square
"""

from __future__ import annotations

import argparse
import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from PIL import Image

from .config import DetectionConfig
from .detection import suggest_grid
from .heuristics import suggest_grid_dimensions
from .layout import CROP_MODES, block_size, crop_origin, processed_dimensions

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}

CSV_FIELDS = [
    "image",
    "width",
    "height",
    "rows",
    "cols",
    "confidence",
    "block_width",
    "block_height",
    "reason",
]


@dataclass
class BatchConfig:
    """Runtime configuration derived from CLI arguments."""

    inputs: Sequence[Path]
    detection: DetectionConfig
    heuristic_only: bool
    crop_mode: str
    metrics_path: Optional[Path]


def _gather_images(sources: Sequence[Path], recursive: bool) -> List[Path]:
    """Collect candidate image files from the provided locations."""
    seen: set[Path] = set()
    images: List[Path] = []

    for source in sources:
        if source.is_dir():
            iterator: Iterable[Path]
            iterator = source.rglob("*") if recursive else source.iterdir()
            for candidate in iterator:
                if not candidate.is_file():
                    continue
                if candidate.suffix.lower() not in IMAGE_EXTENSIONS:
                    continue
                resolved = candidate.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                images.append(resolved)
        elif source.is_file():
            if source.suffix.lower() not in IMAGE_EXTENSIONS:
                print(f"[WARN] Skipping unsupported file: {source}")
                continue
            resolved = source.resolve()
            if resolved not in seen:
                seen.add(resolved)
                images.append(resolved)
        else:
            print(f"[WARN] Input path not found: {source}")

    images.sort()
    return images


def _process_single_image(image_path: Path, cfg: BatchConfig) -> Optional[dict]:
    """Suggest a grid for one image and return its CSV record."""
    try:
        with Image.open(image_path) as img:
            img.load()
            width, height = img.size
            area_w, area_h = processed_dimensions(width, height, cfg.crop_mode)
            if (area_w, area_h) != (width, height):
                ox, oy = crop_origin(width, height, cfg.crop_mode)
                img = img.crop((ox, oy, ox + area_w, oy + area_h))

            if cfg.heuristic_only:
                suggestion = suggest_grid_dimensions(area_w, area_h)
            else:
                suggestion = suggest_grid(img, config=cfg.detection)
    except Exception as exc:  # pylint: disable=broad-except
        print(f"[ERROR] Failed to process {image_path.name}: {exc}")
        return None

    block_w, block_h = block_size(area_w, area_h, suggestion.rows, suggestion.cols)
    print(
        f"[OK] {image_path.name}: {suggestion.rows}x{suggestion.cols} "
        f"({suggestion.confidence.value}) block={block_w}x{block_h}px - {suggestion.reason}"
    )

    return {
        "image": image_path.name,
        "width": width,
        "height": height,
        "rows": suggestion.rows,
        "cols": suggestion.cols,
        "confidence": suggestion.confidence.value,
        "block_width": block_w,
        "block_height": block_h,
        "reason": suggestion.reason,
    }


def _write_metrics_csv(records: List[dict], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(records)
    print(f"[INFO] Suggestions written to {path}")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    defaults = DetectionConfig()
    parser = argparse.ArgumentParser(description="Suggest slicing grids for images.")
    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="Image files or directories to analyse.",
    )
    parser.add_argument(
        "--heuristic-only",
        action="store_true",
        help="Skip pixel analysis and use the aspect-ratio heuristic.",
    )
    parser.add_argument(
        "--crop-mode",
        choices=list(CROP_MODES),
        default="original",
        help="Analyse the whole image or its centred square.",
    )
    parser.add_argument(
        "--max-dim",
        type=int,
        default=defaults.max_dim,
        help=f"Longest side after downsampling (default: {defaults.max_dim}).",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=defaults.edge_threshold,
        help=f"Mean per-channel gradient that counts as an edge (default: {defaults.edge_threshold:g}).",
    )
    parser.add_argument(
        "--coverage",
        type=float,
        default=defaults.edge_coverage,
        help=f"Fraction of a column/row that must be edge (default: {defaults.edge_coverage:g}).",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=defaults.spacing_tolerance,
        help=f"Spacing bucket width as a fraction of the dimension (default: {defaults.spacing_tolerance:g}).",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="When inputs include directories, walk them recursively.",
    )
    parser.add_argument(
        "--metrics-path",
        type=Path,
        help="Write a CSV summary to the provided path.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging during detection.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    images = _gather_images(args.inputs, recursive=args.recursive)
    if not images:
        print("[ERROR] No matching images found.")
        return

    try:
        detection = DetectionConfig(
            max_dim=args.max_dim,
            edge_threshold=args.threshold,
            edge_coverage=args.coverage,
            spacing_tolerance=args.tolerance,
        )
    except ValueError as exc:
        print(f"[ERROR] {exc}")
        return

    cfg = BatchConfig(
        inputs=images,
        detection=detection,
        heuristic_only=args.heuristic_only,
        crop_mode=args.crop_mode,
        metrics_path=args.metrics_path.resolve() if args.metrics_path else None,
    )

    print(f"[INFO] Found {len(images)} image(s) to analyse")

    records: List[dict] = []
    for image_path in images:
        record = _process_single_image(image_path, cfg)
        if record is not None:
            records.append(record)

    if records and cfg.metrics_path:
        _write_metrics_csv(records, cfg.metrics_path)


if __name__ == "__main__":
    main()
