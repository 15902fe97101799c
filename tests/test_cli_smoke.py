"""
Smoke tests for the batch CLI.

Runs the whole suggestion flow on a couple of tiny synthetic sheets so
regressions in wiring or output layout are caught early.
"""

from __future__ import annotations

import csv
from pathlib import Path

import numpy as np
from PIL import Image

from blockslice.cli import main as cli_main


def _save_sheet(path: Path, width: int = 400, height: int = 400, cells: int = 4) -> None:
    """Light sheet with dark 2px dividers between cells x cells cells."""
    pixels = np.full((height, width, 3), 235, dtype=np.uint8)
    for i in range(1, cells):
        x = i * width // cells
        y = i * height // cells
        pixels[:, x:x + 2] = 20
        pixels[y:y + 2, :] = 20
    Image.fromarray(pixels).save(path)


def _save_blank(path: Path, width: int = 300, height: int = 200) -> None:
    Image.fromarray(np.full((height, width, 3), 128, dtype=np.uint8)).save(path)


def _read_rows(path: Path) -> dict:
    with path.open(newline="", encoding="utf-8") as handle:
        return {row["image"]: row for row in csv.DictReader(handle)}


def test_cli_smoke(tmp_path, capsys):
    input_dir = tmp_path / "input"
    input_dir.mkdir()
    _save_sheet(input_dir / "sheet.png")
    _save_blank(input_dir / "blank.png")
    (input_dir / "notes.txt").write_text("not an image")

    metrics_path = tmp_path / "out" / "grids.csv"
    cli_main([str(input_dir), "--metrics-path", str(metrics_path)])

    assert metrics_path.exists(), "CLI did not write the suggestions CSV"
    rows = _read_rows(metrics_path)
    assert set(rows) == {"sheet.png", "blank.png"}

    sheet = rows["sheet.png"]
    assert (sheet["rows"], sheet["cols"], sheet["confidence"]) == ("4", "4", "high")
    assert (sheet["block_width"], sheet["block_height"]) == ("100", "100")

    blank = rows["blank.png"]
    assert (blank["rows"], blank["cols"], blank["confidence"]) == ("3", "4", "high")

    out = capsys.readouterr().out
    assert "[INFO] Found 2 image(s)" in out


def test_cli_heuristic_only_square_crop(tmp_path):
    source = tmp_path / "wide.png"
    _save_blank(source, width=900, height=300)
    metrics_path = tmp_path / "grids.csv"

    cli_main([
        str(source),
        "--heuristic-only",
        "--crop-mode", "square",
        "--metrics-path", str(metrics_path),
    ])

    row = _read_rows(metrics_path)["wide.png"]
    # the 300x300 centre crop is square
    assert (row["rows"], row["cols"]) == ("3", "3")
    assert (row["width"], row["height"]) == ("900", "300")


def test_cli_missing_input(tmp_path, capsys):
    cli_main([str(tmp_path / "nope.png")])
    out = capsys.readouterr().out
    assert "[WARN] Input path not found" in out
    assert "[ERROR] No matching images found." in out
