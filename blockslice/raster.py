"""Pixel buffers and the rasterizers that produce them.

The detector never touches an imaging library directly: it asks a rasterizer
for an RGBA buffer at a given size. Anything with a matching ``render`` method
can be injected, which keeps the analysis testable on synthetic arrays.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from .config import MAX_DETECTION_DIM, round_half_up


ImageSource = Union[Image.Image, np.ndarray, str, Path]


@dataclass
class PixelBuffer:
    """Row-major RGBA samples, 4 per pixel, shaped ``(height, width, 4)``."""
    data: np.ndarray

    def __post_init__(self):
        if self.data.ndim != 3 or self.data.shape[2] != 4:
            raise ValueError(f"Expected an (h, w, 4) RGBA array, got shape {self.data.shape}")
        if self.data.dtype != np.uint8:
            self.data = np.clip(self.data, 0, 255).astype(np.uint8)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @classmethod
    def from_samples(cls, samples: Union[bytes, bytearray, Sequence[int], np.ndarray],
                     width: int, height: int) -> "PixelBuffer":
        """Wrap a flat interleaved RGBA sequence (canvas ``ImageData`` layout)."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Buffer dimensions must be positive, got {width}x{height}")
        if isinstance(samples, (bytes, bytearray)):
            flat = np.frombuffer(bytes(samples), dtype=np.uint8)
        else:
            flat = np.asarray(samples)
        expected = width * height * 4
        if flat.size != expected:
            raise ValueError(
                f"Expected {expected} samples for {width}x{height} RGBA, got {flat.size}"
            )
        # non-uint8 samples are clipped to [0, 255] in __post_init__
        return cls(flat.reshape(height, width, 4))

    @classmethod
    def from_array(cls, img: np.ndarray) -> "PixelBuffer":
        """Accept grayscale, RGB or RGBA arrays and normalise to RGBA."""
        return cls(_to_rgba_array(img))


def _to_rgba_array(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        rgb = np.repeat(img[:, :, None], 3, axis=2)
    elif img.ndim == 3 and img.shape[2] == 3:
        rgb = img
    elif img.ndim == 3 and img.shape[2] == 4:
        return img.astype(np.uint8, copy=False)
    else:
        raise ValueError(f"Unsupported image array shape: {img.shape}")
    alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([rgb.astype(np.uint8, copy=False), alpha], axis=2)


def downsample_size(width: int, height: int, max_dim: int = MAX_DETECTION_DIM) -> Tuple[int, int]:
    """Target size for detection: longest side at most ``max_dim``, never upscaled."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    scale = min(1.0, max_dim / max(width, height))
    return (
        max(1, min(max_dim, round_half_up(width * scale))),
        max(1, min(max_dim, round_half_up(height * scale))),
    )


def source_size(image: ImageSource) -> Tuple[int, int]:
    """Natural ``(width, height)`` of an image source."""
    if isinstance(image, np.ndarray):
        return int(image.shape[1]), int(image.shape[0])
    if isinstance(image, (str, Path)):
        with Image.open(image) as img:
            return img.size
    return image.size


class Rasterizer(Protocol):
    def render(self, image: ImageSource, width: int, height: int) -> PixelBuffer:
        ...


class PillowRasterizer:
    """Draw an image into an off-screen RGBA surface using Pillow."""

    def __init__(self, resample: int = Image.BILINEAR):
        self.resample = resample

    def render(self, image: ImageSource, width: int, height: int) -> PixelBuffer:
        if isinstance(image, (str, Path)):
            with Image.open(image) as img:
                return self._render_pil(img, width, height)
        if isinstance(image, np.ndarray):
            return self._render_pil(Image.fromarray(_to_rgba_array(image)), width, height)
        return self._render_pil(image, width, height)

    def _render_pil(self, img: Image.Image, width: int, height: int) -> PixelBuffer:
        rgba = img.convert("RGBA")
        if rgba.size != (width, height):
            rgba = rgba.resize((width, height), self.resample)
        return PixelBuffer(np.array(rgba))


class OpenCVRasterizer:
    """Area-averaged downsampling through OpenCV, for in-memory numpy images."""

    def __init__(self, interpolation: int = cv2.INTER_AREA):
        self.interpolation = interpolation

    def render(self, image: ImageSource, width: int, height: int) -> PixelBuffer:
        if isinstance(image, np.ndarray):
            arr = _to_rgba_array(image)
        elif isinstance(image, (str, Path)):
            with Image.open(image) as img:
                arr = np.array(img.convert("RGBA"))
        else:
            arr = np.array(image.convert("RGBA"))
        if (arr.shape[1], arr.shape[0]) != (width, height):
            arr = cv2.resize(arr, (width, height), interpolation=self.interpolation)
        return PixelBuffer(np.ascontiguousarray(arr))
