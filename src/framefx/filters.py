"""Pixel operators: threshold, convolution (Gaussian blur) and additive blend."""

from __future__ import annotations

import cv2
import numpy as np

from .errors import DimensionMismatch
from .kernels import gaussian_kernel
from .models import ImageBuffer, MAX_CHANNEL

_WHITE = np.array([MAX_CHANNEL] * 3, dtype=np.uint8)


def intensity(buffer: ImageBuffer) -> np.ndarray:
    """Per-pixel mean of R, G and B as float64, shape (H, W)."""
    return buffer.pixels.astype(np.float64).mean(axis=2)


def threshold(buffer: ImageBuffer, cutoff: float) -> ImageBuffer:
    """Binarize: pixels whose mean channel value is >= cutoff become white, the rest black."""
    passing = intensity(buffer) >= cutoff
    out = np.zeros_like(buffer.pixels)
    out[passing] = _WHITE
    return ImageBuffer(out)


def convolve(buffer: ImageBuffer, kernel: np.ndarray) -> ImageBuffer:
    """
    Weighted sum of each pixel's neighbourhood, one channel at a time.

    Samples that fall outside the image count as zero and the weights are
    not renormalized, so borders darken as the kernel grows.
    """
    kernel = np.array(kernel, dtype=np.float64)
    if kernel.ndim != 2 or kernel.shape[0] != kernel.shape[1]:
        raise ValueError(f"kernel must be square, got shape {kernel.shape}")
    if kernel.shape[0] % 2 == 0:
        raise ValueError(f"kernel edge must be odd, got {kernel.shape[0]}")

    src = buffer.pixels.astype(np.float64)
    # filter2D correlates (no kernel flip), anchored at the kernel centre
    acc = cv2.filter2D(src, -1, kernel, borderType=cv2.BORDER_CONSTANT)
    np.rint(acc, out=acc)
    np.clip(acc, 0, MAX_CHANNEL, out=acc)
    return ImageBuffer(acc.astype(np.uint8))


def gaussian_blur(buffer: ImageBuffer, size: int) -> ImageBuffer:
    return convolve(buffer, gaussian_kernel(size))


def blend(a: ImageBuffer, b: ImageBuffer) -> ImageBuffer:
    """Additive blend with saturation at 255."""
    if a.shape != b.shape:
        raise DimensionMismatch(f"cannot blend {a.width}x{a.height} with {b.width}x{b.height}")
    total = a.pixels.astype(np.uint16) + b.pixels.astype(np.uint16)
    np.minimum(total, MAX_CHANNEL, out=total)
    return ImageBuffer(total.astype(np.uint8))
