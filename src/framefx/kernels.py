"""Gaussian kernel generation."""

from __future__ import annotations
from functools import lru_cache

import numpy as np


# sigma = size / SIGMA_DIVISOR; 6 keeps ~3 sigma on each side inside the kernel
SIGMA_DIVISOR = 6.0


@lru_cache(maxsize=64)
def _gaussian_kernel_cached(size: int) -> np.ndarray:
    half = size // 2
    sigma = size / SIGMA_DIVISOR
    offsets = np.arange(-half, half + 1, dtype=np.float64)
    xx, yy = np.meshgrid(offsets, offsets)
    density = np.exp(-(xx * xx + yy * yy) / (2.0 * sigma * sigma)) / (2.0 * np.pi * sigma * sigma)
    kernel = density / density.sum()
    kernel.setflags(write=False)
    return kernel


def gaussian_kernel(size: int) -> np.ndarray:
    """
    Normalized 2-D Gaussian weights for an edge length of ``size``.

    Offsets run over [-size//2, size//2] on both axes, so an even size
    yields a (size+1)-wide kernel. The returned array is read-only and
    sums to 1.
    """
    size = int(size)
    if size < 1:
        raise ValueError(f"kernel size must be >= 1, got {size}")
    return _gaussian_kernel_cached(size)
