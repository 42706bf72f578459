from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from .errors import InvalidFormat


CHANNELS = 3
MAX_CHANNEL = 255


class EffectKind(str, Enum):
    THRESHOLD = "threshold"
    BLUR = "blur"
    BLOOM = "bloom"


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(eq=False)
class ImageBuffer:
    """
    RGB pixel grid: (height, width, 3) uint8, row-major.
    Opacity is implicit and always fully opaque.
    """
    pixels: np.ndarray

    def __post_init__(self) -> None:
        px = np.asarray(self.pixels)
        if px.ndim != 3 or px.shape[2] != CHANNELS:
            raise InvalidFormat(f"expected (H, W, 3) pixels, got shape {px.shape}")
        if px.shape[0] < 1 or px.shape[1] < 1:
            raise InvalidFormat(f"width and height must be positive, got {px.shape[1]}x{px.shape[0]}")
        if px.dtype != np.uint8:
            if np.issubdtype(px.dtype, np.floating):
                px = np.rint(px)
            elif not np.issubdtype(px.dtype, np.integer):
                raise InvalidFormat(f"unsupported pixel dtype: {px.dtype}")
            px = np.clip(px, 0, MAX_CHANNEL).astype(np.uint8)
        self.pixels = px

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        return self.width, self.height

    def copy(self) -> "ImageBuffer":
        return ImageBuffer(self.pixels.copy())

    @classmethod
    def from_flat(cls, values: Sequence[int] | np.ndarray, width: int, height: int) -> "ImageBuffer":
        """Build from a flat R,G,B,R,G,B,... sequence of length 3*width*height."""
        arr = np.asarray(values)
        if arr.size != CHANNELS * width * height:
            raise InvalidFormat(
                f"expected {CHANNELS * width * height} channel values for {width}x{height}, got {arr.size}"
            )
        return cls(arr.reshape((height, width, CHANNELS)))

    @classmethod
    def filled(cls, width: int, height: int, rgb: tuple[int, int, int] = (0, 0, 0)) -> "ImageBuffer":
        px = np.empty((height, width, CHANNELS), dtype=np.uint8)
        px[...] = rgb
        return cls(px)

    def to_flat(self) -> np.ndarray:
        return self.pixels.reshape(-1)

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    def __repr__(self) -> str:
        return f"ImageBuffer({self.width}x{self.height})"


@dataclass(frozen=True)
class Frame:
    index: int                  # 1-based position in the combined export
    buffer: ImageBuffer
    effect: EffectKind
    step: int = 0               # 0-based step within the effect run
    intensity: float | None = None  # bloom only; informational
