"""
Step schedules and frame generators for the three animations.

Each generator yields exactly ``steps`` frames, one per step, and returns
(via StopIteration.value) the buffer the session should keep as its new
baseline once the run finishes.
"""

from __future__ import annotations
from typing import Generator, Optional

from .config import BloomEffectConfig, BlurEffectConfig, ThresholdEffectConfig
from .filters import blend, gaussian_blur, threshold
from .models import EffectKind, Frame, ImageBuffer, MAX_CHANNEL

FrameGenerator = Generator[Frame, None, ImageBuffer]


def _check_steps(steps: int) -> int:
    steps = int(steps)
    if steps < 1:
        raise ValueError(f"steps must be >= 1, got {steps}")
    return steps


# Schedules

def threshold_cutoff(step: int, steps: int, start: float = 0.75, end: float = 0.25) -> float:
    """Cutoff for ``step``: falls linearly from start*255 towards end*255."""
    return (start - step * (start - end) / steps) * MAX_CHANNEL


def blur_kernel_size(step: int, base: int = 1, increment: int = 2) -> int:
    return base + step * increment


def bloom_intensity(step: int, steps: int) -> float:
    return (step + 1) / steps


# Generators

def iter_threshold_frames(
    source: ImageBuffer,
    cfg: Optional[ThresholdEffectConfig] = None,
    offset: int = 0,
) -> FrameGenerator:
    """Cascaded threshold: each step binarizes the previous step's output."""
    cfg = cfg or ThresholdEffectConfig()
    steps = _check_steps(cfg.steps)
    current = source
    for i in range(steps):
        cutoff = threshold_cutoff(i, steps, cfg.start_fraction, cfg.end_fraction)
        current = threshold(current, cutoff)
        yield Frame(index=offset + i + 1, buffer=current, effect=EffectKind.THRESHOLD, step=i)
    return current


def iter_blur_frames(
    source: ImageBuffer,
    cfg: Optional[BlurEffectConfig] = None,
    offset: int = 0,
) -> FrameGenerator:
    """Cascaded blur with a kernel that grows every step."""
    cfg = cfg or BlurEffectConfig()
    steps = _check_steps(cfg.steps)
    current = source
    for i in range(steps):
        size = blur_kernel_size(i, cfg.base_size, cfg.size_increment)
        current = gaussian_blur(current, size)
        yield Frame(index=offset + i + 1, buffer=current, effect=EffectKind.BLUR, step=i)
    return current


def iter_bloom_frames(
    source: ImageBuffer,
    cfg: Optional[BloomEffectConfig] = None,
    offset: int = 0,
) -> FrameGenerator:
    """
    Bloom: bright-pass mask -> blur -> additive blend over the source.

    Not cascaded. Every step starts again from ``source`` and the source is
    also what the session gets back as its baseline.
    """
    cfg = cfg or BloomEffectConfig()
    steps = _check_steps(cfg.steps)
    # intensity is not applied to the blend, so the composite is the same every step
    mask = threshold(source, cfg.mask_cutoff)
    glow = gaussian_blur(mask, cfg.kernel_size)
    composite = blend(source, glow)
    for i in range(steps):
        frame = composite.copy()
        yield Frame(
            index=offset + i + 1,
            buffer=frame,
            effect=EffectKind.BLOOM,
            step=i,
            intensity=bloom_intensity(i, steps),
        )
    return source


def iter_effect_frames(
    kind: EffectKind,
    source: ImageBuffer,
    cfg=None,
    offset: int = 0,
) -> FrameGenerator:
    if kind is EffectKind.THRESHOLD:
        return iter_threshold_frames(source, cfg, offset)
    if kind is EffectKind.BLUR:
        return iter_blur_frames(source, cfg, offset)
    if kind is EffectKind.BLOOM:
        return iter_bloom_frames(source, cfg, offset)
    raise ValueError(f"Unknown effect: {kind}")
