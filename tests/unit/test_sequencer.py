import sys
import unittest
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "src"))

from framefx.config import BloomEffectConfig, BlurEffectConfig, ThresholdEffectConfig
from framefx.filters import blend, gaussian_blur, threshold
from framefx.models import EffectKind, ImageBuffer
from framefx.sequencer import (
    bloom_intensity,
    blur_kernel_size,
    iter_bloom_frames,
    iter_blur_frames,
    iter_effect_frames,
    iter_threshold_frames,
    threshold_cutoff,
)


def drain(gen):
    frames = []
    while True:
        try:
            frames.append(next(gen))
        except StopIteration as done:
            return frames, done.value


def gradient(width=8, height=6):
    ramp = np.linspace(0, 255, width * height).reshape(height, width)
    return ImageBuffer(np.repeat(ramp[..., None], 3, axis=2))


class ScheduleTests(unittest.TestCase):
    def test_threshold_cutoff_schedule(self):
        self.assertAlmostEqual(threshold_cutoff(0, 120), 0.75 * 255)
        self.assertAlmostEqual(threshold_cutoff(60, 120), 0.5 * 255)
        self.assertAlmostEqual(threshold_cutoff(119, 120), (0.75 - 119 * 0.5 / 120) * 255)
        self.assertGreater(threshold_cutoff(119, 120), 0.25 * 255)

    def test_blur_sizes_grow_odd(self):
        self.assertEqual([blur_kernel_size(i) for i in range(4)], [1, 3, 5, 7])
        self.assertEqual(blur_kernel_size(119), 239)

    def test_bloom_intensity_reaches_one(self):
        self.assertAlmostEqual(bloom_intensity(0, 120), 1 / 120)
        self.assertAlmostEqual(bloom_intensity(119, 120), 1.0)


class ThresholdFramesTests(unittest.TestCase):
    def test_emits_steps_frames_after_offset(self):
        frames, last = drain(iter_threshold_frames(gradient(), ThresholdEffectConfig(steps=5), offset=10))
        self.assertEqual([f.index for f in frames], [11, 12, 13, 14, 15])
        self.assertTrue(all(f.effect is EffectKind.THRESHOLD for f in frames))
        self.assertEqual(last, frames[-1].buffer)

    def test_steps_cascade(self):
        src = gradient()
        frames, _ = drain(iter_threshold_frames(src, ThresholdEffectConfig(steps=4)))
        first = threshold(src, threshold_cutoff(0, 4))
        self.assertEqual(frames[0].buffer, first)
        self.assertEqual(frames[1].buffer, threshold(first, threshold_cutoff(1, 4)))
        # once binarized, later (lower) cutoffs cannot revive black pixels
        for f in frames[1:]:
            self.assertEqual(f.buffer, first)
        self.assertNotEqual(frames[-1].buffer, threshold(src, threshold_cutoff(3, 4)))

    def test_source_untouched(self):
        src = gradient()
        before = src.copy()
        drain(iter_threshold_frames(src, ThresholdEffectConfig(steps=3)))
        self.assertEqual(src, before)


class BlurFramesTests(unittest.TestCase):
    def test_first_step_is_identity_and_steps_cascade(self):
        src = gradient()
        frames, last = drain(iter_blur_frames(src, BlurEffectConfig(steps=3), offset=120))
        self.assertEqual([f.index for f in frames], [121, 122, 123])
        self.assertEqual(frames[0].buffer, src)
        self.assertEqual(frames[1].buffer, gaussian_blur(src, 3))
        self.assertEqual(frames[2].buffer, gaussian_blur(gaussian_blur(src, 3), 5))
        self.assertEqual(last, frames[-1].buffer)


class BloomFramesTests(unittest.TestCase):
    def test_every_frame_blends_over_the_source(self):
        src = gradient()
        cfg = BloomEffectConfig(steps=3)
        frames, baseline = drain(iter_bloom_frames(src, cfg, offset=240))
        expected = blend(src, gaussian_blur(threshold(src, cfg.mask_cutoff), cfg.kernel_size))
        self.assertEqual([f.index for f in frames], [241, 242, 243])
        for f in frames:
            self.assertEqual(f.buffer, expected)
        self.assertEqual([round(f.intensity, 6) for f in frames], [round(1 / 3, 6), round(2 / 3, 6), 1.0])
        self.assertIs(baseline, src)

    def test_dark_image_is_unchanged(self):
        src = ImageBuffer.filled(5, 5, (20, 30, 40))
        frames, _ = drain(iter_bloom_frames(src, BloomEffectConfig(steps=1)))
        self.assertEqual(frames[0].buffer, src)


class DispatchTests(unittest.TestCase):
    def test_dispatch_by_kind(self):
        frames, _ = drain(iter_effect_frames(EffectKind.BLUR, gradient(), BlurEffectConfig(steps=2)))
        self.assertEqual(len(frames), 2)
        self.assertTrue(all(f.effect is EffectKind.BLUR for f in frames))

    def test_invalid_steps_and_kind(self):
        with self.assertRaises(ValueError):
            next(iter_threshold_frames(gradient(), ThresholdEffectConfig(steps=0)))
        with self.assertRaises(ValueError):
            iter_effect_frames("sharpen", gradient())


if __name__ == "__main__":
    unittest.main()
