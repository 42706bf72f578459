import sys
import tempfile
import unittest
import zipfile
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "src"))

from framefx.cli import build_argparser, config_from_args, main
from framefx.helpers import load_ppm

IMAGE = "P3\n3 2\n255\n255 255 255 10 10 10 200 180 160\n0 0 0 90 90 90 255 0 0\n"


class ArgparserTests(unittest.TestCase):
    def test_defaults(self):
        args = build_argparser().parse_args(["--image", "x.ppm"])
        cfg = config_from_args(args)
        self.assertEqual(cfg.threshold.steps, 120)
        self.assertEqual(cfg.blur.steps, 120)
        self.assertEqual(cfg.bloom.steps, 120)
        self.assertEqual(cfg.bloom.kernel_size, 15)
        self.assertEqual(cfg.export.archive_name, "frames.zip")
        self.assertEqual(args.effects, ["threshold", "blur", "bloom"])

    def test_steps_override_every_effect(self):
        args = build_argparser().parse_args(["--image", "x.ppm", "--steps", "3", "--blur_steps", "9"])
        cfg = config_from_args(args)
        self.assertEqual((cfg.threshold.steps, cfg.blur.steps, cfg.bloom.steps), (3, 3, 3))

    def test_zero_steps_is_not_ignored(self):
        args = build_argparser().parse_args(["--image", "x.ppm", "--steps", "0"])
        cfg = config_from_args(args)
        self.assertEqual(cfg.blur.steps, 0)
        with self.assertRaises(ValueError):
            cfg.validate()

    def test_bad_effect_settings_exit_with_usage_error(self):
        for flags in (["--steps", "0"], ["--blur_base", "0"], ["--bloom_ksize", "0"], ["--blur_increment", "-1"]):
            with self.subTest(flags=flags), self.assertRaises(SystemExit) as ctx:
                main(["--image", "x.ppm", "--log_level", "CRITICAL"] + flags)
            self.assertEqual(ctx.exception.code, 2)


class MainTests(unittest.TestCase):
    def test_single_image_run(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "tiny.ppm"
            src.write_text(IMAGE, encoding="ascii")
            out = Path(tmp) / "out"
            code = main(["--image", str(src), "--save_dir", str(out), "--steps", "2",
                         "--save_image", "--preview", str(out / "preview.png"), "--log_level", "WARNING"])
            self.assertEqual(code, 0)
            with zipfile.ZipFile(out / "frames.zip") as zf:
                self.assertEqual(len(zf.namelist()), 6)
                self.assertIn("frames/frame_006.png", zf.namelist())
            final = load_ppm(out / "tiny_final.ppm")
            self.assertEqual(final.shape, (3, 2))
            self.assertTrue((out / "preview.png").is_file())

    def test_final_image_keeps_source_max_value(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "low.ppm"
            src.write_text("P3\n1 1\n15\n15 0 5\n", encoding="ascii")
            code = main(["--image", str(src), "--save_dir", tmp, "--steps", "1",
                         "--effects", "bloom", "--save_image", "--log_level", "WARNING"])
            self.assertEqual(code, 0)
            lines = (Path(tmp) / "low_final.ppm").read_text(encoding="ascii").splitlines()
            self.assertEqual(lines[:3], ["P3", "1 1", "15"])

    def test_directory_run_names_archives_per_image(self):
        with tempfile.TemporaryDirectory() as tmp:
            images = Path(tmp) / "images"
            images.mkdir()
            (images / "a.ppm").write_text(IMAGE, encoding="ascii")
            (images / "b.ppm").write_text(IMAGE, encoding="ascii")
            (images / "notes.txt").write_text("skip me", encoding="utf-8")
            out = Path(tmp) / "out"
            code = main(["--dir", str(images), "--save_dir", str(out), "--steps", "1",
                         "--effects", "threshold", "--log_level", "WARNING"])
            self.assertEqual(code, 0)
            self.assertTrue((out / "a_frames.zip").is_file())
            self.assertTrue((out / "b_frames.zip").is_file())

    def test_invalid_image_returns_error_code(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "bad.ppm"
            src.write_text("P3\n2 2\n255\n1 2 3\n", encoding="ascii")
            self.assertEqual(main(["--image", str(src), "--save_dir", tmp, "--log_level", "CRITICAL"]), 2)
            self.assertEqual(main(["--image", str(Path(tmp) / "missing.ppm"), "--save_dir", tmp,
                                   "--log_level", "CRITICAL"]), 2)

    def test_requires_an_input(self):
        with self.assertRaises(SystemExit):
            main(["--log_level", "CRITICAL"])


if __name__ == "__main__":
    unittest.main()
