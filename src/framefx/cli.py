from __future__ import annotations
import argparse
import asyncio
import os
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from .config import (
    BloomEffectConfig,
    BlurEffectConfig,
    ExportConfig,
    PipelineConfig,
    ThresholdEffectConfig,
)
from .errors import FrameFxError
from .helpers import ensure_dir, list_images, load_ppm, save_ppm
from .logging_setup import configure_logging, get_logger
from .models import EffectKind
from .session import PipelineSession
from .viz import Visualizer

log = get_logger(__name__)

EFFECT_CHOICES = [k.value for k in EffectKind]


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Animated threshold / blur / bloom frame generator for P3 images")
    g_io = p.add_argument_group("I/O")
    g_io.add_argument("--image", type=str, help="Path to a single P3 (.ppm) image")
    g_io.add_argument("--dir", type=str, help="Path to a directory of P3 images")
    g_io.add_argument("--save_dir", type=str, default=".", help="Output folder for archives")
    g_io.add_argument("--save_image", action="store_true", help="Also write the final baseline as <stem>_final.ppm")
    g_io.add_argument("--effects", nargs="+", choices=EFFECT_CHOICES, default=EFFECT_CHOICES,
                      help="Effects to run, in order")
    g_io.add_argument("--steps", type=int, default=None, help="Steps for every effect (overrides per-effect values)")
    g_io.add_argument("--show", action="store_true", help="Display a strip of sampled frames")
    g_io.add_argument("--preview", type=str, default=None, help="Save the sampled-frame strip to this path")

    g_thr = p.add_argument_group("Threshold")
    g_thr.add_argument("--threshold_steps", type=int, default=120)
    g_thr.add_argument("--threshold_start", type=float, default=0.75)
    g_thr.add_argument("--threshold_end", type=float, default=0.25)

    g_blur = p.add_argument_group("Blur")
    g_blur.add_argument("--blur_steps", type=int, default=120)
    g_blur.add_argument("--blur_base", type=int, default=1)
    g_blur.add_argument("--blur_increment", type=int, default=2)

    g_bloom = p.add_argument_group("Bloom")
    g_bloom.add_argument("--bloom_steps", type=int, default=120)
    g_bloom.add_argument("--bloom_cutoff", type=float, default=0.5 * 255)
    g_bloom.add_argument("--bloom_ksize", type=int, default=15)

    g_exp = p.add_argument_group("Export")
    g_exp.add_argument("--archive_name", type=str, default=None,
                       help="Archive file name (default frames.zip, or <stem>_frames.zip with --dir)")
    g_exp.add_argument("--frames_dir", type=str, default=None,
                       help="Also write each frame as a PNG into this folder while running")

    g_log = p.add_argument_group("Logging")
    g_log.add_argument("--log_level", type=str, default="INFO")
    g_log.add_argument("--log_file", type=str, default=None)
    g_log.add_argument("--log_json", action="store_true")

    return p


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    def pick(own: int) -> int:
        # --steps, when given (even as 0), overrides the per-effect value
        return own if args.steps is None else args.steps

    return PipelineConfig(
        threshold=ThresholdEffectConfig(
            steps=pick(args.threshold_steps),
            start_fraction=args.threshold_start,
            end_fraction=args.threshold_end,
        ),
        blur=BlurEffectConfig(
            steps=pick(args.blur_steps),
            base_size=args.blur_base,
            size_increment=args.blur_increment,
        ),
        bloom=BloomEffectConfig(
            steps=pick(args.bloom_steps),
            mask_cutoff=args.bloom_cutoff,
            kernel_size=args.bloom_ksize,
        ),
        export=ExportConfig(archive_name=args.archive_name or ExportConfig.archive_name),
        frames_dir=args.frames_dir,
        show=args.show,
    )


async def _process_one(path: str, cfg: PipelineConfig, effects: Sequence[str],
                       save_dir: str, save_image: bool, preview: Optional[str]) -> Path:
    session = PipelineSession(cfg)
    session.load_image(load_ppm(path))

    for name in effects:
        await session.run_effect(EffectKind(name))

    archive = await session.export_frames(save_dir)

    base = os.path.splitext(os.path.basename(path))[0]
    if save_image:
        save_ppm(session.current_image, Path(save_dir) / f"{base}_final.ppm", session.max_value)

    if cfg.show or preview:
        sink = session.sink
        picked = Visualizer.sample(sink.indices, count=6)
        Visualizer.show_frames([sink.frame(i) for i in picked], save_path=preview, show=cfg.show)
    return archive


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_argparser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level.upper(), log_file=args.log_file, json_format=args.log_json)
    cfg = config_from_args(args)
    try:
        cfg.validate()
    except ValueError as e:
        parser.error(str(e))

    if args.image:
        paths = [args.image]
    elif args.dir:
        paths = list_images(args.dir)
        if not paths:
            raise SystemExit(f"No .ppm images found in {args.dir}")
    else:
        raise SystemExit("Provide either --image or --dir")

    ensure_dir(args.save_dir)
    for path in paths:
        run_cfg = cfg
        if args.dir:
            stem = os.path.splitext(os.path.basename(path))[0]
            run_cfg = replace(cfg, export=replace(cfg.export, archive_name=args.archive_name or f"{stem}_frames.zip"),
                              frames_dir=os.path.join(cfg.frames_dir, stem) if cfg.frames_dir else None)
        try:
            archive = asyncio.run(_process_one(path, run_cfg, args.effects, args.save_dir,
                                               args.save_image, args.preview))
        except (FrameFxError, FileNotFoundError) as e:
            log.error("%s: %s", path, e)
            return 2
        log.info("%s -> %s", path, archive)
    return 0
