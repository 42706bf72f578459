from __future__ import annotations
from pathlib import Path
from typing import List, Tuple

import os

from .codec import decode_ppm, encode_ppm
from .models import MAX_CHANNEL, ImageBuffer


# I/O & filesystem helpers 

def ensure_dir(path: str | os.PathLike) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def load_ppm(path: str | os.PathLike) -> ImageBuffer:
    """Load a P3 image from disk. Raises FileNotFoundError / InvalidFormat."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Could not read image: {path}")
    return decode_ppm(p.read_bytes())


def save_ppm(buffer: ImageBuffer, path: str | os.PathLike, max_value: int = MAX_CHANNEL) -> Path:
    p = Path(path)
    ensure_dir(p.parent)
    p.write_text(encode_ppm(buffer, max_value), encoding="ascii")
    return p


def list_images(
    dir_path: str | os.PathLike,
    extensions: Tuple[str, ...] = (".ppm",),
) -> List[str]:
    p = Path(dir_path)
    return [
        str(fp) for fp in sorted(p.iterdir())
        if fp.is_file() and fp.suffix.lower() in extensions
    ]
