from __future__ import annotations
import asyncio
import io
import os
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Union

import cv2
import numpy as np

from .config import ExportConfig
from .errors import FrameEncodeError, FrameOrderError, NoFramesToExport
from .helpers import ensure_dir
from .logging_setup import get_logger
from .models import EffectKind, Frame, ImageBuffer

log = get_logger(__name__)


def encode_png(buffer: ImageBuffer) -> bytes:
    """RGB buffer -> PNG bytes (OpenCV expects BGR)."""
    ok, encoded = cv2.imencode(".png", cv2.cvtColor(buffer.pixels, cv2.COLOR_RGB2BGR))
    if not ok:
        raise FrameEncodeError(f"PNG encoding failed for {buffer!r}")
    return encoded.tobytes()


def decode_png(data: bytes) -> ImageBuffer:
    """PNG bytes -> RGB buffer. Mostly useful for inspecting exported archives."""
    arr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if arr is None:
        raise FrameEncodeError("could not decode PNG data")
    return ImageBuffer(cv2.cvtColor(arr, cv2.COLOR_BGR2RGB))


class FrameSink:
    """
    Collects frames in strictly increasing index order.
    Subclasses decide where the encoded frames live.
    """

    def __init__(self, config: Optional[ExportConfig] = None) -> None:
        self.config = config or ExportConfig()
        self._indices: List[int] = []
        self._effects: Dict[int, EffectKind] = {}

    @property
    def frame_count(self) -> int:
        return len(self._indices)

    @property
    def last_index(self) -> int:
        return self._indices[-1] if self._indices else 0

    @property
    def indices(self) -> List[int]:
        return list(self._indices)

    def _check_order(self, frame: Frame) -> None:
        if frame.index <= self.last_index:
            raise FrameOrderError(
                f"frame {frame.index} arrived after frame {self.last_index}; indices must increase"
            )

    async def capture(self, frame: Frame) -> None:
        self._check_order(frame)
        data = await asyncio.to_thread(encode_png, frame.buffer)
        self._store(frame, data)
        self._indices.append(frame.index)
        self._effects[frame.index] = frame.effect

    def frame(self, index: int) -> Frame:
        """Decode a captured frame back into memory."""
        if index not in self._effects:
            raise KeyError(f"no frame {index} captured")
        return Frame(index=index, buffer=decode_png(self._load(index)), effect=self._effects[index])

    def _store(self, frame: Frame, data: bytes) -> None:
        raise NotImplementedError

    def _load(self, index: int) -> bytes:
        raise NotImplementedError

    def _entries(self) -> List[tuple[str, bytes]]:
        return [(self.config.frame_name(i), self._load(i)) for i in self._indices]

    def archive_bytes(self) -> bytes:
        """Zip every captured frame under ``<folder>/frame_<index>.<ext>``."""
        if not self._indices:
            raise NoFramesToExport("no frames have been captured")
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in self._entries():
                arcname = f"{self.config.folder}/{name}" if self.config.folder else name
                zf.writestr(arcname, data)
        return buf.getvalue()

    def finalize(self, out_dir: Optional[Union[str, os.PathLike]] = None) -> Union[Path, bytes]:
        """
        Bundle the frames. Returns the archive bytes, or writes
        ``<out_dir>/<archive_name>`` and returns its path.
        """
        payload = self.archive_bytes()
        if out_dir is None:
            return payload
        ensure_dir(out_dir)
        path = Path(out_dir) / self.config.archive_name
        path.write_bytes(payload)
        log.info("wrote %d frames to %s", self.frame_count, path)
        return path

    def clear(self) -> None:
        self._indices.clear()
        self._effects.clear()


class ZipFrameSink(FrameSink):
    """Keeps encoded frames in memory until finalize()."""

    def __init__(self, config: Optional[ExportConfig] = None) -> None:
        super().__init__(config)
        self._frames: Dict[int, bytes] = {}

    def _store(self, frame: Frame, data: bytes) -> None:
        self._frames[frame.index] = data

    def _load(self, index: int) -> bytes:
        return self._frames[index]

    def clear(self) -> None:
        super().clear()
        self._frames.clear()


class DirectoryFrameSink(FrameSink):
    """Writes each frame to disk as soon as it arrives."""

    def __init__(self, out_dir: Union[str, os.PathLike], config: Optional[ExportConfig] = None) -> None:
        super().__init__(config)
        self.out_dir = Path(out_dir)
        ensure_dir(self.out_dir)

    def frame_path(self, index: int) -> Path:
        return self.out_dir / self.config.frame_name(index)

    def _store(self, frame: Frame, data: bytes) -> None:
        self.frame_path(frame.index).write_bytes(data)

    def _load(self, index: int) -> bytes:
        return self.frame_path(index).read_bytes()

    def finalize(self, out_dir: Optional[Union[str, os.PathLike]] = None) -> Union[Path, bytes]:
        return super().finalize(self.out_dir if out_dir is None else out_dir)
