"""
PipelineSession: owns the working image and drives effect runs.

One session holds the originally loaded image, the current baseline that
effects start from, the frame sink and a per-effect run state. Only one
effect may run at a time; a second request while one is running is
rejected with EffectBusy rather than queued.
"""

from __future__ import annotations
import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .codec import encode_ppm, read_ppm
from .config import PipelineConfig
from .errors import EffectBusy, NoFramesToExport, NoImageLoaded
from .logging_setup import get_logger
from .models import MAX_CHANNEL, EffectKind, ImageBuffer, RunState
from .sequencer import iter_effect_frames
from .sink import DirectoryFrameSink, FrameSink, ZipFrameSink

log = get_logger(__name__)

Listener = Callable[[str, str], None]   # (level, message)


class PipelineSession:
    def __init__(self, config: Optional[PipelineConfig] = None, sink: Optional[FrameSink] = None) -> None:
        self.config = config or PipelineConfig()
        if sink is None:
            if self.config.frames_dir:
                sink = DirectoryFrameSink(self.config.frames_dir, self.config.export)
            else:
                sink = ZipFrameSink(self.config.export)
        self.sink = sink

        self._original: Optional[ImageBuffer] = None
        self._current: Optional[ImageBuffer] = None
        self._displayed: Optional[ImageBuffer] = None
        self._max_value = MAX_CHANNEL
        self._states: Dict[EffectKind, RunState] = {k: RunState.IDLE for k in EffectKind}
        self._active: Optional[EffectKind] = None
        self._busy = False
        self._listeners: List[Listener] = []

    # state

    @property
    def has_image(self) -> bool:
        return self._current is not None

    @property
    def current_image(self) -> Optional[ImageBuffer]:
        """Baseline the next effect starts from."""
        return self._current

    @property
    def original_image(self) -> Optional[ImageBuffer]:
        return self._original

    @property
    def displayed_image(self) -> Optional[ImageBuffer]:
        """Most recent frame shown, or the baseline between runs."""
        return self._displayed

    @property
    def active_effect(self) -> Optional[EffectKind]:
        return self._active

    @property
    def controls_enabled(self) -> bool:
        return not self._busy

    @property
    def max_value(self) -> int:
        """Max channel value declared by the loaded image (255 for buffers)."""
        return self._max_value

    @property
    def frame_count(self) -> int:
        return self.sink.frame_count

    def state(self, kind: EffectKind) -> RunState:
        return self._states[EffectKind(kind)]

    # notifications

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, level: str, message: str) -> None:
        log.log(log_level(level), message, extra={"event": level})
        for listener in list(self._listeners):
            listener(level, message)

    def _fail(self, exc: Exception) -> Exception:
        self._notify("error", str(exc))
        return exc

    def _guard_idle(self) -> None:
        if self._busy:
            busy_with = self._active.value if self._active else "export"
            raise self._fail(EffectBusy(f"{busy_with} is still running"))

    # image I/O

    def load_image(self, data: Union[bytes, str, ImageBuffer]) -> ImageBuffer:
        """Replace the working image. Effect states go back to IDLE."""
        self._guard_idle()
        if isinstance(data, ImageBuffer):
            buffer, max_value = data.copy(), MAX_CHANNEL
        else:
            try:
                buffer, max_value = read_ppm(data)
            except Exception as exc:
                raise self._fail(exc)
        self._original = buffer
        self._max_value = max_value
        self._current = buffer.copy()
        self._displayed = self._current
        self._states = {k: RunState.IDLE for k in EffectKind}
        self._notify("info", f"loaded {buffer.width}x{buffer.height} image")
        return buffer

    def save_image(self) -> bytes:
        """Current baseline as P3 text, written with the max value it was loaded with."""
        self._guard_idle()
        if self._current is None:
            raise self._fail(NoImageLoaded("no image loaded"))
        return encode_ppm(self._current, self._max_value).encode("ascii")

    def reset(self) -> None:
        """Make the originally loaded image the baseline again."""
        self._guard_idle()
        if self._original is None:
            raise self._fail(NoImageLoaded("no image loaded"))
        self._current = self._original.copy()
        self._displayed = self._current

    # effect runs

    async def run_effect(self, kind: EffectKind) -> List[int]:
        """
        Run one animation to completion and return the emitted frame indices.

        Each frame is handed to the sink and awaited before the next step is
        computed, then control is yielded to the event loop once per step.
        """
        kind = EffectKind(kind)
        self._guard_idle()
        if self._current is None:
            raise self._fail(NoImageLoaded(f"load an image before running {kind.value}"))

        cfg = getattr(self.config, kind.value)
        offset = self.sink.last_index
        self._active = kind
        self._busy = True
        self._states[kind] = RunState.RUNNING
        log.info("%s: %d steps from frame %d", kind.value, cfg.steps, offset + 1)

        frames = iter_effect_frames(kind, self._current, cfg, offset)
        indices: List[int] = []
        try:
            while True:
                try:
                    frame = next(frames)
                except StopIteration as done:
                    baseline = done.value
                    break
                self._displayed = frame.buffer
                await self.sink.capture(frame)
                indices.append(frame.index)
                log.debug("%s step %d -> frame %d", kind.value, frame.step, frame.index)
                await asyncio.sleep(0)
        except Exception as exc:
            self._states[kind] = RunState.IDLE
            self._displayed = self._current
            raise self._fail(exc)
        finally:
            self._active = None
            self._busy = False

        self._current = baseline
        self._displayed = baseline
        self._states[kind] = RunState.COMPLETED
        self._notify("info", f"{kind.value} animation completed")
        return indices

    async def run_threshold_effect(self) -> List[int]:
        return await self.run_effect(EffectKind.THRESHOLD)

    async def run_blur_effect(self) -> List[int]:
        return await self.run_effect(EffectKind.BLUR)

    async def run_bloom_effect(self) -> List[int]:
        return await self.run_effect(EffectKind.BLOOM)

    # export

    async def export_frames(self, out_dir: Optional[Union[str, os.PathLike]] = None) -> Union[Path, bytes]:
        """Bundle every captured frame into the archive (bytes, or a file in out_dir)."""
        self._guard_idle()
        if self.sink.frame_count == 0:
            raise self._fail(NoFramesToExport("no frames to export"))
        self._busy = True
        try:
            result = await asyncio.to_thread(self.sink.finalize, out_dir)
        except Exception as exc:
            raise self._fail(exc)
        finally:
            self._busy = False
        self._notify("info", f"exported {self.sink.frame_count} frames")
        return result

    def clear_frames(self) -> None:
        self._guard_idle()
        self.sink.clear()


_LEVELS = {"error": logging.ERROR, "warning": logging.WARNING, "info": logging.INFO}


def log_level(level: str) -> int:
    return _LEVELS.get(level, logging.DEBUG)
