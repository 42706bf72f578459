"""Error taxonomy for the frame pipeline."""

from __future__ import annotations


class FrameFxError(Exception):
    """Base class for every error raised by framefx."""


class InvalidFormat(FrameFxError, ValueError):
    """Input image text is not a well-formed P3 image."""


class NoImageLoaded(FrameFxError):
    """An effect or save was requested before any image was loaded."""


class DimensionMismatch(FrameFxError, ValueError):
    """Two buffers that must share dimensions do not."""


class NoFramesToExport(FrameFxError):
    """Export was requested while the sink holds no frames."""


class EffectBusy(FrameFxError):
    """Another effect run currently holds the session."""


class FrameOrderError(FrameFxError, ValueError):
    """A frame arrived with an index that does not follow the previous one."""


class FrameEncodeError(FrameFxError):
    """A frame could not be encoded for export."""
