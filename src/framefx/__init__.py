from .config import (
    BloomEffectConfig, BlurEffectConfig, ExportConfig, PipelineConfig, ThresholdEffectConfig,
)
from .errors import (
    DimensionMismatch, EffectBusy, FrameEncodeError, FrameFxError, FrameOrderError,
    InvalidFormat, NoFramesToExport, NoImageLoaded,
)
from .models import EffectKind, Frame, ImageBuffer, RunState
from .kernels import SIGMA_DIVISOR, gaussian_kernel
from .filters import blend, convolve, gaussian_blur, threshold
from .codec import decode_ppm, encode_ppm, read_ppm
from .sequencer import (
    bloom_intensity, blur_kernel_size, threshold_cutoff,
    iter_bloom_frames, iter_blur_frames, iter_effect_frames, iter_threshold_frames,
)
from .sink import DirectoryFrameSink, FrameSink, ZipFrameSink, decode_png, encode_png
from .session import PipelineSession
from .helpers import ensure_dir, list_images, load_ppm, save_ppm
from .viz import Visualizer

__version__ = "0.1.0"

__all__ = [
    "BloomEffectConfig", "BlurEffectConfig", "ExportConfig", "PipelineConfig", "ThresholdEffectConfig",
    "DimensionMismatch", "EffectBusy", "FrameEncodeError", "FrameFxError", "FrameOrderError",
    "InvalidFormat", "NoFramesToExport", "NoImageLoaded",
    "EffectKind", "Frame", "ImageBuffer", "RunState",
    "SIGMA_DIVISOR", "gaussian_kernel",
    "blend", "convolve", "gaussian_blur", "threshold",
    "decode_ppm", "encode_ppm", "read_ppm",
    "bloom_intensity", "blur_kernel_size", "threshold_cutoff",
    "iter_bloom_frames", "iter_blur_frames", "iter_effect_frames", "iter_threshold_frames",
    "DirectoryFrameSink", "FrameSink", "ZipFrameSink", "decode_png", "encode_png",
    "PipelineSession",
    "ensure_dir", "list_images", "load_ppm", "save_ppm",
    "Visualizer",
]
