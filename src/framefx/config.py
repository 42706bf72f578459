from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


def _require_steps(name: str, steps: int) -> None:
    if steps < 1:
        raise ValueError(f"{name} steps must be >= 1, got {steps}")


# Effect configs (one per animation) 

@dataclass
class ThresholdEffectConfig:
    steps: int = 120
    start_fraction: float = 0.75    # cutoff at step 0, as a fraction of 255
    end_fraction: float = 0.25      # cutoff approached (never reached) at the last step

    def validate(self) -> None:
        _require_steps("threshold", self.steps)


@dataclass
class BlurEffectConfig:
    steps: int = 120
    base_size: int = 1              # kernel edge at step 0
    size_increment: int = 2         # keeps the edge odd: 1, 3, 5, ...

    def validate(self) -> None:
        _require_steps("blur", self.steps)
        if self.base_size < 1:
            raise ValueError(f"blur base size must be >= 1, got {self.base_size}")
        if self.size_increment < 0:
            raise ValueError(f"blur size increment must be >= 0, got {self.size_increment}")


@dataclass
class BloomEffectConfig:
    steps: int = 120
    mask_cutoff: float = 0.5 * 255  # bright-pass level for the glow mask
    kernel_size: int = 15           # fixed blur applied to the mask

    def validate(self) -> None:
        _require_steps("bloom", self.steps)
        if self.kernel_size < 1:
            raise ValueError(f"bloom kernel size must be >= 1, got {self.kernel_size}")


# Export & pipeline 

@dataclass
class ExportConfig:
    archive_name: str = "frames.zip"
    folder: str = "frames"          # directory inside the archive
    frame_prefix: str = "frame_"
    frame_ext: str = ".png"
    index_width: int = 3            # zero padding: frame_001.png

    def frame_name(self, index: int) -> str:
        return f"{self.frame_prefix}{index:0{self.index_width}d}{self.frame_ext}"


@dataclass
class PipelineConfig:
    threshold: ThresholdEffectConfig = field(default_factory=ThresholdEffectConfig)
    blur: BlurEffectConfig = field(default_factory=BlurEffectConfig)
    bloom: BloomEffectConfig = field(default_factory=BloomEffectConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    frames_dir: Optional[str] = None    # write frames to disk as they are produced
    show: bool = False

    def validate(self) -> None:
        """Raise ValueError on settings no effect run could complete with."""
        self.threshold.validate()
        self.blur.validate()
        self.bloom.validate()
