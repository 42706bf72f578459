from __future__ import annotations
from typing import List, Optional, Sequence, Tuple, TypeVar

import matplotlib.pyplot as plt
import numpy as np

from .models import Frame

T = TypeVar("T")


class Visualizer:
    """Preview helpers (only used by --show / --preview). No implicit showing in library paths."""

    @staticmethod
    def sample(items: Sequence[T], count: int = 6) -> List[T]:
        """Evenly spaced items, always including the first and the last."""
        if count <= 0 or not items:
            return []
        if len(items) <= count:
            return list(items)
        picks = np.linspace(0, len(items) - 1, count).round().astype(int)
        return [items[i] for i in dict.fromkeys(picks.tolist())]

    @classmethod
    def show_frames(
        cls,
        frames: Sequence[Frame],
        count: int = 6,
        figsize: Tuple[int, int] = (18, 4),
        save_path: Optional[str] = None,
        show: bool = True,
    ) -> plt.Figure:
        picked = cls.sample(frames, count)
        if not picked:
            raise ValueError("no frames to preview")
        fig, axes = plt.subplots(1, len(picked), figsize=figsize)
        if len(picked) == 1:
            axes = [axes]

        for ax, frame in zip(axes, picked):
            ax.imshow(frame.buffer.pixels)
            ax.set_title(f"{frame.effect.value} #{frame.index}")
            ax.axis("off")

        fig.tight_layout()
        if save_path:
            fig.savefig(save_path)
        if show:
            plt.show()
        return fig
