from __future__ import annotations
from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .document import Layer


class Visualizer:
    """Plot helpers (only used when --show). No implicit showing in library paths."""

    @staticmethod
    def show_side_by_side(
        images: Sequence[np.ndarray],
        titles: Optional[Sequence[str]] = None,
        figsize: Tuple[int, int] = (12, 6),
        show: bool = True,
    ) -> plt.Figure:
        n = len(images)
        titles = titles or [f"Image {i+1}" for i in range(n)]

        fig, axes = plt.subplots(1, n, figsize=figsize)
        if n == 1:
            axes = [axes]

        for ax, img, title in zip(axes, images, titles):
            ax.imshow(img, cmap="gray" if getattr(img, "ndim", 2) == 2 else None)
            ax.set_title(title)
            ax.axis("off")

        fig.tight_layout()
        if show:
            plt.show()
        return fig

    @classmethod
    def compare_layers(cls, before: Layer, after: Layer, show: bool = True) -> plt.Figure:
        return cls.show_side_by_side(
            [before.to_rgb8(), after.to_rgb8()],
            [before.name, after.name],
            show=show,
        )
