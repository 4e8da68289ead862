from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple, Optional

import cv2
import numpy as np
import os

from .scale import REFERENCE_PARAMETERS, ReferenceParameterSet


# Config dataclasses

@dataclass
class PipelineConfig:
    reference: ReferenceParameterSet = field(default_factory=lambda: REFERENCE_PARAMETERS)
    layer_name: str = "Adjusted"
    save_dir: Optional[str] = None
    show: bool = False


# I/O & filesystem helpers

def ensure_dir(path: str | os.PathLike) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def load_image_bgr(path: str | os.PathLike) -> np.ndarray:
    """Load an image as BGR uint8 (OpenCV default). Raises on failure."""
    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        raise FileNotFoundError(f"Could not read image: {path}")
    return img


def save_image_rgb(path: str | os.PathLike, img_rgb: np.ndarray) -> None:
    if not cv2.imwrite(str(path), cv2.cvtColor(img_rgb, cv2.COLOR_RGB2BGR)):
        raise OSError(f"Could not write image: {path}")


def list_images(
    dir_path: str | os.PathLike,
    extensions: Tuple[str, ...] = (".png", ".jpg", ".jpeg", ".tif", ".tiff"),
) -> List[str]:
    p = Path(dir_path)
    return [
        str(fp) for fp in sorted(p.iterdir())
        if fp.is_file() and fp.suffix.lower() in extensions
    ]
