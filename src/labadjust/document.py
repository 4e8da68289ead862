"""In-memory host document: layers, channels and the ruler-unit preference."""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
from skimage.color import gray2rgb, lab2rgb, rgb2lab
from skimage.util import img_as_float

from .errors import ConversionError


class ColorMode(Enum):
    RGB = "RGB"
    GRAYSCALE = "Grayscale"
    LAB = "Lab"


class Channel(Enum):
    LIGHTNESS = "Lightness"
    A = "a"
    B = "b"


LAB_CHANNELS: Tuple[Channel, ...] = (Channel.LIGHTNESS, Channel.A, Channel.B)


class Units(Enum):
    PIXELS = "px"
    INCHES = "in"
    CM = "cm"
    MM = "mm"
    POINTS = "pt"


_PER_INCH = {
    Units.INCHES: 1.0,
    Units.CM: 2.54,
    Units.MM: 25.4,
    Units.POINTS: 72.0,
}


@dataclass
class Preferences:
    """Process-wide host settings."""
    ruler_units: Units = Units.INCHES


@contextmanager
def use_ruler_units(prefs: Preferences, units: Units) -> Iterator[Preferences]:
    """Switch ``prefs.ruler_units`` for the duration of the block.

    The previous value is put back on every exit path, exceptions included.
    """
    saved = prefs.ruler_units
    prefs.ruler_units = units
    try:
        yield prefs
    finally:
        prefs.ruler_units = saved


@dataclass(frozen=True)
class ImageDimensions:
    width: float
    height: float

    @property
    def longest_side(self) -> float:
        return max(self.width, self.height)


@dataclass
class Layer:
    name: str
    pixels: np.ndarray      # RGB: (H, W, 3) uint8 or float in 0..1; Grayscale: (H, W); Lab: (H, W, 3) float32
    mode: ColorMode = ColorMode.RGB

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    def duplicate(self, name: Optional[str] = None) -> "Layer":
        return Layer(
            name=name if name is not None else f"{self.name} copy",
            pixels=self.pixels.copy(),
            mode=self.mode,
        )

    def _rgb_float(self) -> np.ndarray:
        px = self.pixels
        try:
            if self.mode is ColorMode.GRAYSCALE and px.ndim == 2:
                return gray2rgb(img_as_float(px))
            if self.mode is ColorMode.RGB and px.ndim == 3 and px.shape[-1] == 3:
                return img_as_float(px)
        except ValueError as e:
            # unsupported dtype
            raise ConversionError(f"Cannot read layer '{self.name}' as RGB: {e}") from e
        raise ConversionError(
            f"Cannot convert layer '{self.name}' ({self.mode.value}, shape {px.shape}) to Lab"
        )

    def convert_mode(self, mode: ColorMode) -> None:
        """Convert the layer in place. Only conversion to Lab is supported."""
        if mode is self.mode:
            return
        if mode is not ColorMode.LAB:
            raise ConversionError(f"Conversion to {mode.value} is not supported")
        rgb = self._rgb_float()
        try:
            lab = rgb2lab(rgb)
        except ValueError as e:
            raise ConversionError(f"Lab conversion failed for layer '{self.name}': {e}") from e
        self.pixels = lab.astype(np.float32)
        self.mode = ColorMode.LAB

    def to_rgb8(self) -> np.ndarray:
        """Render the layer as uint8 RGB for saving or display."""
        if self.mode is ColorMode.LAB:
            rgb01 = lab2rgb(self.pixels.astype(np.float64))
        elif self.mode is ColorMode.RGB and self.pixels.dtype == np.uint8:
            return self.pixels.copy()
        else:
            rgb01 = self._rgb_float()
        return (np.clip(rgb01, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


class Document:
    """An open image: a stack of layers (top first) sharing one canvas."""

    def __init__(
        self,
        layers: Sequence[Layer],
        resolution: float = 72.0,   # ppi
        name: str = "Untitled",
    ) -> None:
        if not layers:
            raise ValueError("A document needs at least one layer")
        if resolution <= 0:
            raise ValueError("resolution must be > 0")
        self.layers: List[Layer] = list(layers)
        self.resolution = float(resolution)
        self.name = name
        self.active_layer: Layer = self.layers[0]
        self.active_channels: Optional[Tuple[Channel, ...]] = None  # None -> composite
        self.width_px = self.layers[-1].width
        self.height_px = self.layers[-1].height

    def dimensions(self, units: Units = Units.PIXELS) -> ImageDimensions:
        if units is Units.PIXELS:
            return ImageDimensions(float(self.width_px), float(self.height_px))
        factor = _PER_INCH[units] / self.resolution
        return ImageDimensions(self.width_px * factor, self.height_px * factor)

    @property
    def channels(self) -> Tuple[Channel, ...]:
        """Named channels of the active layer (empty unless it is in Lab)."""
        return LAB_CHANNELS if self.active_layer.mode is ColorMode.LAB else ()

    def layer_by_name(self, name: str) -> Layer:
        for layer in self.layers:
            if layer.name == name:
                return layer
        raise KeyError(name)

    def duplicate_active_layer(self, name: Optional[str] = None) -> Layer:
        """Copy the active layer, stack it directly above and make it active."""
        source = self.active_layer
        copy = source.duplicate(name)
        self.layers.insert(self.layers.index(source), copy)
        self.active_layer = copy
        return copy

    def select_channels(self, channels: Sequence[Channel]) -> Tuple[Channel, ...]:
        selection = tuple(channels)
        if not selection:
            raise ValueError("At least one channel must be selected")
        missing = [c.value for c in selection if c not in self.channels]
        if missing:
            raise ValueError(
                f"Channel(s) {missing} not available in {self.active_layer.mode.value} mode"
            )
        self.active_channels = selection
        return selection

    def select_all_channels(self) -> Optional[Tuple[Channel, ...]]:
        self.active_channels = self.channels or None
        return self.active_channels
