"""Filter executors: the pixel math behind blur, sharpen and ripple.

The pipeline only decides *which* filter runs on *which* channels with
*which* settings. Anything that satisfies :class:`FilterExecutor` can do the
actual work; :class:`OpenCVFilterExecutor` is the in-process implementation.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Mapping, Protocol, Sequence, Tuple, Union

import cv2
import numpy as np

from .document import Channel, ColorMode, Layer
from .errors import FilterInvocationError
from .log import logger


class RippleSize(Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


# generic action vocabulary
RIPPLE_ACTION = "Rple"
RIPPLE_AMOUNT = "Amnt"
RIPPLE_SIZE = "RplS"
UNDEFINED_AREAS = "UndA"
WRAP_AROUND = "WrpA"
REPEAT_EDGE = "RptE"

RIPPLE_SIZE_TAGS: Dict[RippleSize, str] = {
    RippleSize.SMALL: "Smlr",
    RippleSize.MEDIUM: "Mdmm",
    RippleSize.LARGE: "Lrge",
}


def resolve_ripple_size(size: Union[RippleSize, str]) -> str:
    """Map a ripple size to its action tag. Unknown names mean medium."""
    if not isinstance(size, RippleSize):
        try:
            size = RippleSize(str(size).strip().lower())
        except ValueError:
            logger.debug("Unknown ripple size %r, using medium", size)
            size = RippleSize.MEDIUM
    return RIPPLE_SIZE_TAGS[size]


class FilterExecutor(Protocol):
    """Applies filters to the given channels of a layer, in place."""

    def blur(self, layer: Layer, channels: Sequence[Channel], radius: float) -> None:
        ...

    def sharpen(
        self,
        layer: Layer,
        channels: Sequence[Channel],
        amount: int,
        radius: float,
        threshold: int,
    ) -> None:
        ...

    def generic_action(
        self,
        layer: Layer,
        channels: Sequence[Channel],
        action_name: str,
        params: Mapping[str, Any],
    ) -> None:
        ...


def apply_ripple(
    executor: FilterExecutor,
    layer: Layer,
    channels: Sequence[Channel],
    amount: int,
    size: Union[RippleSize, str] = RippleSize.MEDIUM,
) -> None:
    """Ripple has no first-class call; it goes through the generic action interface."""
    params = {
        RIPPLE_AMOUNT: int(amount),
        RIPPLE_SIZE: resolve_ripple_size(size),
        UNDEFINED_AREAS: WRAP_AROUND,
    }
    executor.generic_action(layer, channels, RIPPLE_ACTION, params)


# Lab plane layout and value ranges
_CHANNEL_PLANES = {Channel.LIGHTNESS: 0, Channel.A: 1, Channel.B: 2}
_CHANNEL_RANGES = {
    Channel.LIGHTNESS: (0.0, 100.0),
    Channel.A: (-128.0, 127.0),
    Channel.B: (-128.0, 127.0),
}
_LEVELS_PER_UNIT = {Channel.LIGHTNESS: 2.55, Channel.A: 1.0, Channel.B: 1.0}

# ripple wavelength (px) per size tag
_RIPPLE_WAVELENGTHS = {"Smlr": 8.0, "Mdmm": 16.0, "Lrge": 32.0}


class OpenCVFilterExecutor:
    """Gaussian blur, unsharp mask and ripple on Lab float planes.

    Radius is the Gaussian sigma in pixels, sharpen amount is a percentage and
    the threshold is counted in 0-255 levels of the channel being sharpened.
    """

    MAX_RADIUS = 1000.0
    AMOUNT_RANGE = (1, 500)
    THRESHOLD_RANGE = (0, 255)
    RIPPLE_RANGE = (-999, 999)

    def __init__(self) -> None:
        self._actions: Dict[str, Callable[[Layer, Sequence[Channel], Mapping[str, Any]], None]] = {
            RIPPLE_ACTION: self._ripple,
        }

    #  channel plumbing

    @staticmethod
    def _planes(layer: Layer, channels: Sequence[Channel]) -> Iterator[Tuple[Channel, np.ndarray]]:
        if layer.mode is not ColorMode.LAB:
            raise FilterInvocationError(
                f"Layer '{layer.name}' is in {layer.mode.value} mode; Lab channels are required"
            )
        if not channels:
            raise FilterInvocationError("No channel selected")
        for ch in channels:
            plane = np.ascontiguousarray(layer.pixels[..., _CHANNEL_PLANES[ch]], dtype=np.float32)
            yield ch, plane

    @staticmethod
    def _store(layer: Layer, channel: Channel, plane: np.ndarray) -> None:
        lo, hi = _CHANNEL_RANGES[channel]
        layer.pixels[..., _CHANNEL_PLANES[channel]] = np.clip(plane, lo, hi)

    def _check_radius(self, radius: float) -> None:
        if not 0 < radius <= self.MAX_RADIUS:
            raise FilterInvocationError(
                f"Radius {radius:.4g} px out of range (0, {self.MAX_RADIUS:g}]"
            )

    #  filters

    def blur(self, layer: Layer, channels: Sequence[Channel], radius: float) -> None:
        self._check_radius(radius)
        for ch, plane in self._planes(layer, channels):
            self._store(layer, ch, cv2.GaussianBlur(plane, (0, 0), sigmaX=radius, sigmaY=radius))

    def sharpen(
        self,
        layer: Layer,
        channels: Sequence[Channel],
        amount: int,
        radius: float,
        threshold: int,
    ) -> None:
        lo, hi = self.AMOUNT_RANGE
        if not lo <= amount <= hi:
            raise FilterInvocationError(f"Unsharp amount {amount}% out of range [{lo}, {hi}]")
        lo, hi = self.THRESHOLD_RANGE
        if not lo <= threshold <= hi:
            raise FilterInvocationError(f"Unsharp threshold {threshold} out of range [{lo}, {hi}]")
        self._check_radius(radius)

        gain = amount / 100.0
        for ch, plane in self._planes(layer, channels):
            blurred = cv2.GaussianBlur(plane, (0, 0), sigmaX=radius, sigmaY=radius)
            detail = plane - blurred
            # leave low-contrast detail alone
            mask = (np.abs(detail) * _LEVELS_PER_UNIT[ch] >= threshold).astype(np.float32)
            self._store(layer, ch, plane + gain * detail * mask)

    def generic_action(
        self,
        layer: Layer,
        channels: Sequence[Channel],
        action_name: str,
        params: Mapping[str, Any],
    ) -> None:
        handler = self._actions.get(action_name)
        if handler is None:
            raise FilterInvocationError(f"Unknown action '{action_name}'")
        handler(layer, channels, params)

    def _ripple(self, layer: Layer, channels: Sequence[Channel], params: Mapping[str, Any]) -> None:
        try:
            amount = int(params[RIPPLE_AMOUNT])
        except (KeyError, TypeError, ValueError) as e:
            raise FilterInvocationError(f"Ripple needs an integer '{RIPPLE_AMOUNT}': {e}") from e
        lo, hi = self.RIPPLE_RANGE
        if not lo <= amount <= hi:
            raise FilterInvocationError(f"Ripple amount {amount} out of range [{lo}, {hi}]")

        size_tag = params.get(RIPPLE_SIZE, RIPPLE_SIZE_TAGS[RippleSize.MEDIUM])
        if size_tag not in _RIPPLE_WAVELENGTHS:
            raise FilterInvocationError(f"Unknown ripple size tag '{size_tag}'")
        undefined = params.get(UNDEFINED_AREAS, WRAP_AROUND)
        if undefined not in (WRAP_AROUND, REPEAT_EDGE):
            raise FilterInvocationError(f"Unknown undefined-area mode '{undefined}'")

        h, w = layer.height, layer.width
        wavelength = _RIPPLE_WAVELENGTHS[size_tag]
        amplitude = amount / 100.0 * wavelength / 8.0

        yy, xx = np.mgrid[0:h, 0:w].astype(np.float32)
        map_x = xx + amplitude * np.sin(2.0 * np.pi * yy / wavelength)
        map_y = yy + amplitude * np.sin(2.0 * np.pi * xx / wavelength)
        if undefined == WRAP_AROUND:
            map_x = np.mod(map_x, w)
            map_y = np.mod(map_y, h)
        map_x = map_x.astype(np.float32)
        map_y = map_y.astype(np.float32)

        for ch, plane in self._planes(layer, channels):
            out = cv2.remap(plane, map_x, map_y, cv2.INTER_LINEAR, borderMode=cv2.BORDER_REPLICATE)
            self._store(layer, ch, out)
