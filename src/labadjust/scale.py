from __future__ import annotations
from dataclasses import dataclass

from .document import ImageDimensions
from .errors import PreconditionError
from .filters import RippleSize

REFERENCE_SIZE = 2500.0  # px, longest side the reference values were tuned on


@dataclass(frozen=True)
class ReferenceParameterSet:
    """Filter settings tuned by eye on a 2500 x 2500 px image.

    Only the radii scale with the image; amounts, thresholds and the ripple
    settings are used as-is at every resolution.
    """

    reference_size: float = REFERENCE_SIZE

    # scaled
    lightness_blur_radius: float = 0.2
    lightness_sharpen_radius: float = 2.3
    ab_blur_radius: float = 4.0
    ab_sharpen_radius: float = 5.1

    # fixed
    lightness_sharpen_amount: int = 125     # percent
    lightness_sharpen_threshold: int = 18   # levels
    lightness_ripple_amount: int = 20
    ab_ripple_amount: int = 175
    ab_sharpen_amount: int = 131
    ab_sharpen_threshold: int = 3
    ripple_size: RippleSize = RippleSize.MEDIUM


REFERENCE_PARAMETERS = ReferenceParameterSet()


@dataclass(frozen=True)
class DerivedParameterSet:
    scale: float
    lightness_blur_radius: float
    lightness_sharpen_radius: float
    ab_blur_radius: float
    ab_sharpen_radius: float
    lightness_sharpen_amount: int
    lightness_sharpen_threshold: int
    lightness_ripple_amount: int
    ab_ripple_amount: int
    ab_sharpen_amount: int
    ab_sharpen_threshold: int
    ripple_size: RippleSize


def compute_scale_factor(dimensions: ImageDimensions, reference_size: float = REFERENCE_SIZE) -> float:
    """max(width, height) / reference_size, at full precision."""
    if not (dimensions.width > 0 and dimensions.height > 0):
        raise PreconditionError(
            f"Image has no area: {dimensions.width} x {dimensions.height} px"
        )
    if not reference_size > 0:
        raise ValueError("reference_size must be > 0")
    return dimensions.longest_side / reference_size


def derive_parameters(
    scale: float,
    reference: ReferenceParameterSet = REFERENCE_PARAMETERS,
) -> DerivedParameterSet:
    return DerivedParameterSet(
        scale=scale,
        lightness_blur_radius=reference.lightness_blur_radius * scale,
        lightness_sharpen_radius=reference.lightness_sharpen_radius * scale,
        ab_blur_radius=reference.ab_blur_radius * scale,
        ab_sharpen_radius=reference.ab_sharpen_radius * scale,
        lightness_sharpen_amount=reference.lightness_sharpen_amount,
        lightness_sharpen_threshold=reference.lightness_sharpen_threshold,
        lightness_ripple_amount=reference.lightness_ripple_amount,
        ab_ripple_amount=reference.ab_ripple_amount,
        ab_sharpen_amount=reference.ab_sharpen_amount,
        ab_sharpen_threshold=reference.ab_sharpen_threshold,
        ripple_size=reference.ripple_size,
    )
