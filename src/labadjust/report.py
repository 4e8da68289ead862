from __future__ import annotations

from .document import ImageDimensions
from .scale import REFERENCE_SIZE, DerivedParameterSet


def summarize(
    dimensions: ImageDimensions,
    scale: float,
    derived: DerivedParameterSet,
    reference_size: float = REFERENCE_SIZE,
    layer_name: str = "Adjusted",
) -> str:
    """Human-readable summary of a finished run. Rounding is display-only."""
    return (
        "Adjustments applied successfully!\n\n"
        f"Image: {dimensions.width:.0f} x {dimensions.height:.0f} px\n"
        f"Applied scale factor: {scale:.3f}x\n"
        f"(Reference: {reference_size:.0f} x {reference_size:.0f} px)\n\n"
        "Adjusted values:\n"
        f"- Gaussian Blur (Lightness): {derived.lightness_blur_radius:.2f} px\n"
        f"- Unsharp Radius (Lightness): {derived.lightness_sharpen_radius:.2f} px\n"
        f"- Gaussian Blur (a/b): {derived.ab_blur_radius:.2f} px\n"
        f"- Unsharp Radius (a/b): {derived.ab_sharpen_radius:.2f} px\n\n"
        f"The '{layer_name}' layer has been created with all adjustments applied."
    )
