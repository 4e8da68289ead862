from __future__ import annotations


class LabAdjustError(Exception):
    """Base class for failures that abort an adjustment run."""


class PreconditionError(LabAdjustError):
    """No image to work on (no document open, or a zero-size image)."""


class ConversionError(LabAdjustError):
    """The working layer could not be converted to Lab."""


class FilterInvocationError(LabAdjustError):
    """A blur, sharpen or ripple call was rejected or failed."""
