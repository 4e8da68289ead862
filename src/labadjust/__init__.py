from .document import (
    Channel, ColorMode, Document, ImageDimensions, Layer, Preferences, Units, use_ruler_units,
)
from .errors import ConversionError, FilterInvocationError, LabAdjustError, PreconditionError
from .filters import FilterExecutor, OpenCVFilterExecutor, RippleSize, apply_ripple, resolve_ripple_size
from .helpers import PipelineConfig, ensure_dir, load_image_bgr, save_image_rgb, list_images
from .scale import (
    REFERENCE_PARAMETERS, REFERENCE_SIZE, DerivedParameterSet, ReferenceParameterSet,
    compute_scale_factor, derive_parameters,
)
from .pipeline import (
    AdjustmentOutcome, ChannelPipeline, LabAdjuster, LoggingPresenter, Presenter, Step, StepKind,
    build_steps,
)
from .report import summarize

__all__ = [
    "Channel", "ColorMode", "Document", "ImageDimensions", "Layer", "Preferences", "Units",
    "use_ruler_units",
    "ConversionError", "FilterInvocationError", "LabAdjustError", "PreconditionError",
    "FilterExecutor", "OpenCVFilterExecutor", "RippleSize", "apply_ripple", "resolve_ripple_size",
    "PipelineConfig", "ensure_dir", "load_image_bgr", "save_image_rgb", "list_images",
    "REFERENCE_PARAMETERS", "REFERENCE_SIZE", "DerivedParameterSet", "ReferenceParameterSet",
    "compute_scale_factor", "derive_parameters",
    "AdjustmentOutcome", "ChannelPipeline", "LabAdjuster", "LoggingPresenter", "Presenter",
    "Step", "StepKind", "build_steps",
    "summarize",
]
