from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Tuple

from .document import (
    Channel,
    ColorMode,
    Document,
    ImageDimensions,
    Layer,
    Preferences,
    Units,
    use_ruler_units,
)
from .errors import FilterInvocationError, LabAdjustError, PreconditionError
from .filters import FilterExecutor, OpenCVFilterExecutor, RippleSize, apply_ripple
from .helpers import PipelineConfig
from .log import logger
from .report import summarize
from .scale import DerivedParameterSet, compute_scale_factor, derive_parameters

NO_DOCUMENT_MESSAGE = "Please open an image before running the adjustments."


class StepKind(Enum):
    CONVERT = "convert to Lab"
    SELECT = "select channel"
    BLUR = "gaussian blur"
    SHARPEN = "unsharp mask"
    RIPPLE = "ripple"
    SELECT_ALL = "select all channels"


@dataclass(frozen=True)
class Step:
    kind: StepKind
    channel: Optional[Channel] = None       # SELECT only
    radius: Optional[float] = None          # BLUR, SHARPEN
    amount: Optional[int] = None            # SHARPEN, RIPPLE
    threshold: Optional[int] = None         # SHARPEN
    size: Optional[RippleSize] = None       # RIPPLE


def _color_group(channel: Channel, p: DerivedParameterSet) -> List[Step]:
    return [
        Step(StepKind.SELECT, channel=channel),
        Step(StepKind.RIPPLE, amount=p.ab_ripple_amount, size=p.ripple_size),
        Step(StepKind.BLUR, radius=p.ab_blur_radius),
        Step(StepKind.SHARPEN, amount=p.ab_sharpen_amount, radius=p.ab_sharpen_radius,
             threshold=p.ab_sharpen_threshold),
    ]


def build_steps(p: DerivedParameterSet) -> List[Step]:
    """The fixed fourteen-step sequence, in execution order.

    a and b get the same group; within every group blur runs before sharpen.
    """
    steps = [
        Step(StepKind.CONVERT),
        Step(StepKind.SELECT, channel=Channel.LIGHTNESS),
        Step(StepKind.BLUR, radius=p.lightness_blur_radius),
        Step(StepKind.SHARPEN, amount=p.lightness_sharpen_amount, radius=p.lightness_sharpen_radius,
             threshold=p.lightness_sharpen_threshold),
        Step(StepKind.RIPPLE, amount=p.lightness_ripple_amount, size=p.ripple_size),
    ]
    steps += _color_group(Channel.A, p)
    steps += _color_group(Channel.B, p)
    steps.append(Step(StepKind.SELECT_ALL))
    return steps


class ChannelPipeline:
    """Runs the channel-scoped filter sequence on a document's active layer."""

    def __init__(self, executor: Optional[FilterExecutor] = None) -> None:
        self.executor = executor or OpenCVFilterExecutor()

    def _invoke(self, step: Step, layer: Layer, selection: Tuple[Channel, ...]) -> None:
        try:
            if step.kind is StepKind.BLUR:
                self.executor.blur(layer, selection, step.radius)
            elif step.kind is StepKind.SHARPEN:
                self.executor.sharpen(layer, selection, step.amount, step.radius, step.threshold)
            else:
                apply_ripple(self.executor, layer, selection, step.amount, step.size)
        except LabAdjustError:
            raise
        except Exception as e:
            names = "/".join(c.value for c in selection)
            raise FilterInvocationError(f"{step.kind.value} on {names} failed: {e}") from e

    def run(self, document: Document, derived: DerivedParameterSet) -> Tuple[Channel, ...]:
        """Apply every step to ``document.active_layer`` in place.

        The first failure stops the sequence; steps already applied stay
        applied. Channel selection goes back to the composite either way.
        """
        layer = document.active_layer
        steps = build_steps(derived)
        selection: Tuple[Channel, ...] = ()
        try:
            for i, step in enumerate(steps, start=1):
                logger.debug("step %d/%d: %s %s", i, len(steps), step.kind.value,
                             step.channel.value if step.channel else "")
                if step.kind is StepKind.CONVERT:
                    layer.convert_mode(ColorMode.LAB)
                elif step.kind is StepKind.SELECT:
                    selection = document.select_channels((step.channel,))
                elif step.kind is StepKind.SELECT_ALL:
                    selection = document.select_all_channels() or ()
                else:
                    self._invoke(step, layer, selection)
        finally:
            document.select_all_channels()
        return selection


@dataclass(frozen=True)
class AdjustmentOutcome:
    succeeded: bool
    message: str
    dimensions: Optional[ImageDimensions] = None
    parameters: Optional[DerivedParameterSet] = None
    layer: Optional[Layer] = None
    error: Optional[LabAdjustError] = None

    @property
    def scale(self) -> Optional[float]:
        return self.parameters.scale if self.parameters is not None else None


class Presenter(Protocol):
    def alert(self, message: str) -> None:
        ...


class LoggingPresenter:
    """Presenter that writes alerts to the package logger."""

    def alert(self, message: str) -> None:
        logger.info("%s", message)


class LabAdjuster:
    """Top-level run: duplicate, scale, filter, rename, report.

    Every run produces exactly one :class:`AdjustmentOutcome` and one alert.
    The ruler-unit preference is switched to pixels for the run and restored
    afterwards, whatever happens.
    """

    def __init__(
        self,
        executor: Optional[FilterExecutor] = None,
        presenter: Optional[Presenter] = None,
        preferences: Optional[Preferences] = None,
        config: Optional[PipelineConfig] = None,
    ) -> None:
        self.pipeline = ChannelPipeline(executor)
        self.presenter = presenter or LoggingPresenter()
        self.preferences = preferences or Preferences()
        self.config = config or PipelineConfig()

    def _adjust(self, document: Document) -> AdjustmentOutcome:
        ref = self.config.reference
        dims = document.dimensions(self.preferences.ruler_units)
        scale = compute_scale_factor(dims, ref.reference_size)
        derived = derive_parameters(scale, ref)
        logger.debug("%s: %.0f x %.0f px, scale %.3f", document.name, dims.width, dims.height, scale)

        working = document.duplicate_active_layer()
        self.pipeline.run(document, derived)
        working.name = self.config.layer_name

        report = summarize(dims, scale, derived, ref.reference_size, self.config.layer_name)
        return AdjustmentOutcome(True, report, dims, derived, working)

    def run(self, document: Optional[Document]) -> AdjustmentOutcome:
        if document is None:
            outcome = AdjustmentOutcome(False, NO_DOCUMENT_MESSAGE,
                                        error=PreconditionError(NO_DOCUMENT_MESSAGE))
        else:
            with use_ruler_units(self.preferences, Units.PIXELS):
                try:
                    outcome = self._adjust(document)
                except PreconditionError as e:
                    outcome = AdjustmentOutcome(False, str(e), error=e)
                except LabAdjustError as e:
                    outcome = AdjustmentOutcome(False, f"Error executing adjustments:\n{e}", error=e)
        self.presenter.alert(outcome.message)
        return outcome
