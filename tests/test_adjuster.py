"""End-to-end tests for LabAdjuster with fake and real executors."""

import numpy as np
import pytest

from labadjust.document import LAB_CHANNELS, Channel, ColorMode, Document, Layer, Preferences, Units
from labadjust.errors import ConversionError, FilterInvocationError, PreconditionError
from labadjust.helpers import PipelineConfig
from labadjust.pipeline import NO_DOCUMENT_MESSAGE, LabAdjuster, LoggingPresenter

from conftest import RecordingExecutor, make_document


def test_no_document(recorder, presenter):
    prefs = Preferences(ruler_units=Units.CM)
    outcome = LabAdjuster(recorder, presenter, prefs).run(None)
    assert not outcome.succeeded
    assert isinstance(outcome.error, PreconditionError)
    assert presenter.messages == [NO_DOCUMENT_MESSAGE]
    assert recorder.calls == []
    assert prefs.ruler_units is Units.CM


def test_zero_size_document_is_a_precondition_failure(recorder, presenter):
    doc = Document([Layer("empty", np.zeros((0, 0, 3), dtype=np.uint8))])
    outcome = LabAdjuster(recorder, presenter).run(doc)
    assert isinstance(outcome.error, PreconditionError)
    assert len(doc.layers) == 1
    assert recorder.calls == []
    assert len(presenter.messages) == 1


def test_call_sequence_and_threaded_selection(recorder, presenter):
    doc = make_document(250, 125)
    outcome = LabAdjuster(recorder, presenter).run(doc)
    assert outcome.succeeded, outcome.message
    assert outcome.scale == pytest.approx(0.1)

    L, A, B = (Channel.LIGHTNESS,), (Channel.A,), (Channel.B,)
    ripple = {"RplS": "Mdmm", "UndA": "WrpA"}
    assert recorder.calls == [
        ("blur", L, {"radius": pytest.approx(0.02)}),
        ("sharpen", L, {"amount": 125, "radius": pytest.approx(0.23), "threshold": 18}),
        ("Rple", L, dict(Amnt=20, **ripple)),
        ("Rple", A, dict(Amnt=175, **ripple)),
        ("blur", A, {"radius": pytest.approx(0.4)}),
        ("sharpen", A, {"amount": 131, "radius": pytest.approx(0.51), "threshold": 3}),
        ("Rple", B, dict(Amnt=175, **ripple)),
        ("blur", B, {"radius": pytest.approx(0.4)}),
        ("sharpen", B, {"amount": 131, "radius": pytest.approx(0.51), "threshold": 3}),
    ]


def test_success_leaves_adjusted_layer_active_with_composite(recorder, presenter):
    doc = make_document(64, 48)
    source = doc.active_layer
    outcome = LabAdjuster(recorder, presenter).run(doc)
    assert outcome.layer is doc.active_layer
    assert outcome.layer.name == "Adjusted"
    assert doc.layer_by_name("Adjusted") is outcome.layer
    assert doc.layers.index(outcome.layer) < doc.layers.index(source)
    assert outcome.layer.mode is ColorMode.LAB
    assert doc.active_channels == LAB_CHANNELS
    assert presenter.messages == [outcome.message]
    assert "Applied scale factor: 0.026x" in outcome.message


def test_custom_layer_name(recorder, presenter):
    cfg = PipelineConfig(layer_name="Lab pass")
    outcome = LabAdjuster(recorder, presenter, config=cfg).run(make_document(30, 30))
    assert outcome.layer.name == "Lab pass"
    assert "'Lab pass'" in outcome.message


def test_source_is_untouched_by_real_filters(presenter):
    doc = make_document(64, 48, seed=7)
    source = doc.active_layer
    before = source.pixels.copy()
    outcome = LabAdjuster(presenter=presenter).run(doc)
    assert outcome.succeeded, outcome.message
    assert source.mode is ColorMode.RGB
    assert source.pixels.dtype == np.uint8
    np.testing.assert_array_equal(source.pixels, before)
    assert outcome.layer.pixels.shape == (48, 64, 3)
    assert not np.array_equal(outcome.layer.to_rgb8(), before)


def test_scale_is_computed_in_pixels_whatever_the_ruler(recorder, presenter):
    prefs = Preferences(ruler_units=Units.INCHES)
    rng = np.random.default_rng(0)
    doc = Document([Layer("bg", rng.integers(0, 256, (100, 200, 3), dtype=np.uint8))], resolution=300)
    outcome = LabAdjuster(recorder, presenter, prefs).run(doc)
    assert outcome.scale == pytest.approx(200 / 2500)
    assert outcome.dimensions.width == 200
    assert prefs.ruler_units is Units.INCHES


@pytest.mark.parametrize("fail_on_call", range(1, 10))
def test_filter_failure_aborts_and_cleans_up(presenter, fail_on_call):
    rec = RecordingExecutor(fail_on_call=fail_on_call)
    prefs = Preferences(ruler_units=Units.MM)
    doc = make_document(50, 40)
    outcome = LabAdjuster(rec, presenter, prefs).run(doc)

    assert not outcome.succeeded
    assert isinstance(outcome.error, FilterInvocationError)
    assert isinstance(outcome.error.__cause__, RuntimeError)
    assert len(rec.calls) == fail_on_call
    assert prefs.ruler_units is Units.MM
    assert doc.active_channels == LAB_CHANNELS
    assert presenter.messages == [outcome.message]
    assert outcome.message.startswith("Error executing adjustments:\n")
    assert "filter exploded" in outcome.message
    # the copy stays, unrenamed; the source is intact
    assert doc.active_layer.name == "Background copy"


def test_taxonomy_errors_pass_through_unwrapped(presenter):
    err = FilterInvocationError("radius out of range")
    rec = RecordingExecutor(fail_on_call=1, error=err)
    outcome = LabAdjuster(rec, presenter).run(make_document(20, 20))
    assert outcome.error is err


def test_conversion_failure(recorder, presenter):
    prefs = Preferences(ruler_units=Units.POINTS)
    doc = Document([Layer("rgba", np.zeros((10, 10, 4), dtype=np.uint8))])
    outcome = LabAdjuster(recorder, presenter, prefs).run(doc)
    assert isinstance(outcome.error, ConversionError)
    assert recorder.calls == []
    assert prefs.ruler_units is Units.POINTS
    assert doc.active_channels is None


def test_unexpected_errors_propagate_and_restore_units(recorder, presenter):
    prefs = Preferences(ruler_units=Units.CM)
    doc = make_document(10, 10)
    adjuster = LabAdjuster(recorder, presenter, prefs)
    adjuster.config.reference = None  # type: ignore[assignment]
    with pytest.raises(AttributeError):
        adjuster.run(doc)
    assert prefs.ruler_units is Units.CM


def test_logging_presenter(caplog):
    with caplog.at_level("INFO", logger="labadjust"):
        LoggingPresenter().alert("done")
    assert "done" in caplog.text


def test_unconvertible_dtype_is_a_conversion_error(recorder, presenter):
    prefs = Preferences(ruler_units=Units.CM)
    doc = Document([Layer("complex", np.zeros((4, 4, 3), dtype=np.complex64))])
    outcome = LabAdjuster(recorder, presenter, prefs).run(doc)
    assert isinstance(outcome.error, ConversionError)
    assert isinstance(outcome.error.__cause__, ValueError)
    assert presenter.messages == [outcome.message]
    assert recorder.calls == []
    assert prefs.ruler_units is Units.CM


def test_failure_is_logged_once_with_default_presenter(caplog):
    rec = RecordingExecutor(fail_on_call=2)
    with caplog.at_level("DEBUG", logger="labadjust"):
        outcome = LabAdjuster(rec).run(make_document(20, 20))
    failures = [r for r in caplog.records if "filter exploded" in r.getMessage()]
    assert not outcome.succeeded
    assert len(failures) == 1
