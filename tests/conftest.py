import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from labadjust.document import Document, Layer  # noqa: E402


class RecordingExecutor:
    """Executor fake that records calls instead of touching pixels."""

    def __init__(self, fail_on_call=None, error=None):
        self.calls = []
        self.fail_on_call = fail_on_call
        self.error = error or RuntimeError("filter exploded")

    def _record(self, entry):
        self.calls.append(entry)
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise self.error

    def blur(self, layer, channels, radius):
        self._record(("blur", tuple(channels), {"radius": radius}))

    def sharpen(self, layer, channels, amount, radius, threshold):
        self._record(("sharpen", tuple(channels),
                      {"amount": amount, "radius": radius, "threshold": threshold}))

    def generic_action(self, layer, channels, action_name, params):
        self._record((action_name, tuple(channels), dict(params)))


class RecordingPresenter:
    def __init__(self):
        self.messages = []

    def alert(self, message):
        self.messages.append(message)


def make_document(width, height, seed=0):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    return Document([Layer("Background", pixels)], name="test")


@pytest.fixture
def recorder():
    return RecordingExecutor()


@pytest.fixture
def presenter():
    return RecordingPresenter()
