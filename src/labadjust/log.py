"""Package logger for labadjust.

Pipeline steps and scale factors go out at DEBUG (the CLI's --verbose), run
summaries, alerts and skipped inputs at INFO and above.
"""

from __future__ import annotations

import logging
from typing import Optional

_LOGGER: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    """Return the package logger, attaching a stream handler on first use."""

    global _LOGGER
    if _LOGGER is None:
        _LOGGER = logging.getLogger("labadjust")
        if not _LOGGER.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            handler.setFormatter(formatter)
            _LOGGER.addHandler(handler)
        _LOGGER.setLevel(logging.INFO)
    return _LOGGER


logger = get_logger()
