"""Console logging setup for script entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers; handlers
are attached here, once, by whoever runs the pipeline.

Usage:
    from oscillation_analyzer.util.logging import configure_logging

    configure_logging("DEBUG")
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

_ROOT_LOGGER_NAME = "oscillation_analyzer"
_FORMAT = "[%(asctime)s] %(levelname)-8s [%(name)s] %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: Union[str, int] = "INFO", stream: Optional[object] = None) -> logging.Logger:
    """Attach a single stderr handler to the package logger (idempotent)."""
    if isinstance(level, str):
        lvl = logging.getLevelName(level.upper())
        if not isinstance(lvl, int):
            raise ValueError(f"Unknown log level: {level!r}")
    else:
        lvl = int(level)

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(lvl)
    for h in list(root.handlers):
        if getattr(h, "_oscillation_console", False):
            root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    handler._oscillation_console = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.propagate = False
    return root
