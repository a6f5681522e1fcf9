"""Error taxonomy for the oscillation analysis pipeline.

Three failure classes exist:

- :class:`SourceUnavailable`: an input file is missing or unreadable. Fatal for
  that input; the driver decides whether the run continues.
- :class:`MalformedLine`: one text line could not be parsed under the requested
  schema. Recoverable: readers skip and count the line.
- :class:`ShapeMismatch`: a segment contributed a record count that does not
  match the fixed block size. A warning or an error depending on policy.
"""

from __future__ import annotations

from typing import Optional


class OscillationAnalysisError(Exception):
    """Base class for all pipeline errors."""


class SourceUnavailable(OscillationAnalysisError, OSError):
    """An input source could not be opened or read."""

    def __init__(self, source: str, reason: str = "") -> None:
        self.source = str(source)
        self.reason = reason
        msg = f"Source unavailable: {self.source}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class MalformedLine(OscillationAnalysisError, ValueError):
    """A text line does not hold the numeric fields its schema requires."""

    def __init__(self, line: str, reason: str, line_no: Optional[int] = None) -> None:
        self.line = line
        self.reason = reason
        self.line_no = line_no
        where = f"line {line_no}: " if line_no is not None else ""
        super().__init__(f"{where}{reason}: {line.rstrip()!r}")


class ShapeMismatch(OscillationAnalysisError, ValueError):
    """Record counts are inconsistent with the fixed block layout."""
