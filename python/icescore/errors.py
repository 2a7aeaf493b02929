"""Error kinds raised by icescore."""

from __future__ import annotations

from pathlib import Path


class ScoringError(Exception):
    """Base class for all icescore errors."""


class ContractViolation(ScoringError, AssertionError):
    """A precondition between engine components was broken.

    Raised when the shape score is requested below the low IoU threshold, or
    when a single-segment ground-truth class other than the umbrella code
    reaches the class-compatibility rule. Both mean the inputs were never
    validated, not that a submission is bad.
    """


class RecordError(ScoringError, ValueError):
    """Malformed ground-truth or submission record."""

    def __init__(self, message: str, *, path: str | Path | None = None, line: int | None = None) -> None:
        self.path = None if path is None else Path(path)
        self.line = line
        location = ""
        if self.path is not None:
            location = str(self.path)
            if line is not None:
                location += f":{line}"
            location += ": "
        super().__init__(f"{location}{message}")


class ConfigError(ScoringError, ValueError):
    """Invalid scoring configuration."""
