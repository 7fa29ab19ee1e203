"""Exceptions raised while recognizing and assembling a slide.

Recognizers report two kinds of failure, and callers branch on the
difference:

- FormatNotSupportedError: the file is not this vendor's format. The
  detection pipeline moves on to the next recognizer.
- BadDataError: the file claims to be this vendor's format but is
  internally inconsistent. Detection stops and the error is surfaced.
"""

from __future__ import annotations

from pathlib import Path
from typing import Self


class SlideError(Exception):
    """Base exception for all slide detection errors."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        """Initialize slide error with optional path context.

        Args:
            message: Human-readable error description.
            path: Path to the slide file that caused the error.
        """
        self.path = Path(path) if path else None
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with path context if available."""
        if self.path:
            return f"{self.message} (path: {self.path})"
        return self.message

    def with_prefix(self, prefix: str) -> Self:
        """Return a copy of this error with `prefix` prepended to the message.

        The copy keeps the concrete class, so a BadDataError stays a
        BadDataError after gaining context.
        """
        return type(self)(f"{prefix}{self.message}", self.path)

    def with_path(self, path: Path | str) -> Self:
        """Return a copy of this error carrying `path` as context."""
        return type(self)(self.message, path)


class FormatNotSupportedError(SlideError):
    """Raised when a file does not look like the recognizer's format.

    This error is raised when:
    - The first TIFF directory is not tiled
    - The base level carries no iScan XML packet
    - The XML packet cannot be parsed
    - No pyramid level could be identified
    """

    pass


class BadDataError(SlideError):
    """Raised when a file of the recognized format is internally inconsistent.

    This error is raised when:
    - The iScan element is missing or repeated
    - A pyramid level has no compression tag, or an unsupported codec
    - A label or thumbnail image cannot be registered
    - The smallest level is too large to quickhash
    """

    pass
