"""Exception hierarchy for BOM ingestion, conversion and export."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from bomconvert.models import ValidationReport


class BOMConvertError(Exception):
    """Base class for all bomconvert failures."""


class UnsupportedFormatError(BOMConvertError):
    """Raised when a file extension maps to no known decoder."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file format: {extension or '<none>'}")


class DecodeError(BOMConvertError):
    """Raised when a file cannot be decoded into rows."""

    def __init__(self, message: str, *, path: Optional[str] = None, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        super().__init__(message)


class BOMValidationError(BOMConvertError):
    """Raised when a BOM fails validation and cannot be converted."""

    def __init__(self, report: "ValidationReport"):
        self.report = report
        summary = "; ".join(report.errors[:3])
        if len(report.errors) > 3:
            summary += f" (+{len(report.errors) - 3} more)"
        super().__init__(f"BOM validation failed: {summary}")


class SerializationError(BOMConvertError):
    """Raised when records cannot be written in the requested format."""


class AIEngineError(BOMConvertError):
    """Generic failure talking to the external conversion engine."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AIEngineTimeoutError(AIEngineError):
    """The engine did not answer within the configured timeout."""

    def __init__(self) -> None:
        super().__init__("AI Engine timeout - processing took too long")


class AIEngineUnavailableError(AIEngineError):
    """The engine could not be reached at all."""

    def __init__(self) -> None:
        super().__init__("AI Engine is not available")
