"""Custom exceptions used across CineBill."""


class CineBillError(Exception):
    """Base error for the application."""


class ConfigError(CineBillError):
    """Configuration related error."""


class ExtractionError(CineBillError):
    """Raised when an uploaded sheet cannot be turned into invoice records."""

    NO_HEADER_FOUND = "no_header_found"
    MISSING_REQUIRED_COLUMN = "missing_required_column"
    NO_DATA_ROWS = "no_data_rows"
    UNREADABLE_SOURCE = "unreadable_source"

    def __init__(self, reason: str, message: str | None = None) -> None:
        super().__init__(message or reason)
        self.reason = reason


class RenderError(CineBillError):
    """Raised when a document model cannot be drawn."""


class ExportError(CineBillError):
    """Raised when PDF/ZIP export fails."""


class DuplicateBlocked(CineBillError):
    """Raised when the duplicate policy forbids exporting a batch."""

    def __init__(self, message: str, pairs: list | None = None) -> None:
        super().__init__(message)
        self.pairs = pairs or []


class ReportError(CineBillError):
    """Raised when a report cannot be produced for the given selection."""


class InvalidTransition(CineBillError):
    """Raised when an invoice is moved to a state it cannot reach."""
