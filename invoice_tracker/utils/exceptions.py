"""
Custom Exceptions Module.

This module defines the custom exceptions used throughout the invoice
tracker. Field extraction, classification and forecasting never raise
for "not found" conditions; these exceptions cover the collaborators
around them (document reading, configuration, storage and export).

Exception Hierarchy:
    InvoiceTrackerError (base)
    ├── InputError
    │   ├── UnsupportedFileTypeError
    │   ├── DocumentNotFoundError
    │   └── DocumentReadError
    ├── ConfigurationError
    ├── ForecastError
    └── OutputError
        ├── DatabaseError
        └── ExcelExportError
"""


class InvoiceTrackerError(Exception):
    """
    Base exception for all invoice tracker errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(InvoiceTrackerError):
    """Base exception for document input errors."""
    pass


class UnsupportedFileTypeError(InputError):
    """
    Raised when an unsupported file type is provided.

    Example:
        >>> raise UnsupportedFileTypeError(".doc", [".txt"])
    """

    def __init__(self, file_type: str, supported_types: list):
        message = f"Unsupported file type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


class DocumentNotFoundError(InputError):
    """Raised when an input document cannot be found."""

    def __init__(self, filepath: str):
        message = f"Document not found: {filepath}"
        details = {"filepath": filepath}
        super().__init__(message, details)


class DocumentReadError(InputError):
    """Raised when a document's text cannot be obtained."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Could not read document text: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(InvoiceTrackerError):
    """Raised when a configuration value is missing or malformed."""

    def __init__(self, key: str, reason: str = None):
        message = f"Invalid configuration value: {key}"
        details = {"key": key, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# FORECAST ERRORS
# =============================================================================

class ForecastError(InvoiceTrackerError):
    """Raised when an expected invoice cannot be projected for a group."""

    def __init__(self, group: tuple, reason: str = None):
        message = f"Could not project expected invoice for group: {group}"
        details = {"group": group, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# OUTPUT ERRORS
# =============================================================================

class OutputError(InvoiceTrackerError):
    """Base exception for output handling errors."""
    pass


class DatabaseError(OutputError):
    """Raised when database operations fail."""

    def __init__(self, operation: str, reason: str = None):
        message = f"Database operation failed: {operation}"
        details = {"operation": operation, "reason": reason}
        super().__init__(message, details)


class ExcelExportError(OutputError):
    """Raised when Excel export fails."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Failed to export Excel file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


__all__ = [
    'InvoiceTrackerError',
    'InputError',
    'UnsupportedFileTypeError',
    'DocumentNotFoundError',
    'DocumentReadError',
    'ConfigurationError',
    'ForecastError',
    'OutputError',
    'DatabaseError',
    'ExcelExportError',
]
