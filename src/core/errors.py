"""Typed errors for invoice processing.

Two families:
- per-document errors, caught at the pipeline boundary and folded into the
  document's record (the batch keeps going);
- stream-fatal errors, which end the whole request with an ``error`` event.
"""

from enum import Enum


class ErrorCategory(Enum):
    """Categories of processing errors."""
    ENUMERATION = "enumeration"   # Input directory missing or empty
    CONFIGURATION = "configuration"  # Schema or system prompt unreadable
    PREPARATION = "preparation"   # Document could not be read/encoded
    MODEL_CALL = "model_call"     # Model request failed or returned no text
    PARSE = "parse"               # Final pass did not yield a JSON object
    PERSISTENCE = "persistence"   # Output file could not be written
    STREAM = "stream"             # Consumer disconnected


class InvoiceProcessingError(Exception):
    """Base class for all processing errors."""

    category: ErrorCategory = ErrorCategory.ENUMERATION
    stream_fatal: bool = True

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class DocumentError(InvoiceProcessingError):
    """Error confined to a single document."""

    stream_fatal = False


class DocumentPreparationError(DocumentError):
    category = ErrorCategory.PREPARATION


class ModelCallError(DocumentError):
    category = ErrorCategory.MODEL_CALL


class ResponseParseError(DocumentError):
    category = ErrorCategory.PARSE


class PersistenceError(DocumentError):
    category = ErrorCategory.PERSISTENCE


class EnumerationError(InvoiceProcessingError):
    category = ErrorCategory.ENUMERATION


class SchemaLoadError(InvoiceProcessingError):
    category = ErrorCategory.CONFIGURATION


class PromptLoadError(InvoiceProcessingError):
    category = ErrorCategory.CONFIGURATION


class StreamClosedError(InvoiceProcessingError):
    """The progress consumer went away; the request is abandoned."""

    category = ErrorCategory.STREAM
