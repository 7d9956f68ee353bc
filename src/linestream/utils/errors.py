"""
Error handling for linestream.

This module provides:
- Hierarchical exception classes
- Error context preservation
- Structured error responses
"""

from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from contextlib import contextmanager

from .logging import get_logger


logger = get_logger("linestream.errors")


class ErrorSeverity(Enum):
    """Error severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""
    CONFIGURATION = "configuration"
    SOURCE = "source"
    DECODING = "decoding"
    LIMIT = "limit"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Context information for an error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    component: Optional[str] = None
    operation: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class LineStreamError(Exception):
    """Base exception for all linestream errors."""

    code: str = "LINESTREAM_ERROR"
    default_message: str = "An error occurred in linestream"
    severity: ErrorSeverity = ErrorSeverity.ERROR
    category: ErrorCategory = ErrorCategory.UNKNOWN
    is_retryable: bool = False

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[BaseException] = None,
    ):
        self.message = message or self.default_message
        self.context = context or ErrorContext()
        self.cause = cause
        super().__init__(self.message)

    def get_suggestions(self) -> List[str]:
        """Get error resolution suggestions."""
        return []

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "severity": self.severity.value,
                "category": self.category.value,
                "is_retryable": self.is_retryable,
                "suggestions": self.get_suggestions(),
                "cause": repr(self.cause) if self.cause else None,
                "context": {
                    "timestamp": self.context.timestamp.isoformat(),
                    "component": self.context.component,
                    "operation": self.context.operation,
                    "metadata": self.context.metadata
                }
            }
        }


class ConfigurationError(LineStreamError):
    """Configuration errors."""
    code = "CONFIG_ERROR"
    default_message = "Configuration error"
    category = ErrorCategory.CONFIGURATION

    def get_suggestions(self) -> List[str]:
        return [
            "Check your configuration file syntax",
            "Verify the encoding name is known to Python's codecs registry",
        ]


# Stream Errors

class StreamError(LineStreamError):
    """Errors raised while producing lines from a byte source."""
    code = "STREAM_ERROR"
    default_message = "Stream error occurred"
    category = ErrorCategory.SOURCE


class SourceReadError(StreamError):
    """The underlying byte source failed."""
    code = "SOURCE_READ_ERROR"
    default_message = "Failed to read from byte source"
    is_retryable = True

    def get_suggestions(self) -> List[str]:
        return [
            "Re-open the byte source and iterate again",
            "Check that the file or URL is reachable",
        ]


class DecodeError(StreamError):
    """Malformed byte sequence under the declared encoding (strict mode)."""
    code = "DECODE_ERROR"
    default_message = "Malformed byte sequence"
    category = ErrorCategory.DECODING

    def __init__(
        self,
        encoding: str,
        chunk_index: int,
        reason: str,
        **kwargs
    ):
        self.encoding = encoding
        self.chunk_index = chunk_index
        self.reason = reason
        message = f"Cannot decode chunk {chunk_index} as {encoding}: {reason}"
        super().__init__(message, **kwargs)

    def get_suggestions(self) -> List[str]:
        return [
            f"Verify the source is really encoded as {self.encoding}",
            "Disable strict mode to substitute U+FFFD for malformed bytes",
        ]


class LineTooLongError(StreamError):
    """An unterminated line grew past the configured limit."""
    code = "LINE_TOO_LONG"
    default_message = "Line exceeds maximum length"
    category = ErrorCategory.LIMIT

    def __init__(self, length: int, max_length: int, **kwargs):
        self.length = length
        self.max_length = max_length
        message = f"Line length {length} exceeds maximum {max_length}"
        super().__init__(message, **kwargs)


@contextmanager
def error_context(
    component: str,
    operation: str,
    **metadata
):
    """
    Context manager attaching component/operation context to errors.

    linestream errors get their context filled in and are re-raised.
    Any other exception is wrapped in a LineStreamError.
    """
    context = ErrorContext(
        component=component,
        operation=operation,
        metadata=metadata
    )

    try:
        yield context
    except LineStreamError as e:
        e.context.component = e.context.component or component
        e.context.operation = e.context.operation or operation
        e.context.metadata.update(metadata)
        logger.debug("linestream_error_in_context", error=e.to_dict())
        raise
    except Exception as e:
        wrapped = LineStreamError(
            message=str(e) or type(e).__name__,
            context=context,
            cause=e
        )
        logger.error(
            "unexpected_error_in_context",
            error=wrapped.to_dict(),
            exc_info=True
        )
        raise wrapped from e


__all__ = [
    'LineStreamError',
    'ErrorContext',
    'ErrorSeverity',
    'ErrorCategory',
    'ConfigurationError',
    'StreamError',
    'SourceReadError',
    'DecodeError',
    'LineTooLongError',
    'error_context',
]
