from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import TypeVar, Generic, Callable, Optional
import traceback
import logging

T = TypeVar("T")


class ErrorSeverity(Enum):
    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass(frozen=True)
class AppError(ABC):
    """Base class for all engine errors with rich context."""

    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    severity: ErrorSeverity = ErrorSeverity.ERROR
    source_file: Optional[str] = None
    source_line: Optional[int] = None
    stack_trace: Optional[str] = None

    @abstractmethod
    def error_code(self) -> str:
        """Return unique error code for this error type."""
        pass

    def log(self, logger: logging.Logger) -> None:
        """Log this error with appropriate severity level."""
        log_methods = {
            ErrorSeverity.DEBUG: logger.debug,
            ErrorSeverity.INFO: logger.info,
            ErrorSeverity.WARNING: logger.warning,
            ErrorSeverity.ERROR: logger.error,
            ErrorSeverity.CRITICAL: logger.critical,
        }
        log_method = log_methods.get(self.severity, logger.error)
        log_message = f"[{self.error_code()}] {self.message}"
        if self.source_file:
            log_message += f" at {self.source_file}:{self.source_line}"
        log_method(log_message)


@dataclass(frozen=True)
class InvalidViewportError(AppError):
    """Transform requested without a usable scale or page size."""

    scale: Optional[float] = None
    severity: ErrorSeverity = ErrorSeverity.DEBUG

    def error_code(self) -> str:
        return "VIEWPORT_ERR"


@dataclass(frozen=True)
class DocumentLoadError(AppError):
    """Original document bytes could not be opened as a PDF."""

    byte_count: Optional[int] = None

    def error_code(self) -> str:
        return "DOC_LOAD_ERR"


@dataclass(frozen=True)
class FontEmbedError(AppError):
    """Font needed for text annotations could not be embedded or used."""

    font_name: Optional[str] = None
    annotation_id: Optional[str] = None

    def error_code(self) -> str:
        return "FONT_EMBED_ERR"


@dataclass(frozen=True)
class CompositionError(AppError):
    """Errors raised while baking annotations into page content."""

    page_number: Optional[int] = None
    annotation_id: Optional[str] = None

    def error_code(self) -> str:
        return "COMPOSE_ERR"


@dataclass(frozen=True)
class CompositionCancelledError(CompositionError):
    """Composition was cancelled before it produced output."""

    severity: ErrorSeverity = ErrorSeverity.INFO

    def error_code(self) -> str:
        return "COMPOSE_CANCELLED"


@dataclass(frozen=True)
class ValidationError(AppError):
    """Errors related to input validation."""

    field_name: Optional[str] = None
    invalid_value: Optional[str] = None

    def error_code(self) -> str:
        return "VALIDATION_ERR"


class Result(Generic[T], ABC):
    """
    A Result type representing either success or failure.
    Inspired by Rust's Result type for explicit error handling.
    """

    @abstractmethod
    def is_success(self) -> bool:
        """Check if this result represents success."""
        pass

    @abstractmethod
    def is_failure(self) -> bool:
        """Check if this result represents failure."""
        pass

    @abstractmethod
    def unwrap(self) -> T:
        """
        Get the success value.
        Raises RuntimeError if this is a failure.
        """
        pass

    @abstractmethod
    def unwrap_or(self, default: T) -> T:
        """Get the success value or return default if failure."""
        pass

    @abstractmethod
    def map(self, transform: Callable[[T], "U"]) -> "Result[U]":
        """Transform the success value if present."""
        pass

    @abstractmethod
    def get_error(self) -> Optional[AppError]:
        """Get the error if this is a failure, None otherwise."""
        pass

    @abstractmethod
    def on_failure(self, action: Callable[[AppError], None]) -> "Result[T]":
        """Execute action if failure, return self for chaining."""
        pass


U = TypeVar("U")


@dataclass
class Success(Result[T]):
    """Represents a successful result containing a value."""

    value: T

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, transform: Callable[[T], U]) -> Result[U]:
        return Success(transform(self.value))

    def get_error(self) -> Optional[AppError]:
        return None

    def on_failure(self, action: Callable[[AppError], None]) -> Result[T]:
        return self


@dataclass
class Failure(Result[T]):
    """Represents a failed result containing an error."""

    error: AppError

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def unwrap(self) -> T:
        raise RuntimeError(f"Attempted to unwrap a Failure: {self.error.message}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, transform: Callable[[T], U]) -> Result[U]:
        return Failure(self.error)

    def get_error(self) -> Optional[AppError]:
        return self.error

    def on_failure(self, action: Callable[[AppError], None]) -> Result[T]:
        action(self.error)
        return self


def capture_exception(
    error_class: type[AppError],
    message: str,
    **extra_fields
) -> AppError:
    """
    Capture current exception context and create an error with stack trace.
    """
    stack = traceback.format_exc()
    frame = traceback.extract_stack()[-2] if len(traceback.extract_stack()) >= 2 else None

    return error_class(
        message=message,
        stack_trace=stack,
        source_file=frame.filename if frame else None,
        source_line=frame.lineno if frame else None,
        **extra_fields
    )


def try_execute(
    operation: Callable[[], T],
    error_class: type[AppError],
    error_message: str,
    **error_fields
) -> Result[T]:
    """
    Execute an operation and wrap exceptions in a Result.
    """
    try:
        return Success(operation())
    except Exception as exception:
        return Failure(capture_exception(
            error_class,
            f"{error_message}: {str(exception)}",
            **error_fields
        ))
