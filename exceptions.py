"""
Unified exception hierarchy for the budget forecast engine.

This module defines the exception hierarchy with ForecastEngineError
as the base exception, allowing for consistent error handling across the
engine, its configuration layer and the caller-side prediction service.
"""

from typing import Optional


class ForecastEngineError(Exception):
    """
    Base exception class for all forecast engine errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
        original_error: Optional original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ) -> None:
        """
        Initialize ForecastEngineError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        msg = self.message
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            msg = f"{msg} ({detail_str})"
        return msg


class ConfigError(ForecastEngineError):
    """Raised when configuration loading or validation fails."""
    pass


class InvalidInputError(ForecastEngineError):
    """Raised when the engine is called with invalid arguments (programming error)."""
    pass


class BudgetValidationError(ForecastEngineError):
    """Raised when a single budget record is malformed."""
    pass


class PeriodResolutionError(ForecastEngineError):
    """Raised when a budget period cannot be resolved."""
    pass


class PredictionServiceError(ForecastEngineError):
    """
    Raised by the caller-side prediction service.

    Attributes:
        code: Machine-readable error code (e.g. FETCH_ERROR, NO_BUDGETS)
    """

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ) -> None:
        merged = {"code": code}
        merged.update(details or {})
        super().__init__(message, details=merged, original_error=original_error)
        self.code = code
