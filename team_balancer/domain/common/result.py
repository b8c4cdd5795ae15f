"""Result types for caller-agnostic error handling."""

from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorType(str, Enum):
    """Standard error types for consistent handling across callers."""

    VALIDATION_ERROR = "validation_error"
    INFEASIBLE_PROBLEM = "infeasible_problem"
    CONFIGURATION_ERROR = "configuration_error"
    SYSTEM_ERROR = "system_error"


class DomainError(BaseModel):
    """Structured error information for callers."""

    error_type: ErrorType = Field(..., description="Standardized error type")
    message: str = Field(..., min_length=1, description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    violations: List[Dict[str, Any]] = Field(
        default_factory=list, description="Individual constraint violations"
    )

    @classmethod
    def validation_error(
        cls,
        message: str,
        violations: Optional[List[Dict[str, Any]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> "DomainError":
        """Create a validation error."""
        return cls(
            error_type=ErrorType.VALIDATION_ERROR,
            message=message,
            violations=violations or [],
            details=details,
        )

    @classmethod
    def configuration_error(
        cls, message: str, details: Optional[Dict[str, Any]] = None
    ) -> "DomainError":
        """Create a configuration error."""
        return cls(
            error_type=ErrorType.CONFIGURATION_ERROR, message=message, details=details
        )

    @classmethod
    def infeasible_problem(
        cls,
        message: str,
        violations: Optional[List[Dict[str, Any]]] = None,
    ) -> "DomainError":
        """Create an error for a pool that cannot fill the requested teams."""
        return cls(
            error_type=ErrorType.INFEASIBLE_PROBLEM,
            message=message,
            violations=violations or [],
        )


class Result(Generic[T]):
    """
    Result type for caller-agnostic error handling.

    Lets service operations return either a value or a structured error
    instead of raising exceptions the caller has to catch.
    """

    def __init__(
        self,
        value: Optional[T] = None,
        error: Optional[DomainError] = None,
        _allow_none: bool = False,
    ):
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if not _allow_none and value is None and error is None:
            raise ValueError("Result must have either value or error")

        self._value = value
        self._error = error

    @property
    def value(self) -> T:
        """Get the success value. Raises error if result is failure."""
        if self._error is not None:
            raise ValueError(
                f"Cannot access value on failed result: {self._error.message}"
            )
        return self._value

    @property
    def error(self) -> DomainError:
        """Get the error. Raises error if result is success."""
        if self._error is None:
            raise ValueError("Cannot access error on successful result")
        return self._error

    @property
    def is_success(self) -> bool:
        return self._error is None

    @property
    def is_failure(self) -> bool:
        return self._error is not None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value, _allow_none=True)

    @classmethod
    def failure(cls, error: DomainError) -> "Result[T]":
        return cls(error=error)

    def map(self, func) -> "Result":
        """Transform the value if successful, otherwise pass the error through."""
        if self.is_failure:
            return Result.failure(self.error)
        try:
            return Result.success(func(self.value))
        except Exception as e:
            return Result.failure(
                DomainError(
                    error_type=ErrorType.SYSTEM_ERROR,
                    message=f"Transformation failed: {str(e)}",
                )
            )
