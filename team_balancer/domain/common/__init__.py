"""Common domain types and utilities."""

from .diagnostics import Diagnostic, DiagnosticsSink, NullDiagnosticsSink
from .result import DomainError, ErrorType, Result

__all__ = [
    "Result",
    "DomainError",
    "ErrorType",
    "Diagnostic",
    "DiagnosticsSink",
    "NullDiagnosticsSink",
]
