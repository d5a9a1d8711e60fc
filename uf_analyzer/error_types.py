"""
Error types and severity levels for device analysis.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(Enum):
    """Severity levels for device analysis errors."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


class ErrorType(Enum):
    """Types of device analysis errors."""

    DUPLICATED_IDENTIFIER = "DuplicatedIdentifier"
    UNDEFINED_IDENTIFIER = "UndefinedIdentifier"
    UNDEFINED_PORT = "UndefinedPort"
    MALFORMED_INPUT = "MalformedInput"


_DEFAULT_MESSAGES = {
    ErrorType.DUPLICATED_IDENTIFIER: "Duplicated identifier",
    ErrorType.UNDEFINED_IDENTIFIER: "Undefined identifier",
    ErrorType.UNDEFINED_PORT: "Undefined port",
    ErrorType.MALFORMED_INPUT: "Malformed input",
}


class MalformedInputError(Exception):
    """Raised when the traversal delivers a node it could not parse."""

    def __init__(self, message: str = "Malformed input", location=None):
        self.location = location
        if location is not None:
            message = f"{message} at {location}"
        super().__init__(message)


@dataclass
class SourceLocation:
    """Represents a location in the UF source code."""

    line: int
    column: int
    file_path: Optional[str] = None

    def __str__(self) -> str:
        location = f"line {self.line}, column {self.column}"
        if self.file_path:
            location = f"{self.file_path}:{location}"
        return location


@dataclass
class SemanticError:
    """Represents a single device analysis diagnostic."""

    error_type: ErrorType
    severity: ErrorSeverity
    message: str
    identifier: Optional[str] = None
    filename: Optional[str] = None
    location: Optional[SourceLocation] = None
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        """Format error for display."""
        prefix = f"[{self.severity.value.upper()}]"

        if self.location:
            prefix += f" at {self.location}"
        elif self.filename:
            prefix += f" in {self.filename}"

        return f"{prefix}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "type": self.error_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "identifier": self.identifier,
            "filename": self.filename,
            "location": {
                "line": self.location.line,
                "column": self.location.column,
                "file_path": self.location.file_path,
            }
            if self.location
            else None,
            "context": self.context,
        }


class ErrorCollector:
    """Collects diagnostics reported during an analysis run.

    This is the receiving end of the ``(filename, location, kind)`` tuples the
    analyzer emits. It stores them; rendering is left to whoever reads them.
    """

    def __init__(self):
        self.errors: List[SemanticError] = []
        self.error_counts = {severity: 0 for severity in ErrorSeverity}

    def add_error(self, error: SemanticError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)
        self.error_counts[error.severity] += 1

    def report(
        self,
        filename: Optional[str],
        location: Optional[SourceLocation],
        error_type: ErrorType,
        identifier: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> SemanticError:
        """Record a diagnostic tuple and return the stored error."""
        if location is not None and location.file_path is None:
            location = SourceLocation(location.line, location.column, filename)

        message = _DEFAULT_MESSAGES[error_type]
        if identifier is not None:
            message = f"{message} '{identifier}'"

        severity = (
            ErrorSeverity.FATAL
            if error_type is ErrorType.MALFORMED_INPUT
            else ErrorSeverity.ERROR
        )
        error = SemanticError(
            error_type=error_type,
            severity=severity,
            message=message,
            identifier=identifier,
            filename=filename,
            location=location,
            context=context,
        )
        self.add_error(error)
        return error

    def has_errors(self) -> bool:
        """Check if there are any errors (not warnings or info)."""
        return (
            self.error_counts[ErrorSeverity.ERROR] > 0
            or self.error_counts[ErrorSeverity.FATAL] > 0
        )

    def has_fatal_errors(self) -> bool:
        """Check if there are any fatal errors."""
        return self.error_counts[ErrorSeverity.FATAL] > 0

    def get_errors_by_severity(self, severity: ErrorSeverity) -> List[SemanticError]:
        """Get all errors of a specific severity."""
        return [error for error in self.errors if error.severity == severity]

    def get_errors_by_type(self, error_type: ErrorType) -> List[SemanticError]:
        """Get all errors of a specific type."""
        return [error for error in self.errors if error.error_type == error_type]

    def __len__(self) -> int:
        return len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error collection to dictionary."""
        return {
            "summary": {
                severity.value: count for severity, count in self.error_counts.items()
            },
            "errors": [error.to_dict() for error in self.errors],
        }
