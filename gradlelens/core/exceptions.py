"""
Custom exception hierarchy for gradlelens.

All exceptions inherit from GradleLensError to enable consistent error handling
across loading, checking and release recording. Each exception type includes
context for debugging and logging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class GradleLensError(Exception):
    """Base exception for all gradlelens errors."""

    message: str
    context: dict[str, Any] = field(default_factory=dict)
    cause: Exception | None = None

    def __str__(self) -> str:
        ctx = f" | context: {self.context}" if self.context else ""
        cause = f" | caused by: {self.cause}" if self.cause else ""
        return f"{self.message}{ctx}{cause}"


@dataclass
class DescriptorParseError(GradleLensError):
    """Raised when a build script is not syntactically well formed."""

    source: str = "<script>"
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.source}:{self.line}:{self.column}: {self.message}"


@dataclass
class ValidationError(GradleLensError):
    """Raised when descriptor shape validation fails."""

    field_name: str | None = None
    expected_type: str | None = None
    actual_value: Any = None

    def __str__(self) -> str:
        if self.field_name:
            return f"Validation failed for '{self.field_name}': {self.message}"
        return f"Validation failed: {self.message}"


@dataclass
class MissingFieldError(ValidationError):
    """Raised when a required descriptor field is absent."""


@dataclass
class TypeMismatchError(ValidationError):
    """Raised when a descriptor field holds a value of the wrong type."""


@dataclass
class UnknownFieldError(ValidationError):
    """Raised when structured input carries a key the descriptor does not define."""


@dataclass
class InvariantViolationError(ValidationError):
    """Raised when well-typed values break a descriptor invariant (e.g. minSdk > targetSdk)."""


@dataclass
class ReferencedFileNotFoundError(GradleLensError):
    """Raised when a file named by the descriptor does not exist."""

    reference: str = ""
    expected_path: str = ""

    def __str__(self) -> str:
        return f"Referenced file '{self.reference}' not found at '{self.expected_path}': {self.message}"


@dataclass
class VersionRegressionError(GradleLensError):
    """Raised when a release does not increase the recorded versionCode."""

    application_id: str = ""
    previous_code: int = 0
    new_code: int = 0

    def __str__(self) -> str:
        return (
            f"versionCode for '{self.application_id}' must increase: "
            f"{self.new_code} <= {self.previous_code}. {self.message}"
        )


@dataclass
class ConfigurationError(GradleLensError):
    """Raised when an environment setting cannot be turned into configuration."""

    setting: str = ""

    def __str__(self) -> str:
        return f"Invalid value for {self.setting}: {self.message}" if self.setting else self.message
