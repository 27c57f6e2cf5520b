"""Core infrastructure components for gradlelens."""

from .config import Config, get_config
from .exceptions import (
    ConfigurationError,
    DescriptorParseError,
    GradleLensError,
    InvariantViolationError,
    MissingFieldError,
    ReferencedFileNotFoundError,
    TypeMismatchError,
    UnknownFieldError,
    ValidationError,
    VersionRegressionError,
)
from .logging import get_logger, setup_logging
from .types import ServiceResult

__all__ = [
    "Config",
    "get_config",
    "ConfigurationError",
    "DescriptorParseError",
    "GradleLensError",
    "InvariantViolationError",
    "MissingFieldError",
    "ReferencedFileNotFoundError",
    "TypeMismatchError",
    "UnknownFieldError",
    "ValidationError",
    "VersionRegressionError",
    "get_logger",
    "setup_logging",
    "ServiceResult",
]
