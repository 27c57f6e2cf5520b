"""
gradlelens Data Models.

Pydantic models for the build descriptor and for completeness reports.
"""

from .descriptor import (
    AndroidBlock,
    ApplicationDescriptor,
    BuildDescriptor,
    BuildVariant,
    CompileOptions,
    DefaultConfig,
    Dependency,
    DependencyScope,
    FrameworkIntegration,
    KotlinOptions,
    PluginDeclaration,
    RuleFileRef,
    SigningConfig,
    ToolchainOptions,
    VariantName,
)
from .report import CompletenessReport, Finding, Severity

__all__ = [
    # Descriptor models
    "AndroidBlock",
    "ApplicationDescriptor",
    "BuildDescriptor",
    "BuildVariant",
    "CompileOptions",
    "DefaultConfig",
    "Dependency",
    "DependencyScope",
    "FrameworkIntegration",
    "KotlinOptions",
    "PluginDeclaration",
    "RuleFileRef",
    "SigningConfig",
    "ToolchainOptions",
    "VariantName",
    # Report models
    "CompletenessReport",
    "Finding",
    "Severity",
]
