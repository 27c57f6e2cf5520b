"""
Completeness report models.

Findings describe configuration that parses but is incomplete or inconsistent,
such as a release variant without signing or a rules file that does not exist.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Finding severity."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Finding(BaseModel):
    """A single completeness finding."""

    code: str = Field(description="Stable finding code (e.g. release-signing-missing)")
    severity: Severity
    message: str
    path: str = Field(default="", description="Dotted descriptor path the finding refers to")
    reference: str | None = Field(default=None, description="Referenced file, if any")


class CompletenessReport(BaseModel):
    """Findings produced for one descriptor."""

    application_id: str
    project_dir: str | None = Field(default=None)
    findings: list[Finding] = Field(default_factory=list)

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == Severity.WARNING]

    @property
    def ok(self) -> bool:
        """Whether the report has no errors."""
        return not self.errors

    def codes(self) -> set[str]:
        """Get the distinct finding codes."""
        return {f.code for f in self.findings}
