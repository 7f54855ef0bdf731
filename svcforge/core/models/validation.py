"""
Validation models — issues found by the configuration validator.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class ValidationIssue(BaseModel):
    """A single finding. Only ERROR-level issues flip validity."""

    model_config = ConfigDict(frozen=True)

    type: str
    severity: Severity
    message: str
    suggested_fix: str = ""
    resource: str | None = None  # d1 / kv / r2, or the env var name

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class ValidationResult(BaseModel):
    """Outcome of ``validate_service_config``."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    issues: tuple[ValidationIssue, ...] = ()

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> ValidationResult:
        valid = not any(i.severity is Severity.ERROR for i in issues)
        return cls(valid=valid, issues=tuple(issues))

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    def to_dict(self) -> dict:
        return {"valid": self.valid, "issues": [i.to_dict() for i in self.issues]}


class AutoFixResult(BaseModel):
    """Outcome of ``auto_fix``."""

    success: bool
    fixes: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    backup_path: str | None = None
