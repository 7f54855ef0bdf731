"""
Execution result — what a registry run produced, per generator.

Results are assembled while the run is in flight and frozen when it
ends (completed or aborted). Nothing mutates them afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

OutcomeStatus = Literal["success", "failed", "skipped"]


@dataclass(frozen=True)
class GeneratorOutcome:
    """One generator's result within a run."""

    name: str
    category: str
    status: OutcomeStatus
    error: str | None = None
    reason: str | None = None
    files: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        data: dict = {"name": self.name, "category": self.category, "status": self.status}
        if self.error is not None:
            data["error"] = self.error
        if self.reason is not None:
            data["reason"] = self.reason
        if self.files:
            data["files"] = list(self.files)
        return data


@dataclass(frozen=True)
class ExecutionResult:
    """Frozen success / failed / skipped buckets of one registry run."""

    success: tuple[GeneratorOutcome, ...] = ()
    failed: tuple[GeneratorOutcome, ...] = ()
    skipped: tuple[GeneratorOutcome, ...] = ()
    aborted: bool = False

    @property
    def total(self) -> int:
        return len(self.success) + len(self.failed) + len(self.skipped)

    @property
    def all_ok(self) -> bool:
        return not self.failed

    @property
    def status(self) -> str:
        if not self.failed:
            return "ok"
        if self.success:
            return "partial"
        return "failed"

    @property
    def files(self) -> list[str]:
        """Every path reported by successful generators, in run order."""
        return [path for outcome in self.success for path in outcome.files]

    def summary(self) -> dict[str, int]:
        return {
            "success": len(self.success),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
        }

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "aborted": self.aborted,
            "summary": self.summary(),
            "success": [o.to_dict() for o in self.success],
            "failed": [o.to_dict() for o in self.failed],
            "skipped": [o.to_dict() for o in self.skipped],
        }


@dataclass
class ExecutionResultBuilder:
    """Mutable accumulator used only while a run is in flight."""

    success: list[GeneratorOutcome] = field(default_factory=list)
    failed: list[GeneratorOutcome] = field(default_factory=list)
    skipped: list[GeneratorOutcome] = field(default_factory=list)

    def record(self, outcome: GeneratorOutcome) -> None:
        getattr(self, outcome.status).append(outcome)

    def freeze(self, *, aborted: bool = False) -> ExecutionResult:
        return ExecutionResult(
            success=tuple(self.success),
            failed=tuple(self.failed),
            skipped=tuple(self.skipped),
            aborted=aborted,
        )
