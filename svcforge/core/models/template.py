"""
File models — what generators produce and what the writer reports.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

WriteOutcome = Literal["written", "skipped-existing", "dry-run"]


class GeneratedFile(BaseModel):
    """A file produced by a generator, before it reaches disk.

    Attributes:
        path:      Relative path from the service root.
        content:   Full file content.
        overwrite: Whether to overwrite if already exists.
        reason:    Why this file was generated.
    """

    path: str
    content: str
    overwrite: bool = True
    reason: str = ""


class WriteResult(BaseModel):
    """Outcome of a single ``FileWriter.write_file`` call."""

    model_config = ConfigDict(frozen=True)

    written: bool
    path: str
    reason: str | None = None
    dry_run: bool = False


class WrittenFileRecord(BaseModel):
    """One entry of a writer's history."""

    model_config = ConfigDict(frozen=True)

    path: str
    outcome: WriteOutcome

    @property
    def would_exist(self) -> bool:
        """True when the file is (or would be, outside dry-run) on disk."""
        return self.outcome in ("written", "dry-run")
