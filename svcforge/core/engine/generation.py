"""
Generation engine — one complete service-tree run.

Flow:
    raw inputs → normalize_context → registry.execute → service-manifest.json

The engine owns the per-run FileWriter and TemplateEngine and wires
them into the default generator set. Everything the run touched (or
would have touched, in dry-run) is reported back in a GenerationReport.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from svcforge.core.engine.registry import GeneratorRegistry
from svcforge.core.models.context import GenerationContext, normalize_context
from svcforge.core.models.execution import ExecutionResult
from svcforge.core.models.template import WrittenFileRecord
from svcforge.core.services.file_writer import FileWriter
from svcforge.core.services.generators import DEFAULT_GENERATORS
from svcforge.core.services.generators.service_manifest import generate_service_manifest
from svcforge.core.services.template_engine import TemplateEngine

logger = logging.getLogger(__name__)


def build_default_registry(
    template_engine: TemplateEngine | None = None,
    file_writer: FileWriter | None = None,
    overwrite: bool = True,
) -> GeneratorRegistry:
    """A registry holding the standard generator set, sharing one engine and writer."""
    engine = template_engine or TemplateEngine()
    registry = GeneratorRegistry()
    for category, generator_classes in DEFAULT_GENERATORS.items():
        registry.register(
            category,
            [cls(template_engine=engine, file_writer=file_writer, overwrite=overwrite) for cls in generator_classes],
        )
    return registry


@dataclass
class GenerationReport:
    """What one run produced."""

    service_path: Path
    result: ExecutionResult
    records: list[WrittenFileRecord] = field(default_factory=list)
    manifest_path: str | None = None
    dry_run: bool = False

    def _relative(self, path: str) -> str:
        return Path(path).relative_to(self.service_path).as_posix()

    @property
    def files(self) -> list[str]:
        """Relative paths written (or that would be written, in dry-run)."""
        return [self._relative(r.path) for r in self.records if r.would_exist]

    @property
    def skipped_files(self) -> list[str]:
        """Relative paths left untouched because they already existed."""
        return [self._relative(r.path) for r in self.records if r.outcome == "skipped-existing"]

    @property
    def ok(self) -> bool:
        return self.result.all_ok

    def to_dict(self) -> dict:
        return {
            "service_path": str(self.service_path),
            "dry_run": self.dry_run,
            "files": self.files,
            "skipped_files": self.skipped_files,
            "manifest": self.manifest_path,
            "execution": self.result.to_dict(),
        }


class GenerationEngine:
    """Run the default generator set against a context.

    Args:
        templates_path: Override the bundled templates.
        dry_run:        Report writes without touching disk.
        overwrite:      Replace existing files (False keeps them).
        stop_on_error:  Abort the run on the first generator failure.
    """

    def __init__(
        self,
        templates_path: str | Path | None = None,
        dry_run: bool = False,
        overwrite: bool = True,
        stop_on_error: bool = True,
    ):
        self.template_engine = TemplateEngine(templates_path)
        self.dry_run = dry_run
        self.overwrite = overwrite
        self.stop_on_error = stop_on_error

    def generate(self, context: GenerationContext | Mapping[str, Any]) -> GenerationReport:
        """Generate the service tree described by ``context``.

        Raises:
            GenerationFailure: a generator failed and ``stop_on_error`` is set.
            pydantic.ValidationError: the context inputs are invalid.
        """
        ctx = normalize_context(context)
        writer = FileWriter(ctx.service_path, dry_run=self.dry_run)
        writer.ensure_directory()

        registry = build_default_registry(self.template_engine, writer, overwrite=self.overwrite)
        result = registry.execute(ctx, stop_on_error=self.stop_on_error)

        files_by_category: dict[str, list[str]] = {}
        for outcome in result.success:
            files_by_category.setdefault(outcome.category, []).extend(outcome.files)

        manifest = generate_service_manifest(ctx, files_by_category)
        written = writer.write_file(manifest.path, manifest.content, overwrite=self.overwrite)

        report = GenerationReport(
            service_path=writer.base_path,
            result=result,
            records=writer.get_records(),
            manifest_path=written.path if written.written else None,
            dry_run=self.dry_run,
        )
        logger.info(
            "%s %d file(s) for %s",
            "Would write" if self.dry_run else "Wrote",
            len(report.files),
            ctx.service_name,
        )
        return report
