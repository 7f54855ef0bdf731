"""
Generator contract — the polymorphic unit the registry runs.

A generator has a ``name``, a ``category``, a pure ``should_generate``
predicate and a side-effecting ``generate``. Subclasses only implement
``build()``, which returns ``GeneratedFile`` objects without touching
disk; the base class handles writing through the shared FileWriter.

``generate()`` is safe to call directly even when ``should_generate``
would say no: it logs and returns an empty list.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from svcforge.core.models.context import GenerationContext, normalize_context
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.file_writer import FileWriter
from svcforge.core.services.template_engine import TemplateEngine

logger = logging.getLogger(__name__)


class BaseGenerator(ABC):
    """Base class for every file generator.

    Args:
        template_engine: Shared engine (a default one is created lazily).
        file_writer:     Shared writer. When None, ``generate`` writes
                         straight under ``context.service_path``.
        overwrite:       Run-wide overwrite policy; a file that asks not
                         to be overwritten is never overwritten.
    """

    name: str = ""
    category: str = ""
    description: str = ""

    def __init__(
        self,
        template_engine: TemplateEngine | None = None,
        file_writer: FileWriter | None = None,
        overwrite: bool = True,
    ):
        self._template_engine = template_engine
        self.file_writer = file_writer
        self.overwrite = overwrite
        if not self.name:
            self.name = type(self).__name__

    @property
    def template_engine(self) -> TemplateEngine:
        if self._template_engine is None:
            self._template_engine = TemplateEngine()
        return self._template_engine

    def should_generate(self, context: GenerationContext) -> bool:
        return True

    @abstractmethod
    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        """Produce file contents. Must not touch disk."""

    def generate(self, context: GenerationContext | Mapping[str, Any]) -> list[str]:
        """Build and write this generator's files.

        Returns:
            Relative paths that were written (or would be, in dry-run).
        """
        ctx = normalize_context(context)
        if not self.should_generate(ctx):
            logger.info("%s: not applicable to %s service, skipping", self.name, ctx.service_type)
            return []

        writer = self.file_writer or FileWriter(ctx.service_path)
        produced: list[str] = []
        for generated in self.build(ctx):
            result = writer.write_file(
                generated.path,
                generated.content,
                overwrite=self.overwrite and generated.overwrite,
            )
            if result.written:
                produced.append(generated.path)
        return produced

    def render_template(self, relative_path: str, context: GenerationContext, **extra: Any) -> str:
        """Render a bundled template with the context's variables."""
        variables = context.template_variables()
        variables.update(extra)
        return self.template_engine.render_file(relative_path, variables)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} category={self.category!r}>"
