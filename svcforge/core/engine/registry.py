"""
Generator registry — ordered, failure-isolated execution of generators.

Generators are registered under a category. ``execute()`` walks the
known categories in a fixed order (unknown ones afterwards, in
registration order), then the generators of each category in
registration order:

    should_generate() is False  →  skipped
    generate() returns          →  success
    generate() raises           →  failed (run aborts when stop_on_error)

A summary is logged at the end of every run, aborted or not.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from svcforge.core.errors import GenerationFailure, GeneratorRegistrationError
from svcforge.core.models.context import GenerationContext, normalize_context
from svcforge.core.models.execution import (
    ExecutionResult,
    ExecutionResultBuilder,
    GeneratorOutcome,
)

logger = logging.getLogger(__name__)

CATEGORY_ORDER: tuple[str, ...] = (
    "core",
    "config",
    "code",
    "scripts",
    "tests",
    "docs",
    "ci",
    "service-types",
)


def generator_name(generator: Any) -> str:
    return getattr(generator, "name", None) or type(generator).__name__


class GeneratorRegistry:
    """Holds generators by category and runs them against one context."""

    def __init__(self) -> None:
        self._generators: dict[str, list[Any]] = {}

    # ── Registration ────────────────────────────────────────────

    def register(self, category: str, generators: Any | Iterable[Any]) -> None:
        """Append one or more generators to ``category``.

        Raises:
            GeneratorRegistrationError: a generator has no callable
                ``generate``; nothing from this call is registered.
        """
        if not category:
            raise GeneratorRegistrationError("Category name is required")

        batch = list(generators) if isinstance(generators, (list, tuple)) else [generators]
        for generator in batch:
            if not callable(getattr(generator, "generate", None)):
                raise GeneratorRegistrationError(
                    f"Generator {generator_name(generator)!r} in category {category!r} "
                    "must have a generate() method"
                )

        self._generators.setdefault(category, []).extend(batch)
        logger.debug("Registered %d generator(s) in %s", len(batch), category)

    def unregister(self, category: str, name: str) -> bool:
        """Remove the first generator called ``name``. True if one was removed."""
        generators = self._generators.get(category, [])
        for index, generator in enumerate(generators):
            if generator_name(generator) == name:
                del generators[index]
                return True
        return False

    def clear_category(self, category: str) -> bool:
        return self._generators.pop(category, None) is not None

    def clear_all(self) -> None:
        self._generators.clear()

    # ── Introspection ───────────────────────────────────────────

    def get_categories(self) -> list[str]:
        """Registered categories in execution order."""
        known = [c for c in CATEGORY_ORDER if c in self._generators]
        unknown = [c for c in self._generators if c not in CATEGORY_ORDER]
        return known + unknown

    def get_generators(self, category: str) -> list[Any]:
        return list(self._generators.get(category, []))

    def has_category(self, category: str) -> bool:
        return category in self._generators

    def count(self) -> int:
        return sum(len(g) for g in self._generators.values())

    def category_count(self, category: str) -> int:
        return len(self._generators.get(category, []))

    def summary(self) -> dict:
        categories = self.get_categories()
        return {
            "total_categories": len(categories),
            "total_generators": self.count(),
            "categories": {
                category: {
                    "count": self.category_count(category),
                    "generators": [generator_name(g) for g in self._generators[category]],
                }
                for category in categories
            },
        }

    # ── Execution ───────────────────────────────────────────────

    def execute(
        self,
        context: GenerationContext | Mapping[str, Any],
        stop_on_error: bool = True,
    ) -> ExecutionResult:
        """Run every registered generator against ``context``.

        Returns:
            The frozen ExecutionResult.

        Raises:
            GenerationFailure: a generator failed and ``stop_on_error``
                is set. The partial result rides along on ``.result``.
        """
        ctx = normalize_context(context)
        builder = ExecutionResultBuilder()
        logger.info("Generating %s (%s) into %s", ctx.service_name, ctx.service_type, ctx.service_path)

        for category in self.get_categories():
            for generator in self._generators[category]:
                name = generator_name(generator)
                outcome = self._run_one(generator, name, category, ctx)
                builder.record(outcome)

                if outcome.status == "failed" and stop_on_error:
                    result = builder.freeze(aborted=True)
                    self._log_summary(result)
                    raise GenerationFailure(name, category, outcome.error or "", result)

        result = builder.freeze()
        self._log_summary(result)
        return result

    def _run_one(self, generator: Any, name: str, category: str, ctx: GenerationContext) -> GeneratorOutcome:
        should_generate = getattr(generator, "should_generate", None)
        try:
            if callable(should_generate) and not should_generate(ctx):
                logger.debug("  ⏭  %s (%s): not applicable", name, category)
                return GeneratorOutcome(
                    name=name, category=category, status="skipped", reason="should_generate returned False"
                )
            produced = generator.generate(ctx)
        except Exception as e:
            logger.error("  ✗ %s (%s): %s", name, category, e)
            return GeneratorOutcome(name=name, category=category, status="failed", error=str(e) or type(e).__name__)

        files = tuple(str(p) for p in produced) if isinstance(produced, (list, tuple)) else ()
        logger.info("  ✓ %s (%s): %d file(s)", name, category, len(files))
        return GeneratorOutcome(name=name, category=category, status="success", files=files)

    @staticmethod
    def _log_summary(result: ExecutionResult) -> None:
        counts = result.summary()
        log = logger.warning if result.failed else logger.info
        log(
            "Generation %s: %d generators, %d succeeded, %d failed, %d skipped",
            "aborted" if result.aborted else "complete",
            result.total,
            counts["success"],
            counts["failed"],
            counts["skipped"],
        )
        for failure in result.failed:
            log("  %s (%s) failed: %s", failure.name, failure.category, failure.error)
