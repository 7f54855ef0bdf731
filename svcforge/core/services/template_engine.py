"""
Template engine — load, cache and render text templates.

Deliberately small. Two constructs only:

    {{ service.name }}        dot-notation variable lookup
    {{> readme/usage.md }}    partial inclusion (rendered with the same vars)

Missing variables are left as the literal placeholder unless rendering
is strict, in which case ``MissingVariable`` is raised. Loaded text is
cached by relative path; the cache is never invalidated by on-disk
changes, only by ``clear_cache()``.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

from svcforge.core.errors import MissingVariable, PartialNotFound, TemplateNotFound
from svcforge.core.services.path_resolver import PathResolver

logger = logging.getLogger(__name__)

_VARIABLE_RE = re.compile(r"\{\{\s*([A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)\s*\}\}")
_PARTIAL_RE = re.compile(r"\{\{>\s*([^}]+?)\s*\}\}")

_BUNDLED_TEMPLATES = Path(__file__).resolve().parent.parent.parent / "templates"

# Guards against a partial that includes itself
_MAX_PARTIAL_DEPTH = 8


def default_templates_path() -> Path:
    """Bundled templates, unless ``SVCFORGE_TEMPLATES_DIR`` points elsewhere."""
    override = os.environ.get("SVCFORGE_TEMPLATES_DIR")
    if override:
        return Path(override).expanduser()
    return _BUNDLED_TEMPLATES


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class TemplateEngine:
    """Render templates from a templates root and a partials root.

    Args:
        templates_path: Root for ``load_template``. Defaults to the bundled set.
        partials_path:  Root for ``load_partial``. Defaults to ``<templates>/partials``.
        cache:          Cache loaded text by relative path (default on).
    """

    def __init__(
        self,
        templates_path: str | Path | None = None,
        partials_path: str | Path | None = None,
        cache: bool = True,
    ):
        self.templates_path = Path(templates_path) if templates_path else default_templates_path()
        self.partials_path = (
            Path(partials_path) if partials_path else self.templates_path / "partials"
        )
        self.cache_enabled = cache
        self._templates: dict[str, str] = {}
        self._partials: dict[str, str] = {}

    # ── Loading ─────────────────────────────────────────────────

    def load_template(self, relative_path: str) -> str:
        """Read a template (from cache when enabled).

        Raises:
            TemplateNotFound: no such file under the templates root.
            PathTraversal: ``relative_path`` escapes the templates root.
        """
        if self.cache_enabled and relative_path in self._templates:
            return self._templates[relative_path]

        path = PathResolver(self.templates_path).resolve_safe(relative_path)
        if not path.is_file():
            raise TemplateNotFound(relative_path, str(self.templates_path))

        text = path.read_text(encoding="utf-8")
        if self.cache_enabled:
            self._templates[relative_path] = text
        logger.debug("Loaded template %s", relative_path)
        return text

    def load_partial(self, relative_path: str) -> str:
        """Read a partial (from cache when enabled).

        Raises:
            PartialNotFound: no such file under the partials root.
        """
        if self.cache_enabled and relative_path in self._partials:
            return self._partials[relative_path]

        path = PathResolver(self.partials_path).resolve_safe(relative_path)
        if not path.is_file():
            raise PartialNotFound(relative_path, str(self.partials_path))

        text = path.read_text(encoding="utf-8")
        if self.cache_enabled:
            self._partials[relative_path] = text
        logger.debug("Loaded partial %s", relative_path)
        return text

    # ── Rendering ───────────────────────────────────────────────

    @staticmethod
    def get_nested_value(variables: Any, dotted: str) -> Any:
        """Walk ``a.b.c`` through mappings (or attributes). None when absent."""
        current = variables
        for part in dotted.split("."):
            if current is None:
                return None
            if isinstance(current, dict):
                current = current.get(part)
            else:
                current = getattr(current, part, None)
        return current

    def render(self, template: str, variables: dict[str, Any] | None = None, strict: bool = False) -> str:
        """Substitute ``{{ name }}`` placeholders.

        Raises:
            MissingVariable: ``strict`` and a placeholder has no value.
        """
        variables = variables or {}

        def _replace(match: re.Match[str]) -> str:
            value = self.get_nested_value(variables, match.group(1))
            if value is None:
                if strict:
                    raise MissingVariable(match.group(1))
                return match.group(0)
            return _stringify(value)

        return _VARIABLE_RE.sub(_replace, template)

    def render_with_partials(
        self,
        template: str,
        variables: dict[str, Any] | None = None,
        strict: bool = False,
    ) -> str:
        """Splice in every ``{{> path }}`` partial, then substitute variables.

        Partials are spliced raw, so the combined text is rendered exactly
        once and substituted values are never scanned again.
        """
        expanded = self._expand_partials(template, depth=0)
        return self.render(expanded, variables, strict=strict)

    def render_file(self, relative_path: str, variables: dict[str, Any] | None = None, strict: bool = False) -> str:
        """Load a template and render it with partials."""
        return self.render_with_partials(self.load_template(relative_path), variables, strict=strict)

    def _expand_partials(self, template: str, depth: int) -> str:
        if depth >= _MAX_PARTIAL_DEPTH:
            raise RecursionError(f"Partials nested deeper than {_MAX_PARTIAL_DEPTH} levels")

        def _include(match: re.Match[str]) -> str:
            return self._expand_partials(self.load_partial(match.group(1)), depth + 1)

        return _PARTIAL_RE.sub(_include, template)

    # ── Cache ───────────────────────────────────────────────────

    def clear_cache(self) -> None:
        self._templates.clear()
        self._partials.clear()

    def get_cache_stats(self) -> dict[str, Any]:
        keys = list(self._templates) + [f"partial:{k}" for k in self._partials]
        return {
            "size": len(keys),
            "enabled": self.cache_enabled,
            "keys": keys,
        }
