"""
Error taxonomy — every failure svcforge raises on purpose.

Leaf-level errors (template, path, write) are always exceptions. The
registry catches them per generator and records them; anything raised
outside a generator reaches the caller untouched.

The validator and the recovery manager return result objects instead
(see ``models.validation`` and ``models.recovery``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from svcforge.core.models.execution import ExecutionResult


class ServiceForgeError(Exception):
    """Base class for all svcforge errors."""


# ── Templates ───────────────────────────────────────────────────


class TemplateError(ServiceForgeError):
    """A template could not be loaded or rendered."""


class TemplateNotFound(TemplateError):
    """The requested template does not exist under the templates root."""

    kind = "Template"

    def __init__(self, name: str, looked_in: str = ""):
        self.name = name
        self.looked_in = looked_in
        where = f" (looked in {looked_in})" if looked_in else ""
        super().__init__(f"{self.kind} not found: {name}{where}")


class PartialNotFound(TemplateNotFound):
    """The requested partial does not exist under the partials root."""

    kind = "Partial"


class MissingVariable(TemplateError):
    """Strict rendering hit a placeholder with no value."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Missing variable: {variable}")


# ── Filesystem ──────────────────────────────────────────────────


class PathTraversal(ServiceForgeError):
    """A relative path resolved outside the configured base directory."""

    def __init__(self, path: str, base: str):
        self.path = path
        self.base = base
        super().__init__(f"Path traversal detected: {path} resolves outside {base}")


class FileWriteError(ServiceForgeError):
    """The filesystem refused a write, mkdir or delete."""


# ── Generators ──────────────────────────────────────────────────


class GeneratorRegistrationError(ServiceForgeError):
    """A malformed generator was handed to the registry."""


class InvalidGeneratorConfig(ServiceForgeError, ValueError):
    """Generator input failed validation.

    The message lists every violated field, comma-joined.
    """

    def __init__(self, prefix: str, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"{prefix}: {', '.join(self.errors)}")


class GenerationFailure(ServiceForgeError):
    """A generator raised and the run was aborted (stop_on_error)."""

    def __init__(
        self,
        generator: str,
        category: str,
        message: str,
        result: ExecutionResult | None = None,
    ):
        self.generator = generator
        self.category = category
        self.message = message
        self.result = result
        super().__init__(f"Generator execution stopped: {generator} failed - {message}")


# ── Deployment ──────────────────────────────────────────────────


class DeploymentError(ServiceForgeError):
    """A deploy attempt failed and could not be recovered."""

    def __init__(self, message: str, *, stderr: str = "", returncode: int | None = None):
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(message)
