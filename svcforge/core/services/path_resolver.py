"""
Path resolver — join, normalize and fence relative paths under a base.

Every write goes through ``validate_path`` first. A resolver without a
base directory is permissive: it normalizes but never rejects.
"""

from __future__ import annotations

import os
from pathlib import Path

from svcforge.core.errors import PathTraversal


class PathResolver:
    """Resolve output paths against an optional base directory."""

    def __init__(self, base_path: str | Path | None = None):
        self.base_path: Path | None = (
            Path(os.path.normpath(Path(base_path).expanduser().absolute()))
            if base_path is not None
            else None
        )

    def resolve(self, *segments: str | Path) -> Path:
        """Join ``segments`` onto the base and normalize ``.`` / ``..``.

        Does not check containment; use ``validate_path`` for that.
        """
        root = self.base_path if self.base_path is not None else Path.cwd()
        return Path(os.path.normpath(root.joinpath(*[str(s) for s in segments])))

    def validate_path(self, relative_path: str | Path) -> bool:
        """Return True if ``relative_path`` stays under the base.

        Raises:
            PathTraversal: the normalized path escapes the base directory.
        """
        if self.base_path is None:
            return True

        resolved = self.resolve(relative_path)
        if not resolved.is_relative_to(self.base_path):
            raise PathTraversal(str(relative_path), str(self.base_path))
        return True

    def resolve_safe(self, relative_path: str | Path) -> Path:
        """Validate, then resolve. The usual entry point for writers."""
        self.validate_path(relative_path)
        return self.resolve(relative_path)

    def relative(self, path: str | Path) -> str:
        """Express ``path`` relative to the base, with forward slashes."""
        if self.base_path is None:
            return to_forward_slashes(path)
        return to_forward_slashes(os.path.relpath(Path(path), self.base_path))


def to_forward_slashes(path: str | Path) -> str:
    return str(path).replace("\\", "/")

