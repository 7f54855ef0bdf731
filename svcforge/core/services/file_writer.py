"""
File writer — materialize rendered content under a base directory.

Policy:
    - every target is validated by the PathResolver first (PathTraversal
      propagates, the writer never catches it)
    - parent directories are created as needed
    - ``overwrite=False`` on an existing file is a skip, not an error
    - dry-run validates and records, but never touches disk

One writer instance belongs to one logical run. Its history is
cleared explicitly with ``clear_history()``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from svcforge.core.errors import FileWriteError
from svcforge.core.models.template import WriteResult, WrittenFileRecord
from svcforge.core.services.path_resolver import PathResolver

logger = logging.getLogger(__name__)


class FileWriter:
    """Write files under ``base_path`` with overwrite and dry-run policy."""

    def __init__(self, base_path: str | Path, dry_run: bool = False):
        self.resolver = PathResolver(base_path)
        self.base_path: Path = self.resolver.resolve()
        self.dry_run = dry_run
        self._history: list[WrittenFileRecord] = []

    # ── Writes ──────────────────────────────────────────────────

    def write_file(self, relative_path: str, content: str, overwrite: bool = True) -> WriteResult:
        """Write ``content`` to ``relative_path``.

        Returns:
            WriteResult. ``written`` is False when an existing file was
            kept because ``overwrite`` is off.

        Raises:
            PathTraversal: the path escapes the base directory.
            FileWriteError: the filesystem refused the write.
        """
        target = self.resolver.resolve_safe(relative_path)

        if not overwrite and target.exists():
            logger.debug("Skipping existing file %s", relative_path)
            self._history.append(WrittenFileRecord(path=str(target), outcome="skipped-existing"))
            return WriteResult(written=False, path=str(target), reason="File exists", dry_run=self.dry_run)

        if self.dry_run:
            logger.info("[dry-run] Would write %s", relative_path)
            self._history.append(WrittenFileRecord(path=str(target), outcome="dry-run"))
            return WriteResult(written=True, path=str(target), dry_run=True)

        self._write_atomic(target, content)
        self._history.append(WrittenFileRecord(path=str(target), outcome="written"))
        logger.debug("Wrote %s (%d bytes)", relative_path, len(content.encode("utf-8")))
        return WriteResult(written=True, path=str(target))

    def _write_atomic(self, target: Path, content: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
            tmp = Path(tmp_name)
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                    handle.write(content)
                os.replace(tmp, target)
            except BaseException:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            raise FileWriteError(f"Cannot write {target}: {e}") from e

    def ensure_directory(self, relative_path: str = ".") -> Path:
        """Create a directory under the base (no-op in dry-run)."""
        target = self.resolver.resolve_safe(relative_path)
        if not self.dry_run:
            try:
                target.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FileWriteError(f"Cannot create directory {target}: {e}") from e
        return target

    def file_exists(self, relative_path: str) -> bool:
        """Whether the file is really on disk (dry-run records do not count)."""
        return self.resolver.resolve_safe(relative_path).is_file()

    def delete_file(self, relative_path: str) -> bool:
        """Remove a file. False when it was not there (or in dry-run)."""
        target = self.resolver.resolve_safe(relative_path)
        if self.dry_run or not target.is_file():
            return False
        try:
            target.unlink()
        except OSError as e:
            raise FileWriteError(f"Cannot delete {target}: {e}") from e
        logger.debug("Deleted %s", relative_path)
        return True

    # ── History ─────────────────────────────────────────────────

    def get_records(self) -> list[WrittenFileRecord]:
        return list(self._history)

    def get_written_files(self) -> list[str]:
        """Absolute paths that were written (or would have been, in dry-run)."""
        return [r.path for r in self._history if r.would_exist]

    def clear_history(self) -> None:
        self._history.clear()

    def get_stats(self) -> dict:
        counts = {"written": 0, "skipped-existing": 0, "dry-run": 0}
        for record in self._history:
            counts[record.outcome] += 1
        return {
            "base_path": str(self.base_path),
            "dry_run": self.dry_run,
            "total": len(self._history),
            "written": counts["written"],
            "skipped": counts["skipped-existing"],
            "dry_run_writes": counts["dry-run"],
        }
