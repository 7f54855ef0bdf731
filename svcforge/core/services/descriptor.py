"""
Deployment descriptor parsing — ``wrangler.toml`` behind a narrow interface.

The validator and the remediator only see ``DescriptorSections``: the
three bindable resource families plus the flat ``[vars]`` map. The
parser is injected, so tests (or another descriptor format) can swap
it without touching shared state.
"""

from __future__ import annotations

import shutil
import tomllib
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

import tomli_w

from svcforge.core.services.file_writer import FileWriter

# Binding section for each resource family
FAMILY_SECTIONS: dict[str, str] = {
    "d1": "d1_databases",
    "kv": "kv_namespaces",
    "r2": "r2_buckets",
}


@dataclass
class DescriptorSections:
    """The parts of a deployment descriptor that bindings live in."""

    d1_databases: list[dict[str, Any]] = field(default_factory=list)
    kv_namespaces: list[dict[str, Any]] = field(default_factory=list)
    r2_buckets: list[dict[str, Any]] = field(default_factory=list)
    vars: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    def family(self, name: str) -> list[dict[str, Any]]:
        """Binding blocks for ``d1`` / ``kv`` / ``r2``."""
        return getattr(self, FAMILY_SECTIONS[name])


class DescriptorParser(Protocol):
    def parse(self, text: str) -> DescriptorSections: ...

    def dump(self, data: dict[str, Any]) -> str: ...


class TomlDescriptorParser:
    """tomllib for reading, tomli-w for writing."""

    def parse(self, text: str) -> DescriptorSections:
        """Raises ValueError on invalid TOML or a wrongly typed section."""
        data = tomllib.loads(text)
        variables = data.get("vars") or {}
        if not isinstance(variables, dict):
            raise ValueError(f"[vars] must be a table, got {type(variables).__name__}")
        return DescriptorSections(
            d1_databases=_binding_blocks(data, "d1_databases"),
            kv_namespaces=_binding_blocks(data, "kv_namespaces"),
            r2_buckets=_binding_blocks(data, "r2_buckets"),
            vars=dict(variables),
            raw=data,
        )

    def dump(self, data: dict[str, Any]) -> str:
        return tomli_w.dumps(data)


def _binding_blocks(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    blocks = data.get(key) or []
    if not isinstance(blocks, list) or not all(isinstance(b, dict) for b in blocks):
        raise ValueError(f"{key} must be an array of tables ([[{key}]])")
    return list(blocks)


def read_descriptor(path: str | Path, parser: DescriptorParser | None = None) -> DescriptorSections:
    """Parse the descriptor at ``path``.

    Raises:
        OSError: the file cannot be read.
        ValueError: the content is not valid TOML (TOMLDecodeError) or
            a section has the wrong type.
    """
    parser = parser or TomlDescriptorParser()
    return parser.parse(Path(path).read_text(encoding="utf-8"))


def backup_descriptor(path: str | Path) -> Path:
    """Copy ``path`` to ``<path>.backup.<timestamp>`` and return the copy."""
    source = Path(path)
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%fZ")
    backup = source.with_name(f"{source.name}.backup.{stamp}")
    counter = 1
    while backup.exists():
        backup = source.with_name(f"{source.name}.backup.{stamp}-{counter}")
        counter += 1
    shutil.copy2(source, backup)
    return backup


def write_descriptor(path: str | Path, data: dict[str, Any], parser: DescriptorParser | None = None) -> None:
    """Serialize ``data`` over the descriptor at ``path`` (atomic replace)."""
    parser = parser or TomlDescriptorParser()
    target = Path(path)
    FileWriter(target.parent).write_file(target.name, parser.dump(data))
