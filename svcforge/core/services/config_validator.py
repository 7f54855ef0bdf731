"""
Configuration consistency validator — capability manifest vs. descriptor.

The manifest (``service-manifest.json``) says which resource families a
service uses (``d1`` / ``kv`` / ``r2``) and which environment variables
it requires. The descriptor (``wrangler.toml``) is what actually gets
deployed. This module reports where they disagree:

    declared true,  no binding block      →  mismatch (ERROR)
    declared false, binding block present →  mismatch (ERROR)
    required variable absent from [vars]  →  missing_env (WARNING)

Read and parse failures come back as a single ``validation_error``
issue rather than an exception. ``auto_fix`` rewrites the descriptor
toward the manifest after taking a backup.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from svcforge.core.models.validation import (
    AutoFixResult,
    Severity,
    ValidationIssue,
    ValidationResult,
)
from svcforge.core.services.descriptor import (
    FAMILY_SECTIONS,
    DescriptorParser,
    DescriptorSections,
    TomlDescriptorParser,
    backup_descriptor,
    write_descriptor,
)
from svcforge.core.services.generators.wrangler_toml import D1_BINDING, KV_BINDING, R2_BINDING

logger = logging.getLogger(__name__)

FIXABLE_ISSUES = frozenset({"mismatch", "missing_env"})

_FAMILY_LABELS = {"d1": "D1", "kv": "KV", "r2": "R2"}


def load_manifest(path: str | Path) -> dict[str, Any]:
    """Read a JSON capability manifest.

    Raises:
        OSError: unreadable file.
        ValueError: invalid JSON, or not a JSON object.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a JSON object: {path}")
    return data


def required_env_vars(manifest: Mapping[str, Any]) -> list[str]:
    """Variable names whose marker is ``"required"`` or ``true``."""
    environment = manifest.get("environment") or {}
    if not isinstance(environment, Mapping):
        return []
    required = []
    for name, marker in environment.items():
        if marker is True or (isinstance(marker, str) and marker.strip().lower() == "required"):
            required.append(str(name))
    return required


class ConfigValidator:
    """Compare a capability manifest with a deployment descriptor.

    Args:
        parser: Descriptor parser; TOML by default.
    """

    def __init__(self, parser: DescriptorParser | None = None):
        self.parser = parser or TomlDescriptorParser()

    # ── Validation ──────────────────────────────────────────────

    def validate_service_config(self, manifest_path: str | Path, descriptor_path: str | Path) -> ValidationResult:
        """Validate ``descriptor_path`` against ``manifest_path``.

        Never raises for I/O or parse problems; those become a single
        ``validation_error`` issue.
        """
        try:
            manifest = load_manifest(manifest_path)
            sections = self.parser.parse(Path(descriptor_path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Cannot validate %s: %s", descriptor_path, e)
            return ValidationResult.from_issues([
                ValidationIssue(
                    type="validation_error",
                    severity=Severity.ERROR,
                    message=f"Configuration validation failed: {e}",
                    suggested_fix="Check that both files exist and are well-formed",
                )
            ])

        issues = self.check_consistency(manifest, sections, descriptor_name=Path(descriptor_path).name)
        result = ValidationResult.from_issues(issues)
        logger.info(
            "Validated %s: %s (%d issue(s))",
            descriptor_path,
            "valid" if result.valid else "INVALID",
            len(issues),
        )
        return result

    def check_consistency(
        self,
        manifest: Mapping[str, Any],
        sections: DescriptorSections,
        descriptor_name: str = "wrangler.toml",
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for family in FAMILY_SECTIONS:
            issue = self.check_family(family, manifest, sections, descriptor_name)
            if issue is not None:
                issues.append(issue)
        issues.extend(self.check_environment(manifest, sections, descriptor_name))
        return issues

    @staticmethod
    def check_family(
        family: str,
        manifest: Mapping[str, Any],
        sections: DescriptorSections,
        descriptor_name: str = "wrangler.toml",
    ) -> ValidationIssue | None:
        """Check one resource family (``d1``, ``kv`` or ``r2``)."""
        declared = bool(manifest.get(family))
        present = bool(sections.family(family))
        if declared == present:
            return None

        label = _FAMILY_LABELS[family]
        section = FAMILY_SECTIONS[family]
        if declared:
            message = f"Manifest declares {label}=true but {descriptor_name} has no [[{section}]] configuration"
            fix = f"Add a [[{section}]] block to {descriptor_name}, or set {family}=false in the manifest"
        else:
            message = f"Manifest declares {label}=false but {descriptor_name} has [[{section}]] configuration"
            fix = f"Remove the [[{section}]] blocks from {descriptor_name}, or set {family}=true in the manifest"

        return ValidationIssue(
            type="mismatch",
            severity=Severity.ERROR,
            message=message,
            suggested_fix=fix,
            resource=family,
        )

    @staticmethod
    def check_environment(
        manifest: Mapping[str, Any],
        sections: DescriptorSections,
        descriptor_name: str = "wrangler.toml",
    ) -> list[ValidationIssue]:
        return [
            ValidationIssue(
                type="missing_env",
                severity=Severity.WARNING,
                message=f"Manifest declares {name} as required but not found in {descriptor_name} [vars]",
                suggested_fix=f'Add {name} = "..." under [vars], or set it as a secret',
                resource=name,
            )
            for name in required_env_vars(manifest)
            if name not in sections.vars
        ]

    # ── Auto-fix ────────────────────────────────────────────────

    def auto_fix(self, manifest_path: str | Path, descriptor_path: str | Path) -> AutoFixResult:
        """Rewrite the descriptor so it agrees with the manifest.

        Only ``mismatch`` and ``missing_env`` issues are fixable. The
        original descriptor is backed up first; comments in it are not
        preserved by the rewrite.
        """
        try:
            manifest = load_manifest(manifest_path)
            sections = self.parser.parse(Path(descriptor_path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            return AutoFixResult(success=False, errors=[f"Configuration validation failed: {e}"])

        issues = [
            i for i in self.check_consistency(manifest, sections, Path(descriptor_path).name)
            if i.type in FIXABLE_ISSUES
        ]
        if not issues:
            return AutoFixResult(success=True)

        data = dict(sections.raw)
        fixes: list[str] = []
        errors: list[str] = []
        for issue in issues:
            try:
                fixes.append(self._apply_fix(issue, manifest, data))
            except (KeyError, TypeError, ValueError) as e:
                errors.append(f"Could not fix {issue.type} ({issue.resource}): {e}")

        try:
            backup = backup_descriptor(descriptor_path)
            write_descriptor(descriptor_path, data, self.parser)
        except OSError as e:
            return AutoFixResult(success=False, fixes=[], errors=[*errors, f"Could not rewrite descriptor: {e}"])

        logger.info("Auto-fixed %s (%d fix(es), backup %s)", descriptor_path, len(fixes), backup)
        return AutoFixResult(success=not errors, fixes=fixes, errors=errors, backup_path=str(backup))

    @staticmethod
    def _apply_fix(issue: ValidationIssue, manifest: Mapping[str, Any], data: dict[str, Any]) -> str:
        if issue.type == "missing_env":
            variables = dict(data.get("vars") or {})
            variables[issue.resource] = ""
            data["vars"] = variables
            return f"Added empty {issue.resource} to [vars]"

        family = issue.resource or ""
        section = FAMILY_SECTIONS[family]
        if not manifest.get(family):
            data.pop(section, None)
            return f"Removed [[{section}]] (manifest declares {family}=false)"

        data[section] = [default_binding(family, manifest, data)]
        return f"Added [[{section}]] (manifest declares {family}=true)"


def default_binding(family: str, manifest: Mapping[str, Any], data: Mapping[str, Any]) -> dict[str, str]:
    """The binding block a freshly generated descriptor would contain."""
    cloudflare = manifest.get("cloudflare") or {}
    worker = str(cloudflare.get("workerName") or data.get("name") or "service")
    if family == "d1":
        return {
            "binding": D1_BINDING,
            "database_name": str(cloudflare.get("databaseName") or f"{worker}-db"),
            "database_id": "",
        }
    if family == "kv":
        return {"binding": KV_BINDING, "id": ""}
    if family == "r2":
        return {"binding": R2_BINDING, "bucket_name": str(cloudflare.get("bucketName") or f"{worker}-storage")}
    raise KeyError(family)
