"""
Service manifest — the capability manifest written after a run.

``service-manifest.json`` is the declarative source of truth that the
configuration validator compares ``wrangler.toml`` against: top-level
``d1`` / ``kv`` / ``r2`` booleans plus the ``environment`` map of
required variables. It also records what the run produced.

Content is deterministic (no timestamps) so regenerating an unchanged
service leaves the file byte-identical.
"""

from __future__ import annotations

import hashlib
import json

from svcforge import __version__
from svcforge.core.models.context import GenerationContext
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.wrangler_toml import WranglerTomlGenerator

MANIFEST_FILENAME = "service-manifest.json"
MANIFEST_VERSION = "1.0.0"


def files_checksum(files: list[str]) -> str:
    """sha256 over the sorted file list (names only, not contents)."""
    digest = hashlib.sha256("\n".join(sorted(files)).encode("utf-8"))
    return digest.hexdigest()


def build_service_manifest(
    context: GenerationContext,
    files_by_category: dict[str, list[str]],
) -> dict:
    """Build the manifest document.

    Args:
        context: The run's context.
        files_by_category: Relative paths produced per registry category.
    """
    files = sorted({path for paths in files_by_category.values() for path in paths})
    flags = context.binding_flags
    confirmed = context.confirmed_values
    core = context.core_inputs

    return {
        "manifestVersion": MANIFEST_VERSION,
        "generator": f"svcforge {__version__}",
        "d1": flags["d1"],
        "kv": flags["kv"],
        "r2": flags["r2"],
        "environment": {name: "required" for name in WranglerTomlGenerator.build_vars(context)},
        "service": {
            "name": context.service_name,
            "displayName": context.display_name,
            "description": confirmed.description,
            "type": context.service_type,
            "version": confirmed.version,
            "author": confirmed.author,
        },
        "cloudflare": {
            "accountId": core.cloudflare_account_id,
            "zoneId": core.cloudflare_zone_id,
            "workerName": context.worker_name,
            "databaseName": context.database_name if flags["d1"] else None,
            "bucketName": context.bucket_name if flags["r2"] else None,
        },
        "features": dict(sorted(context.features.items())),
        "files": {
            "total": len(files),
            "list": files,
            "byCategory": {cat: sorted(paths) for cat, paths in files_by_category.items() if paths},
        },
        "checksum": files_checksum(files),
    }


def generate_service_manifest(
    context: GenerationContext,
    files_by_category: dict[str, list[str]],
) -> GeneratedFile:
    manifest = build_service_manifest(context, files_by_category)
    return GeneratedFile(
        path=MANIFEST_FILENAME,
        content=json.dumps(manifest, indent=2) + "\n",
        reason=f"capability manifest ({manifest['files']['total']} files)",
    )
