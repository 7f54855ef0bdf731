"""
wrangler.toml generator — the platform deployment descriptor.

Binding blocks are conditional on feature flags:

    features.d1  → [[d1_databases]]   binding "DB"
    features.kv  → [[kv_namespaces]]  binding "KV"
    features.r2  → [[r2_buckets]]     binding "R2_STORAGE"

Static-site services also get a ``[site]`` section. Output is plain
TOML text built section by section so the comments survive; it always
parses with ``tomllib``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from svcforge.core.errors import InvalidGeneratorConfig
from svcforge.core.models.context import GenerationContext, SiteConfig
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.base import BaseGenerator

COMPATIBILITY_DATE = "2024-12-01"
COMPATIBILITY_FLAGS = ["nodejs_compat"]

D1_BINDING = "DB"
KV_BINDING = "KV"
R2_BINDING = "R2_STORAGE"


def _q(value: str) -> str:
    """TOML basic string (JSON string syntax is a valid subset)."""
    return json.dumps(value)


def _arr(values: list[str]) -> str:
    return json.dumps(list(values))


# ── Binding blocks ──────────────────────────────────────────────


def d1_block(database_name: str, database_id: str = "", binding: str = D1_BINDING) -> str:
    return f"""\
# ── D1 Database ─────────────────────────────────────────────────
# Production: run `wrangler d1 create {database_name}` and paste the ID
[[d1_databases]]
binding = {_q(binding)}
database_name = {_q(database_name)}
database_id = {_q(database_id)}
"""


def kv_block(namespace_id: str = "", binding: str = KV_BINDING) -> str:
    return f"""\
# ── KV Namespace ────────────────────────────────────────────────
# Production: run `wrangler kv namespace create {binding}` and paste the ID
[[kv_namespaces]]
binding = {_q(binding)}
id = {_q(namespace_id)}
"""


def r2_block(bucket_name: str, binding: str = R2_BINDING) -> str:
    return f"""\
# ── R2 Object Storage ───────────────────────────────────────────
# Production: run `wrangler r2 bucket create {bucket_name}`
[[r2_buckets]]
binding = {_q(binding)}
bucket_name = {_q(bucket_name)}
"""


class WranglerTomlGenerator(BaseGenerator):
    name = "WranglerTomlGenerator"
    category = "core"
    description = "Cloudflare Workers deployment descriptor"

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        return [
            GeneratedFile(
                path="wrangler.toml",
                content=self.build_wrangler_toml(context),
                reason="deployment descriptor",
            )
        ]

    def build_wrangler_toml(self, context: GenerationContext) -> str:
        core = context.core_inputs
        worker = context.worker_name

        header = f"""\
# ════════════════════════════════════════════════════════════════
# {context.display_name}: Cloudflare Worker configuration
# ════════════════════════════════════════════════════════════════
name = {_q(worker)}
main = "src/worker/index.js"
compatibility_date = {_q(COMPATIBILITY_DATE)}
compatibility_flags = {_arr(COMPATIBILITY_FLAGS)}
account_id = {_q(core.cloudflare_account_id)}
"""
        if core.domain_name and core.cloudflare_zone_id:
            header += (
                f"routes = [{{ pattern = {_q(core.domain_name + '/*')}, "
                f"zone_id = {_q(core.cloudflare_zone_id)} }}]\n"
            )

        site = context.effective_site_config
        sections = [header, self._build_section(site)]

        if context.is_static_site:
            sections.append(self.build_site_config(site))

        sections.append(f"""\
# ── Environments ────────────────────────────────────────────────
[env.development]
name = {_q(worker + "-dev")}

[env.staging]
name = {_q(worker + "-staging")}

[env.production]
name = {_q(worker)}
""")

        flags = context.binding_flags
        if flags["d1"]:
            sections.append(d1_block(context.database_name))
        if flags["kv"]:
            sections.append(kv_block())
        if flags["r2"]:
            sections.append(r2_block(context.bucket_name))

        sections.append(self._vars_section(context))
        sections.append("""\
# ── Observability ───────────────────────────────────────────────
[observability]
enabled = true
""")
        return "\n".join(sections)

    def _build_section(self, site: SiteConfig) -> str:
        return f"""\
# ── Build ───────────────────────────────────────────────────────
[build]
command = {_q(site.build_command or "")}

[build.upload]
format = "modules"
"""

    def _vars_section(self, context: GenerationContext) -> str:
        lines = ["# ── Environment variables ───────────────────────────────────────", "[vars]"]
        for key, value in self.build_vars(context).items():
            lines.append(f"{key} = {_q(value)}")
        return "\n".join(lines) + "\n"

    @staticmethod
    def build_vars(context: GenerationContext) -> dict[str, str]:
        """Plain-text variables every generated worker reads."""
        return {
            "SERVICE_NAME": context.service_name,
            "SERVICE_TYPE": context.service_type,
            "ENVIRONMENT": context.core_inputs.environment,
            "API_BASE_PATH": context.confirmed_values.api_base_path,
            "HEALTH_CHECK_PATH": context.confirmed_values.health_check_path,
        }

    # ── [site] ──────────────────────────────────────────────────

    @staticmethod
    def build_site_config(site: SiteConfig | None = None) -> str:
        site = site or SiteConfig()
        return f"""\
# ── Workers Sites ───────────────────────────────────────────────
# Serves static assets from the bucket directory
[site]
bucket = {_q(site.bucket)}
include = {_arr(site.include)}
exclude = {_arr(site.exclude)}
"""

    @staticmethod
    def validate_site_config(site_config: Mapping[str, Any]) -> dict:
        """Type-check raw ``[site]`` settings before they reach SiteConfig."""
        errors: list[str] = []
        bucket = site_config.get("bucket")
        if bucket is not None and not isinstance(bucket, str):
            errors.append("bucket must be a string path")
        for key in ("include", "exclude"):
            value = site_config.get(key)
            if value is not None and not isinstance(value, list):
                errors.append(f"{key} must be an array of glob patterns")
        return {"valid": not errors, "errors": errors}

    # ── Validation ──────────────────────────────────────────────

    @staticmethod
    def validate_context(context: GenerationContext) -> bool:
        """Check that a deployable descriptor can be produced.

        Raises:
            InvalidGeneratorConfig: listing every missing field.
        """
        core = context.core_inputs
        confirmed = context.confirmed_values
        required = {
            "cloudflareAccountId": core.cloudflare_account_id,
            "serviceName": core.service_name,
            "serviceType": core.service_type,
            "domainName": core.domain_name,
            "environment": core.environment,
            "apiBasePath": confirmed.api_base_path,
            "healthCheckPath": confirmed.health_check_path,
            "productionUrl": confirmed.production_url,
            "stagingUrl": confirmed.staging_url,
            "developmentUrl": confirmed.development_url,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise InvalidGeneratorConfig("WranglerTomlGenerator: Missing required fields", missing)
        return True
