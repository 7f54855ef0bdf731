"""
.env.example generator — documents the variables a developer sets locally.
"""

from __future__ import annotations

from svcforge.core.models.context import GenerationContext
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.base import BaseGenerator


class EnvExampleGenerator(BaseGenerator):
    name = "EnvExampleGenerator"
    category = "config"
    description = "Example environment file"

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        core = context.core_inputs
        lines = [
            f"# {context.display_name}: local environment",
            "# Copy to .env and fill in. Never commit the real file.",
            "",
            "# ── Cloudflare ──",
            f"CLOUDFLARE_ACCOUNT_ID={core.cloudflare_account_id}",
            f"CLOUDFLARE_ZONE_ID={core.cloudflare_zone_id}",
            "CLOUDFLARE_API_TOKEN=",
            "",
            "# ── Service ──",
            f"SERVICE_NAME={context.service_name}",
            f"SERVICE_TYPE={context.service_type}",
            f"ENVIRONMENT={core.environment}",
        ]

        flags = context.binding_flags
        if any(flags.values()):
            lines += ["", "# ── Bindings ──"]
        if flags["d1"]:
            lines.append(f"D1_DATABASE_NAME={context.database_name}")
            lines.append("D1_DATABASE_ID=")
        if flags["kv"]:
            lines.append("KV_NAMESPACE_ID=")
        if flags["r2"]:
            lines.append(f"R2_BUCKET_NAME={context.bucket_name}")

        return [
            GeneratedFile(
                path=".env.example",
                content="\n".join(lines) + "\n",
                reason="example environment variables",
            )
        ]
