"""
.gitignore generator — base exclusions plus the Cloudflare local state.
"""

from __future__ import annotations

from svcforge.core.models.context import GenerationContext
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.base import BaseGenerator

_BASE_IGNORE = """\
# ── Dependencies ────────────────────────────────────────────────
node_modules/
npm-debug.log*
yarn-debug.log*
yarn-error.log*
.npm
.yarn-integrity

# ── Environment ─────────────────────────────────────────────────
.env
.env.local
.env.*.local
.dev.vars

# ── Build output ────────────────────────────────────────────────
dist/
build/
coverage/
.nyc_output/
.cache/
.eslintcache

# ── Logs / temp ─────────────────────────────────────────────────
logs/
*.log
tmp/
temp/

# ── IDE / OS ────────────────────────────────────────────────────
.vscode/*
!.vscode/extensions.json
.idea
.DS_Store
Thumbs.db

# ── Cloudflare ──────────────────────────────────────────────────
.wrangler/
wrangler.toml.backup.*
"""

_STATIC_SITE_IGNORE = """\
# ── Static site ─────────────────────────────────────────────────
public/build/
"""


class GitignoreGenerator(BaseGenerator):
    name = "GitignoreGenerator"
    category = "ci"
    description = ".gitignore"

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        parts = [_BASE_IGNORE.rstrip()]
        if context.is_static_site:
            parts.append(_STATIC_SITE_IGNORE.rstrip())
        return [
            GeneratedFile(
                path=".gitignore",
                content="\n\n".join(parts) + "\n",
                reason=f"ignore file for {context.service_type} service",
            )
        ]
