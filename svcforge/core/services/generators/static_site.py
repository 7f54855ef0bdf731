"""
Static-site bundle — entry point, domains, JSON schema and middleware
for ``static-site`` services.

Runs in the ``service-types`` category, after the generic core set has
skipped its worker files for this type.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from svcforge.core.errors import InvalidGeneratorConfig
from svcforge.core.models.context import STATIC_SITE, GenerationContext
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.base import BaseGenerator

_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Static Site Configuration Schema",
    "description": "Configuration schema for static-site services",
    "type": "object",
    "properties": {
        "serviceType": {
            "type": "string",
            "enum": [STATIC_SITE],
            "description": "Must be 'static-site' for this schema",
        },
        "publicDir": {"type": "string", "default": "public", "description": "Directory containing static files"},
        "indexFile": {"type": "string", "default": "index.html", "description": "Default index file for directory requests"},
        "errorFile": {"type": "string", "default": "404.html", "description": "Error page for 404 responses"},
        "spaFallback": {"type": "boolean", "default": True, "description": "Serve index.html for unknown routes"},
        "cleanUrls": {"type": "boolean", "default": True, "description": "Serve .html files without extension"},
        "compressText": {"type": "boolean", "default": True, "description": "Compress text responses"},
        "corsEnabled": {"type": "boolean", "default": True, "description": "Add CORS headers"},
    },
    "required": ["serviceType"],
}


class StaticSiteGenerator(BaseGenerator):
    name = "StaticSiteGenerator"
    category = "service-types"
    description = "Static site bundle"

    def should_generate(self, context: GenerationContext) -> bool:
        return context.is_static_site

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        return [
            GeneratedFile(
                path="src/worker/index.js",
                content=self.render_template("static-site/worker/index.js", context),
                reason="static site entry point",
            ),
            GeneratedFile(
                path="src/config/domains.js",
                content=self.render_template("config/domains.js", context),
                reason="domain configuration",
            ),
            GeneratedFile(
                path="static-site-schema.json",
                content=json.dumps(_SCHEMA, indent=2) + "\n",
                reason="static site configuration schema",
            ),
            GeneratedFile(
                path="src/middleware/StaticSiteMiddleware.js",
                content=self.render_template("static-site/middleware/StaticSiteMiddleware.js", context),
                reason="static site middleware",
            ),
        ]

    @staticmethod
    def validate_config(config: Mapping[str, Any]) -> bool:
        """Check raw static-site settings.

        Raises:
            InvalidGeneratorConfig: listing every violated field.
        """
        errors: list[str] = []

        if config.get("serviceType") != STATIC_SITE:
            errors.append('Service type must be "static-site"')
        if config.get("publicDir") is not None and not isinstance(config["publicDir"], str):
            errors.append("publicDir must be a string path")
        if config.get("indexFile") is not None and not isinstance(config["indexFile"], str):
            errors.append("indexFile must be a string filename")
        if "spaFallback" in config and not isinstance(config["spaFallback"], bool):
            errors.append("spaFallback must be a boolean")
        for key in ("buildCommand", "buildOutputDir"):
            if key in config:
                value = config[key]
                if not isinstance(value, str) or not value.strip():
                    errors.append(f"{key} must be a non-empty string")

        if errors:
            raise InvalidGeneratorConfig("Invalid static-site configuration", errors)
        return True
