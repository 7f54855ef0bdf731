"""
package.json generator — npm manifest for the generated worker.

Scripts and dependency sets depend on the service type.
"""

from __future__ import annotations

import json

from svcforge.core.models.context import STATIC_SITE, GenerationContext
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.base import BaseGenerator

_BASE_SCRIPTS = {
    "dev": "wrangler dev",
    "test": "jest",
    "test:watch": "jest --watch",
    "test:coverage": "jest --coverage",
    "deploy": "wrangler deploy",
    "deploy:staging": "wrangler deploy --env staging",
    "deploy:prod": "wrangler deploy --env production",
    "lint": "eslint src/ test/",
    "lint:fix": "eslint src/ test/ --fix",
    "format": "prettier --write src/ test/",
    "build": "wrangler deploy --dry-run",
    "clean": "rimraf dist/ coverage/",
}

_BASE_DEPENDENCIES = {
    "uuid": "^13.0.0",
    "wrangler": "^3.0.0",
}

# Extra runtime dependencies per service type
_TYPE_DEPENDENCIES: dict[str, dict[str, str]] = {
    "auth": {"bcrypt": "^5.1.0"},
    STATIC_SITE: {"mime-types": "^2.1.35"},
}

_BASE_DEV_DEPENDENCIES = {
    "@types/jest": "^29.5.0",
    "@types/node": "^20.0.0",
    "eslint": "^8.54.0",
    "jest": "^29.7.0",
    "prettier": "^3.1.0",
    "rimraf": "^5.0.0",
}


class PackageJsonGenerator(BaseGenerator):
    name = "PackageJsonGenerator"
    category = "core"
    description = "npm package manifest"

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        return [
            GeneratedFile(
                path="package.json",
                content=json.dumps(self.build_package_json(context), indent=2) + "\n",
                reason=f"package.json for {context.service_type} service",
            )
        ]

    def build_package_json(self, context: GenerationContext) -> dict:
        confirmed = context.confirmed_values
        package: dict = {
            "name": context.package_name,
            "version": confirmed.version or "1.0.0",
            "description": confirmed.description or f"{context.display_name} {context.service_type} service",
            "main": "src/worker/index.js",
            "type": "module",
            "scripts": self.build_scripts(context),
            "dependencies": self.build_dependencies(context),
            "devDependencies": self.build_dev_dependencies(context),
            "license": confirmed.license or "MIT",
            "keywords": self.build_keywords(context),
            "engines": {"node": ">=18.0.0"},
        }
        if confirmed.author:
            package["author"] = confirmed.author
        if confirmed.git_repository_url:
            package["repository"] = {"type": "git", "url": confirmed.git_repository_url}
        return package

    def build_scripts(self, context: GenerationContext) -> dict[str, str]:
        scripts = dict(_BASE_SCRIPTS)
        if context.is_static_site:
            scripts["build:assets"] = 'echo "Add your static asset build command here"'
            scripts["preview"] = "wrangler dev --local"
        return scripts

    def build_dependencies(self, context: GenerationContext) -> dict[str, str]:
        deps = dict(_BASE_DEPENDENCIES)
        deps.update(_TYPE_DEPENDENCIES.get(context.service_type, {}))
        return dict(sorted(deps.items()))

    def build_dev_dependencies(self, context: GenerationContext) -> dict[str, str]:
        deps = dict(_BASE_DEV_DEPENDENCIES)
        if context.is_static_site:
            deps["@types/mime-types"] = "^2.1.1"
        return dict(sorted(deps.items()))

    def build_keywords(self, context: GenerationContext) -> list[str]:
        keywords = ["svcforge", context.service_type, "cloudflare", "serverless"]
        for keyword in context.confirmed_values.keywords:
            if keyword not in keywords:
                keywords.append(keyword)
        return keywords
