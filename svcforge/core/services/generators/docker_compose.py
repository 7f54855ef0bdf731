"""
docker-compose.yml generator — run ``wrangler dev`` in a container.

Gives contributors a local dev server without a Node toolchain on the
host. The compose document is built as a dict and dumped with PyYAML.
"""

from __future__ import annotations

import yaml

from svcforge.core.models.context import GenerationContext
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.base import BaseGenerator

_DEV_PORT = 8787


class DockerComposeGenerator(BaseGenerator):
    name = "DockerComposeGenerator"
    category = "ci"
    description = "Local development compose file"

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        compose = self.build_compose(context)
        content = f"# Local development for {context.service_name}\n"
        content += yaml.dump(compose, default_flow_style=False, sort_keys=False, allow_unicode=True)
        return [
            GeneratedFile(
                path="docker-compose.yml",
                content=content,
                reason="local development container",
            )
        ]

    def build_compose(self, context: GenerationContext) -> dict:
        service: dict = {
            "image": "node:20-slim",
            "working_dir": "/app",
            "command": f"sh -c \"npm install && npx wrangler dev --ip 0.0.0.0 --port {_DEV_PORT}\"",
            "ports": [f"{_DEV_PORT}:{_DEV_PORT}"],
            "volumes": [".:/app", "node_modules:/app/node_modules"],
            "environment": {
                "ENVIRONMENT": "development",
                "SERVICE_NAME": context.service_name,
            },
            "restart": "unless-stopped",
        }
        return {
            "name": context.worker_name,
            "services": {context.worker_name: service},
            "volumes": {"node_modules": {}},
        }
