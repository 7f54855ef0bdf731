"""
GitHub Actions workflow generator.

Produces ``ci.yml`` (install, lint, test, dry-run build) and
``deploy.yml`` (staging then production via wrangler). Workflows use
pinned action versions, npm caching and minimal permissions.
"""

from __future__ import annotations

from svcforge.core.models.context import GenerationContext
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.base import BaseGenerator

_NODE_VERSION = "20"


def _setup_steps() -> str:
    return f"""\
      - uses: actions/checkout@v4

      - name: Set up Node.js
        uses: actions/setup-node@v4
        with:
          node-version: "{_NODE_VERSION}"
          cache: npm

      - name: Install dependencies
        run: npm ci
"""


def _ci_workflow(context: GenerationContext) -> str:
    return f"""\
# CI for {context.service_name}
name: CI

on:
  push:
    branches: [main, master]
  pull_request:
    branches: [main, master]

permissions:
  contents: read

jobs:
  test:
    name: Lint, test, build
    runs-on: ubuntu-latest

    steps:
{_setup_steps()}
      - name: Lint
        run: npm run lint --if-present

      - name: Test
        run: npm test --if-present

      - name: Build (dry-run deploy)
        run: npx wrangler deploy --dry-run
"""


def _deploy_job(environment: str, needs: str | None = None) -> str:
    needs_line = f"    needs: {needs}\n" if needs else ""
    return f"""\
  deploy-{environment}:
    name: Deploy to {environment}
    runs-on: ubuntu-latest
{needs_line}    environment: {environment}

    steps:
{_setup_steps()}
      - name: Deploy
        run: npx wrangler deploy --env {environment}
        env:
          CLOUDFLARE_API_TOKEN: ${{{{ secrets.CLOUDFLARE_API_TOKEN }}}}
          CLOUDFLARE_ACCOUNT_ID: ${{{{ secrets.CLOUDFLARE_ACCOUNT_ID }}}}
"""


def _deploy_workflow(context: GenerationContext) -> str:
    return f"""\
# Deployment for {context.worker_name}
name: Deploy

on:
  push:
    branches: [main, master]
  workflow_dispatch:

permissions:
  contents: read

jobs:
{_deploy_job("staging")}
{_deploy_job("production", needs="deploy-staging")}"""


class GitHubWorkflowGenerator(BaseGenerator):
    name = "GitHubWorkflowGenerator"
    category = "ci"
    description = "GitHub Actions CI and deploy workflows"

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        return [
            GeneratedFile(
                path=".github/workflows/ci.yml",
                content=_ci_workflow(context),
                reason="CI workflow",
            ),
            GeneratedFile(
                path=".github/workflows/deploy.yml",
                content=_deploy_workflow(context),
                reason="deploy workflow",
            ),
        ]
