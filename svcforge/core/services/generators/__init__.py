"""
Generators — produce the files of a service tree from a GenerationContext.

Each generator class declares a ``name`` and a ``category`` and
implements ``build()``, returning ``GeneratedFile`` instances; the base
class writes them. ``DEFAULT_GENERATORS`` lists the standard set in
registration order, grouped by category.
"""

from __future__ import annotations

from svcforge.core.services.generators.base import BaseGenerator
from svcforge.core.services.generators.docker_compose import DockerComposeGenerator
from svcforge.core.services.generators.env_example import EnvExampleGenerator
from svcforge.core.services.generators.github_workflow import GitHubWorkflowGenerator
from svcforge.core.services.generators.gitignore import GitignoreGenerator
from svcforge.core.services.generators.package_json import PackageJsonGenerator
from svcforge.core.services.generators.readme import ReadmeGenerator
from svcforge.core.services.generators.static_site import StaticSiteGenerator
from svcforge.core.services.generators.worker import (
    DomainsConfigGenerator,
    ServiceMiddlewareGenerator,
    WorkerIndexGenerator,
)
from svcforge.core.services.generators.wrangler_toml import WranglerTomlGenerator

DEFAULT_GENERATORS: dict[str, list[type[BaseGenerator]]] = {
    "core": [PackageJsonGenerator, WranglerTomlGenerator, DomainsConfigGenerator, WorkerIndexGenerator],
    "config": [EnvExampleGenerator],
    "code": [ServiceMiddlewareGenerator],
    "docs": [ReadmeGenerator],
    "ci": [GitHubWorkflowGenerator, GitignoreGenerator, DockerComposeGenerator],
    "service-types": [StaticSiteGenerator],
}

__all__ = [
    "DEFAULT_GENERATORS",
    "BaseGenerator",
    "DockerComposeGenerator",
    "DomainsConfigGenerator",
    "EnvExampleGenerator",
    "GitHubWorkflowGenerator",
    "GitignoreGenerator",
    "PackageJsonGenerator",
    "ReadmeGenerator",
    "ServiceMiddlewareGenerator",
    "StaticSiteGenerator",
    "WorkerIndexGenerator",
    "WranglerTomlGenerator",
]
