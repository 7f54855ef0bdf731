"""
Worker source generators — entry point, domain config and middleware.

These cover every service type except static sites, which get their
own bundle (see ``static_site.py``). Content comes from the bundled
templates.
"""

from __future__ import annotations

from svcforge.core.models.context import GenerationContext
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.base import BaseGenerator


class WorkerIndexGenerator(BaseGenerator):
    name = "WorkerIndexGenerator"
    category = "core"
    description = "Worker entry point"

    def should_generate(self, context: GenerationContext) -> bool:
        return not context.is_static_site

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        return [
            GeneratedFile(
                path="src/worker/index.js",
                content=self.render_template("worker/index.js", context),
                reason="worker entry point",
            )
        ]


class DomainsConfigGenerator(BaseGenerator):
    name = "DomainsConfigGenerator"
    category = "core"
    description = "Domain configuration module"

    def should_generate(self, context: GenerationContext) -> bool:
        return not context.is_static_site

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        return [
            GeneratedFile(
                path="src/config/domains.js",
                content=self.render_template("config/domains.js", context),
                reason="domain configuration",
            )
        ]


class ServiceMiddlewareGenerator(BaseGenerator):
    """Request middleware, in one of two strategies.

    ``contract`` (default) emits a class with preprocess/postprocess
    hooks; ``legacy`` emits the older handler-wrapping function. Both
    export ``createServiceMiddleware`` so the entry point is the same.
    """

    name = "ServiceMiddlewareGenerator"
    category = "code"
    description = "Service middleware"

    STRATEGIES = ("contract", "legacy")

    def should_generate(self, context: GenerationContext) -> bool:
        return not context.is_static_site

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        strategy = context.middleware_strategy
        return [
            GeneratedFile(
                path="src/middleware/service-middleware.js",
                content=self.render_template(f"middleware/service-middleware.{strategy}.js", context),
                reason=f"service middleware ({strategy} strategy)",
            )
        ]
