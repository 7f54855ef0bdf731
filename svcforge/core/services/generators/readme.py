"""
README generator — service documentation composed from partials.
"""

from __future__ import annotations

from svcforge.core.models.context import GenerationContext
from svcforge.core.models.template import GeneratedFile
from svcforge.core.services.generators.base import BaseGenerator


class ReadmeGenerator(BaseGenerator):
    name = "ReadmeGenerator"
    category = "docs"
    description = "Service README"

    def build(self, context: GenerationContext) -> list[GeneratedFile]:
        return [
            GeneratedFile(
                path="README.md",
                content=self.render_template("README.md", context),
                reason="service documentation",
            )
        ]
