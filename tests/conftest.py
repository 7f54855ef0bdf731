"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from svcforge.core.models.context import GenerationContext, normalize_context


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def service_dir(tmp_path: Path) -> Path:
    """Return an empty output directory for a generated service."""
    path = tmp_path / "service"
    path.mkdir()
    return path


@pytest.fixture
def core_inputs() -> dict:
    """Identity inputs for a generic API service."""
    return {
        "serviceName": "orders-api",
        "serviceType": "data-service",
        "domainName": "orders.example.com",
        "cloudflareAccountId": "acc-123",
        "cloudflareZoneId": "zone-456",
        "environment": "development",
    }


@pytest.fixture
def make_context(service_dir: Path, core_inputs: dict):
    """Build a GenerationContext, overriding inputs per test."""

    def _make(features: dict | list | None = None, **overrides) -> GenerationContext:
        core = {**core_inputs}
        confirmed: dict = {"version": "1.2.0", "features": features or {}}
        for key, value in overrides.items():
            if key in core or key in ("serviceType", "serviceName"):
                core[key] = value
            else:
                confirmed[key] = value
        return normalize_context({
            "coreInputs": core,
            "confirmedValues": confirmed,
            "servicePath": str(service_dir),
        })

    return _make


@pytest.fixture
def context(make_context) -> GenerationContext:
    """A data-service context with D1 enabled."""
    return make_context(features={"d1": True})
