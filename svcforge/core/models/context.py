"""
Generation context — the immutable input bundle for one generation run.

A context is built once per service-creation (or redeploy) and handed
to every generator. Two input shapes are accepted at the boundary:

    nested:     {"coreInputs": {...}, "confirmedValues": {...}, "servicePath": "..."}
    flattened:  {"serviceName": ..., "packageName": ..., "servicePath": "..."}

``normalize_context()`` folds both into ``GenerationContext``; nothing
downstream branches on shape again. Keys may be camelCase or snake_case.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

STATIC_SITE = "static-site"

# Feature flag aliases accepted from older inputs
_FEATURE_ALIASES = {
    "database": "d1",
    "upstash": "kv",
}

_DEFAULT_SITE_EXCLUDES = [
    "node_modules/**",
    ".git/**",
    ".*",
    "*.md",
    ".env*",
    "secrets/**",
    "wrangler.toml",
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
]


class _InputModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class CoreInputs(_InputModel):
    """The raw, user-supplied identity of the service."""

    service_name: str = Field(min_length=1)
    service_type: str = "generic"
    domain_name: str = ""
    cloudflare_account_id: str = ""
    cloudflare_zone_id: str = ""
    environment: str = "development"


class ConfirmedValues(_InputModel):
    """Derived or user-confirmed metadata, URLs and feature flags."""

    package_name: str = ""
    version: str = "1.0.0"
    description: str = ""
    author: str = ""
    license: str = "MIT"
    display_name: str = ""
    git_repository_url: str = ""
    documentation_url: str = ""
    worker_name: str = ""
    database_name: str = ""
    bucket_name: str = ""
    api_base_path: str = "/api"
    health_check_path: str = "/health"
    production_url: str = ""
    staging_url: str = ""
    development_url: str = ""
    features: dict[str, bool] = Field(default_factory=dict)
    keywords: list[str] = Field(default_factory=list)

    @field_validator("features", mode="before")
    @classmethod
    def _normalize_features(cls, value: Any) -> dict[str, bool]:
        """Accept a flag mapping or a list of enabled flag names."""
        if value is None:
            return {}
        if isinstance(value, Mapping):
            flags = {str(k): bool(v) for k, v in value.items()}
        elif isinstance(value, (list, tuple, set)):
            flags = {str(name): True for name in value}
        else:
            raise ValueError("features must be a mapping or a list of names")

        for alias, canonical in _FEATURE_ALIASES.items():
            if flags.get(alias):
                flags[canonical] = True
        return flags


class SiteConfig(_InputModel):
    """Workers Sites settings for static-site services."""

    bucket: str = "./public"
    include: list[str] = Field(default_factory=lambda: ["**/*"])
    exclude: list[str] = Field(default_factory=lambda: list(_DEFAULT_SITE_EXCLUDES))
    build_command: str | None = None
    build_output_dir: str | None = None


class GenerationContext(_InputModel):
    """Immutable-per-run bundle consumed by every generator."""

    core_inputs: CoreInputs
    confirmed_values: ConfirmedValues = Field(default_factory=ConfirmedValues)
    service_path: Path
    site_config: SiteConfig | None = None
    middleware_strategy: Literal["contract", "legacy"] = "contract"

    @field_validator("service_path", mode="before")
    @classmethod
    def _absolute_service_path(cls, value: Any) -> Path:
        if value is None or str(value).strip() == "":
            raise ValueError("servicePath is required")
        path = Path(str(value)).expanduser()
        if not path.is_absolute():
            path = path.absolute()
        if path.exists() and not path.is_dir():
            raise ValueError(f"servicePath is not a directory: {path}")
        return path

    # ── Derived values ──────────────────────────────────────────

    @property
    def service_name(self) -> str:
        return self.core_inputs.service_name

    @property
    def service_type(self) -> str:
        return self.core_inputs.service_type

    @property
    def is_static_site(self) -> bool:
        return self.core_inputs.service_type == STATIC_SITE

    @property
    def worker_name(self) -> str:
        return self.confirmed_values.worker_name or self.core_inputs.service_name

    @property
    def package_name(self) -> str:
        return self.confirmed_values.package_name or self.core_inputs.service_name

    @property
    def display_name(self) -> str:
        if self.confirmed_values.display_name:
            return self.confirmed_values.display_name
        words = self.core_inputs.service_name.replace("_", "-").split("-")
        return " ".join(w.capitalize() for w in words if w)

    @property
    def database_name(self) -> str:
        return self.confirmed_values.database_name or f"{self.worker_name}-db"

    @property
    def bucket_name(self) -> str:
        return self.confirmed_values.bucket_name or f"{self.worker_name}-storage"

    @property
    def features(self) -> dict[str, bool]:
        return self.confirmed_values.features

    def has_feature(self, name: str) -> bool:
        return bool(self.confirmed_values.features.get(name))

    @property
    def binding_flags(self) -> dict[str, bool]:
        """Which bindable resource families this service declares."""
        return {
            "d1": self.has_feature("d1"),
            "kv": self.has_feature("kv"),
            "r2": self.has_feature("r2"),
        }

    @property
    def effective_site_config(self) -> SiteConfig:
        return self.site_config or SiteConfig()

    def template_variables(self) -> dict[str, Any]:
        """Variables exposed to templates (dot-notation friendly)."""
        core = self.core_inputs
        confirmed = self.confirmed_values
        return {
            "coreInputs": core.model_dump(by_alias=True),
            "confirmedValues": confirmed.model_dump(by_alias=True),
            "service": {
                "name": core.service_name,
                "type": core.service_type,
                "displayName": self.display_name,
                "description": confirmed.description
                or f"{self.display_name} ({core.service_type} service)",
                "version": confirmed.version,
                "workerName": self.worker_name,
                "packageName": self.package_name,
                "databaseName": self.database_name,
                "bucketName": self.bucket_name,
                "domain": core.domain_name or f"{core.service_name}.example.com",
                "environment": core.environment,
            },
            "urls": {
                "production": confirmed.production_url or f"https://{core.domain_name or 'example.com'}",
                "staging": confirmed.staging_url or f"https://staging.{core.domain_name or 'example.com'}",
                "development": confirmed.development_url or "http://localhost:8787",
            },
            "api": {
                "basePath": confirmed.api_base_path,
                "healthCheckPath": confirmed.health_check_path,
            },
            "bindings": self.binding_flags,
        }


# ── Normalization ───────────────────────────────────────────────


def _field_keys(model: type[BaseModel]) -> set[str]:
    keys: set[str] = set()
    for name in model.model_fields:
        keys.add(name)
        keys.add(to_camel(name))
    return keys


_CORE_KEYS = _field_keys(CoreInputs)
_CONFIRMED_KEYS = _field_keys(ConfirmedValues)
_NESTED_MARKERS = ("coreInputs", "core_inputs", "confirmedValues", "confirmed_values")


def _pick(data: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return None


def normalize_context(raw: GenerationContext | Mapping[str, Any]) -> GenerationContext:
    """Fold a nested or flattened input mapping into a GenerationContext.

    Raises:
        TypeError: ``raw`` is neither a context nor a mapping.
        pydantic.ValidationError: the inputs are incomplete or malformed.
    """
    if isinstance(raw, GenerationContext):
        return raw
    if not isinstance(raw, Mapping):
        raise TypeError(f"Expected a mapping or GenerationContext, got {type(raw).__name__}")

    service_path = _pick(raw, "servicePath", "service_path", "outputDir", "output_dir")
    payload: dict[str, Any] = {
        "servicePath": service_path,
        "siteConfig": _pick(raw, "siteConfig", "site_config"),
        "middlewareStrategy": _pick(raw, "middlewareStrategy", "middleware_strategy") or "contract",
    }

    if any(marker in raw for marker in _NESTED_MARKERS):
        payload["coreInputs"] = _pick(raw, "coreInputs", "core_inputs") or {}
        payload["confirmedValues"] = _pick(raw, "confirmedValues", "confirmed_values") or {}
    else:
        payload["coreInputs"] = {k: v for k, v in raw.items() if k in _CORE_KEYS}
        payload["confirmedValues"] = {k: v for k, v in raw.items() if k in _CONFIRMED_KEYS}

    if payload["siteConfig"] is None:
        del payload["siteConfig"]
    return GenerationContext.model_validate(payload)
