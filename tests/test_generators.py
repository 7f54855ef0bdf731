"""
Tests for the file generators — content built per service type.

Generators are exercised through ``build()`` (no disk) unless the test
is about writing.
"""

import json
import tomllib
from pathlib import Path

import pytest
import yaml

from svcforge.core.errors import InvalidGeneratorConfig
from svcforge.core.services.generators import (
    DEFAULT_GENERATORS,
    DockerComposeGenerator,
    DomainsConfigGenerator,
    EnvExampleGenerator,
    GitHubWorkflowGenerator,
    GitignoreGenerator,
    PackageJsonGenerator,
    ReadmeGenerator,
    ServiceMiddlewareGenerator,
    StaticSiteGenerator,
    WorkerIndexGenerator,
    WranglerTomlGenerator,
)
from svcforge.core.services.generators.service_manifest import (
    MANIFEST_FILENAME,
    build_service_manifest,
    files_checksum,
    generate_service_manifest,
)


def _only(files):
    assert len(files) == 1
    return files[0]


# ── package.json ────────────────────────────────────────────────


class TestPackageJson:
    def test_basic_fields(self, context):
        pkg = json.loads(_only(PackageJsonGenerator().build(context)).content)
        assert pkg["name"] == "orders-api"
        assert pkg["version"] == "1.2.0"
        assert pkg["main"] == "src/worker/index.js"
        assert pkg["type"] == "module"
        assert pkg["scripts"]["deploy:prod"] == "wrangler deploy --env production"
        assert "wrangler" in pkg["dependencies"]
        assert "author" not in pkg
        assert "repository" not in pkg

    def test_keywords_deduplicated(self, make_context):
        ctx = make_context(keywords=["cloudflare", "orders"])
        pkg = PackageJsonGenerator().build_package_json(ctx)
        assert pkg["keywords"] == ["svcforge", "data-service", "cloudflare", "serverless", "orders"]

    def test_auth_service_gets_bcrypt(self, make_context):
        deps = PackageJsonGenerator().build_dependencies(make_context(serviceType="auth"))
        assert "bcrypt" in deps

    def test_static_site_extras(self, make_context):
        ctx = make_context(serviceType="static-site")
        gen = PackageJsonGenerator()
        assert "mime-types" in gen.build_dependencies(ctx)
        assert "@types/mime-types" in gen.build_dev_dependencies(ctx)
        assert "preview" in gen.build_scripts(ctx)

    def test_author_and_repository(self, make_context):
        ctx = make_context(author="Ops Team", gitRepositoryUrl="https://github.com/acme/orders")
        pkg = PackageJsonGenerator().build_package_json(ctx)
        assert pkg["author"] == "Ops Team"
        assert pkg["repository"] == {"type": "git", "url": "https://github.com/acme/orders"}


# ── wrangler.toml ───────────────────────────────────────────────


class TestWranglerToml:
    def _parse(self, ctx) -> dict:
        return tomllib.loads(_only(WranglerTomlGenerator().build(ctx)).content)

    def test_header(self, context):
        data = self._parse(context)
        assert data["name"] == "orders-api"
        assert data["main"] == "src/worker/index.js"
        assert data["compatibility_date"] == "2024-12-01"
        assert data["account_id"] == "acc-123"
        assert data["routes"] == [{"pattern": "orders.example.com/*", "zone_id": "zone-456"}]
        assert data["env"]["staging"]["name"] == "orders-api-staging"
        assert data["observability"]["enabled"] is True

    def test_no_routes_without_zone(self, make_context):
        data = self._parse(make_context(cloudflareZoneId=""))
        assert "routes" not in data

    def test_d1_only(self, context):
        data = self._parse(context)
        assert data["d1_databases"] == [
            {"binding": "DB", "database_name": "orders-api-db", "database_id": ""}
        ]
        assert "kv_namespaces" not in data
        assert "r2_buckets" not in data

    def test_all_bindings(self, make_context):
        data = self._parse(make_context(features=["d1", "kv", "r2"]))
        assert data["kv_namespaces"][0]["binding"] == "KV"
        assert data["r2_buckets"][0] == {"binding": "R2_STORAGE", "bucket_name": "orders-api-storage"}

    def test_no_bindings(self, make_context):
        data = self._parse(make_context())
        for section in ("d1_databases", "kv_namespaces", "r2_buckets"):
            assert section not in data

    def test_vars(self, context):
        data = self._parse(context)
        assert data["vars"] == {
            "SERVICE_NAME": "orders-api",
            "SERVICE_TYPE": "data-service",
            "ENVIRONMENT": "development",
            "API_BASE_PATH": "/api",
            "HEALTH_CHECK_PATH": "/health",
        }

    def test_site_section_only_for_static_site(self, make_context):
        assert "site" not in self._parse(make_context())
        data = self._parse(make_context(serviceType="static-site"))
        assert data["site"]["bucket"] == "./public"
        assert "node_modules/**" in data["site"]["exclude"]

    def test_validate_site_config(self):
        assert WranglerTomlGenerator.validate_site_config({"bucket": "./dist"}) == {"valid": True, "errors": []}
        result = WranglerTomlGenerator.validate_site_config({"bucket": 3, "include": "*"})
        assert result["valid"] is False
        assert len(result["errors"]) == 2

    def test_validate_context_lists_missing_fields(self, context):
        with pytest.raises(InvalidGeneratorConfig) as exc:
            WranglerTomlGenerator.validate_context(context)
        message = str(exc.value)
        assert message.startswith("WranglerTomlGenerator: Missing required fields: ")
        assert "productionUrl" in message
        assert "cloudflareAccountId" not in message

    def test_validate_context_complete(self, make_context):
        ctx = make_context(
            productionUrl="https://orders.example.com",
            stagingUrl="https://staging.orders.example.com",
            developmentUrl="http://localhost:8787",
        )
        assert WranglerTomlGenerator.validate_context(ctx) is True


# ── Worker sources ──────────────────────────────────────────────


class TestWorkerSources:
    def test_index_renders_placeholders(self, context):
        content = _only(WorkerIndexGenerator().build(context)).content
        assert "orders-api" in content
        assert "'/health'" in content
        assert "{{" not in content

    def test_domains_config(self, context):
        generated = _only(DomainsConfigGenerator().build(context))
        assert generated.path == "src/config/domains.js"
        assert "{{" not in generated.content

    @pytest.mark.parametrize("strategy", ["contract", "legacy"])
    def test_middleware_strategies(self, make_context, service_dir, strategy):
        from svcforge.core.models.context import normalize_context

        ctx = normalize_context({
            "serviceName": "orders-api",
            "servicePath": str(service_dir),
            "middlewareStrategy": strategy,
        })
        content = _only(ServiceMiddlewareGenerator().build(ctx)).content
        assert "createServiceMiddleware" in content

    def test_skip_static_site(self, make_context):
        ctx = make_context(serviceType="static-site")
        for cls in (WorkerIndexGenerator, DomainsConfigGenerator, ServiceMiddlewareGenerator):
            assert cls().should_generate(ctx) is False

    def test_generate_returns_empty_when_not_applicable(self, make_context, service_dir: Path):
        ctx = make_context(serviceType="static-site")
        assert WorkerIndexGenerator().generate(ctx) == []
        assert list(service_dir.iterdir()) == []


# ── Supporting files ────────────────────────────────────────────


class TestSupportingFiles:
    def test_env_example(self, make_context):
        content = _only(EnvExampleGenerator().build(make_context(features=["d1", "r2"]))).content
        assert "CLOUDFLARE_ACCOUNT_ID=acc-123" in content
        assert "D1_DATABASE_NAME=orders-api-db" in content
        assert "R2_BUCKET_NAME=orders-api-storage" in content
        assert "KV_NAMESPACE_ID" not in content

    def test_readme_includes_partials(self, context):
        content = _only(ReadmeGenerator().build(context)).content
        assert content.startswith("# Orders Api")
        assert "{{>" not in content
        assert "orders-api" in content

    def test_github_workflows(self, context):
        files = {f.path: f.content for f in GitHubWorkflowGenerator().build(context)}
        assert set(files) == {".github/workflows/ci.yml", ".github/workflows/deploy.yml"}

        deploy = yaml.safe_load(files[".github/workflows/deploy.yml"])
        assert deploy["jobs"]["deploy-production"]["needs"] == "deploy-staging"
        steps = deploy["jobs"]["deploy-staging"]["steps"]
        assert steps[-1]["env"]["CLOUDFLARE_API_TOKEN"] == "${{ secrets.CLOUDFLARE_API_TOKEN }}"

        ci = yaml.safe_load(files[".github/workflows/ci.yml"])
        assert ci["jobs"]["test"]["runs-on"] == "ubuntu-latest"

    def test_gitignore(self, make_context):
        plain = _only(GitignoreGenerator().build(make_context())).content
        static = _only(GitignoreGenerator().build(make_context(serviceType="static-site"))).content
        assert "node_modules/" in plain
        assert "wrangler.toml.backup.*" in plain
        assert "public/build/" not in plain
        assert "public/build/" in static

    def test_docker_compose(self, context):
        content = _only(DockerComposeGenerator().build(context)).content
        data = yaml.safe_load(content)
        service = data["services"]["orders-api"]
        assert service["image"] == "node:20-slim"
        assert service["ports"] == ["8787:8787"]
        assert service["environment"]["SERVICE_NAME"] == "orders-api"


# ── Static site ─────────────────────────────────────────────────


class TestStaticSite:
    def test_only_for_static_site(self, make_context):
        assert StaticSiteGenerator().should_generate(make_context()) is False
        assert StaticSiteGenerator().should_generate(make_context(serviceType="static-site")) is True

    def test_bundle(self, make_context):
        files = {f.path: f.content for f in StaticSiteGenerator().build(make_context(serviceType="static-site"))}
        assert set(files) == {
            "src/worker/index.js",
            "src/config/domains.js",
            "static-site-schema.json",
            "src/middleware/StaticSiteMiddleware.js",
        }
        schema = json.loads(files["static-site-schema.json"])
        assert schema["properties"]["serviceType"]["enum"] == ["static-site"]
        assert "{{" not in files["src/worker/index.js"]

    def test_validate_config_ok(self):
        assert StaticSiteGenerator.validate_config({"serviceType": "static-site", "publicDir": "dist"}) is True

    def test_validate_config_collects_every_error(self):
        with pytest.raises(InvalidGeneratorConfig) as exc:
            StaticSiteGenerator.validate_config({"serviceType": "api", "spaFallback": "yes", "buildCommand": ""})
        assert str(exc.value) == (
            'Invalid static-site configuration: Service type must be "static-site", '
            "spaFallback must be a boolean, buildCommand must be a non-empty string"
        )
        assert len(exc.value.errors) == 3


# ── Service manifest ────────────────────────────────────────────


class TestServiceManifest:
    def test_flags_and_environment(self, context):
        manifest = build_service_manifest(context, {"core": ["wrangler.toml", "package.json"]})
        assert (manifest["d1"], manifest["kv"], manifest["r2"]) == (True, False, False)
        assert manifest["environment"]["SERVICE_NAME"] == "required"
        assert manifest["cloudflare"]["databaseName"] == "orders-api-db"
        assert manifest["cloudflare"]["bucketName"] is None
        assert manifest["files"]["list"] == ["package.json", "wrangler.toml"]
        assert manifest["files"]["total"] == 2

    def test_checksum_ignores_order(self):
        assert files_checksum(["b", "a"]) == files_checksum(["a", "b"])

    def test_deterministic(self, context):
        first = generate_service_manifest(context, {"core": ["a", "b"]})
        second = generate_service_manifest(context, {"core": ["b", "a"]})
        assert first.path == MANIFEST_FILENAME
        assert first.content == second.content


class TestDefaultSet:
    def test_categories_and_names(self):
        assert list(DEFAULT_GENERATORS) == ["core", "config", "code", "docs", "ci", "service-types"]
        for category, classes in DEFAULT_GENERATORS.items():
            for cls in classes:
                assert cls.category == category
                assert cls.name == cls.__name__
