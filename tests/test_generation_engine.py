"""
End-to-end tests for the generation engine — full service trees on disk.
"""

import json
import tomllib
from pathlib import Path

import pytest

from svcforge.core.engine.generation import GenerationEngine, build_default_registry
from svcforge.core.errors import GenerationFailure
from svcforge.core.services.config_validator import ConfigValidator
from svcforge.core.services.file_writer import FileWriter


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def static_site_inputs(service_dir: Path) -> dict:
    return {
        "coreInputs": {
            "serviceName": "marketing-site",
            "serviceType": "static-site",
            "domainName": "www.example.com",
            "cloudflareAccountId": "acc-1",
        },
        "confirmedValues": {"features": {"kv": True}},
        "servicePath": str(service_dir),
    }


class TestStaticSiteRun:
    def test_tree(self, static_site_inputs, service_dir: Path):
        report = GenerationEngine().generate(static_site_inputs)

        assert report.ok
        files = set(_snapshot(service_dir))
        assert {
            "package.json",
            "wrangler.toml",
            ".env.example",
            "README.md",
            ".gitignore",
            "docker-compose.yml",
            ".github/workflows/ci.yml",
            ".github/workflows/deploy.yml",
            "src/worker/index.js",
            "src/config/domains.js",
            "src/middleware/StaticSiteMiddleware.js",
            "static-site-schema.json",
            "service-manifest.json",
        } <= files
        assert "src/middleware/service-middleware.js" not in files

    def test_skips_generic_worker_generators(self, static_site_inputs):
        report = GenerationEngine().generate(static_site_inputs)
        skipped = {o.name for o in report.result.skipped}
        assert skipped == {"DomainsConfigGenerator", "WorkerIndexGenerator", "ServiceMiddlewareGenerator"}

    def test_manifest_matches_descriptor(self, static_site_inputs, service_dir: Path):
        GenerationEngine().generate(static_site_inputs)

        manifest = json.loads((service_dir / "service-manifest.json").read_text())
        descriptor = tomllib.loads((service_dir / "wrangler.toml").read_text())
        assert manifest["kv"] is True
        assert manifest["d1"] is False
        assert "kv_namespaces" in descriptor
        assert "site" in descriptor
        assert "src/worker/index.js" in manifest["files"]["list"]
        assert manifest["files"]["byCategory"]["service-types"]

        result = ConfigValidator().validate_service_config(
            service_dir / "service-manifest.json", service_dir / "wrangler.toml"
        )
        assert result.valid is True
        assert result.issues == ()


class TestMinimalStaticSite:
    def test_demo_site_validates_clean(self, service_dir: Path):
        report = GenerationEngine().generate({
            "serviceType": "static-site",
            "serviceName": "demo",
            "servicePath": str(service_dir),
        })

        for path in ("src/worker/index.js", "static-site-schema.json", "src/middleware/StaticSiteMiddleware.js", "README.md"):
            assert path in report.files

        manifest = json.loads((service_dir / "service-manifest.json").read_text())
        assert (manifest["d1"], manifest["kv"], manifest["r2"]) == (False, False, False)

        result = ConfigValidator().validate_service_config(
            service_dir / "service-manifest.json", service_dir / "wrangler.toml"
        )
        assert result.to_dict() == {"valid": True, "issues": []}


class TestGenericRun:
    def test_api_service_gets_worker_sources(self, context, service_dir: Path):
        report = GenerationEngine().generate(context)
        assert "src/middleware/service-middleware.js" in report.files
        assert "static-site-schema.json" not in report.files
        assert [o.name for o in report.result.skipped] == ["StaticSiteGenerator"]

    def test_creates_missing_service_dir(self, tmp_path: Path):
        target = tmp_path / "new" / "svc"
        report = GenerationEngine().generate({"serviceName": "svc", "servicePath": str(target)})
        assert report.ok
        assert (target / "wrangler.toml").is_file()


class TestRunPolicies:
    def test_regeneration_is_byte_identical(self, static_site_inputs, service_dir: Path):
        GenerationEngine().generate(static_site_inputs)
        first = _snapshot(service_dir)
        GenerationEngine().generate(static_site_inputs)
        assert _snapshot(service_dir) == first

    def test_no_overwrite_keeps_user_edits(self, static_site_inputs, service_dir: Path):
        GenerationEngine().generate(static_site_inputs)
        (service_dir / "README.md").write_text("my notes")

        report = GenerationEngine(overwrite=False).generate(static_site_inputs)

        assert (service_dir / "README.md").read_text() == "my notes"
        assert "README.md" in report.skipped_files
        assert "README.md" not in report.files

    def test_dry_run_writes_nothing(self, static_site_inputs, service_dir: Path):
        report = GenerationEngine(dry_run=True).generate(static_site_inputs)

        assert list(service_dir.iterdir()) == []
        writer = FileWriter(service_dir)
        assert not any(writer.file_exists(path) for path in report.files)
        assert report.dry_run is True
        assert "wrangler.toml" in report.files
        assert report.manifest_path is not None

    def test_dry_run_on_existing_tree_changes_nothing(self, static_site_inputs, service_dir: Path):
        GenerationEngine().generate(static_site_inputs)
        before = _snapshot(service_dir)
        GenerationEngine(dry_run=True).generate(static_site_inputs)
        assert _snapshot(service_dir) == before

    def test_dry_run_without_overwrite_plans_nothing_on_existing_tree(self, static_site_inputs, service_dir: Path):
        GenerationEngine().generate(static_site_inputs)
        existing = set(_snapshot(service_dir))

        report = GenerationEngine(dry_run=True, overwrite=False).generate(static_site_inputs)

        assert report.files == []
        assert set(report.skipped_files) == existing
        assert report.manifest_path is None

    def test_report_to_dict(self, context):
        data = GenerationEngine(dry_run=True).generate(context).to_dict()
        assert data["dry_run"] is True
        assert data["execution"]["status"] == "ok"
        assert "package.json" in data["files"]


class TestFailures:
    def test_missing_template_aborts(self, context, tmp_path: Path):
        empty_templates = tmp_path / "templates"
        empty_templates.mkdir()

        with pytest.raises(GenerationFailure) as exc:
            GenerationEngine(templates_path=empty_templates).generate(context)

        # package.json and wrangler.toml need no templates
        assert exc.value.generator == "DomainsConfigGenerator"
        assert [o.name for o in exc.value.result.success] == ["PackageJsonGenerator", "WranglerTomlGenerator"]

    def test_continue_on_error_reports_all(self, context, tmp_path: Path):
        empty_templates = tmp_path / "templates"
        empty_templates.mkdir()

        report = GenerationEngine(templates_path=empty_templates, stop_on_error=False).generate(context)

        assert report.ok is False
        failed = {o.name for o in report.result.failed}
        assert {"DomainsConfigGenerator", "WorkerIndexGenerator", "ReadmeGenerator"} <= failed
        assert "wrangler.toml" in report.files


class TestDefaultRegistry:
    def test_shares_engine_and_writer(self, tmp_path: Path):
        from svcforge.core.services.template_engine import TemplateEngine

        engine = TemplateEngine()
        writer = FileWriter(tmp_path)
        registry = build_default_registry(engine, writer)

        assert registry.count() == 11
        for category in registry.get_categories():
            for generator in registry.get_generators(category):
                assert generator.template_engine is engine
                assert generator.file_writer is writer
