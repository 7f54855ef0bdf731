"""
Tests for GenerationContext — input shapes, derived names, features.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from svcforge.core.models.context import GenerationContext, normalize_context


class TestNormalize:
    def test_nested_shape(self, tmp_path: Path):
        ctx = normalize_context({
            "coreInputs": {"serviceName": "blog", "serviceType": "static-site"},
            "confirmedValues": {"packageName": "@acme/blog"},
            "servicePath": str(tmp_path),
        })
        assert ctx.service_name == "blog"
        assert ctx.is_static_site is True
        assert ctx.package_name == "@acme/blog"

    def test_flattened_shape(self, tmp_path: Path):
        ctx = normalize_context({
            "serviceName": "blog",
            "serviceType": "static-site",
            "packageName": "@acme/blog",
            "servicePath": str(tmp_path),
        })
        assert ctx.service_name == "blog"
        assert ctx.package_name == "@acme/blog"

    def test_snake_case_keys(self, tmp_path: Path):
        ctx = normalize_context({
            "core_inputs": {"service_name": "blog"},
            "confirmed_values": {"worker_name": "blog-worker"},
            "service_path": str(tmp_path),
        })
        assert ctx.worker_name == "blog-worker"

    def test_context_passes_through(self, context: GenerationContext):
        assert normalize_context(context) is context

    def test_relative_service_path_becomes_absolute(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        ctx = normalize_context({"serviceName": "x", "servicePath": "out"})
        assert ctx.service_path.is_absolute()
        assert ctx.service_path == tmp_path / "out"

    def test_missing_service_path_rejected(self):
        with pytest.raises(ValidationError):
            normalize_context({"serviceName": "x"})

    def test_missing_service_name_rejected(self, tmp_path: Path):
        with pytest.raises(ValidationError):
            normalize_context({"coreInputs": {}, "servicePath": str(tmp_path)})

    def test_service_path_that_is_a_file_rejected(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        with pytest.raises(ValidationError):
            normalize_context({"serviceName": "x", "servicePath": str(target)})

    def test_non_mapping_rejected(self):
        with pytest.raises(TypeError):
            normalize_context(["not", "a", "mapping"])

    def test_context_is_frozen(self, context: GenerationContext):
        with pytest.raises(ValidationError):
            context.middleware_strategy = "legacy"


class TestDerivedNames:
    def test_defaults_from_service_name(self, make_context):
        ctx = make_context()
        assert ctx.worker_name == "orders-api"
        assert ctx.package_name == "orders-api"
        assert ctx.display_name == "Orders Api"
        assert ctx.database_name == "orders-api-db"
        assert ctx.bucket_name == "orders-api-storage"

    def test_explicit_values_win(self, make_context):
        ctx = make_context(workerName="orders", databaseName="orders-main", displayName="Orders")
        assert ctx.worker_name == "orders"
        assert ctx.database_name == "orders-main"
        assert ctx.display_name == "Orders"
        assert ctx.bucket_name == "orders-storage"


class TestFeatures:
    def test_mapping(self, make_context):
        ctx = make_context(features={"d1": True, "kv": False})
        assert ctx.binding_flags == {"d1": True, "kv": False, "r2": False}

    def test_list_of_names(self, make_context):
        ctx = make_context(features=["kv", "r2"])
        assert ctx.binding_flags == {"d1": False, "kv": True, "r2": True}

    def test_aliases(self, make_context):
        ctx = make_context(features={"database": True, "upstash": True})
        assert ctx.has_feature("d1")
        assert ctx.has_feature("kv")

    def test_invalid_features_rejected(self, make_context):
        with pytest.raises(ValidationError):
            make_context(features="d1")


class TestTemplateVariables:
    def test_shape(self, context: GenerationContext):
        variables = context.template_variables()
        assert variables["service"]["name"] == "orders-api"
        assert variables["service"]["databaseName"] == "orders-api-db"
        assert variables["api"] == {"basePath": "/api", "healthCheckPath": "/health"}
        assert variables["bindings"]["d1"] is True
        assert variables["coreInputs"]["cloudflareAccountId"] == "acc-123"
        assert variables["urls"]["production"] == "https://orders.example.com"
