"""
Tests for the template engine — variables, partials, caching.
"""

from pathlib import Path

import pytest

from svcforge.core.errors import MissingVariable, PartialNotFound, PathTraversal, TemplateNotFound
from svcforge.core.services.template_engine import TemplateEngine, default_templates_path


@pytest.fixture
def templates(tmp_path: Path) -> Path:
    root = tmp_path / "templates"
    (root / "partials" / "readme").mkdir(parents=True)
    (root / "hello.txt").write_text("Hello {{ service.name }}!")
    (root / "page.md").write_text("# {{ title }}\n{{> readme/body.md }}\n")
    (root / "partials" / "readme" / "body.md").write_text("Body of {{ title }}")
    (root / "partials" / "outer.md").write_text("outer[{{> inner.md }}]")
    (root / "partials" / "inner.md").write_text("inner {{ title }}")
    (root / "partials" / "loop.md").write_text("{{> loop.md }}")
    (root / "partials" / "desc.md").write_text("D: {{ desc }}")
    return root


@pytest.fixture
def engine(templates: Path) -> TemplateEngine:
    return TemplateEngine(templates)


# ── Variable substitution ───────────────────────────────────────


class TestRender:
    def test_simple_variable(self, engine: TemplateEngine):
        assert engine.render("Hi {{ name }}", {"name": "Ada"}) == "Hi Ada"

    def test_dot_notation(self, engine: TemplateEngine):
        assert engine.render("{{ a.b.c }}", {"a": {"b": {"c": "deep"}}}) == "deep"

    def test_whitespace_inside_braces_is_optional(self, engine: TemplateEngine):
        assert engine.render("{{name}}/{{  name  }}", {"name": "x"}) == "x/x"

    def test_missing_variable_left_as_placeholder(self, engine: TemplateEngine):
        assert engine.render("Hi {{ nobody }}", {}) == "Hi {{ nobody }}"

    def test_missing_variable_strict_raises(self, engine: TemplateEngine):
        with pytest.raises(MissingVariable) as exc:
            engine.render("Hi {{ user.name }}", {"user": {}}, strict=True)
        assert exc.value.variable == "user.name"

    def test_none_counts_as_missing(self, engine: TemplateEngine):
        assert engine.render("{{ x }}", {"x": None}) == "{{ x }}"

    def test_booleans_render_lowercase(self, engine: TemplateEngine):
        assert engine.render("{{ on }}/{{ off }}", {"on": True, "off": False}) == "true/false"

    def test_numbers_and_empty_strings(self, engine: TemplateEngine):
        assert engine.render("[{{ n }}][{{ s }}]", {"n": 0, "s": ""}) == "[0][]"

    def test_get_nested_value(self):
        assert TemplateEngine.get_nested_value({"a": {"b": 1}}, "a.b") == 1
        assert TemplateEngine.get_nested_value({"a": None}, "a.b") is None
        assert TemplateEngine.get_nested_value({}, "a") is None


# ── Files and partials ──────────────────────────────────────────


class TestFiles:
    def test_render_file(self, engine: TemplateEngine):
        assert engine.render_file("hello.txt", {"service": {"name": "svc"}}) == "Hello svc!"

    def test_partials_are_spliced_and_rendered(self, engine: TemplateEngine):
        assert engine.render_file("page.md", {"title": "T"}) == "# T\nBody of T\n"

    def test_nested_partials(self, engine: TemplateEngine):
        assert engine.render_with_partials("{{> outer.md }}", {"title": "x"}) == "outer[inner x]"

    def test_values_inside_partials_are_substituted_once(self, engine: TemplateEngine):
        variables = {"desc": "{{ secret }}", "secret": "LEAK"}
        rendered = engine.render_with_partials("{{> desc.md }} / {{ desc }}", variables)
        assert rendered == "D: {{ secret }} / {{ secret }}"

    def test_placeholder_like_value_in_partial_is_not_strict_checked(self, engine: TemplateEngine):
        rendered = engine.render_with_partials("{{> desc.md }}", {"desc": "{{ undefined }}"}, strict=True)
        assert rendered == "D: {{ undefined }}"

    def test_self_including_partial_is_bounded(self, engine: TemplateEngine):
        with pytest.raises(RecursionError):
            engine.render_with_partials("{{> loop.md }}", {})

    def test_missing_template(self, engine: TemplateEngine):
        with pytest.raises(TemplateNotFound) as exc:
            engine.load_template("nope.txt")
        assert "Template not found: nope.txt" in str(exc.value)

    def test_missing_partial(self, engine: TemplateEngine):
        with pytest.raises(PartialNotFound) as exc:
            engine.render_with_partials("{{> nope.md }}", {})
        assert "Partial not found: nope.md" in str(exc.value)

    def test_template_outside_root_is_rejected(self, engine: TemplateEngine):
        with pytest.raises(PathTraversal):
            engine.load_template("../outside.txt")


# ── Cache ───────────────────────────────────────────────────────


class TestCache:
    def test_cached_content_survives_disk_change(self, engine: TemplateEngine, templates: Path):
        assert engine.load_template("hello.txt") == "Hello {{ service.name }}!"
        (templates / "hello.txt").write_text("changed")
        assert engine.load_template("hello.txt") == "Hello {{ service.name }}!"

        engine.clear_cache()
        assert engine.load_template("hello.txt") == "changed"

    def test_cache_disabled_rereads(self, templates: Path):
        engine = TemplateEngine(templates, cache=False)
        engine.load_template("hello.txt")
        (templates / "hello.txt").write_text("changed")
        assert engine.load_template("hello.txt") == "changed"
        assert engine.get_cache_stats()["size"] == 0

    def test_cache_stats(self, engine: TemplateEngine):
        engine.render_file("page.md", {"title": "T"})
        stats = engine.get_cache_stats()
        assert stats["enabled"] is True
        assert stats["size"] == 2
        assert "page.md" in stats["keys"]
        assert "partial:readme/body.md" in stats["keys"]


class TestDefaults:
    def test_bundled_templates_exist(self):
        root = default_templates_path()
        assert (root / "worker" / "index.js").is_file()
        assert (root / "partials" / "readme" / "getting-started.md").is_file()

    def test_env_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SVCFORGE_TEMPLATES_DIR", str(tmp_path))
        assert default_templates_path() == tmp_path
        assert TemplateEngine().templates_path == tmp_path
