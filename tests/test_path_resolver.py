"""
Tests for the path resolver — normalization and traversal fencing.
"""

from pathlib import Path

import pytest

from svcforge.core.errors import PathTraversal
from svcforge.core.services.path_resolver import PathResolver, to_forward_slashes


class TestResolve:
    def test_joins_segments_under_base(self, tmp_path: Path):
        resolver = PathResolver(tmp_path)
        assert resolver.resolve("src", "worker", "index.js") == tmp_path / "src" / "worker" / "index.js"

    def test_normalizes_dot_segments(self, tmp_path: Path):
        resolver = PathResolver(tmp_path)
        assert resolver.resolve("src/./config/../worker/index.js") == tmp_path / "src" / "worker" / "index.js"

    def test_no_base_uses_cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        resolver = PathResolver()
        assert resolver.resolve("a.txt") == Path.cwd() / "a.txt"


class TestValidatePath:
    def test_inside_base_is_valid(self, tmp_path: Path):
        assert PathResolver(tmp_path).validate_path("src/worker/index.js") is True

    def test_dotdot_that_stays_inside_is_valid(self, tmp_path: Path):
        assert PathResolver(tmp_path).validate_path("src/../README.md") is True

    def test_base_itself_is_valid(self, tmp_path: Path):
        assert PathResolver(tmp_path).validate_path(".") is True

    def test_escape_raises(self, tmp_path: Path):
        with pytest.raises(PathTraversal) as exc:
            PathResolver(tmp_path / "svc").validate_path("../../etc/passwd")
        assert "../../etc/passwd" in str(exc.value)

    def test_sibling_prefix_is_rejected(self, tmp_path: Path):
        # "svc-other" shares the "svc" prefix but is outside it
        with pytest.raises(PathTraversal):
            PathResolver(tmp_path / "svc").validate_path("../svc-other/file")

    def test_absolute_path_outside_base_raises(self, tmp_path: Path):
        with pytest.raises(PathTraversal):
            PathResolver(tmp_path / "svc").validate_path(str(tmp_path / "elsewhere.txt"))

    def test_no_base_never_rejects(self):
        assert PathResolver().validate_path("../../anything") is True


class TestRelative:
    def test_relative_uses_forward_slashes(self, tmp_path: Path):
        resolver = PathResolver(tmp_path)
        assert resolver.relative(tmp_path / "src" / "worker" / "index.js") == "src/worker/index.js"

    def test_to_forward_slashes(self):
        assert to_forward_slashes("src\\worker\\index.js") == "src/worker/index.js"
