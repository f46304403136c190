"""Tests for pattern_resolver.py - Subpath pattern expansion and matching."""

import pytest

from esimport.build.pattern_resolver import (
    expand_subpath_pattern,
    filter_by_excludes,
    matches_pattern,
    path_to_entry_point,
)
from esimport.common import InvalidEntryPointPathError


class TestExpandSubpathPattern:
    """Tests for expand_subpath_pattern function."""

    def test_no_wildcard(self, fellowship_dir):
        assert expand_subpath_pattern("./src/index.js", fellowship_dir) == ["./src/index.js"]

    def test_no_wildcard_missing_file(self, fellowship_dir):
        assert expand_subpath_pattern("./src/ring.js", fellowship_dir) == []

    def test_wildcard_with_subpath(self, fellowship_dir):
        """The wildcard spans directories."""
        result = expand_subpath_pattern("./src/*.js", fellowship_dir)

        assert set(result) == {
            "./src/index.js",
            "./src/dwarfs/gimli.js",
            "./src/hobbits/sam.js",
            "./src/hobbits/frodo.js",
        }

    def test_wildcard_without_subpath(self, fellowship_dir):
        result = expand_subpath_pattern("./src/hobbits/*.js", fellowship_dir)

        assert result == ["./src/hobbits/frodo.js", "./src/hobbits/sam.js"]

    def test_no_match(self, fixtures_dir):
        assert expand_subpath_pattern("./src/*.js", fixtures_dir / "rings") == []

    def test_pattern_without_dot_prefix(self, fellowship_dir):
        assert expand_subpath_pattern("src/index.js", fellowship_dir) == ["./src/index.js"]

    def test_unsupported_extensions_skipped(self, tmp_path):
        (tmp_path / "lib").mkdir()
        (tmp_path / "lib" / "a.js").write_text("")
        (tmp_path / "lib" / "b.ts").write_text("")
        (tmp_path / "lib" / "c.css").write_text("")
        (tmp_path / "lib" / "d.png").write_text("")
        (tmp_path / "lib" / "e.md").write_text("")

        result = expand_subpath_pattern("./lib/*", tmp_path)

        assert result == ["./lib/a.js", "./lib/b.ts", "./lib/c.css"]

    def test_node_modules_skipped(self, tmp_path):
        (tmp_path / "node_modules" / "dep").mkdir(parents=True)
        (tmp_path / "node_modules" / "dep" / "index.js").write_text("")
        (tmp_path / "index.js").write_text("")

        assert expand_subpath_pattern("./*.js", tmp_path) == ["./index.js"]

    def test_hidden_files_skipped(self, tmp_path):
        (tmp_path / ".cache").mkdir()
        (tmp_path / ".cache" / "index.js").write_text("")
        (tmp_path / ".hidden.js").write_text("")
        (tmp_path / "visible.js").write_text("")

        assert expand_subpath_pattern("./*", tmp_path) == ["./visible.js"]

    def test_exclude_dirs_skipped(self, tmp_path):
        (tmp_path / "dist" / "nested").mkdir(parents=True)
        (tmp_path / "dist" / "ring-00000022.js").write_text("")
        (tmp_path / "dist" / "nested" / "sam-00000010.js").write_text("")
        (tmp_path / "dist" / "importmap.json").write_text("{}")
        (tmp_path / "ring.js").write_text("")

        assert expand_subpath_pattern("./*", tmp_path, [tmp_path / "dist"]) == ["./ring.js"]

    def test_exclude_dirs_without_wildcard(self, tmp_path):
        (tmp_path / "dist").mkdir()
        (tmp_path / "dist" / "ring.js").write_text("")

        assert expand_subpath_pattern("./dist/ring.js", tmp_path, [tmp_path / "dist"]) == []
        assert expand_subpath_pattern("./dist/ring.js", tmp_path) == ["./dist/ring.js"]

    def test_pattern_outside_package(self, fellowship_dir):
        assert expand_subpath_pattern("../*.js", fellowship_dir / "src") == []


class TestPathToEntryPoint:
    """Tests for path_to_entry_point function."""

    def test_filename_wildcard(self):
        assert path_to_entry_point("foo.js", "./*.js", "./*") == "foo"

    def test_path_wildcard(self):
        assert path_to_entry_point("bar/baz/foo.js", "./bar/*.js", "./util/*") == "util/baz/foo"

    def test_no_wildcard(self):
        assert path_to_entry_point("foo.js", "./foo.js", "./foo") == "foo"

    def test_dot_relative_file_path(self):
        assert path_to_entry_point("./src/hobbits/sam.js", "./src/hobbits/*", "fellowship/hobbits/*") == (
            "fellowship/hobbits/sam.js"
        )

    def test_package_root(self):
        assert path_to_entry_point("./src/index.js", "./src/index.js", "fellowship") == "fellowship"

    def test_no_match(self):
        with pytest.raises(InvalidEntryPointPathError, match="Invalid path foo.js for entry point"):
            path_to_entry_point("foo.js", "./bar.js", "./foo")


class TestMatchesPattern:
    """Tests for matches_pattern function."""

    def test_exact_match(self):
        assert matches_pattern("fellowship/index", ["fellowship/index"]) is True
        assert matches_pattern("fellowship/index", ["fellowship"]) is False

    def test_wildcard(self):
        assert matches_pattern("fellowship/dwarfs/gimli", ["fellowship/dwarfs/*"]) is True
        assert matches_pattern("fellowship/hobbits/sam", ["fellowship/dwarfs/*"]) is False

    def test_wildcard_spans_directories(self):
        assert matches_pattern("fellowship/dwarfs/erebor/thorin", ["fellowship/dwarfs/*"]) is True

    def test_no_patterns(self):
        assert matches_pattern("fellowship", []) is False


class TestFilterByExcludes:
    """Tests for filter_by_excludes function."""

    def test_preserves_order(self):
        entry_points = {"b": "b.js", "a": "a.js", "c": "c.js"}

        result = filter_by_excludes(entry_points, ["a"])

        assert list(result) == ["b", "c"]

    def test_no_excludes(self):
        entry_points = {"a": "a.js"}

        assert filter_by_excludes(entry_points, []) == entry_points
        assert filter_by_excludes(entry_points, None) == entry_points
