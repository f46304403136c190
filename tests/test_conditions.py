"""Tests for conditions.py - Conditional export resolution."""

import pytest

from esimport.build.conditions import (
    Alternatives,
    Conditions,
    Excluded,
    PathTarget,
    Unresolvable,
    parse_condition_tree,
    resolve_import,
)
from esimport.common import NoValidEntryPointError


class TestParseConditionTree:
    """Tests for parse_condition_tree function."""

    def test_string(self):
        assert parse_condition_tree("./index.js") == PathTarget("./index.js")

    def test_null(self):
        assert parse_condition_tree(None) == Excluded()

    def test_list(self):
        tree = parse_condition_tree([{"import": "./a.mjs"}, "./a.cjs"])

        assert isinstance(tree, Alternatives)
        assert isinstance(tree.items[0], Conditions)
        assert tree.items[1] == PathTarget("./a.cjs")

    def test_unsupported_value(self):
        assert isinstance(parse_condition_tree(9), Unresolvable)


class TestResolveImport:
    """Tests for resolve_import function."""

    def test_string(self):
        assert resolve_import("foo") == "foo"

    def test_null_excludes(self):
        assert resolve_import(None) is None

    def test_import(self):
        assert resolve_import({"import": "foo", "default": "bar"}) == "foo"

    def test_default(self):
        assert resolve_import({"default": "foo", "require": "bar"}) == "foo"

    def test_browser_wins(self):
        """browser takes priority over import and default, whatever the key order."""
        assert resolve_import({"default": "z", "import": "y", "browser": "x"}) == "x"

    def test_nested(self):
        assert resolve_import({"import": {"types": "foo.d", "default": "foo"}}) == "foo"

    def test_list_prefers_conditional_entry(self):
        entry_point = [{"import": {"types": "foo.d", "default": "foo.mjs"}}, "foo.cjs"]

        assert resolve_import(entry_point) == "foo.mjs"

    def test_nested_list(self):
        assert resolve_import(["foo.cjs", [{"default": "foo.mjs"}]]) == "foo.mjs"

    def test_list_of_strings_fails(self):
        with pytest.raises(NoValidEntryPointError):
            resolve_import(["foo.js", "bar.js"])

    def test_null_condition_excludes(self):
        assert resolve_import({"browser": None, "default": "./node.js"}) is None

    def test_no_entry_point(self):
        with pytest.raises(NoValidEntryPointError, match="No valid entry point found"):
            resolve_import({})

    def test_only_unknown_conditions(self):
        with pytest.raises(NoValidEntryPointError) as exc_info:
            resolve_import({"require": "./index.cjs", "node": "./index.cjs"})

        assert exc_info.value.node == {"require": "./index.cjs", "node": "./index.cjs"}

    def test_invalid_type(self):
        with pytest.raises(NoValidEntryPointError):
            resolve_import(True)
