"""
esimport Resolution System
==========================

Provides utilities for resolving which source files a bundler must compile
for a package and its dependencies:

- Conditional export resolution
- Subpath pattern expansion
- Entry point resolution with exclusions
- Project-wide aggregation of root and dependency entry points

Usage:
    from esimport.build import compile_entry_points

    resolution = compile_entry_points(project_root)

    print(resolution.entry_points)  # Specifier -> source path
    print(resolution.externals)     # Specifiers the bundler must not inline
"""

from .conditions import (
    Alternatives,
    ConditionTree,
    Conditions,
    Excluded,
    PathTarget,
    Unresolvable,
    parse_condition_tree,
    resolve_import,
)
from .entry_points import expand_entry_points, join_specifier, resolve_entry_points
from .pattern_resolver import (
    expand_subpath_pattern,
    filter_by_excludes,
    matches_pattern,
    path_to_entry_point,
)
from .resolver import (
    EntryPointResolution,
    PackageResolver,
    bundle_exports,
    compile_entry_points,
    load_package_manifest,
)

__all__ = [
    # Condition trees
    "ConditionTree",
    "PathTarget",
    "Excluded",
    "Alternatives",
    "Conditions",
    "Unresolvable",
    "parse_condition_tree",
    "resolve_import",
    # Pattern resolution
    "expand_subpath_pattern",
    "path_to_entry_point",
    "matches_pattern",
    "filter_by_excludes",
    # Entry points
    "join_specifier",
    "resolve_entry_points",
    "expand_entry_points",
    # Aggregation
    "EntryPointResolution",
    "PackageResolver",
    "bundle_exports",
    "compile_entry_points",
    "load_package_manifest",
]
