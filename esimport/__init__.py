"""esimport - compile a package into static ES modules with a browser import map.

This package provides tools for:
- Resolving a package's conditional exports/imports and its dependencies'
- Driving esbuild over the resolved entry points
- Writing an integrity-annotated importmap.json
- Rebuilding on change and serving the output locally

Example:
    >>> from esimport import compile_entry_points, RebuildCoordinator, BuildConfig
    >>> resolution = compile_entry_points("path/to/package")
    >>> config = BuildConfig.from_options("path/to/package", "dist")
    >>> import_map = asyncio.run(RebuildCoordinator(config).run())
"""

from .build import (
    EntryPointResolution,
    bundle_exports,
    compile_entry_points,
    expand_entry_points,
    expand_subpath_pattern,
    path_to_entry_point,
    resolve_entry_points,
    resolve_import,
)
from .config import BuildConfig, parse_port
from .coordinator import CoordinatorState, RebuildCoordinator
from .importmap import ImportMapBuilder, integrity_hash, invert_entry_points
from .schema import ImportMap, PackageManifest

__version__ = "0.1.0"

__all__ = [
    # Resolution
    "resolve_import",
    "resolve_entry_points",
    "expand_subpath_pattern",
    "path_to_entry_point",
    "expand_entry_points",
    "bundle_exports",
    "compile_entry_points",
    "EntryPointResolution",
    # Import map
    "ImportMap",
    "ImportMapBuilder",
    "integrity_hash",
    "invert_entry_points",
    # Build
    "BuildConfig",
    "parse_port",
    "RebuildCoordinator",
    "CoordinatorState",
    # Schema
    "PackageManifest",
]
