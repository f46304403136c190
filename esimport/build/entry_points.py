"""
Package Entry Point Resolution
==============================

Turns the raw ``exports`` or ``imports`` field of a ``package.json`` into a
mapping of specifier pattern -> path pattern, and expands those patterns
against the package directory.

See also: https://nodejs.org/api/packages.html#package-entry-points
"""

import os
import posixpath
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..common import InvalidEntryPointsError, NoValidEntryPointError
from ..common.logger import get_logger
from .conditions import resolve_import
from .pattern_resolver import expand_subpath_pattern, filter_by_excludes, path_to_entry_point

logger = get_logger(__name__)


def join_specifier(pkg_name: str, subpath: str) -> str:
    """
    Join a package name and a subpath key the way Node's ``path.join`` does.

    Examples:
        >>> join_specifier("fellowship", ".")
        'fellowship'

        >>> join_specifier("fellowship", "./hobbits/*")
        'fellowship/hobbits/*'

        >>> join_specifier("", "#utils/*")
        '#utils/*'
    """
    return posixpath.normpath(posixpath.join(pkg_name, subpath))


def resolve_entry_points(pkg_name: str, entry_points: Any) -> Dict[str, Optional[str]]:
    """
    Resolve a package's entry points.

    Args:
        pkg_name: The package name, or "" for the package's own ``imports``
        entry_points: The raw ``exports``/``imports`` value

    Returns:
        Specifier pattern -> path pattern. A None path marks an exclusion.

    Raises:
        InvalidEntryPointsError: If the field is not a string, list or object
        NoValidEntryPointError: If a subpath has no usable condition

    Examples:
        >>> resolve_entry_points("fellowship", {"default": "./ring.mjs", "node": "./ring.cjs"})
        {'fellowship': './ring.mjs'}

        >>> resolve_entry_points("fellowship", {"ring": "./ring.js"})
        {'fellowship/ring': './ring.js'}
    """
    if isinstance(entry_points, str):
        return {pkg_name: resolve_import(entry_points)}

    if isinstance(entry_points, list):
        if not all(isinstance(entry_point, str) for entry_point in entry_points):
            raise InvalidEntryPointsError(pkg_name, entry_points)
        return {
            join_specifier(pkg_name, entry_point): resolve_import(entry_point)
            for entry_point in entry_points
        }

    if isinstance(entry_points, dict):
        # A single conditional entry point, e.g. {"import": ..., "default": ...}
        try:
            return {pkg_name: resolve_import(entry_points)}
        except NoValidEntryPointError:
            pass
        return {
            join_specifier(pkg_name, subpath): resolve_import(value)
            for subpath, value in entry_points.items()
        }

    raise InvalidEntryPointsError(pkg_name, entry_points)


def expand_entry_points(
    pkg_name: str,
    entry_points: Any,
    cwd: Path,
    project_root: Path,
    exclude_dirs: Iterable[Path] = (),
) -> Dict[str, str]:
    """
    Expand the subpaths for all patterns in the entry points.

    Exclusions (``null`` targets) are applied after every pattern has been
    expanded, so their position among the declarations does not matter.

    Args:
        pkg_name: The package name, or "" for the package's own ``imports``
        entry_points: The raw ``exports``/``imports`` value
        cwd: The package directory
        project_root: Directory the returned file paths are relative to
        exclude_dirs: Directories never searched for files, e.g. the build output

    Returns:
        Specifier -> source file path relative to project_root (POSIX)

    Examples:
        >>> expand_entry_points(
        ...     "fellowship",
        ...     {".": "./src/index.js", "./hobbits/*": "./src/hobbits/*.js"},
        ...     Path("fellowship"),
        ...     Path("fellowship"),
        ... )
        {'fellowship': 'src/index.js', 'fellowship/hobbits/frodo': 'src/hobbits/frodo.js', ...}
    """
    cwd = Path(cwd)
    exclude_dirs = list(exclude_dirs)
    entry_point_map: Dict[str, str] = {}
    excludes: List[str] = []

    for entry_point_pattern, path_pattern in resolve_entry_points(pkg_name, entry_points).items():
        if path_pattern is None:
            excludes.append(entry_point_pattern)
            continue

        subpaths = expand_subpath_pattern(path_pattern, cwd, exclude_dirs)
        if not subpaths:
            logger.debug(
                "Subpath pattern matched no files",
                specifier=entry_point_pattern,
                pattern=path_pattern,
            )
        for subpath in subpaths:
            specifier = path_to_entry_point(subpath, path_pattern, entry_point_pattern)
            source_path = os.path.relpath(cwd / subpath, project_root)
            entry_point_map[specifier] = Path(source_path).as_posix()

    return filter_by_excludes(entry_point_map, excludes)
