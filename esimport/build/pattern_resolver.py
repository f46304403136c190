"""
Subpath Pattern Resolution
==========================

Provides utilities for expanding package subpath patterns to actual files,
mapping matched files back to specifiers and checking specifiers against
exclusion patterns.

See also: https://nodejs.org/api/packages.html#subpath-patterns

The ``*`` of a subpath pattern matches any string, including ``/``, so
``./src/*.js`` matches both ``./src/index.js`` and ``./src/hobbits/sam.js``.
"""

import fnmatch
import os
import posixpath
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from ..common import InvalidEntryPointPathError, ResolutionDefaults
from ..common.logger import get_logger

logger = get_logger(__name__)

_SOURCE_EXTENSIONS = re.compile(ResolutionDefaults.SOURCE_EXTENSIONS_PATTERN)

V = TypeVar("V")


def _pattern_to_regex(pattern: str) -> "re.Pattern[str]":
    """Compile a one-wildcard pattern, the wildcard becomes a capture group."""
    head, sep, tail = pattern.partition(ResolutionDefaults.WILDCARD)
    if not sep:
        return re.compile(re.escape(pattern))
    return re.compile(f"{re.escape(head)}(.*){re.escape(tail)}")


def _is_candidate(rel_path: str) -> bool:
    if any(part.startswith(".") for part in rel_path.split("/")):
        return False
    return _SOURCE_EXTENSIONS.search(rel_path) is not None


def _is_excluded(path: Path, exclude_dirs: Sequence[Path]) -> bool:
    return any(path == excluded or excluded in path.parents for excluded in exclude_dirs)


def _iter_files(cwd: Path, exclude_dirs: Sequence[Path] = ()) -> Iterable[str]:
    """
    Yield POSIX paths of all files below cwd.

    Dependencies, hidden dirs and anything inside exclude_dirs (absolute,
    resolved paths) are skipped.
    """
    for dirpath, dirnames, filenames in os.walk(cwd):
        dirnames[:] = [
            d
            for d in dirnames
            if d != ResolutionDefaults.DEPENDENCY_DIR
            and not d.startswith(".")
            and not _is_excluded(Path(dirpath, d).resolve(), exclude_dirs)
        ]
        rel_dir = Path(dirpath).relative_to(cwd).as_posix()
        for filename in filenames:
            yield filename if rel_dir == "." else f"{rel_dir}/{filename}"


def expand_subpath_pattern(
    pattern: str,
    cwd: Path,
    exclude_dirs: Iterable[Path] = (),
) -> List[str]:
    """
    Expand a subpath pattern to the list of matching files.

    Only importable source files are returned (see
    ``ResolutionDefaults.SOURCE_EXTENSIONS_PATTERN``), the package's own
    ``node_modules``, hidden files and the exclude_dirs are never matched.

    Args:
        pattern: Subpath pattern with at most one ``*`` (e.g. "./src/*.js")
        cwd: Package directory the pattern is relative to
        exclude_dirs: Directories to skip, usually the build output directory

    Returns:
        Sorted ``./``-prefixed paths relative to cwd

    Examples:
        >>> expand_subpath_pattern("./src/hobbits/*.js", Path("fellowship"))
        ['./src/hobbits/frodo.js', './src/hobbits/sam.js']
    """
    cwd = Path(cwd)
    if not cwd.is_dir():
        return []

    normalized = posixpath.normpath(pattern)
    if normalized.startswith("../") or posixpath.isabs(normalized):
        logger.warning("Subpath pattern points outside the package", pattern=pattern, cwd=str(cwd))
        return []

    excluded = [Path(d).resolve() for d in exclude_dirs]
    if ResolutionDefaults.WILDCARD not in normalized:
        target = cwd / normalized
        if target.is_file() and _is_candidate(normalized) and not _is_excluded(target.resolve(), excluded):
            return [f"./{normalized}"]
        return []

    regex = _pattern_to_regex(normalized)
    return sorted(
        f"./{rel_path}"
        for rel_path in _iter_files(cwd, excluded)
        if regex.fullmatch(rel_path) and _is_candidate(rel_path)
    )


def path_to_entry_point(file_path: str, path_pattern: str, entry_point_pattern: str) -> str:
    """
    Resolve a specifier from a file path and a pair of subpath patterns.

    The part of ``file_path`` matched by the ``*`` of ``path_pattern`` is
    substituted for the ``*`` of ``entry_point_pattern``.

    Raises:
        InvalidEntryPointPathError: If file_path does not match path_pattern

    Examples:
        >>> path_to_entry_point("bar/baz/foo.js", "./bar/*.js", "./util/*")
        'util/baz/foo'
    """
    regex = _pattern_to_regex(posixpath.normpath(path_pattern))
    match = regex.fullmatch(posixpath.normpath(file_path))
    if match is None:
        raise InvalidEntryPointPathError(file_path, regex.pattern)

    entry_point = posixpath.normpath(entry_point_pattern)
    if match.groups():
        entry_point = entry_point.replace(ResolutionDefaults.WILDCARD, match.group(1), 1)
    return posixpath.normpath(entry_point)


def matches_pattern(specifier: str, patterns: Iterable[str]) -> bool:
    """
    Check if a specifier matches any of the given exclusion patterns.

    Glob semantics, ``*`` also matches ``/``.

    Examples:
        >>> matches_pattern("fellowship/dwarfs/gimli", ["fellowship/dwarfs/*"])
        True

        >>> matches_pattern("fellowship/hobbits/sam", ["fellowship/index"])
        False
    """
    return any(
        specifier == pattern or fnmatch.fnmatchcase(specifier, pattern) for pattern in patterns
    )


def filter_by_excludes(
    entry_points: Dict[str, V],
    exclude_patterns: Optional[List[str]],
) -> Dict[str, V]:
    """
    Drop every specifier matched by an exclusion pattern.

    Insertion order of the remaining entries is preserved.
    """
    if not exclude_patterns:
        return dict(entry_points)
    return {
        specifier: value
        for specifier, value in entry_points.items()
        if not matches_pattern(specifier, exclude_patterns)
    }
