"""
Package Resolver
================

Main resolution system that combines:
- The root package's own ``imports`` (``#`` specifiers)
- The root package's ``exports``
- The ``exports`` of every declared dependency and peer dependency

Produces the entry points the bundler must compile and the specifiers it must
leave external.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from ..common import ManifestError, PackageNotFoundError, ResolutionDefaults
from ..common.logger import get_logger
from ..schema import PackageManifest
from .entry_points import expand_entry_points

logger = get_logger(__name__)


@dataclass
class EntryPointResolution:
    """Result of entry point resolution for a project."""

    entry_points: Dict[str, str] = field(default_factory=dict)
    """Specifier -> source path relative to the project root"""

    externals: List[str] = field(default_factory=list)
    """Specifiers the bundler must not inline"""

    def source_paths(self) -> List[str]:
        """Source files to hand to the bundler, in specifier order."""
        return list(self.entry_points.values())


def load_package_manifest(package_dir: Path) -> PackageManifest:
    """
    Load and validate a package's ``package.json``.

    Raises:
        PackageNotFoundError: If the directory has no package.json
        ManifestError: If the file is unreadable, not valid JSON or lacks a name
    """
    manifest_path = Path(package_dir) / ResolutionDefaults.MANIFEST_FILENAME
    if not manifest_path.is_file():
        raise PackageNotFoundError(f"No {ResolutionDefaults.MANIFEST_FILENAME} found in {package_dir}")

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {manifest_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ManifestError(f"{manifest_path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise ManifestError(f"Cannot read {manifest_path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"{manifest_path} must contain a JSON object")

    try:
        return PackageManifest.model_validate(data)
    except PydanticValidationError as e:
        raise ManifestError(f"Invalid {manifest_path}: {e}") from e


def bundle_exports(
    package_dir: Path,
    project_root: Path,
    exclude_dirs: Sequence[Path] = (),
) -> Dict[str, str]:
    """
    Expand a package's exports relative to the project root.

    Falls back to a single ``.`` entry point taken from ``browser``, ``module``
    or ``main`` when the package declares no ``exports``. Files inside
    exclude_dirs never become entry points.

    Examples:
        >>> bundle_exports(Path("fixtures/fellowship"), Path("fixtures"))
        {'fellowship': 'fellowship/src/index.js', ...}
    """
    manifest = load_package_manifest(package_dir)
    exports = manifest.exports
    if exports is None:
        legacy = manifest.legacy_entry_point
        if legacy is None:
            logger.warning("Package declares no entry points", package=manifest.name)
            return {}
        exports = {".": legacy}
    return expand_entry_points(
        manifest.name, exports, Path(package_dir), Path(project_root), exclude_dirs
    )


class PackageResolver:
    """
    Resolves the entry points of a project and its direct dependencies.

    Merge order is root ``imports``, root ``exports``, then each dependency in
    declaration order (``dependencies`` before ``peerDependencies``). A later
    merge overwrites an earlier one on specifier collision.

    Example:
        >>> resolution = PackageResolver(Path("fellowship")).resolve()
        >>> resolution.entry_points
        {'fellowship': 'src/index.js', 'fellowship/hobbits/frodo.js': ...}
        >>> resolution.externals
        ['fellowship', 'fellowship/hobbits/frodo.js', ...]
    """

    def __init__(self, project_root: Path, output_dir: Optional[Path] = None):
        """
        Initialize the resolver.

        Args:
            project_root: Directory containing the root package.json
            output_dir: Build output directory, its files are never entry points
        """
        self.project_root = Path(project_root)
        self.output_dir = Path(output_dir) if output_dir is not None else None

    @property
    def exclude_dirs(self) -> List[Path]:
        return [self.output_dir] if self.output_dir is not None else []

    def resolve(self) -> EntryPointResolution:
        """
        Resolve all entry points and externals.

        Raises:
            PackageNotFoundError: If the root package.json is missing
            ResolutionError: If any declared entry point cannot be resolved
        """
        manifest = load_package_manifest(self.project_root)
        entry_points: Dict[str, str] = {}

        # 1. Root imports, "#"-prefixed and private to the root package
        if manifest.imports is not None:
            entry_points.update(
                expand_entry_points(
                    "", manifest.imports, self.project_root, self.project_root, self.exclude_dirs
                )
            )

        # 2. Root exports
        entry_points.update(bundle_exports(self.project_root, self.project_root, self.exclude_dirs))

        # 3. Dependencies
        dependency_names = manifest.dependency_names
        for name in dependency_names:
            entry_points.update(self._dependency_exports(name))

        externals = list(dict.fromkeys([*entry_points, *dependency_names]))

        logger.info(
            "Resolved entry points",
            package=manifest.name,
            entry_points=len(entry_points),
            dependencies=len(dependency_names),
        )
        return EntryPointResolution(entry_points=entry_points, externals=externals)

    def _dependency_exports(self, name: str) -> Dict[str, str]:
        """Expand a dependency's exports, an uninstalled dependency contributes none."""
        package_dir = self.project_root / ResolutionDefaults.DEPENDENCY_DIR / name
        if not (package_dir / ResolutionDefaults.MANIFEST_FILENAME).is_file():
            logger.warning("Dependency is not installed, marking it external only", dependency=name)
            return {}
        return bundle_exports(package_dir, self.project_root, self.exclude_dirs)


def compile_entry_points(project_root: Path, output_dir: Optional[Path] = None) -> EntryPointResolution:
    """Resolve the entry points and externals of the package at project_root."""
    return PackageResolver(project_root, output_dir).resolve()
