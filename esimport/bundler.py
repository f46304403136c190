"""
esbuild Integration

The bundler is an external collaborator: esbuild does the parsing,
tree-shaking, minification, source maps and content hashing. This module
only configures it, runs it and reads back its metafile.

See also: https://esbuild.github.io/api/#metafile
"""

import asyncio
import json
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

from rich.table import Table

from .build import EntryPointResolution
from .common import BuildDefaults, BundlerError, BundlerNotFoundError, EnvVars, ResolutionDefaults
from .common.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BuildResult:
    """Outcome of one bundler run."""

    inputs: List[str] = field(default_factory=list)
    """Source files processed, as reported by the bundler"""

    outputs: Dict[Path, Path] = field(default_factory=dict)
    """Absolute entry output file -> absolute source entry point"""

    output_sizes: Dict[Path, int] = field(default_factory=dict)
    """Bytes per output file, including chunks and source maps"""

    metafile: Dict[str, Any] = field(default_factory=dict)


class Bundler(Protocol):
    """A long-lived bundler context that can be rebuilt and disposed."""

    async def rebuild(self) -> BuildResult: ...

    async def dispose(self) -> None: ...


BundlerFactory = Callable[[Path, Path, EntryPointResolution], Bundler]


def parse_metafile(metafile: Dict[str, Any], cwd: Path) -> BuildResult:
    """
    Read an esbuild metafile.

    Only outputs carrying an ``entryPoint`` are reported in ``outputs``,
    shared chunks and source maps only show up in ``output_sizes``.

    Args:
        metafile: Decoded metafile JSON
        cwd: Directory esbuild ran in, metafile paths are relative to it
    """
    cwd = Path(cwd)
    result = BuildResult(inputs=list(metafile.get("inputs", {})), metafile=metafile)
    for name, output in metafile.get("outputs", {}).items():
        output_path = Path(os.path.normpath(cwd / name))
        result.output_sizes[output_path] = output.get("bytes", 0)
        entry_point = output.get("entryPoint")
        if entry_point is not None:
            result.outputs[output_path] = Path(os.path.normpath(cwd / entry_point))
    return result


def find_esbuild(project_root: Path, executable: Optional[str] = None) -> str:
    """
    Locate the esbuild binary.

    Lookup order: explicit executable, ``ESIMPORT_ESBUILD``, the project's
    ``node_modules/.bin/esbuild``, then ``PATH``.

    Raises:
        BundlerNotFoundError: If no candidate exists
    """
    candidate = executable or os.environ.get(EnvVars.ESBUILD)
    if candidate:
        resolved = shutil.which(candidate)
        if resolved is None:
            raise BundlerNotFoundError(f"esbuild executable not found: {candidate}")
        return resolved

    local = Path(project_root) / ResolutionDefaults.DEPENDENCY_DIR / ".bin" / BuildDefaults.ESBUILD_EXECUTABLE
    if local.is_file():
        return str(local)

    resolved = shutil.which(BuildDefaults.ESBUILD_EXECUTABLE)
    if resolved is None:
        raise BundlerNotFoundError(
            "esbuild not found. Install it with 'npm install esbuild' "
            f"or point {EnvVars.ESBUILD} at the binary."
        )
    return resolved


class EsbuildContext:
    """
    Rebuildable esbuild configuration for one set of entry points.

    Example:
        >>> context = EsbuildContext(project_root, output_dir, resolution)
        >>> result = await context.rebuild()
        >>> await context.dispose()
    """

    def __init__(
        self,
        project_root: Path,
        output_dir: Path,
        resolution: EntryPointResolution,
        executable: Optional[str] = None,
    ):
        self.project_root = Path(project_root)
        self.output_dir = Path(output_dir)
        self.resolution = resolution
        self.executable = find_esbuild(self.project_root, executable)
        self._tmpdir = tempfile.TemporaryDirectory(prefix="esimport-")
        self._process: Optional[asyncio.subprocess.Process] = None
        self._disposed = False

    @property
    def metafile_path(self) -> Path:
        return Path(self._tmpdir.name) / "meta.json"

    def build_args(self) -> List[str]:
        """Command line for one esbuild run."""
        args = [self.executable]
        args.extend(str(self.project_root / source) for source in self.resolution.source_paths())
        args.extend(
            [
                "--bundle",
                f"--format={BuildDefaults.FORMAT}",
                *(f"--external:{name}" for name in self.resolution.externals),
                f"--outbase={self.project_root}",
                f"--outdir={self.output_dir}",
                f"--entry-names={BuildDefaults.ENTRY_NAMES}",
                "--minify",
                "--sourcemap",
                f"--platform={BuildDefaults.PLATFORM}",
                f"--target={BuildDefaults.TARGET}",
                "--allow-overwrite",
                f"--metafile={self.metafile_path}",
                "--log-level=warning",
            ]
        )
        return args

    async def rebuild(self) -> BuildResult:
        """
        Run esbuild and return its metafile.

        Raises:
            BundlerError: If esbuild exits with a non-zero status
        """
        if self._disposed:
            raise BundlerError("Bundler context has been disposed")

        self._process = await asyncio.create_subprocess_exec(
            *self.build_args(),
            cwd=str(self.project_root),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await self._process.communicate()
            returncode = self._process.returncode
        finally:
            self._process = None

        diagnostics = stderr.decode("utf-8", errors="replace").strip()
        if returncode != 0:
            raise BundlerError(f"esbuild failed with exit code {returncode}", stderr=diagnostics)
        if diagnostics:
            logger.warning("esbuild reported warnings", diagnostics=diagnostics)

        metafile = json.loads(self.metafile_path.read_text(encoding="utf-8"))
        return parse_metafile(metafile, self.project_root)

    async def dispose(self) -> None:
        """Stop an in-flight build and release temporary files."""
        if self._disposed:
            return
        self._disposed = True
        if self._process is not None and self._process.returncode is None:
            self._process.terminate()
            await self._process.wait()
        self._tmpdir.cleanup()


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size}b"
    return f"{size / 1024:.1f}kb"


def analyze_metafile(result: BuildResult, output_dir: Path) -> Table:
    """Per-output size table printed with ``--verbose``."""
    table = Table(title="Build analysis", show_lines=False)
    table.add_column("Output", style="cyan")
    table.add_column("Size", justify="right", style="green")
    table.add_column("Entry point", style="dim")

    for output_path, size in sorted(result.output_sizes.items(), key=lambda item: -item[1]):
        source = result.outputs.get(output_path)
        table.add_row(
            os.path.relpath(output_path, output_dir),
            _format_size(size),
            str(source) if source is not None else "",
        )
    return table
