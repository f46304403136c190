"""
Import Map Builder

Reconciles the bundler's hashed output files with the specifiers they were
built for and writes ``importmap.json``:

    {
      "imports": {"fellowship": "./src/index-MTLAIIAI.js"},
      "integrity": {"./src/index-MTLAIIAI.js": "sha512-..."}
    }

See also: https://github.com/WICG/import-maps
"""

import asyncio
import base64
import hashlib
import os
import posixpath
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from .common import BuildDefaults, EntryPointConflictError, ServerDefaults, UnsupportedDigestError
from .common.logger import get_logger
from .schema import ImportMap

logger = get_logger(__name__)

BuildOutputMap = Mapping[Path, Path]
"""Absolute output file -> absolute source entry point it was built from."""


def _digest_name(algorithm: str) -> str:
    return algorithm.lower().replace("-", "")


def integrity_hash(data: Union[bytes, str], algorithm: str = BuildDefaults.DIGEST_ALGORITHM) -> str:
    """
    Compute a subresource integrity digest.

    Args:
        data: File contents, str is encoded as UTF-8
        algorithm: "SHA-512", "sha384", ... (case and dashes are ignored)

    Returns:
        "<algorithm>-<base64 digest>"

    Raises:
        UnsupportedDigestError: If the algorithm is not a SRI digest

    Examples:
        >>> integrity_hash("foo", "sha256")
        'sha256-LCa0a2j/xo/5m0U8HTBBNBNCLXBkg7+g+YpeiGJm564='
    """
    name = _digest_name(algorithm)
    if name not in BuildDefaults.SUPPORTED_DIGESTS:
        raise UnsupportedDigestError(algorithm)
    if isinstance(data, str):
        data = data.encode("utf-8")
    digest = hashlib.new(name, data).digest()
    return f"{name}-{base64.b64encode(digest).decode('ascii')}"


def invert_entry_points(entry_points: Mapping[str, str]) -> Dict[str, str]:
    """
    Invert specifier -> source path into source path -> specifier.

    Raises:
        EntryPointConflictError: If two specifiers share a source file
    """
    inverted: Dict[str, str] = {}
    for specifier, source_path in entry_points.items():
        key = posixpath.normpath(source_path)
        if key in inverted:
            raise EntryPointConflictError(key, [inverted[key], specifier])
        inverted[key] = specifier
    return inverted


class ImportMapBuilder:
    """
    Builds the import map for one build cycle.

    Example:
        >>> builder = ImportMapBuilder(project_root, output_dir, resolution.entry_points)
        >>> import_map = await builder.build(result.outputs)
        >>> import_map.imports
        {'fellowship': './src/index-MTLAIIAI.js'}
    """

    def __init__(
        self,
        project_root: Path,
        output_dir: Path,
        entry_points: Mapping[str, str],
        serve_port: Optional[int] = None,
        algorithm: str = BuildDefaults.DIGEST_ALGORITHM,
    ):
        """
        Args:
            project_root: Directory the entry point source paths are relative to
            output_dir: Directory holding the bundler output and importmap.json
            entry_points: Specifier -> source path used to configure the bundler
            serve_port: Rewrite paths to http://localhost:<port>/ URLs when set
            algorithm: Integrity digest algorithm
        """
        self.project_root = Path(project_root)
        self.output_dir = Path(output_dir)
        self.serve_port = serve_port
        self.algorithm = algorithm
        self._specifiers = invert_entry_points(entry_points)

    @property
    def importmap_path(self) -> Path:
        return self.output_dir / BuildDefaults.IMPORTMAP_FILENAME

    def output_url(self, output_file: Path) -> str:
        """Address of an output file as written into the import map."""
        rel_path = Path(os.path.relpath(output_file, self.output_dir)).as_posix()
        if self.serve_port is not None:
            return f"http://{ServerDefaults.HOST}:{self.serve_port}/{rel_path}"
        return f"./{rel_path}"

    def specifier_for(self, source_file: Path) -> Optional[str]:
        rel_source = Path(os.path.relpath(source_file, self.project_root)).as_posix()
        return self._specifiers.get(posixpath.normpath(rel_source))

    async def build(self, outputs: BuildOutputMap) -> ImportMap:
        """
        Build and persist the import map.

        Args:
            outputs: Entry outputs of the latest bundler run

        Returns:
            The written ImportMap
        """
        imports: Dict[str, str] = {}
        files: Dict[str, Path] = {}

        for output_file, source_file in outputs.items():
            specifier = self.specifier_for(source_file)
            if specifier is None:
                logger.warning(
                    "Output has no matching entry point",
                    output=str(output_file),
                    source=str(source_file),
                )
                continue
            url = self.output_url(output_file)
            imports[specifier] = url
            files[url] = Path(output_file)

        integrity: Dict[str, str] = {}
        for url, output_file in files.items():
            content = await asyncio.to_thread(output_file.read_bytes)
            integrity[url] = integrity_hash(content, self.algorithm)

        import_map = ImportMap(imports=imports, integrity=integrity)
        await asyncio.to_thread(self._write, import_map)

        logger.info(
            "Import map written",
            path=str(self.importmap_path),
            imports=len(imports),
        )
        return import_map

    def _write(self, import_map: ImportMap) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.importmap_path.write_text(import_map.to_json(), encoding="utf-8")
