"""Pytest configuration and fixtures for esimport tests."""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from esimport.build import EntryPointResolution
from esimport.bundler import BuildResult

# Enable pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

FIXTURES = Path(__file__).parent / "fixtures"


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that run the real esbuild binary")


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def fellowship_dir() -> Path:
    """The checked-in fellowship package."""
    return FIXTURES / "fellowship"


def write_package(root: Path, manifest: dict, files: Optional[Dict[str, str]] = None) -> Path:
    """Create a package.json plus source files below root."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(json.dumps(manifest))
    for rel_path, content in (files or {}).items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def make_package():
    """Factory fixture writing a package to disk."""
    return write_package


class FakeBundler:
    """
    Stand-in for esbuild.

    Copies every entry point to ``<output_dir>/<dir>/<name>-<HASH>.js`` and
    reports the copies the way esbuild's metafile does.
    """

    instances: List["FakeBundler"] = []

    def __init__(self, project_root: Path, output_dir: Path, resolution: EntryPointResolution):
        self.project_root = Path(project_root)
        self.output_dir = Path(output_dir)
        self.resolution = resolution
        self.rebuilds = 0
        self.disposed = False
        FakeBundler.instances.append(self)

    async def rebuild(self) -> BuildResult:
        self.rebuilds += 1
        result = BuildResult()
        for source in self.resolution.source_paths():
            source_path = self.project_root / source
            content = source_path.read_bytes()
            rel_dir = os.path.dirname(source)
            stem, ext = os.path.splitext(os.path.basename(source))
            output_path = self.output_dir / rel_dir / f"{stem}-{len(content):08d}{ext}"
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(content)
            result.inputs.append(source)
            result.outputs[output_path] = source_path
            result.output_sizes[output_path] = len(content)
        return result

    async def dispose(self) -> None:
        self.disposed = True


@pytest.fixture
def fake_bundler():
    FakeBundler.instances = []
    yield FakeBundler
    FakeBundler.instances = []
