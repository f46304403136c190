"""
esimport Constants

Single source of truth for default values shared by the resolver, the
import map builder, the dev server and the CLI.
"""

from typing import Tuple


class ResolutionDefaults:
    """Package entry point resolution."""

    # Tried in this order, the first present key wins
    CONDITION_KEYS: Tuple[str, ...] = ("browser", "import", "default")

    # Fallback fields when a package declares no "exports"
    LEGACY_ENTRY_FIELDS: Tuple[str, ...] = ("browser", "module", "main")

    WILDCARD = "*"

    # Matched against the full relative path of a candidate file
    SOURCE_EXTENSIONS_PATTERN = r"\.([mc]?jsx?|tsx?|css|txt|json)$"

    DEPENDENCY_DIR = "node_modules"

    MANIFEST_FILENAME = "package.json"


class BuildDefaults:
    """Bundler and import map output."""

    IMPORTMAP_FILENAME = "importmap.json"
    DIGEST_ALGORITHM = "SHA-512"
    SUPPORTED_DIGESTS: Tuple[str, ...] = ("sha256", "sha384", "sha512")

    ESBUILD_EXECUTABLE = "esbuild"
    ENTRY_NAMES = "[dir]/[name]-[hash]"
    FORMAT = "esm"
    PLATFORM = "browser"
    TARGET = "es2020"


class ServerDefaults:
    """Local development server."""

    HOST = "localhost"
    PORT = 3000
    # Exclusive lower bound, inclusive upper bound
    MIN_PORT = 1024
    MAX_PORT = 49151
    CORS_ORIGINS: Tuple[str, ...] = ("*",)
    CORS_METHODS: Tuple[str, ...] = ("GET", "HEAD", "OPTIONS")


class EnvVars:
    """Environment variables read by esimport."""

    ESBUILD = "ESIMPORT_ESBUILD"
    LOG_LEVEL = "ESIMPORT_LOG_LEVEL"
    DIGEST = "ESIMPORT_DIGEST"


LOG_LEVELS = ["debug", "info", "warning", "error", "critical"]
