"""
Build Configuration

Contains BuildConfig, collecting the options of one esimport invocation from
the command line and the environment.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .common import BuildDefaults, EnvVars, InvalidPortError, ServerDefaults


def parse_port(value: str) -> int:
    """
    Parse and validate a ``--serve`` port.

    Raises:
        InvalidPortError: If value is not an integer in (1024, 49151]

    Examples:
        >>> parse_port("3000")
        3000
    """
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise InvalidPortError("Not a number.")
    if not ServerDefaults.MIN_PORT < port <= ServerDefaults.MAX_PORT:
        raise InvalidPortError(
            f"Port must be between {ServerDefaults.MIN_PORT} and {ServerDefaults.MAX_PORT}."
        )
    return port


@dataclass
class BuildConfig:
    """
    Configuration for one esimport invocation.

    All defaults come from esimport.common.constants, the environment can
    override the esbuild executable, the digest and the log level.
    """

    package_dir: Path
    output_dir: Path

    watch: bool = False
    verbose: bool = False
    serve_port: Optional[int] = None

    digest_algorithm: str = BuildDefaults.DIGEST_ALGORITHM
    esbuild: Optional[str] = None
    log_level: Optional[str] = None

    @property
    def serving(self) -> bool:
        return self.serve_port is not None

    @classmethod
    def from_options(
        cls,
        package_dir: Path,
        output_dir: Path,
        watch: bool = False,
        verbose: bool = False,
        serve_port: Optional[int] = None,
    ) -> "BuildConfig":
        """
        Create a BuildConfig from CLI options.

        Relative paths are resolved against the current working directory.
        """
        return cls(
            package_dir=Path(package_dir).resolve(),
            output_dir=Path(output_dir).resolve(),
            watch=watch,
            verbose=verbose,
            serve_port=serve_port,
            digest_algorithm=os.environ.get(EnvVars.DIGEST, BuildDefaults.DIGEST_ALGORITHM),
            esbuild=os.environ.get(EnvVars.ESBUILD) or None,
            log_level=os.environ.get(EnvVars.LOG_LEVEL) or None,
        )
