"""Shared errors, constants and logging for esimport."""

from .constants import LOG_LEVELS, BuildDefaults, EnvVars, ResolutionDefaults, ServerDefaults
from .errors import (
    BundlerError,
    BundlerNotFoundError,
    EntryPointConflictError,
    EsimportError,
    InvalidEntryPointPathError,
    InvalidEntryPointsError,
    InvalidPortError,
    ManifestError,
    NoValidEntryPointError,
    PackageNotFoundError,
    ResolutionError,
    ServerError,
    UnsupportedDigestError,
    ValidationError,
)
from .logger import (
    EsimportLogger,
    clear_build_id,
    configure_logging,
    get_build_id,
    get_logger,
    set_build_id,
)

__all__ = [
    # Constants
    "LOG_LEVELS",
    "BuildDefaults",
    "EnvVars",
    "ResolutionDefaults",
    "ServerDefaults",
    # Errors
    "EsimportError",
    "ValidationError",
    "ManifestError",
    "InvalidPortError",
    "ResolutionError",
    "NoValidEntryPointError",
    "InvalidEntryPointsError",
    "InvalidEntryPointPathError",
    "EntryPointConflictError",
    "PackageNotFoundError",
    "UnsupportedDigestError",
    "BundlerError",
    "BundlerNotFoundError",
    "ServerError",
    # Logging
    "EsimportLogger",
    "get_logger",
    "configure_logging",
    "set_build_id",
    "get_build_id",
    "clear_build_id",
]
