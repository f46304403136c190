"""
esimport Exception Classes

This module defines the exception hierarchy for esimport.
All custom exceptions inherit from EsimportError to enable consistent error handling.

Usage:
    from esimport.common.errors import NoValidEntryPointError

    if target is None:
        raise NoValidEntryPointError(node)
"""

from typing import Any, Optional


class EsimportError(Exception):
    """
    Base exception for all esimport errors.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
    """

    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """
        Serialize error to dictionary for log records.

        Returns:
            dict with error details including class name, code, and message
        """
        return {"error": self.__class__.__name__, "code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code='{self.code}', message='{self.message}')"


class ValidationError(EsimportError):
    """
    Raised when input validation fails.

    Use this for:
    - Malformed package.json files
    - Invalid command line values
    """

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)


class ManifestError(ValidationError):
    """Raised when a package.json cannot be parsed or lacks required fields."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_MANIFEST")


class InvalidPortError(ValidationError):
    """Raised when a --serve port is not a number or outside the allowed range."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_PORT")


class ResolutionError(EsimportError):
    """
    Base class for entry point resolution failures.

    Resolution failures are fatal for the build invocation, there is no
    partial import map.
    """


class NoValidEntryPointError(ResolutionError):
    """
    Raised when a condition tree has no resolvable target.

    Example:
        resolve_import({})  # no browser/import/default key
    """

    def __init__(self, node: Any):
        self.node = node
        super().__init__(f"No valid entry point found: {node!r}", code="NO_VALID_ENTRY_POINT")


class InvalidEntryPointsError(ResolutionError):
    """Raised when an exports/imports field is not a string, list or mapping."""

    def __init__(self, package_name: str, entry_points: Any):
        self.package_name = package_name
        self.entry_points = entry_points
        super().__init__(
            f"Invalid entry points for package {package_name}: {entry_points!r}",
            code="INVALID_ENTRY_POINTS",
        )


class InvalidEntryPointPathError(ResolutionError):
    """Raised when a concrete file path does not match its subpath pattern."""

    def __init__(self, file_path: str, pattern: str):
        self.file_path = file_path
        self.pattern = pattern
        super().__init__(
            f"Invalid path {file_path} for entry point {pattern}",
            code="INVALID_ENTRY_POINT_PATH",
        )


class EntryPointConflictError(ResolutionError):
    """
    Raised when two specifiers resolve to the same source file.

    The import map is built by inverting source path -> specifier, which is
    lossy unless every source file backs exactly one specifier.
    """

    def __init__(self, source_path: str, specifiers: list):
        self.source_path = source_path
        self.specifiers = specifiers
        super().__init__(
            f"Source file '{source_path}' is the target of multiple specifiers: "
            f"{', '.join(specifiers)}. Exclude all but one of them.",
            code="ENTRY_POINT_CONFLICT",
        )


class PackageNotFoundError(EsimportError):
    """Raised when a package directory has no package.json."""

    def __init__(self, message: str):
        super().__init__(message, code="PACKAGE_NOT_FOUND")


class UnsupportedDigestError(EsimportError):
    """Raised when an integrity digest algorithm is not available."""

    def __init__(self, algorithm: str):
        self.algorithm = algorithm
        super().__init__(f"Digest method not supported: {algorithm}", code="UNSUPPORTED_DIGEST")


class BundlerError(EsimportError):
    """
    Raised when the bundler fails to build.

    Attributes:
        stderr: Diagnostics printed by the bundler, if any
    """

    def __init__(self, message: str, stderr: Optional[str] = None):
        self.stderr = stderr
        super().__init__(message, code="BUNDLER_ERROR")


class BundlerNotFoundError(BundlerError):
    """Raised when no esbuild executable can be located."""


class ServerError(EsimportError):
    """Raised when the development server cannot bind its port or fails to start."""

    def __init__(self, message: str):
        super().__init__(message, code="SERVER_ERROR")
