"""
esimport data models

Pydantic models for the two JSON documents esimport deals with:

- ``package.json`` as read from the project and its dependencies
- ``importmap.json`` as written to the output directory

Design Principles:
- Pure validation: receives dicts, validates structure, returns typed objects
- No file I/O: reading and writing happens in the resolver and builder
- Extensible: unknown package.json fields are kept
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import ResolutionDefaults, ValidationError


class PackageManifest(BaseModel):
    """
    The subset of ``package.json`` that drives entry point resolution.

    ``exports`` and ``imports`` are kept as raw decoded JSON, they are
    interpreted by :mod:`esimport.build.entry_points`.
    """

    name: str
    version: Optional[str] = None
    exports: Any = None
    imports: Any = None
    browser: Any = None
    module: Any = None
    main: Any = None
    dependencies: Dict[str, Any] = {}
    peer_dependencies: Dict[str, Any] = Field(default_factory=dict, alias="peerDependencies")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Package names are used as specifier prefixes and cannot be blank"""
        if not v or not v.strip():
            raise ValidationError("package.json 'name' cannot be empty")
        return v

    @field_validator("dependencies", "peer_dependencies", mode="before")
    @classmethod
    def validate_dependency_map(cls, v: Any) -> Dict[str, Any]:
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValidationError(f"Dependency fields must be objects, got {type(v).__name__}")
        return v

    @property
    def legacy_entry_point(self) -> Optional[str]:
        """The first string among ``browser``, ``module`` and ``main``."""
        for field_name in ResolutionDefaults.LEGACY_ENTRY_FIELDS:
            value = getattr(self, field_name)
            if isinstance(value, str) and value:
                return value
        return None

    @property
    def dependency_names(self) -> List[str]:
        """Dependency then peer dependency names, de-duplicated in declaration order."""
        return list(dict.fromkeys([*self.dependencies, *self.peer_dependencies]))


class ImportMap(BaseModel):
    """
    A browser import map with subresource integrity metadata.

    ``imports`` maps specifiers to relative paths or URLs, ``integrity`` maps
    those same paths or URLs to ``<algorithm>-<base64>`` digests.
    """

    imports: Dict[str, str] = {}
    integrity: Dict[str, str] = {}

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(indent=indent)
