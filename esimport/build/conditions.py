"""
Conditional Export Resolution
=============================

Collapses a (possibly nested) conditional export/import node of a
``package.json`` to a single file path.

See also: https://nodejs.org/api/packages.html#conditional-exports

A node is one of:

- a string path                     -> ``PathTarget``
- ``null``                          -> ``Excluded``
- an array of nodes                 -> ``Alternatives``
- an object of condition -> node    -> ``Conditions``

Anything else is ``Unresolvable``. Each variant resolves itself, so the raw
JSON is only inspected once in :func:`parse_condition_tree`.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from ..common import NoValidEntryPointError, ResolutionDefaults


@dataclass(frozen=True)
class PathTarget:
    """A concrete path pattern, relative to the package root."""

    path: str

    def resolve(self) -> Optional[str]:
        return self.path


@dataclass(frozen=True)
class Excluded:
    """``null`` target, excludes the specifiers it is declared for."""

    def resolve(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class Alternatives:
    """
    Array of fallbacks.

    Only object-shaped items (conditions or nested arrays) are candidates, so
    a conditional entry wins over a flat string fallback listed next to it.
    """

    items: Tuple["ConditionTree", ...]
    raw: Any = field(default=None, compare=False)

    def resolve(self) -> Optional[str]:
        for item in self.items:
            if isinstance(item, (Conditions, Alternatives)):
                return item.resolve()
        raise NoValidEntryPointError(self.raw)


@dataclass(frozen=True)
class Conditions:
    """Mapping of condition name to node, e.g. ``{"import": ..., "default": ...}``."""

    branches: Dict[str, "ConditionTree"]
    raw: Any = field(default=None, compare=False)

    def resolve(self) -> Optional[str]:
        for key in ResolutionDefaults.CONDITION_KEYS:
            if key in self.branches:
                return self.branches[key].resolve()
        raise NoValidEntryPointError(self.raw)


@dataclass(frozen=True)
class Unresolvable:
    """Any JSON value that is not a valid node (numbers, booleans)."""

    raw: Any

    def resolve(self) -> Optional[str]:
        raise NoValidEntryPointError(self.raw)


ConditionTree = Union[PathTarget, Excluded, Alternatives, Conditions, Unresolvable]


def parse_condition_tree(raw: Any) -> ConditionTree:
    """
    Convert decoded JSON into a condition tree.

    Examples:
        >>> parse_condition_tree("./index.js")
        PathTarget(path='./index.js')

        >>> parse_condition_tree({"import": "./index.mjs"}).resolve()
        './index.mjs'
    """
    if isinstance(raw, str):
        return PathTarget(raw)
    if raw is None:
        return Excluded()
    if isinstance(raw, list):
        return Alternatives(tuple(parse_condition_tree(item) for item in raw), raw=raw)
    if isinstance(raw, dict):
        return Conditions({key: parse_condition_tree(value) for key, value in raw.items()}, raw=raw)
    return Unresolvable(raw)


def resolve_import(entry_point: Any) -> Optional[str]:
    """
    Resolve a raw export/import node to a path pattern.

    Conditions are tried in the order ``browser``, ``import``, ``default``.

    Args:
        entry_point: Decoded JSON node

    Returns:
        The path pattern, or None if the node excludes its specifier

    Raises:
        NoValidEntryPointError: If no recognised condition leads to a target

    Examples:
        >>> resolve_import({"import": "foo", "default": "bar"})
        'foo'

        >>> resolve_import([{"import": {"types": "foo.d", "default": "foo.mjs"}}, "foo.cjs"])
        'foo.mjs'
    """
    return parse_condition_tree(entry_point).resolve()
