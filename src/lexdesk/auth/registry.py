"""
lexdesk.auth.registry

Closed registry of owned resource classes.

Responsibilities:
- Map a resource-class tag to the lookup capability the ownership and quota gates use.
- Turn an unregistered tag into `UnknownResourceClass` in exactly one place.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from typing import Protocol

from lexdesk.auth.errors import UnknownResourceClass


class ResourceClass(enum.StrEnum):
    client = "client"
    process = "process"
    document = "document"
    appointment = "appointment"


class ResourceLookup(Protocol):
    async def owner_of(self, resource_id: str) -> str | None:
        """Owning principal id, or None if the resource does not exist."""
        ...

    async def count_owned_by(self, principal_id: str) -> int: ...


class ResourceRegistry:
    def __init__(self, lookups: Mapping[str, ResourceLookup] | None = None) -> None:
        self._lookups: dict[str, ResourceLookup] = dict(lookups or {})

    def register(self, resource_class: str, lookup: ResourceLookup) -> None:
        if resource_class in self._lookups:
            raise ValueError(f"resource class already registered: {resource_class}")
        self._lookups[str(resource_class)] = lookup

    def lookup(self, resource_class: str) -> ResourceLookup:
        try:
            return self._lookups[str(resource_class)]
        except KeyError:
            raise UnknownResourceClass(str(resource_class)) from None

    def __contains__(self, resource_class: object) -> bool:
        return str(resource_class) in self._lookups

    def __iter__(self) -> Iterator[str]:
        return iter(self._lookups)
