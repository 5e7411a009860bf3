"""Definition lookup used while generating snapshots.

Each source answers ``fetch(url)`` with a resource dict or ``None``; a chain asks its
members in order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from fhirpkg.core.ports.generator import DefinitionSource
from fhirpkg.core.ports.registry import ResolvedPackage
from fhirpkg.core.resources import STRUCTURE_DEFINITION, parse_resource

logger = logging.getLogger(__name__)


def _unversioned(url: str) -> str:
    return url.partition("|")[0]


class PrePopulatedDefinitions:
    """In-memory index of resources of any kind, keyed by canonical url."""

    def __init__(self) -> None:
        self._by_url: dict[str, dict[str, Any]] = {}

    def add(self, resource: dict[str, Any]) -> bool:
        url = resource.get("url")
        if not isinstance(url, str) or not url:
            return False
        self._by_url.setdefault(url, resource)
        version = resource.get("version")
        if isinstance(version, str) and version:
            self._by_url.setdefault(f"{url}|{version}", resource)
        return True

    def fetch(self, url: str) -> dict[str, Any] | None:
        return self._by_url.get(url) or self._by_url.get(_unversioned(url))

    def __len__(self) -> int:
        return len({id(r) for r in self._by_url.values()})


class PackageDefinitions(PrePopulatedDefinitions):
    """StructureDefinitions of resolved packages, first package wins on duplicate urls."""

    @classmethod
    def from_packages(cls, packages: Iterable[ResolvedPackage]) -> PackageDefinitions:
        index = cls()
        for package in packages:
            for file_name in package.list_resources(STRUCTURE_DEFINITION):
                content = package.load("package", file_name)
                if content is None:
                    continue
                try:
                    resource = parse_resource(content)
                except ValueError as exc:
                    logger.warning(
                        "Skipping unparseable %s in %s#%s: %s", file_name, package.name, package.version, exc
                    )
                    continue
                index.add(resource)
        logger.info("Indexed %d StructureDefinitions", len(index))
        return index


class DefinitionChain:
    def __init__(self, *sources: DefinitionSource) -> None:
        self.sources = list(sources)

    def fetch(self, url: str) -> dict[str, Any] | None:
        for source in self.sources:
            resource = source.fetch(url)
            if resource is not None:
                return resource
        return None
