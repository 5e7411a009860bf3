import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from fhirpkg.core.errors import PackageNotFoundError
from fhirpkg.models import PackageCoordinate


@dataclass(frozen=True)
class InMemoryPackage:
    name: str
    version: str
    fhir_version: str | None = None
    edges: tuple[PackageCoordinate, ...] = ()
    files: Mapping[str, bytes] = field(default_factory=dict)

    @property
    def path(self) -> Path:
        return Path("/memory") / f"{self.name}#{self.version}"

    def dependencies(self) -> list[PackageCoordinate]:
        return list(self.edges)

    def folders(self) -> Mapping[str, list[str]]:
        folders: dict[str, list[str]] = {}
        for relative in sorted(self.files):
            folder, _, file_name = relative.partition("/")
            folders.setdefault(folder, []).append(file_name)
        return folders

    def list_resources(self, resource_type: str) -> list[str]:
        names: list[str] = []
        for file_name in self.folders().get("package", []):
            try:
                resource = json.loads(self.files[f"package/{file_name}"])
            except ValueError:
                continue
            if isinstance(resource, dict) and resource.get("resourceType") == resource_type:
                names.append(file_name)
        return names

    def load(self, folder: str, file_name: str) -> bytes | None:
        return self.files.get(str(PurePosixPath(folder) / file_name))


class InMemoryPackageSource:
    """Package source holding packages in memory; records every load request."""

    def __init__(self) -> None:
        self.packages: dict[tuple[str, str], InMemoryPackage] = {}
        self.latest: dict[str, str] = {}
        self.requests: list[tuple[str, str | None]] = []

    def add(
        self,
        name: str,
        version: str,
        fhir_version: str | None = None,
        dependencies: Mapping[str, str | None] | None = None,
        resources: Mapping[str, dict[str, Any]] | None = None,
        files: Mapping[str, bytes] | None = None,
    ) -> InMemoryPackage:
        contents: dict[str, bytes] = dict(files or {})
        for file_name, resource in (resources or {}).items():
            contents[f"package/{file_name}"] = json.dumps(resource).encode("utf-8")
        package = InMemoryPackage(
            name=name,
            version=version,
            fhir_version=fhir_version,
            edges=tuple(PackageCoordinate(name=n, version=v) for n, v in (dependencies or {}).items()),
            files=contents,
        )
        self.packages[(name, version)] = package
        self.latest[name] = version
        return package

    def load(self, name: str, version: str | None = None) -> InMemoryPackage:
        self.requests.append((name, version))
        resolved = version or self.latest.get(name)
        if resolved is None or (name, resolved) not in self.packages:
            raise PackageNotFoundError(name, version)
        return self.packages[(name, resolved)]
