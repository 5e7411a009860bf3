from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from fhirpkg.models import PackageCoordinate


class ResolvedPackage(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def version(self) -> str: ...

    @property
    def path(self) -> Path: ...

    @property
    def fhir_version(self) -> str | None: ...

    def dependencies(self) -> list[PackageCoordinate]: ...

    def folders(self) -> Mapping[str, list[str]]: ...

    def list_resources(self, resource_type: str) -> list[str]: ...

    def load(self, folder: str, file_name: str) -> bytes | None: ...


class PackageSource(Protocol):
    def load(self, name: str, version: str | None = None) -> ResolvedPackage: ...
