from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class PackageCoordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None

    @classmethod
    def parse(cls, token: str) -> "PackageCoordinate":
        """Parse a ``name@version`` token; a missing or blank version means latest."""
        name, _, version = token.strip().partition("@")
        return cls(name=name.strip(), version=version.strip() or None)

    @classmethod
    def parse_edge(cls, entry: str) -> "PackageCoordinate":
        """Parse a ``name#version`` dependency edge as listed in package manifests."""
        name, _, version = entry.strip().partition("#")
        return cls(name=name.strip(), version=version.strip() or None)

    def __str__(self) -> str:
        return f"{self.name}@{self.version}" if self.version else self.name


class PackageManifest(BaseModel):
    name: str
    version: str
    fhir_versions: list[str] = Field(default_factory=list)
    dependencies: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_package_json(cls, data: dict) -> "PackageManifest":
        fhir_versions = data.get("fhirVersions") or data.get("fhir-version-list") or []
        if isinstance(fhir_versions, str):
            fhir_versions = [fhir_versions]
        dependencies = data.get("dependencies") or {}
        return cls(
            name=str(data["name"]),
            version=str(data["version"]),
            fhir_versions=[str(v) for v in fhir_versions],
            dependencies={str(k): str(v) for k, v in dependencies.items()},
        )


class FhirRelease(str, Enum):
    R5 = "R5"
    R4B = "R4B"
    R4 = "R4"
    DSTU3 = "DSTU3"

    @property
    def core_package(self) -> PackageCoordinate:
        return _CORE_PACKAGES[self]


_CORE_PACKAGES = {
    FhirRelease.R5: PackageCoordinate(name="hl7.fhir.r5.core", version="5.0.0"),
    FhirRelease.R4B: PackageCoordinate(name="hl7.fhir.r4b.core", version="4.3.0"),
    FhirRelease.R4: PackageCoordinate(name="hl7.fhir.r4.core", version="4.0.1"),
    FhirRelease.DSTU3: PackageCoordinate(name="hl7.fhir.r3.core", version="3.0.2"),
}


class FhirContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    release: FhirRelease
    version: str | None = None
    source: str = "fallback"


class OutputArtifact(BaseModel):
    relative_path: Path
    content: bytes
    regenerated: bool = False


class ReconcileStats(BaseModel):
    definitions: int = 0
    generated: int = 0
    written: int = 0
    skipped: int = 0
    copied: int = 0
    failed: int = 0


class SnapshotConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    out_dir: Path
    cache_dir: Path
    registry_url: str = "https://packages.fhir.org"
    skip_dependencies: bool = False
    overwrite: bool = False
    pretty: bool = True
    force_snapshot: bool = False
    profiles_dir: Path | None = None


class RunSummary(BaseModel):
    context: FhirContext
    packages: list[str] = Field(default_factory=list)
    registry: ReconcileStats = Field(default_factory=ReconcileStats)
    local: ReconcileStats = Field(default_factory=ReconcileStats)
    out_dir: Path
    cache_dir: Path
