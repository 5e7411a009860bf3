"""Unit tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from fhirpkg.models import FhirRelease, PackageCoordinate, PackageManifest, SnapshotConfig


class TestPackageCoordinate:
    def test_parses_name_and_version(self) -> None:
        coord = PackageCoordinate.parse("hl7.fhir.r4.core@4.0.1")
        assert coord.name == "hl7.fhir.r4.core"
        assert coord.version == "4.0.1"

    def test_missing_version_means_latest(self) -> None:
        assert PackageCoordinate.parse("hl7.fhir.us.core").version is None

    def test_blank_version_means_latest(self) -> None:
        assert PackageCoordinate.parse("hl7.fhir.us.core@ ").version is None

    def test_splits_on_first_at_only(self) -> None:
        coord = PackageCoordinate.parse("pkg@1.0@beta")
        assert coord.name == "pkg"
        assert coord.version == "1.0@beta"

    def test_parses_manifest_edge(self) -> None:
        coord = PackageCoordinate.parse_edge("hl7.terminology.r4#5.0.0")
        assert coord == PackageCoordinate(name="hl7.terminology.r4", version="5.0.0")

    def test_str_round_trips_token(self) -> None:
        assert str(PackageCoordinate(name="a", version="1.0")) == "a@1.0"
        assert str(PackageCoordinate(name="a")) == "a"

    def test_is_frozen(self) -> None:
        coord = PackageCoordinate(name="a")
        with pytest.raises(ValidationError):
            coord.name = "b"  # type: ignore[misc]


class TestPackageManifest:
    def test_reads_package_json(self) -> None:
        manifest = PackageManifest.from_package_json(
            {
                "name": "de.basisprofil.r4",
                "version": "1.4.0",
                "fhirVersions": ["4.0.1"],
                "dependencies": {"hl7.fhir.r4.core": "4.0.1"},
            }
        )
        assert manifest.name == "de.basisprofil.r4"
        assert manifest.fhir_versions == ["4.0.1"]
        assert manifest.dependencies == {"hl7.fhir.r4.core": "4.0.1"}

    def test_falls_back_to_fhir_version_list(self) -> None:
        manifest = PackageManifest.from_package_json({"name": "a", "version": "1", "fhir-version-list": ["3.0.2"]})
        assert manifest.fhir_versions == ["3.0.2"]

    def test_requires_name(self) -> None:
        with pytest.raises(KeyError):
            PackageManifest.from_package_json({"version": "1"})


class TestFhirRelease:
    @pytest.mark.parametrize(
        ("release", "core"),
        [
            (FhirRelease.R5, "hl7.fhir.r5.core"),
            (FhirRelease.R4B, "hl7.fhir.r4b.core"),
            (FhirRelease.R4, "hl7.fhir.r4.core"),
            (FhirRelease.DSTU3, "hl7.fhir.r3.core"),
        ],
    )
    def test_core_package(self, release: FhirRelease, core: str) -> None:
        assert release.core_package.name == core


def test_snapshot_config_is_immutable(config: SnapshotConfig) -> None:
    with pytest.raises(ValidationError):
        config.overwrite = True  # type: ignore[misc]
    assert config.pretty is True
    assert config.registry_url == "https://packages.fhir.org"
