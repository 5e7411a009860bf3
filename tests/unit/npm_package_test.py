"""Tests for reading extracted packages from the cache."""

from __future__ import annotations

import json
from pathlib import Path

from fhirpkg.models import PackageCoordinate
from fhirpkg.npm.package import NpmPackage
from tests.conftest import structure_definition, write_package


def test_reads_manifest(tmp_path: Path) -> None:
    root = write_package(
        tmp_path, "de.example", "1.2.0", fhir_versions=["4.3.0"], dependencies={"hl7.fhir.r4b.core": "4.3.0"}
    )

    package = NpmPackage.from_directory(root)

    assert package.name == "de.example"
    assert package.version == "1.2.0"
    assert package.path == root.resolve()
    assert package.fhir_version == "4.3.0"
    assert package.dependencies() == [PackageCoordinate(name="hl7.fhir.r4b.core", version="4.3.0")]


def test_folders_and_load(tmp_path: Path) -> None:
    root = write_package(
        tmp_path,
        "a",
        "1",
        resources={"StructureDefinition-p.json": structure_definition("http://x/p", "P")},
        other_files={"other/spec.internals": b"x", "example/Patient-1.json": b"{}"},
    )

    package = NpmPackage.from_directory(root)

    assert dict(package.folders()) == {
        "example": ["Patient-1.json"],
        "other": ["spec.internals"],
        "package": ["StructureDefinition-p.json", "package.json"],
    }
    assert package.load("other", "spec.internals") == b"x"
    assert package.load("other", "missing") is None


def test_list_resources_scans_files(tmp_path: Path) -> None:
    root = write_package(
        tmp_path,
        "a",
        "1",
        resources={
            "StructureDefinition-p.json": structure_definition("http://x/p", "P"),
            "ValueSet-v.json": {"resourceType": "ValueSet"},
        },
        other_files={"package/broken.json": b"{"},
    )

    package = NpmPackage.from_directory(root)

    assert package.list_resources("StructureDefinition") == ["StructureDefinition-p.json"]
    assert package.list_resources("ValueSet") == ["ValueSet-v.json"]


def test_list_resources_prefers_index(tmp_path: Path) -> None:
    index = {
        "index-version": 1,
        "files": [{"filename": "sd.json", "resourceType": "StructureDefinition", "url": "http://x/sd"}],
    }
    root = write_package(tmp_path, "a", "1", other_files={"package/.index.json": json.dumps(index).encode()})

    package = NpmPackage.from_directory(root)

    assert package.list_resources("StructureDefinition") == ["sd.json"]
    assert ".index.json" in package.folders()["package"]


def test_no_declared_fhir_version(tmp_path: Path) -> None:
    root = tmp_path / "a#1"
    (root / "package").mkdir(parents=True)
    (root / "package" / "package.json").write_text(json.dumps({"name": "a", "version": "1"}), encoding="utf-8")

    package = NpmPackage.from_directory(root)

    assert package.fhir_version is None
    assert package.dependencies() == []
