"""Shared fixtures and helpers for tests."""

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from fhirpkg.core.errors import SnapshotGenerationError
from fhirpkg.models import SnapshotConfig
from fhirpkg.npm.memory import InMemoryPackageSource

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def structure_definition(
    url: str,
    name: str,
    base: str | None = None,
    type_: str = "Patient",
    snapshot: bool = False,
    differential: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    resource: dict[str, Any] = {
        "resourceType": "StructureDefinition",
        "url": url,
        "name": name,
        "type": type_,
        "derivation": "constraint" if base else "specialization",
    }
    if base:
        resource["baseDefinition"] = base
    resource["differential"] = {"element": differential or [{"id": type_, "path": type_}]}
    if snapshot:
        resource["snapshot"] = {"element": [{"id": type_, "path": type_}]}
    return resource


def write_package(
    cache_dir: Path,
    name: str,
    version: str,
    fhir_versions: list[str] | None = None,
    dependencies: dict[str, str] | None = None,
    resources: dict[str, dict[str, Any]] | None = None,
    other_files: dict[str, bytes] | None = None,
) -> Path:
    """Lay out an extracted package in FHIR cache format and return its directory."""
    root = cache_dir / f"{name}#{version}"
    package_dir = root / "package"
    package_dir.mkdir(parents=True)
    manifest = {
        "name": name,
        "version": version,
        "fhirVersions": fhir_versions or ["4.0.1"],
        "dependencies": dependencies or {},
    }
    (package_dir / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    for file_name, resource in (resources or {}).items():
        (package_dir / file_name).write_text(json.dumps(resource), encoding="utf-8")
    for relative, content in (other_files or {}).items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    return root


class StubGenerator:
    """Deterministic snapshot generator: copies the differential into the snapshot."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.calls: list[tuple[str, str]] = []
        self.contexts: list[Any] = []
        self.fail_for = fail_for or set()

    def generate_snapshot(self, resource: dict[str, Any], context: Any, url: str, name: str) -> dict[str, Any]:
        self.calls.append((url, name))
        self.contexts.append(context)
        if url in self.fail_for:
            raise SnapshotGenerationError(f"stub failure for {url}")
        result = copy.deepcopy(resource)
        result["snapshot"] = {"element": copy.deepcopy(resource.get("differential", {}).get("element", []))}
        result["generatedBy"] = "stub"
        return result


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_source() -> InMemoryPackageSource:
    return InMemoryPackageSource()


@pytest.fixture
def stub_generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture
def config(tmp_path: Path) -> SnapshotConfig:
    return SnapshotConfig(out_dir=tmp_path / "out", cache_dir=tmp_path / "cache")
