"""Tests for FHIR context selection."""

from __future__ import annotations

import pytest

from fhirpkg.core.context import release_for_version, select_context
from fhirpkg.models import FhirRelease
from fhirpkg.npm.memory import InMemoryPackageSource


@pytest.mark.parametrize(
    ("version", "release"),
    [
        ("5.0.0", FhirRelease.R5),
        ("5.0.0-snapshot1", FhirRelease.R5),
        ("4.3.0", FhirRelease.R4B),
        ("4.0.1", FhirRelease.R4),
        ("4.1.0", FhirRelease.R4),
        ("3.0.2", FhirRelease.DSTU3),
        ("1.0.2", FhirRelease.R5),
        ("", FhirRelease.R5),
        (None, FhirRelease.R5),
        ("  4.0.1 ", FhirRelease.R4),
    ],
)
def test_release_for_version(version: str | None, release: FhirRelease) -> None:
    assert release_for_version(version) is release


def test_document_hint_wins_over_package(memory_source: InMemoryPackageSource) -> None:
    root = memory_source.add("r5.ig", "1.0.0", fhir_version="5.0.0")
    context = select_context("4.0.1", [root])
    assert context.release is FhirRelease.R4
    assert context.source == "document"


def test_first_root_package_version(memory_source: InMemoryPackageSource) -> None:
    first = memory_source.add("first", "1", fhir_version="5.0.0")
    second = memory_source.add("second", "1", fhir_version="3.0.2")
    context = select_context(None, [first, second])
    assert context.release is FhirRelease.R5
    assert context.source == "first#1"


def test_first_root_without_version_falls_back(memory_source: InMemoryPackageSource) -> None:
    first = memory_source.add("first", "1")
    second = memory_source.add("second", "1", fhir_version="3.0.2")
    assert select_context(None, [first, second]).release is FhirRelease.R5


def test_no_hint_no_packages() -> None:
    context = select_context(None, [])
    assert context.release is FhirRelease.R5
    assert context.source == "fallback"
