from collections.abc import Sequence

from fhirpkg.core.ports.registry import ResolvedPackage
from fhirpkg.models import FhirContext, FhirRelease

_PREFIXES: tuple[tuple[str, FhirRelease], ...] = (
    ("5", FhirRelease.R5),
    ("4.3", FhirRelease.R4B),
    ("4", FhirRelease.R4),
    ("3", FhirRelease.DSTU3),
)

FALLBACK_RELEASE = FhirRelease.R5


def release_for_version(version: str | None) -> FhirRelease:
    """Map a raw FHIR version string to a release by prefix; unknown values map to R5."""
    value = (version or "").strip().lower()
    for prefix, release in _PREFIXES:
        if value.startswith(prefix):
            return release
    return FALLBACK_RELEASE


def select_context(hint: str | None, roots: Sequence[ResolvedPackage]) -> FhirContext:
    """Pick the single FHIR context for a run.

    Priority: the dependency document's ``fhirVersion``, then the first root package's
    declared FHIR version, then R5.
    """
    if hint:
        return FhirContext(release=release_for_version(hint), version=hint, source="document")
    if roots:
        declared = roots[0].fhir_version
        if declared:
            return FhirContext(
                release=release_for_version(declared),
                version=declared,
                source=f"{roots[0].name}#{roots[0].version}",
            )
    return FhirContext(release=FALLBACK_RELEASE)
