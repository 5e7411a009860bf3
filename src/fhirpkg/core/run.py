import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from fhirpkg.core.context import select_context
from fhirpkg.core.coordinates import collect_coordinates
from fhirpkg.core.errors import InputError, NothingResolvedError
from fhirpkg.core.ports.generator import SnapshotGenerator
from fhirpkg.core.ports.registry import PackageSource
from fhirpkg.core.reconcile import ArtifactReconciler
from fhirpkg.core.resolver import DependencyResolver
from fhirpkg.models import FhirContext, RunSummary, SnapshotConfig
from fhirpkg.snapshot.support import PackageDefinitions

logger = logging.getLogger(__name__)


def run_snapshot(
    config: SnapshotConfig,
    source: PackageSource,
    generator_factory: Callable[[FhirContext], SnapshotGenerator],
    coordinates: Iterable[str | None] = (),
    document_file: Path | None = None,
    document_text: str | None = None,
) -> RunSummary:
    """Resolve packages, pick the FHIR context, and write the output tree.

    Raises ``InputError`` when there is nothing to do and ``ResolutionError`` when a
    package cannot be loaded; in both cases nothing has been written.
    """
    collected = collect_coordinates(coordinates, document_file, document_text)
    if not collected.coordinates and config.profiles_dir is None:
        raise InputError("No packages specified. Use -p or --sushi-deps-*.")

    resolver = DependencyResolver(source, skip_dependencies=config.skip_dependencies)
    packages = resolver.resolve(collected.coordinates) if collected.coordinates else []
    if collected.coordinates and not packages and config.profiles_dir is None:
        raise NothingResolvedError("No packages loaded.")

    context = select_context(collected.context_hint, resolver.roots)
    logger.info("Using FHIR %s (from %s)", context.release.value, context.source)
    core = context.release.core_package
    if packages and core.name not in resolver.seen:
        logger.warning("Core package %s is not loaded; profiles on core types may fail", core)

    config.out_dir.mkdir(parents=True, exist_ok=True)
    reconciler = ArtifactReconciler(config, generator_factory(context), PackageDefinitions.from_packages(packages))
    summary = RunSummary(
        context=context,
        packages=[f"{p.name}#{p.version}" for p in packages],
        out_dir=config.out_dir.resolve(),
        cache_dir=config.cache_dir.resolve(),
    )
    if config.profiles_dir is None:
        summary.registry = reconciler.reconcile_packages(packages)
    else:
        summary.local = reconciler.reconcile_local(config.profiles_dir)
    return summary
