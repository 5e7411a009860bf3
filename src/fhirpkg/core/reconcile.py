"""Write package contents and regenerated StructureDefinitions into the output tree.

Overwrite policy, shared by both modes: a freshly generated snapshot is always
written; anything else is written only when the target is missing or ``overwrite``
is set.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

from fhirpkg.core.errors import LocalFileError, SnapshotGenerationError, WriteError
from fhirpkg.core.ports.generator import DefinitionSource, SnapshotGenerator
from fhirpkg.core.ports.registry import ResolvedPackage
from fhirpkg.core.resources import (
    STRUCTURE_DEFINITION,
    canonical_url,
    display_name,
    extract_json_string,
    has_snapshot,
    parse_resource,
    serialize_resource,
)
from fhirpkg.models import OutputArtifact, ReconcileStats, SnapshotConfig
from fhirpkg.snapshot.support import DefinitionChain, PrePopulatedDefinitions

logger = logging.getLogger(__name__)

LOCAL_OUTPUT_FOLDER = "local"


def package_output_dir(out_dir: Path, package: ResolvedPackage) -> Path:
    return out_dir / f"{package.name}#{package.version}"


def iter_json_files(root: Path) -> Iterator[Path]:
    for path in sorted(root.rglob("*")):
        if path.is_file() and path.suffix.lower() == ".json":
            yield path


class ArtifactReconciler:
    def __init__(self, config: SnapshotConfig, generator: SnapshotGenerator, definitions: DefinitionSource) -> None:
        self.config = config
        self.generator = generator
        self.definitions = definitions

    def needs_snapshot(self, resource: dict[str, Any]) -> bool:
        return self.config.force_snapshot or not has_snapshot(resource)

    def should_write(self, artifact: OutputArtifact, target: Path) -> bool:
        return artifact.regenerated or self.config.overwrite or not target.exists()

    def _build_artifact(
        self, relative_path: Path, original: bytes, resource: dict[str, Any], definitions: DefinitionSource
    ) -> OutputArtifact:
        if not self.needs_snapshot(resource):
            return OutputArtifact(relative_path=relative_path, content=original)
        generated = self.generator.generate_snapshot(
            resource, definitions, canonical_url(resource), display_name(resource)
        )
        return OutputArtifact(
            relative_path=relative_path,
            content=serialize_resource(generated, self.config.pretty),
            regenerated=True,
        )

    # -- registry mode -----------------------------------------------------

    def reconcile_packages(self, packages: Sequence[ResolvedPackage]) -> ReconcileStats:
        stats = ReconcileStats()
        for package in packages:
            package_dir = package_output_dir(self.config.out_dir, package)
            logger.info("Writing %s#%s to %s", package.name, package.version, package_dir)
            self._copy_package(package, package_dir, stats)
            self._snapshot_package(package, package_dir, stats)
        return stats

    def _copy_package(self, package: ResolvedPackage, package_dir: Path, stats: ReconcileStats) -> None:
        for folder, file_names in package.folders().items():
            folder_out = package_dir / folder
            folder_out.mkdir(parents=True, exist_ok=True)
            for file_name in file_names:
                target = folder_out / file_name
                if not self.config.overwrite and target.exists():
                    continue
                content = package.load(folder, file_name)
                if content is None:
                    continue
                target.write_bytes(content)
                stats.copied += 1

    def _snapshot_package(self, package: ResolvedPackage, package_dir: Path, stats: ReconcileStats) -> None:
        for file_name in package.list_resources(STRUCTURE_DEFINITION):
            stats.definitions += 1
            content = package.load("package", file_name)
            if content is None:
                continue
            resource = parse_resource(content)
            artifact = self._build_artifact(Path("package") / file_name, content, resource, self.definitions)
            if artifact.regenerated:
                stats.generated += 1

            target = package_dir / artifact.relative_path
            if not self.should_write(artifact, target):
                stats.skipped += 1
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(artifact.content)
            stats.written += 1

    # -- local profiles mode -----------------------------------------------

    def reconcile_local(self, profiles_dir: Path) -> ReconcileStats:
        stats = ReconcileStats()
        if not profiles_dir.is_dir():
            logger.error("Profiles directory not found or not a directory: %s", profiles_dir)
            return stats

        local_index = self.index_local(profiles_dir)
        definitions = DefinitionChain(local_index, self.definitions)
        out_base = self.config.out_dir / LOCAL_OUTPUT_FOLDER

        for path in iter_json_files(profiles_dir):
            try:
                self._reconcile_local_file(path, profiles_dir, out_base, definitions, stats)
            except (LocalFileError, SnapshotGenerationError, WriteError) as exc:
                stats.failed += 1
                logger.error("Skipping %s: %s", path, exc)
        return stats

    def index_local(self, profiles_dir: Path) -> PrePopulatedDefinitions:
        """Index every parseable local resource so local profiles can reference each other."""
        index = PrePopulatedDefinitions()
        for path in iter_json_files(profiles_dir):
            try:
                resource = parse_resource(path.read_bytes())
            except (OSError, ValueError) as exc:
                logger.warning("Cannot index local file %s: %s", path, exc)
                continue
            index.add(resource)
        logger.info("Indexed %d local resources from %s", len(index), profiles_dir)
        return index

    def _reconcile_local_file(
        self,
        path: Path,
        profiles_dir: Path,
        out_base: Path,
        definitions: DefinitionSource,
        stats: ReconcileStats,
    ) -> None:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LocalFileError(f"unreadable file ({exc})") from exc

        if extract_json_string(text, "resourceType") != STRUCTURE_DEFINITION:
            return
        stats.definitions += 1

        try:
            resource = parse_resource(text)
        except ValueError as exc:
            raise LocalFileError(f"invalid JSON ({exc})") from exc
        if resource["resourceType"] != STRUCTURE_DEFINITION:
            raise LocalFileError(f"resourceType is {resource['resourceType']}, not {STRUCTURE_DEFINITION}")

        try:
            artifact = self._build_artifact(path.relative_to(profiles_dir), text.encode("utf-8"), resource, definitions)
        except Exception as exc:
            raise SnapshotGenerationError(f"snapshot generation failed: {exc}") from exc
        if artifact.regenerated:
            stats.generated += 1

        target = out_base / artifact.relative_path
        if not self.should_write(artifact, target):
            stats.skipped += 1
            return
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(artifact.content)
        except OSError as exc:
            raise WriteError(f"write failed for {target} ({exc})") from exc
        stats.written += 1
