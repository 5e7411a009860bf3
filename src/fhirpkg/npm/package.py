import json
import logging
from collections.abc import Mapping
from functools import cached_property
from pathlib import Path
from typing import Any

from fhirpkg.models import PackageCoordinate, PackageManifest

logger = logging.getLogger(__name__)

_INDEX_FILE = ".index.json"
_MANIFEST_FOLDER = "package"


class NpmPackage:
    """Read-only view of an extracted FHIR NPM package on disk.

    ``root`` is the package directory in the cache (``<cache>/<name>#<version>``); its
    top-level subdirectories (``package``, ``other``, ``example`` ...) are the folders.
    """

    def __init__(self, root: Path, manifest: PackageManifest) -> None:
        self._root = root.resolve()
        self.manifest = manifest

    @classmethod
    def from_directory(cls, root: Path) -> "NpmPackage":
        manifest_path = root / _MANIFEST_FOLDER / "package.json"
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
        return cls(root, PackageManifest.from_package_json(data))

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def version(self) -> str:
        return self.manifest.version

    @property
    def path(self) -> Path:
        return self._root

    @property
    def fhir_version(self) -> str | None:
        return self.manifest.fhir_versions[0] if self.manifest.fhir_versions else None

    def dependencies(self) -> list[PackageCoordinate]:
        return [
            PackageCoordinate(name=name, version=version or None)
            for name, version in self.manifest.dependencies.items()
        ]

    def folders(self) -> Mapping[str, list[str]]:
        return self._folders

    @cached_property
    def _folders(self) -> dict[str, list[str]]:
        folders: dict[str, list[str]] = {}
        for folder in sorted(p for p in self._root.iterdir() if p.is_dir()):
            folders[folder.name] = sorted(f.name for f in folder.iterdir() if f.is_file())
        return folders

    def list_resources(self, resource_type: str) -> list[str]:
        return [file_name for file_name, rt in self._resource_types.items() if rt == resource_type]

    @cached_property
    def _resource_types(self) -> dict[str, str]:
        folder = self._root / _MANIFEST_FOLDER
        index_path = folder / _INDEX_FILE
        if index_path.is_file():
            try:
                index = json.loads(index_path.read_text(encoding="utf-8"))
                return {
                    entry["filename"]: entry.get("resourceType", "")
                    for entry in index.get("files", [])
                    if isinstance(entry, dict) and "filename" in entry
                }
            except (ValueError, AttributeError) as exc:
                logger.warning("Ignoring unreadable %s in %s: %s", _INDEX_FILE, self._root, exc)

        types: dict[str, str] = {}
        for file_name in self.folders().get(_MANIFEST_FOLDER, []):
            if not file_name.endswith(".json") or file_name in (_INDEX_FILE, "package.json"):
                continue
            resource = _read_json(folder / file_name)
            if isinstance(resource, dict) and isinstance(resource.get("resourceType"), str):
                types[file_name] = resource["resourceType"]
        return types

    def load(self, folder: str, file_name: str) -> bytes | None:
        target = self._root / folder / file_name
        if not target.is_file():
            return None
        return target.read_bytes()

    def __repr__(self) -> str:
        return f"NpmPackage({self.name}#{self.version})"


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
