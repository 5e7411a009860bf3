import io
import logging
import shutil
import tarfile
import tempfile
from pathlib import Path, PurePosixPath

from fhirpkg.core.errors import PackageNotFoundError, RegistryError
from fhirpkg.npm.package import NpmPackage
from fhirpkg.npm.server import PackageServerClient, version_key
from fhirpkg.npm.tracker import CacheLocationTracker

logger = logging.getLogger(__name__)


def package_folder_name(name: str, version: str) -> str:
    return f"{name}#{version}"


def _safe_members(tar: tarfile.TarFile) -> list[tarfile.TarInfo]:
    members: list[tarfile.TarInfo] = []
    for member in tar.getmembers():
        member_path = PurePosixPath(member.name)
        if member_path.is_absolute() or ".." in member_path.parts:
            raise RegistryError(f"Refusing to extract unsafe archive member {member.name!r}")
        if member.isfile() or member.isdir():
            members.append(member)
    return members


class FilesystemPackageCache:
    """Package source backed by a FHIR package cache directory and a registry.

    Packages live in ``<cache>/<name>#<version>/package/...``. Missing packages are
    downloaded from the registry and extracted into the cache before loading.
    """

    def __init__(
        self,
        cache_dir: Path,
        server: PackageServerClient,
        tracker: CacheLocationTracker | None = None,
    ) -> None:
        self.cache_dir = cache_dir
        self._server = server
        self.tracker = tracker or CacheLocationTracker(cache_dir)

    def load(self, name: str, version: str | None = None) -> NpmPackage:
        if not version:
            version = self._latest_version(name)

        target = self.cache_dir / package_folder_name(name, version)
        if not (target / "package" / "package.json").is_file():
            self._install(name, version, target)

        try:
            package = NpmPackage.from_directory(target)
        except (OSError, ValueError, KeyError) as exc:
            raise PackageNotFoundError(name, version, reason=f"unreadable package in cache: {exc}") from exc
        self.tracker.observe(package.path)
        return package

    def cached_versions(self, name: str) -> list[str]:
        prefix = f"{name}#"
        if not self.cache_dir.is_dir():
            return []
        versions = [
            entry.name[len(prefix) :]
            for entry in self.cache_dir.iterdir()
            if entry.is_dir() and entry.name.startswith(prefix) and (entry / "package" / "package.json").is_file()
        ]
        return sorted(versions, key=version_key)

    def _latest_version(self, name: str) -> str:
        try:
            return self._server.latest_version(name)
        except PackageNotFoundError:
            raise
        except RegistryError as exc:
            cached = self.cached_versions(name)
            if not cached:
                raise PackageNotFoundError(name, reason=str(exc)) from exc
            logger.warning("Registry unavailable (%s); using cached %s#%s", exc, name, cached[-1])
            return cached[-1]

    def _install(self, name: str, version: str, target: Path) -> None:
        archive = self._server.download(name, version)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".install-", dir=self.cache_dir))
        try:
            try:
                with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
                    tar.extractall(staging, members=_safe_members(tar), filter="data")
            except tarfile.TarError as exc:
                raise RegistryError(f"Invalid package archive for {name}#{version}: {exc}") from exc
            if not (staging / "package" / "package.json").is_file():
                raise PackageNotFoundError(name, version, reason="archive has no package/package.json")
            if target.exists():
                shutil.rmtree(target)
            staging.rename(target)
            logger.info("Installed %s#%s into %s", name, version, target)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)
