from fhirpkg.npm.cache import FilesystemPackageCache, package_folder_name
from fhirpkg.npm.memory import InMemoryPackage, InMemoryPackageSource
from fhirpkg.npm.package import NpmPackage
from fhirpkg.npm.server import PackageServerClient
from fhirpkg.npm.tracker import CacheLocationTracker

__all__ = [
    "CacheLocationTracker",
    "FilesystemPackageCache",
    "InMemoryPackage",
    "InMemoryPackageSource",
    "NpmPackage",
    "PackageServerClient",
    "package_folder_name",
]
