class FhirPkgError(Exception):
    """Base class for all errors raised by fhirpkg."""


class InputError(FhirPkgError):
    """Nothing to do: no package coordinates and no local profiles directory."""


class ResolutionError(FhirPkgError):
    """A requested or transitively required package could not be loaded."""


class PackageNotFoundError(ResolutionError):
    def __init__(self, name: str, version: str | None = None, reason: str | None = None) -> None:
        self.name = name
        self.version = version
        coordinate = f"{name}#{version}" if version else name
        message = f"Package not found: {coordinate}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class RegistryError(ResolutionError):
    """The package registry answered with an error or could not be reached."""


class LocalFileError(FhirPkgError):
    """A local profile file could not be read or parsed."""


class WriteError(FhirPkgError):
    """An output file or directory could not be written."""


class SnapshotGenerationError(FhirPkgError):
    """The snapshot generator failed for a single StructureDefinition."""


class NothingResolvedError(FhirPkgError):
    """Coordinates were given but no package could be loaded."""


class DocumentReadError(FhirPkgError):
    """The dependency document file could not be read."""
