import logging
from collections.abc import Iterable

from fhirpkg.core.ports.registry import PackageSource, ResolvedPackage
from fhirpkg.models import PackageCoordinate

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Load root packages and walk their dependency edges, keeping one package per name.

    The first version loaded for a name wins; later requests for the same name are
    discarded even when they ask for a different version. Names are marked seen before
    descending, so cyclic dependency graphs terminate.
    """

    def __init__(self, source: PackageSource, skip_dependencies: bool = False) -> None:
        self._source = source
        self._skip_dependencies = skip_dependencies
        self.packages: list[ResolvedPackage] = []
        self.roots: list[ResolvedPackage] = []
        self.seen: set[str] = set()

    def resolve(self, coordinates: Iterable[str]) -> list[ResolvedPackage]:
        for token in coordinates:
            coord = PackageCoordinate.parse(token)
            package = self._load(coord)
            if package.name in self.seen:
                logger.info("Discarding %s#%s: %s already loaded", package.name, package.version, package.name)
                continue
            self.seen.add(package.name)
            self.roots.append(package)
            self.packages.append(package)

        if not self._skip_dependencies:
            # the list grows while iterating so transitive levels are picked up
            i = 0
            while i < len(self.packages):
                self.packages.extend(self._load_dependencies(self.packages[i]))
                i += 1

        return self.packages

    def _load_dependencies(self, package: ResolvedPackage) -> list[ResolvedPackage]:
        loaded: list[ResolvedPackage] = []
        for edge in package.dependencies():
            if edge.name in self.seen:
                continue
            self.seen.add(edge.name)
            dependency = self._load(edge)
            logger.info("Loaded dependency %s#%s of %s", dependency.name, dependency.version, package.name)
            loaded.append(dependency)
            loaded.extend(self._load_dependencies(dependency))
        return loaded

    def _load(self, coord: PackageCoordinate) -> ResolvedPackage:
        return self._source.load(coord.name, coord.version)
