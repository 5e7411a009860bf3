import logging
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

DiscoveryListener = Callable[[Path], None]


class CacheLocationTracker:
    """Remember physical package directories in the cache and report each new one once."""

    def __init__(self, cache_root: Path, listeners: list[DiscoveryListener] | None = None) -> None:
        self.cache_root = cache_root
        self.known: set[Path] = set()
        self._listeners = list(listeners or [])
        self._seed()

    def _seed(self) -> None:
        if not self.cache_root.is_dir():
            return
        for entry in self.cache_root.iterdir():
            if entry.is_dir():
                self.known.add(entry.resolve())
        logger.debug("Cache %s holds %d package directories", self.cache_root, len(self.known))

    def add_listener(self, listener: DiscoveryListener) -> None:
        self._listeners.append(listener)

    def observe(self, path: Path) -> bool:
        """Record a package location; returns True when it was not known before."""
        resolved = path.resolve()
        if resolved in self.known:
            return False
        self.known.add(resolved)
        logger.info("Discovered package cache directory %s", resolved)
        for listener in self._listeners:
            listener(resolved)
        return True
