from typing import Any, Protocol


class DefinitionSource(Protocol):
    def fetch(self, url: str) -> dict[str, Any] | None: ...


class SnapshotGenerator(Protocol):
    def generate_snapshot(
        self,
        resource: dict[str, Any],
        context: DefinitionSource,
        url: str,
        name: str,
    ) -> dict[str, Any]: ...
