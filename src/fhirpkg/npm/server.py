"""HTTP client for FHIR NPM package registries (e.g. https://packages.fhir.org)."""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from fhirpkg.core.errors import PackageNotFoundError, RegistryError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


def version_key(version: str) -> tuple[tuple[int, int | str], ...]:
    """Sort key for package versions: numeric parts compare as numbers and rank above labels."""
    parts: list[tuple[int, int | str]] = []
    for part in re.split(r"[.\-+]", version):
        if part.isdigit():
            parts.append((1, int(part)))
        else:
            parts.append((0, part))
    return tuple(parts)


class PackageServerClient:
    def __init__(
        self,
        registry_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.registry_url = registry_url.rstrip("/")
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={"Accept": "application/json, application/gzip, */*"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> PackageServerClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, url: str, name: str, version: str | None = None) -> httpx.Response:
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            raise RegistryError(f"Registry request failed for {url}: {exc}") from exc
        if response.status_code == 404:
            raise PackageNotFoundError(name, version, reason=f"{self.registry_url} answered 404")
        if response.is_error:
            raise RegistryError(f"Registry answered {response.status_code} for {url}")
        return response

    def fetch_metadata(self, name: str) -> dict[str, Any]:
        response = self._get(f"{self.registry_url}/{name}", name)
        try:
            data = response.json()
        except ValueError as exc:
            raise RegistryError(f"Registry returned invalid metadata for {name}: {exc}") from exc
        if not isinstance(data, dict):
            raise RegistryError(f"Registry returned invalid metadata for {name}")
        return data

    def latest_version(self, name: str) -> str:
        metadata = self.fetch_metadata(name)
        latest = (metadata.get("dist-tags") or {}).get("latest")
        if latest:
            return str(latest)
        versions = list((metadata.get("versions") or {}).keys())
        if not versions:
            raise PackageNotFoundError(name, reason="registry lists no versions")
        return max(versions, key=version_key)

    def download(self, name: str, version: str) -> bytes:
        """Return the ``.tgz`` bytes of ``name#version``."""
        url = f"{self.registry_url}/{name}/{version}"
        logger.info("Downloading %s#%s from %s", name, version, self.registry_url)
        response = self._get(url, name, version)
        return response.content
