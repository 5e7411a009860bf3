import os
from collections.abc import Mapping
from pathlib import Path

DEFAULT_REGISTRY_URL = "https://packages.fhir.org"


def fhir_home(env: Mapping[str, str] | None = None) -> Path:
    """Base directory for FHIR data: APPDATA, then HOME on GitHub Actions, then the user home."""
    env = os.environ if env is None else env
    app_data = env.get("APPDATA", "")
    if app_data.strip():
        return Path(app_data) / "fhir"
    if env.get("GITHUB_ACTIONS") == "true":
        home = env.get("HOME", "")
        if home.strip():
            return Path(home) / ".fhir"
    return Path.home() / ".fhir"


def default_cache_dir(env: Mapping[str, str] | None = None) -> Path:
    return fhir_home(env) / "packages"


def default_out_dir(env: Mapping[str, str] | None = None) -> Path:
    return fhir_home(env) / "snapshots"


def default_registry_url(env: Mapping[str, str] | None = None) -> str:
    env = os.environ if env is None else env
    return env.get("FHIRPKG_REGISTRY") or DEFAULT_REGISTRY_URL
