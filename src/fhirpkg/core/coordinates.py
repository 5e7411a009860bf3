"""Collect package coordinates from CLI tokens and sushi-config style YAML documents."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from fhirpkg.core.errors import DocumentReadError

logger = logging.getLogger(__name__)

_CONTEXT_HINT_KEY = "fhirVersion"


@dataclass(frozen=True)
class CollectedCoordinates:
    coordinates: list[str]
    context_hint: str | None


def split_tokens(tokens: Iterable[str | None]) -> list[str]:
    """Split comma-separated tokens, trimming blanks and keeping first-seen order."""
    requested: dict[str, None] = {}
    for token in tokens:
        if token is None:
            continue
        for part in token.split(","):
            part = part.strip()
            if part:
                requested.setdefault(part, None)
    return list(requested)


def _load_document(text: str | None) -> Any:
    if text is None or not text.strip():
        return None
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.warning("Ignoring invalid dependency document: %s", exc)
        return None


def _entry_version(value: Any) -> str | None:
    if isinstance(value, Mapping):
        value = value.get("version")
    if value is None or isinstance(value, (Mapping, list)):
        return None
    version = str(value).strip()
    return version or None


def parse_dependency_document(text: str | None) -> list[str]:
    """Return ``name@version`` (or bare ``name``) coordinates from a dependency document.

    The document is either a sushi-config style mapping with a ``dependencies:`` key or,
    without that key, the dependencies mapping itself.
    """
    root = _load_document(text)
    if not isinstance(root, Mapping):
        return []
    deps = root.get("dependencies") if "dependencies" in root else root
    if not isinstance(deps, Mapping):
        return []

    coords: list[str] = []
    for key, value in deps.items():
        name = str(key).strip()
        if not name:
            continue
        version = _entry_version(value)
        coords.append(f"{name}@{version}" if version else name)
    return coords


def extract_context_hint(text: str | None) -> str | None:
    """Return the top-level ``fhirVersion`` of a document: a scalar, or the first non-blank list entry."""
    root = _load_document(text)
    if not isinstance(root, Mapping):
        return None
    value = root.get(_CONTEXT_HINT_KEY)
    if isinstance(value, list):
        for item in value:
            if item is not None and str(item).strip():
                return str(item).strip()
        return None
    if value is None or isinstance(value, Mapping):
        return None
    hint = str(value).strip()
    return hint or None


def _read_document_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentReadError(f"Cannot read dependency document {path}: {exc}") from exc


def collect_coordinates(
    tokens: Iterable[str | None],
    document_file: Path | None = None,
    document_text: str | None = None,
) -> CollectedCoordinates:
    requested = dict.fromkeys(split_tokens(tokens))
    hint: str | None = None

    documents: list[str] = []
    if document_file is not None:
        documents.append(_read_document_file(document_file))
    if document_text is not None and document_text.strip():
        documents.append(document_text)

    for text in documents:
        for coord in parse_dependency_document(text):
            requested.setdefault(coord, None)
        if hint is None:
            hint = extract_context_hint(text)

    return CollectedCoordinates(coordinates=list(requested), context_hint=hint)
