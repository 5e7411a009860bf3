"""Snapshot generation by merging a profile's differential onto its base snapshot."""

from __future__ import annotations

import copy
import logging
from typing import Any

from fhirpkg.core.errors import SnapshotGenerationError
from fhirpkg.core.ports.generator import DefinitionSource
from fhirpkg.models import FhirContext, FhirRelease

logger = logging.getLogger(__name__)

_APPENDED_LISTS = ("constraint", "mapping", "condition")

Element = dict[str, Any]


def _element_key(element: Element) -> str:
    key = element.get("id") or element.get("path")
    if not isinstance(key, str) or not key:
        raise SnapshotGenerationError(f"Element without id or path: {element!r}")
    return key


def _anchor(key: str) -> str:
    """Return the id a new element is inserted under: the sliced element for a slice, else the parent."""
    head, _, last = key.rpartition(".")
    if ":" in last:
        return f"{head}.{last.partition(':')[0]}" if head else last.partition(":")[0]
    return head


def _in_subtree(key: str, root: str) -> bool:
    return key == root or key.startswith(f"{root}.") or key.startswith(f"{root}:")


def _merge_element(target: Element, diff: Element) -> None:
    for field, value in diff.items():
        if field in _APPENDED_LISTS and isinstance(target.get(field), list) and isinstance(value, list):
            existing = target[field]
            existing.extend(copy.deepcopy(item) for item in value if item not in existing)
        else:
            target[field] = copy.deepcopy(value)


def _rebase(key: str, old_root: str, new_root: str) -> str:
    if key == old_root:
        return new_root
    if key.startswith(f"{old_root}.") or key.startswith(f"{old_root}:"):
        return new_root + key[len(old_root) :]
    return key


class DifferentialSnapshotGenerator:
    """Build ``snapshot.element`` from the base definition's snapshot plus the differential.

    Base definitions are looked up by ``baseDefinition`` through the definition source;
    bases without a snapshot are generated first.
    """

    def __init__(self, context: FhirContext | None = None) -> None:
        self.context = context or FhirContext(release=FhirRelease.R5)

    def generate_snapshot(
        self,
        resource: dict[str, Any],
        context: DefinitionSource,
        url: str,
        name: str,
    ) -> dict[str, Any]:
        return self._generate(resource, context, url or name, in_progress=set())

    def _generate(
        self,
        resource: dict[str, Any],
        source: DefinitionSource,
        label: str,
        in_progress: set[str],
    ) -> dict[str, Any]:
        result = copy.deepcopy(resource)
        differential = list((result.get("differential") or {}).get("element") or [])
        base_url = result.get("baseDefinition")

        if not base_url:
            if not differential:
                raise SnapshotGenerationError(f"{label}: no baseDefinition and no differential elements")
            elements = [copy.deepcopy(e) for e in differential]
            for element in elements:
                element.setdefault("id", _element_key(element))
            result["snapshot"] = {"element": elements}
            return result

        if base_url in in_progress:
            raise SnapshotGenerationError(f"{label}: circular baseDefinition chain through {base_url}")
        base = source.fetch(base_url)
        if base is None:
            raise SnapshotGenerationError(
                f"{label}: base definition {base_url} not found "
                f"(is {self.context.release.core_package.name} or the defining package loaded?)"
            )
        if "snapshot" not in base:
            logger.debug("Generating snapshot of base %s for %s", base_url, label)
            base = self._generate(base, source, base_url, in_progress | {base_url})

        elements = [copy.deepcopy(e) for e in base["snapshot"].get("element", [])]
        if not elements:
            raise SnapshotGenerationError(f"{label}: base definition {base_url} has an empty snapshot")
        self._retype(elements, result.get("type"))
        for element in elements:
            element.setdefault("id", _element_key(element))

        for diff in differential:
            self._apply(elements, diff, label)

        result["snapshot"] = {"element": elements}
        return result

    @staticmethod
    def _retype(elements: list[Element], own_type: Any) -> None:
        old_root = elements[0].get("path")
        if not isinstance(own_type, str) or not own_type or old_root == own_type or not isinstance(old_root, str):
            return
        for element in elements:
            element["path"] = _rebase(element["path"], old_root, own_type)
            if "id" in element:
                element["id"] = _rebase(element["id"], old_root, own_type)

    def _apply(self, elements: list[Element], diff: Element, label: str) -> None:
        key = _element_key(diff)
        for element in elements:
            if element["id"] == key:
                _merge_element(element, diff)
                return

        anchor = _anchor(key)
        position = self._insert_position(elements, anchor)
        if position is None:
            logger.warning("%s: element %s has no parent in the base snapshot, appending", label, key)
            position = len(elements)

        last = key.rpartition(".")[2]
        if ":" in last and anchor:
            # a new slice starts as a copy of the sliced element and its children
            block = [
                copy.deepcopy(e)
                for e in elements
                if _in_subtree(e["id"], anchor) and ":" not in e["id"][len(anchor) :]
            ]
            for element in block:
                element["id"] = key + element["id"][len(anchor) :]
            if block:
                block[0].pop("slicing", None)
                _merge_element(block[0], diff)
                block[0]["sliceName"] = block[0].get("sliceName") or last.partition(":")[2]
            else:
                block = [copy.deepcopy(diff)]
        else:
            new_element = copy.deepcopy(diff)
            new_element.setdefault("id", key)
            block = [new_element]

        elements[position:position] = block

    @staticmethod
    def _insert_position(elements: list[Element], anchor: str) -> int | None:
        position: int | None = None
        for index, element in enumerate(elements):
            if _in_subtree(element["id"], anchor):
                position = index + 1
        return position
