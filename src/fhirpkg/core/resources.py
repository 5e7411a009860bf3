import json
import re
from typing import Any

STRUCTURE_DEFINITION = "StructureDefinition"


def extract_json_string(text: str, field: str) -> str | None:
    """Find the first ``"field": "value"`` pair by scanning text, without parsing the document.

    Only for cheap pre-checks (resource type); anything that ends up in an output
    file is read from the parsed resource instead.
    """
    match = re.search(rf'"{re.escape(field)}"\s*:\s*"(.*?)"', text, re.DOTALL)
    return match.group(1) if match else None


def parse_resource(content: bytes | str) -> dict[str, Any]:
    resource = json.loads(content)
    if not isinstance(resource, dict) or not isinstance(resource.get("resourceType"), str):
        raise ValueError("not a FHIR resource: missing resourceType")
    return resource


def has_snapshot(resource: dict[str, Any]) -> bool:
    return "snapshot" in resource


def canonical_url(resource: dict[str, Any]) -> str:
    url = resource.get("url")
    return url if isinstance(url, str) else ""


def display_name(resource: dict[str, Any]) -> str:
    name = resource.get("name")
    return name if isinstance(name, str) and name else STRUCTURE_DEFINITION


def serialize_resource(resource: dict[str, Any], pretty: bool) -> bytes:
    if pretty:
        text = json.dumps(resource, indent=2, ensure_ascii=False)
    else:
        text = json.dumps(resource, separators=(",", ":"), ensure_ascii=False)
    return text.encode("utf-8")
