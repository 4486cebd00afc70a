import json
import logging
import posixpath
from typing import Any, Dict, Iterable, List
from urllib.parse import urlparse

from app.features.scan.services.analysis.base import degrades_to
from app.features.scan.services.parsing.document import Document

logger = logging.getLogger(__name__)

RECOMMENDED_TYPES = ['Organization', 'WebSite', 'Product', 'LocalBusiness', 'BreadcrumbList']

MAX_SUGGESTED_TYPES = 3


def _entry(schema_type: Any, schema_format: str) -> Dict[str, Any]:
    return {"type": schema_type, "format": schema_format, "valid": True}


def json_ld_types(payload: Any) -> List[Any]:
    """
    @type values declared by one parsed JSON-LD block.

    An @graph array wins over a top-level @type. A top-level JSON array is
    read as a list of separate payloads.
    """
    if isinstance(payload, list):
        return [found for item in payload for found in json_ld_types(item)]

    if not isinstance(payload, dict) or not payload:
        return []

    graph = payload.get("@graph")
    if isinstance(graph, list):
        return [item["@type"] for item in graph if isinstance(item, dict) and item.get("@type")]

    if payload.get("@type"):
        return [payload["@type"]]

    return []


def detect_json_ld(document: Document) -> List[Dict[str, Any]]:
    schemas = []
    for script in document.select('script[type="application/ld+json"]'):
        try:
            types = json_ld_types(json.loads(script.text()))
        except (ValueError, RecursionError) as e:
            logger.debug(f"Skipping unreadable JSON-LD block: {e}")
            continue
        schemas.extend(_entry(schema_type, "JSON-LD") for schema_type in types)
    return schemas


def microdata_type(itemtype: str) -> str:
    """Last path segment of a schema.org itemtype URL."""
    try:
        path = urlparse(itemtype.strip()).path
    except ValueError:
        return ""
    return posixpath.basename(path.rstrip("/"))


def detect_microdata(document: Document) -> List[Dict[str, Any]]:
    schemas = []
    for item in document.select("[itemtype]"):
        schema_type = microdata_type(item.attr("itemtype") or "")
        if schema_type:
            schemas.append(_entry(schema_type, "Microdata"))
    return schemas


def _flatten_types(schemas: Iterable[Dict[str, Any]]) -> set:
    found = set()
    for schema in schemas:
        schema_type = schema["type"]
        if isinstance(schema_type, list):
            found.update(t for t in schema_type if isinstance(t, str))
        elif isinstance(schema_type, str):
            found.add(schema_type)
    return found


def recommendation(schemas: List[Dict[str, Any]]) -> Dict[str, Any]:
    found = _flatten_types(schemas)
    missing = [schema_type for schema_type in RECOMMENDED_TYPES if schema_type not in found]
    if not missing:
        return {}

    return {
        "type": "recommendation",
        "message": "Consider adding: " + ", ".join(missing[:MAX_SUGGESTED_TYPES]),
        "missing": missing,
    }


@degrades_to({"schema_detected": []})
def analyze_schema_markup(document: Document) -> Dict[str, Any]:
    schemas = detect_json_ld(document) + detect_microdata(document)

    advisory = recommendation(schemas)
    if advisory:
        schemas.append(advisory)

    return {"schema_detected": schemas}
