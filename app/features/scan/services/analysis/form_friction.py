from typing import Any, Dict, List, Set, Tuple

from app.features.scan.services.analysis.base import clamp_score, degrades_to
from app.features.scan.services.parsing.document import Document, Element

FIELD_SELECTOR = 'input:not([type="hidden"]):not([type="submit"]), textarea, select'

MAX_COMFORTABLE_FIELDS = 5
PENALTY_PER_EXTRA_FIELD = 3
PENALTY_MISSING_LABEL = 5
PENALTY_MISSING_AUTOCOMPLETE = 3
PENALTY_INSECURE_ACTION = 20

AUTOCOMPLETE_KEYWORDS = ['email', 'name', 'phone', 'address', 'city', 'zip', 'postal']


def _labelled_ids(document: Document) -> Set[str]:
    return {label.attr("for") for label in document.select("label[for]") if label.attr("for")}


def inspect_field(field: Element, labelled_ids: Set[str]) -> Tuple[int, Dict[str, Any]]:
    issues: List[str] = []
    penalty = 0

    field_id = field.attr("id")
    has_label = bool(field_id) and field_id in labelled_ids
    if not has_label and not field.attr("placeholder") and not field.attr("aria-label"):
        issues.append("Missing label or accessible name")
        penalty += PENALTY_MISSING_LABEL

    name = (field.attr("name") or "").lower()
    if not field.attr("autocomplete"):
        # One finding per field, however many keywords the name contains
        if any(keyword in name for keyword in AUTOCOMPLETE_KEYWORDS):
            issues.append("Missing autocomplete attribute")
            penalty += PENALTY_MISSING_AUTOCOMPLETE

    return penalty, {
        "name": field.attr("name"),
        "type": field.attr("type") or field.tag,
        "required": field.has_attr("required"),
        "issues": issues,
    }


def inspect_form(form: Element, labelled_ids: Set[str]) -> Tuple[int, Dict[str, Any]]:
    fields = form.select(FIELD_SELECTOR)
    issues: List[str] = []
    penalty = 0

    if len(fields) > MAX_COMFORTABLE_FIELDS:
        issues.append(f"High field count ({len(fields)} fields)")
        penalty += (len(fields) - MAX_COMFORTABLE_FIELDS) * PENALTY_PER_EXTRA_FIELD

    inputs = []
    for field in fields:
        field_penalty, field_detail = inspect_field(field, labelled_ids)
        penalty += field_penalty
        inputs.append(field_detail)

    action = form.attr("action")
    if action and action.startswith("http://"):
        issues.append("Form submits over insecure HTTP")
        penalty += PENALTY_INSECURE_ACTION

    return penalty, {
        "action": action,
        "method": form.attr("method") or "get",
        "inputs": inputs,
        "issues": issues,
    }


@degrades_to({"form_friction_score": None, "form_details": []})
def analyze_form_friction(document: Document) -> Dict[str, Any]:
    """
    Score how much effort the page's forms demand.

    The score is shared by every form on the page: it starts at 100 and each
    finding subtracts its fixed weight, clamped to 0-100 only at the end.
    """
    labelled_ids = _labelled_ids(document)
    score = 100
    details: List[Dict[str, Any]] = []

    for form in document.select("form"):
        penalty, detail = inspect_form(form, labelled_ids)
        score -= penalty
        details.append(detail)

    return {"form_friction_score": clamp_score(score), "form_details": details}
