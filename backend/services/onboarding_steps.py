"""
Onboarding step views.

Each step exposes a slice of the draft, the errors for that slice and
non-authoritative hints. Views never validate and never mutate the draft;
edits go back through the wizard controller's set_field().
"""
from typing import Any, Dict, List, Optional

from models import AVAILABILITY_LABELS, Availability, FreelancerDraft
from services.onboarding_validation import BIO_MAX_LENGTH, BIO_MIN_LENGTH, WizardStep
from services.skill_catalog import filter_skill_suggestions

STEP_TITLES = {
    WizardStep.SKILLS: "Skills & Experience",
    WizardStep.EDUCATION: "Education & Certifications",
    WizardStep.AVAILABILITY: "Portfolio & Availability",
    WizardStep.AGREEMENT: "Verification & Agreement",
}

# Wire field names each step is allowed to edit.
STEP_FIELDS = {
    WizardStep.SKILLS: ("skills", "bio"),
    WizardStep.EDUCATION: ("education", "certifications"),
    WizardStep.AVAILABILITY: ("portfolioLink", "availability", "workingHours"),
    WizardStep.AGREEMENT: ("agreeToFreelancerTerms", "agreeToQualityStandards"),
}


def fields_for_step(step: int) -> tuple:
    return STEP_FIELDS[WizardStep(step)]


def _errors_for_step(step: WizardStep, errors: Dict[str, str]) -> Dict[str, str]:
    owned = STEP_FIELDS[step]
    return {
        key: message for key, message in errors.items()
        if key in owned or key.split(".")[0] in owned
    }


def build_summary(draft: FreelancerDraft) -> Dict[str, Any]:
    """Read-only recap shown on the agreement step."""
    payload = draft.to_payload()
    return {
        "skills": payload["skills"],
        "education": [
            e for e in payload["education"]
            if any(str(v).strip() for v in e.values())
        ],
        "certifications": [
            c for c in payload["certifications"]
            if any(str(v).strip() for v in c.values())
        ],
        "availability": AVAILABILITY_LABELS.get(draft.availability, draft.availability),
        "workingHours": draft.working_hours or None,
        "portfolioLink": draft.portfolio_link or None,
    }


def render_step(
    step: int,
    draft: FreelancerDraft,
    errors: Optional[Dict[str, str]] = None,
    suggestions: Optional[List[Dict[str, str]]] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the view for ``step``. ``search`` filters suggestions only."""
    current = WizardStep(step)
    payload = draft.to_payload()

    view = {
        "step": current.value,
        "title": STEP_TITLES[current],
        "fields": {name: payload[name] for name in STEP_FIELDS[current]},
        "errors": _errors_for_step(current, errors or {}),
        "hints": {},
    }

    if current == WizardStep.SKILLS:
        view["hints"] = {
            "bio_length": len(draft.bio),
            "bio_min_length": BIO_MIN_LENGTH,
            "bio_max_length": BIO_MAX_LENGTH,
        }
        view["suggestions"] = filter_skill_suggestions(suggestions or [], search)
    elif current == WizardStep.AVAILABILITY:
        view["hints"] = {
            "availability_options": [
                {"value": a.value, "label": AVAILABILITY_LABELS[a.value]} for a in Availability
            ],
        }
    elif current == WizardStep.AGREEMENT:
        view["summary"] = build_summary(draft)

    return view
