"""
Onboarding Validation - per-step gate rules for the freelancer wizard.

Each step validates every one of its fields (no short-circuit) and reports
one message per failing field. Keys are the wire field names the UI renders
errors against; started education/certification rows report per row
(``education.0``, ``certifications.1``).

Rules are pure: they read the draft and never mutate it.
"""
from enum import IntEnum
from typing import Callable, Dict, Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError

from models import Availability, FreelancerDraft

MIN_SKILLS = 3
BIO_MIN_LENGTH = 50
BIO_MAX_LENGTH = 500

DEFAULT_LOCALE = "en"


class WizardStep(IntEnum):
    SKILLS = 1
    EDUCATION = 2
    AVAILABILITY = 3
    AGREEMENT = 4


FIRST_STEP = WizardStep.SKILLS
LAST_STEP = WizardStep.AGREEMENT


# ============================================================================
# MESSAGE CATALOG
# ============================================================================

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "skills_min": f"Select at least {MIN_SKILLS} skills",
        "bio_required": "A bio is required for freelancers",
        "bio_min": f"Bio must be at least {BIO_MIN_LENGTH} characters",
        "bio_max": f"Bio must be at most {BIO_MAX_LENGTH} characters",
        "education_row": "Complete the institution and degree for this education entry",
        "certification_row": "Complete the name and issuer for this certification",
        "availability_required": "Select your availability",
        "availability_invalid": "Select a valid availability option",
        "working_hours_required": "Working hours are required",
        "portfolio_invalid": "Portfolio link must be a valid URL",
        "freelancer_terms": "You must accept the Freelancer Terms",
        "quality_standards": "You must accept the Quality Standards",
    },
    "id": {
        "skills_min": f"Pilih minimal {MIN_SKILLS} keahlian",
        "bio_required": "Bio wajib diisi untuk Freelancer",
        "bio_min": f"Bio minimal {BIO_MIN_LENGTH} karakter",
        "bio_max": f"Bio maksimal {BIO_MAX_LENGTH} karakter",
        "education_row": "Lengkapi institusi dan gelar untuk data pendidikan ini",
        "certification_row": "Lengkapi nama dan penerbit untuk sertifikasi ini",
        "availability_required": "Ketersediaan wajib dipilih",
        "availability_invalid": "Pilih ketersediaan yang valid",
        "working_hours_required": "Jam kerja wajib diisi",
        "portfolio_invalid": "Link portfolio harus berupa URL yang valid",
        "freelancer_terms": "Anda harus menyetujui Ketentuan Freelancer",
        "quality_standards": "Anda harus menyetujui Standar Kualitas",
    },
}


def resolve_locale(accept_language: Optional[str]) -> str:
    """Pick a catalog locale from an Accept-Language header."""
    if not accept_language:
        return DEFAULT_LOCALE
    for part in accept_language.split(","):
        tag = part.split(";")[0].strip().lower()
        primary = tag.split("-")[0]
        if primary in MESSAGES:
            return primary
    return DEFAULT_LOCALE


def _message(key: str, locale: str) -> str:
    catalog = MESSAGES.get(locale) or MESSAGES[DEFAULT_LOCALE]
    return catalog[key]


_url_adapter = TypeAdapter(HttpUrl)


def is_valid_url(value: str) -> bool:
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def _is_blank(value) -> bool:
    return value is None or not str(value).strip()


# ============================================================================
# STEP RULES
# ============================================================================

def _validate_skills_step(draft: FreelancerDraft, locale: str) -> Dict[str, str]:
    errors = {}

    if len(set(draft.skills)) < MIN_SKILLS:
        errors["skills"] = _message("skills_min", locale)

    bio_length = len(draft.bio)
    if bio_length == 0:
        errors["bio"] = _message("bio_required", locale)
    elif bio_length < BIO_MIN_LENGTH:
        errors["bio"] = _message("bio_min", locale)
    elif bio_length > BIO_MAX_LENGTH:
        errors["bio"] = _message("bio_max", locale)

    return errors


def _validate_education_step(draft: FreelancerDraft, locale: str) -> Dict[str, str]:
    # A row with any sub-field filled counts as started; its mandatory
    # sub-fields then become required.
    errors = {}

    for index, row in enumerate(draft.education):
        values = (row.institution, row.degree, row.field, row.year)
        if all(_is_blank(v) for v in values):
            continue
        if _is_blank(row.institution) or _is_blank(row.degree):
            errors[f"education.{index}"] = _message("education_row", locale)

    for index, row in enumerate(draft.certifications):
        values = (row.name, row.issuer, row.year)
        if all(_is_blank(v) for v in values):
            continue
        if _is_blank(row.name) or _is_blank(row.issuer):
            errors[f"certifications.{index}"] = _message("certification_row", locale)

    return errors


def _validate_availability_step(draft: FreelancerDraft, locale: str) -> Dict[str, str]:
    errors = {}

    allowed = {a.value for a in Availability}
    if _is_blank(draft.availability):
        errors["availability"] = _message("availability_required", locale)
    elif draft.availability not in allowed:
        errors["availability"] = _message("availability_invalid", locale)

    if _is_blank(draft.working_hours):
        errors["workingHours"] = _message("working_hours_required", locale)

    link = (draft.portfolio_link or "").strip()
    if link and not is_valid_url(link):
        errors["portfolioLink"] = _message("portfolio_invalid", locale)

    return errors


def _validate_agreement_step(draft: FreelancerDraft, locale: str) -> Dict[str, str]:
    errors = {}
    if draft.agree_to_freelancer_terms is not True:
        errors["agreeToFreelancerTerms"] = _message("freelancer_terms", locale)
    if draft.agree_to_quality_standards is not True:
        errors["agreeToQualityStandards"] = _message("quality_standards", locale)
    return errors


STEP_RULES: Dict[WizardStep, Callable[[FreelancerDraft, str], Dict[str, str]]] = {
    WizardStep.SKILLS: _validate_skills_step,
    WizardStep.EDUCATION: _validate_education_step,
    WizardStep.AVAILABILITY: _validate_availability_step,
    WizardStep.AGREEMENT: _validate_agreement_step,
}


def validate_step(step: int, draft: FreelancerDraft, locale: str = DEFAULT_LOCALE) -> Dict[str, str]:
    """
    Validate the fields owned by ``step``.

    Returns a mapping of field -> message; empty means the gate passes.
    Raises ValueError for a step outside 1..4.
    """
    rules = STEP_RULES[WizardStep(step)]
    return rules(draft, locale)
