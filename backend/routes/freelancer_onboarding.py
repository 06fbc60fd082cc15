"""
Freelancer Onboarding Routes - "Become a Freelancer" wizard API

The UI mounts a wizard session, edits fields of the active step and moves
through four gated steps:
1. Skills & bio
2. Education & certifications
3. Portfolio & availability
4. Agreement -> submit

Validation errors come back in the step view (200). Submission failures come
back as a banner; the draft is kept so the user can retry.
"""
from fastapi import APIRouter, HTTPException, Depends, Query, Request, status
from pydantic import ValidationError
from typing import Optional
import logging

from database import database
from middleware import require_auth
from models import FieldUpdateRequest
from services.freelancer_service import refresh_identity
from services.freelancer_wizard import (
    FieldNotEditable,
    UnknownDraftField,
    WizardBusy,
    WizardCompleted,
    WizardSessionNotFound,
    build_initial_draft,
    wizard_sessions,
)
from services.onboarding_validation import resolve_locale
from services.skill_catalog import get_skill_suggestions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/freelancer-onboarding", tags=["freelancer-onboarding"])

PROFILE_REDIRECT = "/profile"
SUBMITTED_MESSAGE = "Your freelancer application has been submitted. Your account is under review."


def _get_controller(session_id: str, user: dict):
    try:
        return wizard_sessions.get(session_id, user["user_id"])
    except WizardSessionNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wizard session not found")


@router.get("/skills")
async def list_skill_suggestions(current_user: dict = Depends(require_auth)):
    """Skill suggestions for the skills step; empty when the catalog is unavailable."""
    return {"skills": await get_skill_suggestions()}


@router.post("/sessions")
async def start_wizard(request: Request, current_user: dict = Depends(require_auth)):
    """
    Mount a new wizard for the current user.
    The draft's bio is seeded from the user's existing profile.
    """
    db = database.get_db()
    user = await db.users.find_one(
        {"user_id": current_user["user_id"]},
        {"_id": 0, "password_hash": 0}
    )
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user.get("is_freelancer"):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error_code": "ALREADY_FREELANCER",
                "freelancer_status": user.get("freelancer_status"),
            }
        )

    suggestions = await get_skill_suggestions()
    try:
        controller = wizard_sessions.create(
            current_user,
            draft=build_initial_draft(user),
            suggestions=suggestions,
            locale=resolve_locale(request.headers.get("Accept-Language")),
        )
    except WizardBusy:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Submission in progress")
    return controller.view()


@router.get("/sessions/{session_id}")
async def get_wizard_view(
    session_id: str,
    search: Optional[str] = Query(None, description="Filter skill suggestions (not stored)"),
    current_user: dict = Depends(require_auth),
):
    controller = _get_controller(session_id, current_user)
    return controller.view(search=search)


@router.patch("/sessions/{session_id}/fields")
async def update_wizard_fields(
    session_id: str,
    request: FieldUpdateRequest,
    current_user: dict = Depends(require_auth),
):
    """Apply field edits to the draft. Only fields of the active step are editable."""
    controller = _get_controller(session_id, current_user)

    try:
        controller.set_fields(request.fields)
    except UnknownDraftField as e:
        raise HTTPException(status_code=422, detail=f"Unknown field: {e}")
    except FieldNotEditable as e:
        raise HTTPException(
            status_code=422,
            detail=f"Field {e} is not editable on step {controller.step}"
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=[{"loc": err.get("loc"), "msg": err.get("msg")} for err in e.errors()]
        )
    except WizardBusy:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Submission in progress")
    except WizardCompleted:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Wizard already submitted")

    return controller.view()


@router.post("/sessions/{session_id}/advance")
async def advance_wizard(session_id: str, current_user: dict = Depends(require_auth)):
    controller = _get_controller(session_id, current_user)
    try:
        outcome = controller.advance()
    except WizardBusy:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Submission in progress")
    except WizardCompleted:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Wizard already submitted")

    return {"advanced": outcome["advanced"], **controller.view()}


@router.post("/sessions/{session_id}/retreat")
async def retreat_wizard(session_id: str, current_user: dict = Depends(require_auth)):
    controller = _get_controller(session_id, current_user)
    try:
        outcome = controller.retreat()
    except WizardCompleted:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Wizard already submitted")

    return {"retreated": outcome["retreated"], **controller.view()}


@router.post("/sessions/{session_id}/submit")
async def submit_wizard(session_id: str, current_user: dict = Depends(require_auth)):
    """
    Final submission. On success the identity is refreshed so the new
    freelancer role is visible immediately, and the session is discarded.
    """
    controller = _get_controller(session_id, current_user)
    outcome = await controller.submit_final()

    if outcome["status"] not in ("submitted", "completed"):
        return {"status": outcome["status"], **controller.view()}

    # The role is already granted; a refresh failure must not undo the success.
    try:
        identity = await refresh_identity(current_user["user_id"])
    except Exception as e:
        logger.warning(f"Identity refresh failed for {current_user['user_id']} after submit: {e}")
        identity = None
    else:
        if identity is None:
            logger.warning(f"Identity refresh found no user {current_user['user_id']} after submit")

    wizard_sessions.discard(session_id)

    return {
        "status": outcome["status"],
        "application": outcome["result"],
        "identity": identity,
        "redirect": PROFILE_REDIRECT,
        "message": SUBMITTED_MESSAGE,
    }


@router.delete("/sessions/{session_id}")
async def abandon_wizard(session_id: str, current_user: dict = Depends(require_auth)):
    """Discard the draft when the user navigates away."""
    controller = _get_controller(session_id, current_user)
    if controller.in_flight:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Submission in progress")

    wizard_sessions.discard(session_id)
    return {"success": True}
