"""
Freelancer Service - role grant persistence for the onboarding wizard.

apply_as_freelancer() is the submission gateway: it writes the freelancer
profile and adds the freelancer role (status PENDING) to the user. Admin
review moves PENDING applications to APPROVED or REJECTED.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from auth import build_token_claims, create_access_token
from database import database
from models import (
    AuditAction,
    FreelancerDraft,
    FreelancerProfile,
    FreelancerStatus,
    UserRole,
)
from utils.audit import create_audit_log

logger = logging.getLogger(__name__)


class FreelancerApplicationError(Exception):
    """Submission gateway failure; ``detail`` is shown to the user."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ApplicationNotFound(Exception):
    pass


class InvalidReviewTransition(Exception):
    pass


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """User document without secrets or Mongo internals."""
    return {k: v for k, v in user.items() if k not in ("_id", "password_hash")}


def _profile_document(user_id: str, draft: FreelancerDraft) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    profile = FreelancerProfile(
        user_id=user_id,
        skills=list(dict.fromkeys(draft.skills)),
        bio=draft.bio,
        education=draft.education,
        certifications=draft.certifications,
        portfolio_link=draft.portfolio_link.strip() or None,
        availability=draft.availability,
        working_hours=draft.working_hours.strip(),
        agreed_to_terms_at=now,
        created_at=now,
        updated_at=now,
    )
    doc = profile.model_dump()
    doc["availability"] = profile.availability.value
    for key in ("agreed_to_terms_at", "created_at", "updated_at"):
        doc[key] = doc[key].isoformat()
    return doc


async def apply_as_freelancer(identity: Dict[str, Any], draft: FreelancerDraft) -> Dict[str, Any]:
    """
    Persist a completed draft as a freelancer role grant.

    Writes ``freelancer_profiles[user_id]`` then adds the freelancer role to
    the user with status PENDING. Raises FreelancerApplicationError on any
    failure.
    """
    user_id = identity["user_id"]
    db = database.get_db()

    try:
        user = await db.users.find_one({"user_id": user_id}, {"_id": 0, "user_id": 1})
        if not user:
            raise FreelancerApplicationError("User account not found")

        profile_doc = _profile_document(user_id, draft)
        created_at = profile_doc.pop("created_at")
        await db.freelancer_profiles.update_one(
            {"user_id": user_id},
            {"$set": profile_doc, "$setOnInsert": {"created_at": created_at}},
            upsert=True,
        )

        applied_at = datetime.now(timezone.utc).isoformat()
        await db.users.update_one(
            {"user_id": user_id},
            {
                "$addToSet": {"roles": {"$each": [UserRole.ROLE_CLIENT.value, UserRole.ROLE_FREELANCER.value]}},
                "$set": {
                    "is_freelancer": True,
                    "freelancer_status": FreelancerStatus.PENDING.value,
                    "freelancer_applied_at": applied_at,
                    "bio": draft.bio,
                    "updated_at": applied_at,
                },
            },
        )
    except FreelancerApplicationError:
        raise
    except Exception as e:
        logger.error(f"Freelancer application failed for {user_id}: {e}")
        await create_audit_log(
            action=AuditAction.FREELANCER_APPLICATION_FAILED,
            actor_id=user_id,
            resource_type="user",
            resource_id=user_id,
            metadata={"error": str(e)},
        )
        raise FreelancerApplicationError(str(e)) from e

    await create_audit_log(
        action=AuditAction.FREELANCER_APPLICATION_SUBMITTED,
        actor_role=UserRole.ROLE_CLIENT.value,
        actor_id=user_id,
        resource_type="user",
        resource_id=user_id,
        metadata={
            "skills": profile_doc["skills"],
            "availability": profile_doc["availability"],
        },
    )
    logger.info(f"Freelancer application submitted: {user_id}")

    return {
        "user_id": user_id,
        "freelancer_status": FreelancerStatus.PENDING.value,
        "applied_at": applied_at,
    }


async def refresh_identity(user_id: str) -> Optional[Dict[str, Any]]:
    """Reload the user and issue a token carrying its current roles."""
    db = database.get_db()
    user = await db.users.find_one({"user_id": user_id}, {"_id": 0, "password_hash": 0})
    if not user:
        return None
    return {
        "access_token": create_access_token(build_token_claims(user)),
        "token_type": "bearer",
        "user": public_user(user),
    }


async def get_freelancer_profile(user_id: str) -> Optional[Dict[str, Any]]:
    db = database.get_db()
    return await db.freelancer_profiles.find_one({"user_id": user_id}, {"_id": 0})


# ============================================================================
# ADMIN REVIEW
# ============================================================================

async def list_applications(status: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
    """Users who applied as freelancer, newest application first."""
    db = database.get_db()
    query: Dict[str, Any] = {"is_freelancer": True}
    if status:
        query["freelancer_status"] = status

    users = await db.users.find(
        query,
        {"_id": 0, "password_hash": 0}
    ).sort("freelancer_applied_at", -1).to_list(limit)
    return users


async def review_application(
    user_id: str,
    decision: FreelancerStatus,
    actor: Dict[str, Any],
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    """Approve or reject a PENDING application."""
    if decision not in (FreelancerStatus.APPROVED, FreelancerStatus.REJECTED):
        raise InvalidReviewTransition(f"Unsupported decision: {decision}")

    db = database.get_db()
    user = await db.users.find_one({"user_id": user_id}, {"_id": 0, "password_hash": 0})
    if not user or not user.get("is_freelancer"):
        raise ApplicationNotFound(user_id)

    current = user.get("freelancer_status")
    if current != FreelancerStatus.PENDING.value:
        raise InvalidReviewTransition(f"Application is {current}, not PENDING")

    now = datetime.now(timezone.utc).isoformat()
    update = {
        "freelancer_status": decision.value,
        "freelancer_reviewed_at": now,
        "freelancer_reviewed_by": actor.get("user_id"),
        "updated_at": now,
    }
    if reason:
        update["freelancer_review_reason"] = reason

    # Status guard makes concurrent reviews first-writer-wins.
    result = await db.users.update_one(
        {"user_id": user_id, "freelancer_status": FreelancerStatus.PENDING.value},
        {"$set": update},
    )
    if result.modified_count == 0:
        raise InvalidReviewTransition("Application was reviewed concurrently")

    action = (
        AuditAction.FREELANCER_APPROVED
        if decision == FreelancerStatus.APPROVED
        else AuditAction.FREELANCER_REJECTED
    )
    await create_audit_log(
        action=action,
        actor_role=UserRole.ROLE_ADMIN.value,
        actor_id=actor.get("user_id"),
        resource_type="user",
        resource_id=user_id,
        before_state={"freelancer_status": current},
        after_state={"freelancer_status": decision.value},
        reason_code=reason,
    )
    logger.info(f"Freelancer application {user_id} -> {decision.value}")

    return {**user, **update}
