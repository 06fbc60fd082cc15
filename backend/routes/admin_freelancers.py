"""
Admin Freelancer Review Routes
Approve or reject freelancer applications submitted through the onboarding wizard.
"""
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Optional
import logging

from middleware import admin_route_guard
from models import FreelancerReviewRequest, FreelancerStatus
from services.freelancer_service import (
    ApplicationNotFound,
    InvalidReviewTransition,
    get_freelancer_profile,
    list_applications,
    review_application,
)
from utils.audit import get_audit_logs_for_resource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/freelancers", tags=["admin-freelancers"])


@router.get("")
async def list_freelancer_applications(
    status: Optional[FreelancerStatus] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    current_user: dict = Depends(admin_route_guard)
):
    """List freelancer applications, newest first."""
    applications = await list_applications(status.value if status else None, limit)
    return {"applications": applications, "total": len(applications)}


@router.get("/{user_id}")
async def get_freelancer_application(
    user_id: str,
    current_user: dict = Depends(admin_route_guard)
):
    """Freelancer profile plus review history."""
    profile = await get_freelancer_profile(user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Freelancer profile not found")

    history = await get_audit_logs_for_resource("user", user_id)
    return {"profile": profile, "history": history}


async def _review(user_id: str, decision: FreelancerStatus, current_user: dict, reason: Optional[str]):
    try:
        return await review_application(user_id, decision, current_user, reason)
    except ApplicationNotFound:
        raise HTTPException(status_code=404, detail="Application not found")
    except InvalidReviewTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{user_id}/approve")
async def approve_freelancer(
    user_id: str,
    request: Optional[FreelancerReviewRequest] = None,
    current_user: dict = Depends(admin_route_guard)
):
    user = await _review(user_id, FreelancerStatus.APPROVED, current_user, request.reason if request else None)
    return {"success": True, "user": user}


@router.post("/{user_id}/reject")
async def reject_freelancer(
    user_id: str,
    request: Optional[FreelancerReviewRequest] = None,
    current_user: dict = Depends(admin_route_guard)
):
    user = await _review(user_id, FreelancerStatus.REJECTED, current_user, request.reason if request else None)
    return {"success": True, "user": user}
