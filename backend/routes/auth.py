from fastapi import APIRouter, HTTPException, Depends, Request, status
from database import database
from models import LoginRequest, TokenResponse, UserStatus, AuditAction
from auth import verify_password, create_access_token, build_token_claims
from middleware import require_auth
from services.freelancer_service import public_user
from utils.audit import create_audit_log
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/login", response_model=TokenResponse)
async def login(request: Request, credentials: LoginRequest):
    """Marketplace login endpoint."""
    db = database.get_db()

    user = await db.users.find_one(
        {"email": credentials.email},
        {"_id": 0}
    )

    if not user:
        await create_audit_log(
            action=AuditAction.USER_LOGIN_FAILED,
            metadata={"email": credentials.email, "reason": "user_not_found"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if not user.get("password_hash") or not verify_password(
        credentials.password,
        user["password_hash"]
    ):
        await create_audit_log(
            action=AuditAction.USER_LOGIN_FAILED,
            actor_id=user["user_id"],
            metadata={"email": credentials.email, "reason": "invalid_password"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if user.get("status", UserStatus.ACTIVE.value) != UserStatus.ACTIVE.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active"
        )

    await db.users.update_one(
        {"user_id": user["user_id"]},
        {"$set": {"last_login": datetime.now(timezone.utc).isoformat()}}
    )

    access_token = create_access_token(build_token_claims(user))

    await create_audit_log(
        action=AuditAction.USER_LOGIN_SUCCESS,
        actor_id=user["user_id"],
        ip_address=request.client.host if request.client else None
    )
    logger.info(f"User logged in: {user['email']}")

    return TokenResponse(access_token=access_token, user=public_user(user))

@router.get("/me")
async def get_me(current_user: dict = Depends(require_auth)):
    """Current user document, re-read from the database."""
    db = database.get_db()
    user = await db.users.find_one(
        {"user_id": current_user["user_id"]},
        {"_id": 0, "password_hash": 0}
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user
