from fastapi import Request, HTTPException, status
from typing import Optional
import logging
from auth import decode_access_token, has_role
from models import UserRole

logger = logging.getLogger(__name__)

LOGIN_REDIRECT = "/login"

async def get_current_user(request: Request) -> Optional[dict]:
    """Extract and validate current user from JWT token."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    token = auth_header.split(" ")[1]
    payload = decode_access_token(token)

    if not payload or not payload.get("user_id"):
        return None

    return payload

async def require_auth(request: Request) -> dict:
    """Require valid authentication; the UI follows X-Redirect to the login page."""
    user = await get_current_user(request)
    if not user:
        await log_route_guard_redirect(None, str(request.url.path), "NOT_AUTHENTICATED")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"X-Redirect": LOGIN_REDIRECT}
        )
    return user

async def require_admin(request: Request) -> dict:
    """Require admin role."""
    user = await require_auth(request)
    if not has_role(user, UserRole.ROLE_ADMIN.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions"
        )
    return user

async def admin_route_guard(request: Request) -> dict:
    """Guard for admin routes."""
    return await require_admin(request)

async def log_route_guard_redirect(user_id: Optional[str], path: str, reason: str):
    """Log route guard redirect for audit."""
    from utils.audit import create_audit_log
    from models import AuditAction

    await create_audit_log(
        action=AuditAction.ROUTE_GUARD_REDIRECT,
        actor_id=user_id,
        metadata={
            "path": path,
            "reason": reason,
        }
    )
