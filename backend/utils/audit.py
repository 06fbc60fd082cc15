from database import database
from models import AuditLog, AuditAction
from datetime import datetime
from typing import Optional, Dict, Any, List
import logging

logger = logging.getLogger(__name__)

def changed_fields(before: Optional[Dict[str, Any]], after: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Fields whose value differs between two states, as {field: {"from", "to"}}."""
    before = before or {}
    after = after or {}
    return {
        key: {"from": before.get(key), "to": after.get(key)}
        for key in sorted(set(before) | set(after))
        if before.get(key) != after.get(key)
    }

async def create_audit_log(
    action: AuditAction,
    actor_role: Optional[str] = None,
    actor_id: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    before_state: Optional[Dict[str, Any]] = None,
    after_state: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    reason_code: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> str:
    """Record an audit entry. Returns the audit_id, or "" if the write failed.

    When both states are given, the changed fields are stored under
    metadata["changes"]. Audit failures are logged and never raised.
    """
    try:
        enriched = dict(metadata or {})
        if before_state and after_state:
            changes = changed_fields(before_state, after_state)
            if changes:
                enriched["changes"] = changes

        entry = AuditLog(
            action=action,
            actor_role=actor_role,
            actor_id=actor_id,
            resource_type=resource_type,
            resource_id=resource_id,
            before_state=before_state,
            after_state=after_state,
            metadata=enriched or None,
            reason_code=reason_code,
            ip_address=ip_address
        )

        doc = entry.model_dump()
        doc["action"] = entry.action.value
        if isinstance(doc["timestamp"], datetime):
            doc["timestamp"] = doc["timestamp"].isoformat()

        await database.get_db().audit_logs.insert_one(doc)
        logger.info(f"Audit log created: {action.value} {resource_type or ''}:{resource_id or ''}")
        return entry.audit_id
    except Exception as e:
        logger.error(f"Failed to create audit log: {e}")
        return ""

async def get_audit_logs_for_resource(
    resource_type: str,
    resource_id: str,
    limit: int = 50
) -> List[Dict[str, Any]]:
    """Newest-first audit history of one resource; [] on failure."""
    try:
        db = database.get_db()
        cursor = db.audit_logs.find(
            {"resource_type": resource_type, "resource_id": resource_id},
            {"_id": 0}
        ).sort("timestamp", -1).limit(limit)

        return await cursor.to_list(length=limit)
    except Exception as e:
        logger.error(f"Failed to get audit history for {resource_type}:{resource_id}: {e}")
        return []
