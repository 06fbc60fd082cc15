"""
Shared job runner for scheduled background jobs.
Each run_* returns a dict with "message" (and optionally "count").
"""
import logging

logger = logging.getLogger(__name__)


async def run_wizard_session_sweep():
    try:
        from services.freelancer_wizard import wizard_sessions
        count = wizard_sessions.sweep_expired()
        if count:
            logger.info(f"Wizard session sweep completed: {count} idle drafts discarded")
        return {"message": f"Idle wizard sessions discarded: {count}", "count": count}
    except Exception as e:
        logger.error(f"Wizard session sweep failed: {e}")
        raise
