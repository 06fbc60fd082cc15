"""
Skill Catalog - suggestion source for the onboarding wizard's skills step.

Suggestions are read from the ``skills`` collection. A fetch failure never
blocks the wizard: it is logged and degrades to an empty list.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from database import database

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 500

DEFAULT_SKILLS = [
    ("web-design", "Web Design"),
    ("web-development", "Web Development"),
    ("mobile-app-development", "Mobile App Development"),
    ("ui-ux-design", "UI/UX Design"),
    ("graphic-design", "Graphic Design"),
    ("content-writing", "Content Writing"),
    ("copywriting", "Copywriting"),
    ("translation", "Translation"),
    ("digital-marketing", "Digital Marketing"),
    ("seo", "SEO"),
    ("social-media-management", "Social Media Management"),
    ("video-editing", "Video Editing"),
    ("animation", "Animation"),
    ("photography", "Photography"),
    ("voice-over", "Voice Over"),
    ("data-entry", "Data Entry"),
    ("virtual-assistant", "Virtual Assistant"),
    ("accounting", "Accounting"),
    ("legal-services", "Legal Services"),
    ("customer-service", "Customer Service"),
    ("project-management", "Project Management"),
    ("react", "React"),
    ("angular", "Angular"),
    ("vue", "Vue.js"),
    ("node", "Node.js"),
    ("python", "Python"),
    ("java", "Java"),
    ("php", "PHP"),
    ("wordpress", "WordPress"),
    ("shopify", "Shopify"),
]


def default_suggestions() -> List[Dict[str, str]]:
    return [{"id": skill_id, "name": name} for skill_id, name in DEFAULT_SKILLS]


async def get_skill_suggestions() -> List[Dict[str, str]]:
    """
    Return active skills as ``{id, name}`` pairs sorted by name.

    An empty catalog falls back to the built-in list; any error returns [].
    """
    try:
        db = database.get_db()
        docs = await db.skills.find(
            {"is_active": True},
            {"_id": 0, "skill_id": 1, "name": 1}
        ).sort("name", 1).to_list(MAX_SUGGESTIONS)
    except Exception as e:
        logger.warning(f"Skill suggestion fetch failed, continuing without suggestions: {e}")
        return []

    if not docs:
        return default_suggestions()

    return [{"id": d["skill_id"], "name": d["name"]} for d in docs if d.get("skill_id") and d.get("name")]


def filter_skill_suggestions(suggestions: List[Dict[str, str]], term: Optional[str]) -> List[Dict[str, str]]:
    """Case-insensitive match on name or id. Pure; the term is never stored."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(suggestions)
    return [
        s for s in suggestions
        if needle in s["name"].lower() or needle in s["id"].lower()
    ]


async def seed_skill_catalog(db) -> Dict[str, int]:
    """Idempotent upsert of DEFAULT_SKILLS keyed by skill_id."""
    created = 0
    skipped = 0
    now = datetime.now(timezone.utc).isoformat()

    for skill_id, name in DEFAULT_SKILLS:
        result = await db.skills.update_one(
            {"skill_id": skill_id},
            {
                "$setOnInsert": {
                    "skill_id": skill_id,
                    "name": name,
                    "is_active": True,
                    "created_at": now,
                }
            },
            upsert=True,
        )
        if result.upserted_id is not None:
            created += 1
        else:
            skipped += 1

    return {"created": created, "skipped": skipped}
