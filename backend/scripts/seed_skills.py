"""
Seed the skill suggestion catalog used by the freelancer onboarding wizard.
Safe to run repeatedly: existing skills are left untouched.
"""
import asyncio
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging
from database import get_db_context
from services.skill_catalog import seed_skill_catalog

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def seed_skills():
    async with get_db_context() as db:
        result = await seed_skill_catalog(db)
        total = await db.skills.count_documents({"is_active": True})

    logger.info(f"✅ Skills seeded: {result['created']} created, {result['skipped']} already present")
    logger.info(f"   Active skills in catalog: {total}")


if __name__ == "__main__":
    asyncio.run(seed_skills())
