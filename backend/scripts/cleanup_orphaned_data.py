"""
Orphaned Freelancer Data Cleanup
- Deletes freelancer_profiles whose user no longer exists.
- Resets the freelancer flag on users that claim the role but have no profile.

Usage:
    python scripts/cleanup_orphaned_data.py [--dry-run]
"""

import argparse
import asyncio
import sys
from pathlib import Path
from datetime import datetime, timezone

sys.path.insert(0, str(Path(__file__).parent.parent))

from database import get_db_context
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def find_orphans(db):
    """Return (profile user_ids without a user, user_ids flagged freelancer without a profile)."""
    user_ids = set(await db.users.distinct("user_id"))
    profile_user_ids = set(await db.freelancer_profiles.distinct("user_id"))
    flagged_user_ids = set(await db.users.distinct("user_id", {"is_freelancer": True}))

    orphan_profiles = sorted(profile_user_ids - user_ids)
    users_without_profile = sorted(flagged_user_ids - profile_user_ids)
    return orphan_profiles, users_without_profile


async def cleanup_orphaned_data(db, dry_run: bool = False) -> dict:
    orphan_profiles, users_without_profile = await find_orphans(db)

    logger.info("=" * 80)
    logger.info("ORPHANED FREELANCER DATA CLEANUP" + (" (DRY RUN)" if dry_run else ""))
    logger.info("=" * 80)
    logger.info(f"  Profiles without user: {len(orphan_profiles)}")
    logger.info(f"  Freelancer users without profile: {len(users_without_profile)}")

    deleted = 0
    reset = 0
    if not dry_run:
        if orphan_profiles:
            result = await db.freelancer_profiles.delete_many({"user_id": {"$in": orphan_profiles}})
            deleted = result.deleted_count
            logger.info(f"✅ Deleted {deleted} orphaned freelancer profiles")

        if users_without_profile:
            result = await db.users.update_many(
                {"user_id": {"$in": users_without_profile}},
                {
                    "$set": {
                        "is_freelancer": False,
                        "freelancer_status": None,
                        "updated_at": datetime.now(timezone.utc).isoformat(),
                    },
                    "$pull": {"roles": "freelancer"},
                }
            )
            reset = result.modified_count
            logger.info(f"✅ Reset freelancer flag on {reset} users")

    return {
        "orphan_profiles": orphan_profiles,
        "users_without_profile": users_without_profile,
        "deleted_profiles": deleted,
        "reset_users": reset,
    }


async def main(dry_run: bool):
    async with get_db_context() as db:
        await cleanup_orphaned_data(db, dry_run=dry_run)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Remove orphaned freelancer data")
    parser.add_argument("--dry-run", action="store_true", help="Report only, change nothing")
    args = parser.parse_args()
    asyncio.run(main(args.dry_run))
