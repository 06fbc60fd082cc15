"""
Idempotent seed: test ADMIN and a demo CLIENT for local/testing, plus the skill catalog.
Override credentials with SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD / SEED_CLIENT_EMAIL / SEED_CLIENT_PASSWORD.
"""
import asyncio
from motor.motor_asyncio import AsyncIOMotorClient
from datetime import datetime, timezone
import os
import uuid
from pathlib import Path
from dotenv import load_dotenv
from passlib.context import CryptContext

load_dotenv(Path(__file__).resolve().parent / ".env")
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SEED_ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@skillnusa.com")
SEED_ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "Admin123!")
SEED_CLIENT_EMAIL = os.environ.get("SEED_CLIENT_EMAIL", "client@skillnusa.com")
SEED_CLIENT_PASSWORD = os.environ.get("SEED_CLIENT_PASSWORD", "Client123!")


def _user_doc(email: str, password: str, display_name: str, roles: list, bio: str = "") -> dict:
    return {
        "user_id": str(uuid.uuid4()),
        "email": email,
        "display_name": display_name,
        "password_hash": pwd_context.hash(password),
        "roles": roles,
        "active_role": roles[0],
        "is_freelancer": False,
        "freelancer_status": None,
        "bio": bio,
        "status": "ACTIVE",
        "last_login": None,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


async def seed_database():
    mongo_url = os.environ["MONGO_URL"]
    db_name = os.environ["DB_NAME"]
    client = AsyncIOMotorClient(mongo_url)
    db = client[db_name]

    print("Seeding database (idempotent)...")

    # 1) Test ADMIN
    admin_exists = await db.users.find_one({"email": SEED_ADMIN_EMAIL})
    if not admin_exists:
        await db.users.insert_one(_user_doc(SEED_ADMIN_EMAIL, SEED_ADMIN_PASSWORD, "Admin", ["admin", "client"]))
        print(f"  ADMIN created: {SEED_ADMIN_EMAIL}")
    else:
        print(f"  ADMIN already exists: {SEED_ADMIN_EMAIL}")

    # 2) Demo CLIENT (can walk through the freelancer wizard)
    client_exists = await db.users.find_one({"email": SEED_CLIENT_EMAIL})
    if not client_exists:
        await db.users.insert_one(_user_doc(
            SEED_CLIENT_EMAIL,
            SEED_CLIENT_PASSWORD,
            "Demo Client",
            ["client"],
            bio="Designer and front-end developer with five years of freelance experience.",
        ))
        print(f"  CLIENT created: {SEED_CLIENT_EMAIL}")
    else:
        print(f"  CLIENT already exists: {SEED_CLIENT_EMAIL}")

    # 3) Skill catalog
    from services.skill_catalog import seed_skill_catalog
    result = await seed_skill_catalog(db)
    print(f"  Skills: {result['created']} created, {result['skipped']} skipped")

    print("Seed complete.")
    client.close()


if __name__ == "__main__":
    asyncio.run(seed_database())
