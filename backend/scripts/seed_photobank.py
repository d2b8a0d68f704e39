"""
Seed script for local dev: two users, one with a placeholder avatar in avatars/<username>/.
Run from backend/: python scripts/seed_photobank.py
"""
import asyncio
import os
import sys
import uuid
from pathlib import Path

from sqlalchemy import select

# Add parent to path so photobank is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from PIL import Image as PILImage

from photobank.core.config import get_settings
from photobank.db.models import User
from photobank.db.session import async_session_factory, init_db

settings = get_settings()

DEMO_USERNAMES = ("alice", "bob")


def create_placeholder_avatar(path: Path, size: int = 64) -> None:
    """Write a small solid-colour PNG to path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    PILImage.new("RGB", (size, size), (90, 140, 200)).save(path, format="PNG")


async def seed():
    await init_db()

    Path(settings.images_dir).mkdir(parents=True, exist_ok=True)
    avatars_dir = Path(settings.avatars_dir)
    avatars_dir.mkdir(parents=True, exist_ok=True)

    async with async_session_factory() as db:
        r = await db.execute(select(User).limit(1))
        if r.scalar_one_or_none():
            print("Already seeded. Skip.")
            return

        users = []
        for name in DEMO_USERNAMES:
            users.append(User(id=uuid.uuid4(), username=name))
        avatar_key = f"{users[0].username}/0-placeholder.png"
        create_placeholder_avatar(avatars_dir / avatar_key)
        users[0].avatar_path = avatar_key

        db.add_all(users)
        await db.commit()
        for u in users:
            print(f"user {u.username}: {u.id}")


if __name__ == "__main__":
    asyncio.run(seed())
