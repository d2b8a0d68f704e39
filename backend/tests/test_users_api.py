"""Avatar stream and replacement."""
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from photobank.core.errors import ConfinementError
from photobank.db.models import User
from photobank.services.avatars import AvatarService
from photobank.services.records import UserDirectory
from photobank.services.upload_validation import IncomingFile


@pytest.fixture
async def avatar_user(db: AsyncSession, storage, make_image):
    data = make_image(32, 32, fmt="PNG")
    (storage.avatars.root / "carol").mkdir()
    (storage.avatars.root / "carol" / "1-me.png").write_bytes(data)
    # Stored with a redundant root prefix and Windows separators
    user = User(id=uuid4(), username="carol", avatar_path="avatars\\carol\\1-me.png")
    db.add(user)
    await db.commit()
    return user, data


@pytest.mark.asyncio
async def test_get_avatar(client: AsyncClient, avatar_user):
    _, data = avatar_user
    r = await client.get("/user/get-avatar/carol")
    assert r.status_code == 200
    assert r.content == data
    assert r.headers["content-type"] == "image/png"
    assert r.headers["cache-control"] == "public, max-age=86400"
    assert r.headers["content-disposition"] == 'inline; filename="1-me.png"'


@pytest.mark.asyncio
async def test_get_avatar_unknown_user_or_no_avatar(client: AsyncClient, owner):
    assert (await client.get("/user/get-avatar/nobody")).status_code == 404
    assert (await client.get("/user/get-avatar/alice")).status_code == 404


@pytest.mark.asyncio
async def test_get_avatar_traversal_rejected(client: AsyncClient, db: AsyncSession):
    db.add(User(id=uuid4(), username="mallory", avatar_path="../../etc/passwd"))
    await db.commit()
    r = await client.get("/user/get-avatar/mallory")
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_path"


@pytest.mark.asyncio
async def test_replace_avatar(client: AsyncClient, avatar_user, storage, make_image):
    user, _ = avatar_user
    r = await client.post(
        "/user/avatar/carol",
        files={"avatar": ("New Me.JPG", make_image(20, 20), "image/jpeg")},
    )
    assert r.status_code == 200
    path = r.json()["data"]["avatar_path"]
    assert path.startswith("carol/")
    assert path.endswith("-new_me.jpg")
    assert (storage.avatars.root / path).is_file()
    assert not (storage.avatars.root / "carol" / "1-me.png").exists()

    r = await client.get("/user/get-avatar/carol")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/jpeg"


@pytest.mark.asyncio
async def test_replace_avatar_rejects_extension(client: AsyncClient, avatar_user, make_image):
    r = await client.post(
        "/user/avatar/carol",
        files={"avatar": ("anim.gif", b"GIF89a", "image/gif")},
    )
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_type"


@pytest.mark.asyncio
async def test_replace_avatar_unknown_user(client: AsyncClient, make_image):
    r = await client.post(
        "/user/avatar/ghost",
        files={"avatar": ("me.png", make_image(8, 8, fmt="PNG"), "image/png")},
    )
    assert r.status_code == 404



@pytest.mark.asyncio
async def test_replace_avatar_nested_username_rejected(db: AsyncSession, storage, make_image):
    db.add(User(id=uuid4(), username="carol/dave"))
    await db.commit()
    service = AvatarService(db, storage, UserDirectory(db))
    with pytest.raises(ConfinementError):
        await service.replace_avatar("carol/dave", IncomingFile("me.png", "image/png", make_image(8, 8, fmt="PNG")))
    assert list(storage.avatars.root.iterdir()) == []
