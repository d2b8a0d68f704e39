"""Pytest fixtures: test client, SQLite DB, temporary storage roots, test user, image factory."""
import io
import os
from uuid import uuid4

# Before photobank is imported: the module-level engine must not need Postgres
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image as PILImage
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from photobank.main import app
from photobank.db.models import Base, User
from photobank.db.session import get_db
from photobank.services.storage import LocalStorage, StorageContext, get_storage_context


@pytest.fixture
def storage(tmp_path) -> StorageContext:
    images = tmp_path / "images"
    avatars = tmp_path / "avatars"
    images.mkdir()
    avatars.mkdir()
    return StorageContext(images=LocalStorage(images), avatars=LocalStorage(avatars))


@pytest.fixture
async def db(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
async def client(db, storage):
    async def get_db_override():
        yield db
    app.dependency_overrides[get_db] = get_db_override
    app.dependency_overrides[get_storage_context] = lambda: storage
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def owner(db: AsyncSession) -> User:
    user = User(id=uuid4(), username="alice")
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
def make_image():
    """Factory: encoded image bytes of the given size, format and mode."""

    def _make(width: int = 64, height: int = 48, fmt: str = "JPEG", mode: str = "RGB", exif=None) -> bytes:
        color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
        img = PILImage.new(mode, (width, height), color)
        buf = io.BytesIO()
        kwargs = {"exif": exif} if exif is not None else {}
        img.save(buf, format=fmt, **kwargs)
        return buf.getvalue()

    return _make
