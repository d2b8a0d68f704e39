"""FastAPI dependencies: services wired to the request's DB session and the storage context."""
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from photobank.core.config import get_settings
from photobank.core.errors import ValidationError
from photobank.db import get_db
from photobank.services.avatars import AvatarService
from photobank.services.binary_server import BinaryServer
from photobank.services.moderation import ModerationService
from photobank.services.records import ImageRecordStore, UserDirectory
from photobank.services.storage import StorageContext, get_storage_context
from photobank.services.upload_pipeline import UploadPipeline


def parse_uuid(value: str | None, code: str = "invalid_id") -> UUID:
    """Parse a path/form identifier; 400 with a stable code when malformed."""
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError("Invalid id", code=code)


def get_upload_pipeline(
    db: AsyncSession = Depends(get_db),
    storage: StorageContext = Depends(get_storage_context),
) -> UploadPipeline:
    return UploadPipeline(storage, UserDirectory(db), ImageRecordStore(db))


def get_moderation_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageContext = Depends(get_storage_context),
) -> ModerationService:
    return ModerationService(db, storage, UserDirectory(db), ImageRecordStore(db))


def get_avatar_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageContext = Depends(get_storage_context),
) -> AvatarService:
    return AvatarService(db, storage, UserDirectory(db))


def get_binary_server(storage: StorageContext = Depends(get_storage_context)) -> BinaryServer:
    return BinaryServer(storage)


def require_metrics_access(
    x_metrics_secret: str | None = Header(None, alias="X-Metrics-Secret"),
) -> None:
    """Allow /metrics if no secret is configured (local) or the X-Metrics-Secret header matches."""
    s = get_settings()
    if s.metrics_secret and x_metrics_secret != s.metrics_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing X-Metrics-Secret",
        )
