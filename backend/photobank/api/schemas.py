"""Pydantic schemas for the image and user endpoints."""
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


def _config_forbid(**kwargs):
    return ConfigDict(extra="forbid", **kwargs)


class Envelope(BaseModel, Generic[T]):
    """Success wrapper: {"status": "success", "message": ..., "data": ...}."""

    model_config = _config_forbid()
    status: str = "success"
    message: str = "OK"
    data: T | None = None


class ErrorBody(BaseModel):
    model_config = _config_forbid()
    status: str = "error"
    code: str
    message: str


# ----- Images -----
class ImageRecordOut(BaseModel):
    """Public view of an ImageRecord. storage_path is relative to the images root."""

    model_config = _config_forbid(from_attributes=True)
    id: UUID
    owner_id: UUID
    storage_path: str
    approved: bool


class UploadResult(BaseModel):
    model_config = _config_forbid()
    count: int
    items: list[ImageRecordOut]


class ApproveRequest(BaseModel):
    model_config = _config_forbid()
    approve: bool


class ModerationOut(BaseModel):
    model_config = _config_forbid()
    state: str  # approved | purged
    image: ImageRecordOut | None = None
    owner_id: UUID | None = None
    deleted_records: int = 0


# ----- Users -----
class AvatarOut(BaseModel):
    model_config = _config_forbid(from_attributes=True)
    username: str
    avatar_path: str | None
