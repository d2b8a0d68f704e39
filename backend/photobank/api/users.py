"""Users: avatar stream and avatar replacement."""
import asyncio

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from photobank.api.schemas import AvatarOut, Envelope
from photobank.core.config import get_settings
from photobank.core.deps import get_avatar_service, get_binary_server
from photobank.core.errors import ConfinementError, NotFoundError
from photobank.core.metrics import record_served
from photobank.db import get_db
from photobank.services.avatars import AvatarService
from photobank.services.binary_server import BinaryServer
from photobank.services.records import UserDirectory
from photobank.services.upload_validation import IncomingFile, read_bounded

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/get-avatar/{username}")
async def get_avatar(
    username: str,
    db: AsyncSession = Depends(get_db),
    server: BinaryServer = Depends(get_binary_server),
):
    user = await UserDirectory(db).find_by_username(username)
    try:
        if user is None:
            raise NotFoundError("Not found")
        served = await asyncio.to_thread(server.serve_avatar, user)
    except NotFoundError:
        record_served("avatar", "not_found")
        raise
    except ConfinementError:
        record_served("avatar", "rejected")
        raise
    record_served("avatar", "ok")
    return StreamingResponse(
        server.stream(served),
        media_type=served.media_type,
        headers=served.headers(server.cache_max_age),
    )


@router.post("/avatar/{username}", response_model=Envelope[AvatarOut])
async def replace_avatar(
    username: str,
    avatar: UploadFile = File(...),
    service: AvatarService = Depends(get_avatar_service),
):
    data = await read_bounded(avatar, get_settings().max_upload_bytes)
    incoming = IncomingFile(filename=avatar.filename, content_type=avatar.content_type or "", data=data)
    user = await service.replace_avatar(username, incoming)
    return Envelope[AvatarOut](message="Avatar updated", data=AvatarOut.model_validate(user))
