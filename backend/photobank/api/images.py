"""Images: multi-file upload, moderation decision, binary stream."""
import asyncio

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from photobank.api.schemas import (
    ApproveRequest,
    Envelope,
    ImageRecordOut,
    ModerationOut,
    UploadResult,
)
from photobank.core.deps import get_binary_server, get_moderation_service, get_upload_pipeline, parse_uuid
from photobank.core.errors import ConfinementError, NotFoundError, PhotobankError
from photobank.core.metrics import record_moderation, record_served, record_upload_failure, record_upload_success
from photobank.db import get_db
from photobank.services.binary_server import BinaryServer
from photobank.services.image_transform import TransformOptions
from photobank.services.moderation import APPROVED, ModerationService
from photobank.services.records import ImageRecordStore
from photobank.services.upload_pipeline import UploadPipeline
from photobank.services.upload_validation import collect_uploads

router = APIRouter(prefix="/image", tags=["image"])


@router.post("/upload", status_code=status.HTTP_201_CREATED, response_model=Envelope[UploadResult])
async def upload_images(
    request: Request,
    images: list[UploadFile] | None = File(None),
    user_id: str | None = Form(None),
    fmt: str | None = Query(None, alias="format"),
    w: str | None = Query(None),
    q: str | None = Query(None),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
):
    try:
        # Parsing and bounding finish before any transform starts
        files = await collect_uploads(images)
        owner_id = parse_uuid(user_id, code="invalid_owner_id") if user_id else None
        request.state.owner_id = owner_id
        options = TransformOptions.from_query(fmt, w, q)
        saved = await pipeline.upload(owner_id, files, options)
    except PhotobankError:
        record_upload_failure()
        raise
    record_upload_success(len(saved))
    items = [ImageRecordOut.model_validate(r) for r in saved]
    return Envelope[UploadResult](
        message="Images uploaded",
        data=UploadResult(count=len(items), items=items),
    )


@router.post("/approve/{image_id}", response_model=Envelope[ModerationOut])
async def approve_image(
    image_id: str,
    body: ApproveRequest,
    service: ModerationService = Depends(get_moderation_service),
):
    """approve=true approves this image; approve=false purges ALL images of its owner."""
    result = await service.moderate(parse_uuid(image_id), body.approve)
    record_moderation("approve" if body.approve else "reject")
    if result.state == APPROVED:
        message = "Image approved"
    else:
        message = f"Removed {result.deleted_records} images of the owner"
    return Envelope[ModerationOut](
        message=message,
        data=ModerationOut(
            state=result.state,
            image=ImageRecordOut.model_validate(result.image) if result.image else None,
            owner_id=result.owner_id,
            deleted_records=result.deleted_records,
        ),
    )


@router.get("/get-images/{image_id}")
async def get_image(
    image_id: str,
    db: AsyncSession = Depends(get_db),
    server: BinaryServer = Depends(get_binary_server),
):
    record = await ImageRecordStore(db).find_by_id(parse_uuid(image_id))
    try:
        if record is None:
            raise NotFoundError("Image not found")
        served = await asyncio.to_thread(server.serve_image, record)
    except NotFoundError:
        record_served("image", "not_found")
        raise
    except ConfinementError:
        record_served("image", "rejected")
        raise
    record_served("image", "ok")
    return StreamingResponse(
        server.stream(served),
        media_type=served.media_type,
        headers=served.headers(server.cache_max_age),
    )
