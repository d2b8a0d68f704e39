"""Audit logging: image_approved, owner_purged, avatar_replaced. Never log secrets."""
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from photobank.db.models import AuditEvent
from photobank.core.logging_redaction import redact_for_log


async def log_audit(
    db: AsyncSession,
    event_type: str,
    subject_id: UUID | None = None,
    event_data: dict | None = None,
) -> None:
    safe_data = redact_for_log(event_data) if event_data else None
    event = AuditEvent(
        event_type=event_type,
        subject_id=subject_id,
        event_data=safe_data,
    )
    db.add(event)
    await db.flush()
