"""SQLAlchemy models: users (external directory, minimal columns), images, audit events."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def gen_uuid() -> uuid.UUID:
    return uuid.uuid4()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=gen_uuid)
    # Storage namespace: images/<username>/, avatars/<username>/
    username: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    # Relative to the avatar root
    avatar_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    images: Mapped[list["Image"]] = relationship("Image", back_populates="owner")


class Image(Base):
    """Metadata for one stored file. storage_path is relative to the images root."""

    __tablename__ = "images"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=gen_uuid)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    storage_path: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    owner: Mapped["User"] = relationship("User", back_populates="images")

    __table_args__ = (Index("ix_images_owner_id", "owner_id"),)


class AuditEvent(Base):
    """Moderation and avatar changes. event_data is redacted before insert."""

    __tablename__ = "audit_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=gen_uuid)
    event_type: Mapped[str] = mapped_column(Text, nullable=False)  # image_approved, owner_purged, avatar_replaced
    subject_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    event_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (Index("ix_audit_events_type_created", "event_type", "created_at"),)
