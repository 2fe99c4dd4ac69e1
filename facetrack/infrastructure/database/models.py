"""SQLAlchemy models for the face track service."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from facetrack.domain.entities.face_track import utc_now


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class FaceTrackMapping(Base):
    """One resolved visitor identity and its generated track."""

    __tablename__ = "face_track_mappings"
    __table_args__ = (
        Index("idx_face_track_mappings_last_accessed", "last_accessed"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )
    track_id: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        comment="Deterministic hex track identifier"
    )
    face_descriptor: Mapped[Optional[List[int]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Normalized quantized face descriptor"
    )
    audio_url: Mapped[str] = mapped_column(
        String(1024),
        nullable=False
    )
    generated_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now
    )
    last_accessed: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now
    )
    user_email: Mapped[Optional[str]] = mapped_column(
        String(320),
        nullable=True
    )
    promotional_consent: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False
    )
