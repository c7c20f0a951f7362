"""SQLAlchemy ORM models for activities and their engagement."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from linkup.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Activity(Base):
    __tablename__ = "activities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    image_url = Column(String(1024), nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    place_name = Column(String(512), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    max_people = Column(Integer, nullable=True)
    joined = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True)

    creator = relationship("User", back_populates="activities")
    likes = relationship("ActivityLike", back_populates="activity", cascade="all, delete-orphan")
    participants = relationship(
        "ActivityParticipant",
        back_populates="activity",
        cascade="all, delete-orphan",
        order_by="ActivityParticipant.joined_at",
    )


class ActivityLike(Base):
    __tablename__ = "activity_likes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    activity_id = Column(UUID(as_uuid=True), ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    activity = relationship("Activity", back_populates="likes")

    __table_args__ = (UniqueConstraint("activity_id", "user_id", name="uq_activity_likes_activity_user"),)


class ActivityParticipant(Base):
    __tablename__ = "activity_participants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    activity_id = Column(UUID(as_uuid=True), ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    joined_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)

    activity = relationship("Activity", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("activity_id", "user_id", name="uq_activity_participants_activity_user"),
    )


__all__ = ["Activity", "ActivityLike", "ActivityParticipant"]
