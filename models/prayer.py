# models/prayer.py
import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Enum, ForeignKey, Uuid, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from utils.clock import utcnow
from .base import Base
from .enums import ApprovalStatus, PrayerStatus


class Prayer(Base):
    """
    A prayer request. Only rows with approval_status = APPROVED are shown
    publicly or considered by the reminder / auto-transition scans.
    """
    __tablename__ = "prayers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    requester = Column(Text, nullable=False)
    prayer_for = Column(Text, nullable=False)
    prayer_type = Column(Text)
    email = Column(Text)                        # owner; reminders go here
    is_anonymous = Column(Boolean, nullable=False, default=False)

    status = Column(Enum(PrayerStatus, native_enum=False, length=16),
                    nullable=False, default=PrayerStatus.CURRENT)
    approval_status = Column(Enum(ApprovalStatus, native_enum=False, length=16),
                             nullable=False, default=ApprovalStatus.PENDING)

    date_answered = Column(TIMESTAMP)
    last_reminder_sent = Column(TIMESTAMP)
    created_at = Column(TIMESTAMP, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow)

    updates = relationship(
        "PrayerUpdate",
        back_populates="prayer",
        cascade="all, delete-orphan",
        order_by="PrayerUpdate.created_at",
    )

    @property
    def display_requester(self) -> str:
        return "Anonymous" if self.is_anonymous else self.requester


class PrayerUpdate(Base):
    __tablename__ = "prayer_updates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    prayer_id = Column(Uuid, ForeignKey("prayers.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    author = Column(Text, nullable=False)
    author_email = Column(Text)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    approval_status = Column(Enum(ApprovalStatus, native_enum=False, length=16),
                             nullable=False, default=ApprovalStatus.PENDING)
    created_at = Column(TIMESTAMP, nullable=False, default=utcnow, server_default=func.now())

    prayer = relationship("Prayer", back_populates="updates")


Index("ix_prayers_status_approval", Prayer.status, Prayer.approval_status)
Index("ix_prayer_updates_prayer_created", PrayerUpdate.prayer_id, PrayerUpdate.created_at)
