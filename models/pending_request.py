# models/pending_request.py
import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Enum, JSON, Uuid, Index
from sqlalchemy.sql import func

from utils.clock import utcnow
from .base import Base
from .enums import ActionType, ApprovalStatus


class PendingRequest(Base):
    """
    A submitted action awaiting an admin decision. All six action types
    share this table; action_type selects the payload shape in action_data.
    """
    __tablename__ = "pending_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    action_type = Column(Enum(ActionType, native_enum=False, length=32), nullable=False)
    action_data = Column(JSON, nullable=False)
    submitter_email = Column(Text, nullable=False)
    submitter_name = Column(Text, nullable=False)

    approval_status = Column(Enum(ApprovalStatus, native_enum=False, length=16),
                             nullable=False, default=ApprovalStatus.PENDING)
    reviewed_by = Column(Text)
    reviewed_at = Column(TIMESTAMP)
    denial_reason = Column(Text)

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        Index("ix_pending_requests_type_status", "action_type", "approval_status"),
        Index("ix_pending_requests_submitter", "submitter_email"),
    )
