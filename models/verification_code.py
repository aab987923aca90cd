# models/verification_code.py
import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Enum, JSON, Uuid, Index
from sqlalchemy.sql import func

from utils.clock import utcnow
from .base import Base
from .enums import ActionType


class VerificationCode(Base):
    """
    One-time numeric code bound to (email, action_type, action_data).
    The row is deleted when the code is consumed; expired rows are swept
    by the hourly cleanup.
    """
    __tablename__ = "verification_codes"

    id          = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email       = Column(Text, nullable=False)          # always lower-case
    code        = Column(Text, nullable=False)          # 4-8 digits, no leading zero
    action_type = Column(Enum(ActionType, native_enum=False, length=32), nullable=False)
    action_data = Column(JSON, nullable=False)
    expires_at  = Column(TIMESTAMP, nullable=False)
    created_at  = Column(TIMESTAMP, nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        Index("ix_verification_codes_email_action", "email", "action_type"),
        Index("ix_verification_codes_expires_at", "expires_at"),
    )
