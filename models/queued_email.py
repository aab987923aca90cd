# models/queued_email.py
import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Integer, Uuid, Index
from sqlalchemy.sql import func

from utils.clock import utcnow
from .base import Base


class QueuedEmail(Base):
    """
    A rendered message for one recipient, waiting for the outbox timer.
    sent_at stays NULL until delivery succeeds.
    """
    __tablename__ = "email_outbox"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    to_address = Column(Text, nullable=False)
    template_key = Column(Text, nullable=False)
    subject = Column(Text, nullable=False)
    html_body = Column(Text, nullable=False)
    text_body = Column(Text, nullable=False)

    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)
    created_at = Column(TIMESTAMP, nullable=False, default=utcnow, server_default=func.now())
    sent_at = Column(TIMESTAMP)

    __table_args__ = (
        Index("ix_email_outbox_unsent", "sent_at", "created_at"),
    )
