# models/email_subscriber.py
import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Uuid
from sqlalchemy.sql import func

from utils.clock import utcnow
from .base import Base


class EmailSubscriber(Base):
    __tablename__ = "email_subscribers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    email = Column(Text, unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)   # receives new-prayer emails
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow)
