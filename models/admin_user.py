import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Uuid
from sqlalchemy.sql import func

from utils.clock import utcnow
from .base import Base


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, unique=True, nullable=False)
    name = Column(Text)
    password_hash = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())

    @property
    def reviewer_id(self) -> str:
        """Identifier recorded as reviewed_by on decisions"""
        return self.email
