# models/email_template.py
import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Uuid

from utils.clock import utcnow
from .base import Base


class EmailTemplate(Base):
    """
    Admin-editable override of a built-in email template. Bodies use
    {{variable}} placeholders.
    """
    __tablename__ = "email_templates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    template_key = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text)
    subject = Column(Text, nullable=False)
    html_body = Column(Text, nullable=False)
    text_body = Column(Text, nullable=False)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow)
