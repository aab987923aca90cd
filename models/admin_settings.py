# models/admin_settings.py
from sqlalchemy import Column, Integer, Boolean, TIMESTAMP, JSON, CheckConstraint
from sqlalchemy.sql import func

from utils.clock import utcnow
from .base import Base

SETTINGS_ROW_ID = 1


class AdminSettings(Base):
    """
    Singleton row (id = 1) of administrator-tunable settings. Read fresh on
    every submission and scan so changes apply without a restart.
    """
    __tablename__ = "admin_settings"

    id = Column(Integer, primary_key=True, default=SETTINGS_ROW_ID)

    require_email_verification = Column(Boolean, nullable=False, default=False)
    verification_code_length = Column(Integer, nullable=False, default=6)
    verification_code_expiry_minutes = Column(Integer, nullable=False, default=15)

    reminder_interval_days = Column(Integer, nullable=False, default=0)   # 0 = off
    auto_transition_days = Column(Integer, nullable=False, default=0)     # 0 = off
    enable_auto_archive = Column(Boolean, nullable=False, default=False)
    days_before_archive = Column(Integer, nullable=False, default=7)

    notification_emails = Column(JSON, nullable=False, default=list)

    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint("id = 1", name="admin_settings_singleton"),
        CheckConstraint("verification_code_length BETWEEN 4 AND 8",
                        name="admin_settings_code_length"),
        CheckConstraint("verification_code_expiry_minutes BETWEEN 5 AND 60",
                        name="admin_settings_code_expiry"),
    )
