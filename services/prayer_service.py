# services/prayer_service.py
from __future__ import annotations
import uuid
from typing import List, Optional

from sqlalchemy.orm import selectinload

from db import SessionLocal
from models import ApprovalStatus, Prayer, PrayerStatus


def list_public_prayers(status: Optional[PrayerStatus] = None) -> List[Prayer]:
    """Approved prayers, newest first, with their updates loaded."""
    with SessionLocal() as db:
        query = (
            db.query(Prayer)
            .options(selectinload(Prayer.updates))
            .filter(Prayer.approval_status == ApprovalStatus.APPROVED)
        )
        if status is not None:
            query = query.filter(Prayer.status == status)
        return query.order_by(Prayer.created_at.desc()).all()


def get_public_prayer(prayer_id: uuid.UUID) -> Optional[Prayer]:
    with SessionLocal() as db:
        return (
            db.query(Prayer)
            .options(selectinload(Prayer.updates))
            .filter(
                Prayer.id == prayer_id,
                Prayer.approval_status == ApprovalStatus.APPROVED,
            )
            .first()
        )


def public_updates(prayer: Prayer):
    return [u for u in prayer.updates if u.approval_status == ApprovalStatus.APPROVED]
