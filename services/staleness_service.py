"""
Scheduled scans over approved prayers.

Each scan is stateless and parameterised by its interval; the caller's
trigger cadence is the only rate limit. Running a reminder scan twice in the
same day sends the reminder twice, because last_reminder_sent is an audit
stamp and never feeds the "is it due" decision.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func as sql_func

from db import SessionLocal
from models import ApprovalStatus, Prayer, PrayerStatus, PrayerUpdate
from services.email_service import EmailDispatcher, send_template
from services.settings_service import AdminConfig, get_admin_config
from utils.clock import utcnow

logger = logging.getLogger(__name__)

OPEN_STATUSES = (PrayerStatus.CURRENT, PrayerStatus.ONGOING)


def last_activity_at(created_at: datetime, last_update_at: Optional[datetime]) -> datetime:
    if last_update_at is None:
        return created_at
    return max(created_at, last_update_at)


def _latest_updates():
    """Latest update time per prayer, joined in one query instead of one lookup per prayer."""
    return (
        select(
            PrayerUpdate.prayer_id.label("prayer_id"),
            sql_func.max(PrayerUpdate.created_at).label("last_update_at"),
        )
        .group_by(PrayerUpdate.prayer_id)
        .subquery()
    )


def scan_for_reminders(
    interval_days: int,
    now: Optional[datetime] = None,
    dispatcher: Optional[EmailDispatcher] = None,
) -> List[Prayer]:
    """
    Find approved current/ongoing prayers with no activity (creation or
    update) within interval_days and email their owners. Returns every due
    prayer, including ones skipped for having no email.
    """
    if not interval_days or interval_days <= 0:
        return []
    now = now or utcnow()
    cutoff = now - timedelta(days=interval_days)

    latest = _latest_updates()
    with SessionLocal() as db:
        rows = (
            db.query(Prayer, latest.c.last_update_at)
            .outerjoin(latest, latest.c.prayer_id == Prayer.id)
            .filter(
                Prayer.status.in_(OPEN_STATUSES),
                Prayer.approval_status == ApprovalStatus.APPROVED,
            )
            .all()
        )
        due = [p for p, last_update in rows if last_activity_at(p.created_at, last_update) < cutoff]

        sent = 0
        for prayer in due:
            if not prayer.email:
                logger.info(f"Skipping reminder for prayer {prayer.id}: no email address")
                continue
            result = send_template(
                prayer.email,
                "prayer_reminder",
                {
                    "requester_name": "Friend" if prayer.is_anonymous else prayer.requester,
                    "title": prayer.title,
                    "prayer_for": prayer.prayer_for,
                },
                dispatcher=dispatcher,
            )
            if result.sent:
                prayer.last_reminder_sent = now
                sent += 1
            else:
                logger.warning(f"Reminder for prayer {prayer.id} not delivered: {result.errors}")
        db.commit()

    logger.info(f"Reminder scan: {len(due)} due of {len(rows)} candidates, {sent} sent")
    return due


def scan_for_auto_transition(interval_days: int, now: Optional[datetime] = None) -> List[Prayer]:
    """
    Move approved 'current' prayers older than interval_days to 'ongoing'.
    Age is measured from creation only; updates do not reset it.
    """
    if not interval_days or interval_days <= 0:
        return []
    now = now or utcnow()
    cutoff = now - timedelta(days=interval_days)

    with SessionLocal() as db:
        prayers = (
            db.query(Prayer)
            .filter(
                Prayer.status == PrayerStatus.CURRENT,
                Prayer.approval_status == ApprovalStatus.APPROVED,
                Prayer.created_at < cutoff,
            )
            .all()
        )
        for prayer in prayers:
            prayer.status = PrayerStatus.ONGOING
        db.commit()

    if prayers:
        logger.info(f"Auto-transitioned {len(prayers)} prayers from current to ongoing")
    return prayers


def scan_for_auto_archive(days_before_archive: int, now: Optional[datetime] = None) -> List[Prayer]:
    """
    Close approved current/ongoing prayers whose last reminder is older than
    days_before_archive and that got no update after that reminder.
    """
    if not days_before_archive or days_before_archive <= 0:
        return []
    now = now or utcnow()
    cutoff = now - timedelta(days=days_before_archive)

    latest = _latest_updates()
    with SessionLocal() as db:
        rows = (
            db.query(Prayer, latest.c.last_update_at)
            .outerjoin(latest, latest.c.prayer_id == Prayer.id)
            .filter(
                Prayer.status.in_(OPEN_STATUSES),
                Prayer.approval_status == ApprovalStatus.APPROVED,
                Prayer.last_reminder_sent.isnot(None),
                Prayer.last_reminder_sent < cutoff,
            )
            .all()
        )
        archived = []
        for prayer, last_update in rows:
            if last_update is not None and last_update >= prayer.last_reminder_sent:
                continue
            prayer.status = PrayerStatus.CLOSED
            archived.append(prayer)
        db.commit()

    if archived:
        logger.info(f"Auto-archived {len(archived)} prayers with no update since their reminder")
    return archived


def run_scheduled_scans(
    config: Optional[AdminConfig] = None,
    now: Optional[datetime] = None,
    dispatcher: Optional[EmailDispatcher] = None,
) -> Dict[str, Any]:
    """The daily job: reminders, auto-transition, then auto-archive."""
    config = config or get_admin_config()
    now = now or utcnow()

    reminded = scan_for_reminders(config.reminder_interval_days, now=now, dispatcher=dispatcher)
    transitioned = scan_for_auto_transition(config.auto_transition_days, now=now)
    archived = (
        scan_for_auto_archive(config.days_before_archive, now=now)
        if config.enable_auto_archive
        else []
    )

    return {
        "reminders_due": len(reminded),
        "reminders_sent": sum(1 for p in reminded if p.last_reminder_sent == now),
        "transitioned": len(transitioned),
        "archived": len(archived),
    }
