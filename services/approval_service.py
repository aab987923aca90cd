from __future__ import annotations
import uuid
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import SessionLocal
from models import (
    ActionType,
    ApprovalStatus,
    EmailSubscriber,
    PendingRequest,
    Prayer,
    PrayerStatus,
    PrayerUpdate,
)
from services.action_payloads import ActionPayload, parse_action_data
from services.email_service import EmailDispatcher, broadcast_to_subscribers, send_template
from services.errors import (
    AlreadyReviewed,
    InvalidActionData,
    MissingDenialReason,
    RequestNotFound,
    SideEffectFailure,
)
from services.pending_request_service import ACTION_LABELS, summarize
from utils.clock import utcnow

logger = logging.getLogger(__name__)


class TargetMissing(LookupError):
    """The prayer or update a request refers to no longer exists."""


# ────────────────────────────────────────────────────────────
# Side effects, one per action type
# ────────────────────────────────────────────────────────────
def _load_prayer(db: Session, prayer_id: str) -> Prayer:
    prayer = db.get(Prayer, uuid.UUID(prayer_id))
    if prayer is None:
        raise TargetMissing(f"prayer {prayer_id} no longer exists")
    return prayer


def _apply_prayer_submission(db, request, payload, now) -> Dict[str, Any]:
    prayer = Prayer(
        title=payload.title,
        description=payload.description,
        requester=payload.requester,
        prayer_for=payload.prayer_for,
        prayer_type=payload.prayer_type,
        is_anonymous=payload.is_anonymous,
        email=request.submitter_email,
        status=PrayerStatus.CURRENT,
        approval_status=ApprovalStatus.APPROVED,
        created_at=now,
    )
    db.add(prayer)
    db.flush()
    return {"prayer": prayer}


def _apply_prayer_update(db, request, payload, now) -> Dict[str, Any]:
    prayer = _load_prayer(db, payload.prayer_id)
    update = PrayerUpdate(
        prayer_id=prayer.id,
        content=payload.content,
        author=payload.author,
        author_email=request.submitter_email,
        is_anonymous=payload.is_anonymous,
        approval_status=ApprovalStatus.APPROVED,
        created_at=now,
    )
    db.add(update)
    if payload.mark_as_answered:
        prayer.status = PrayerStatus.ANSWERED
        prayer.date_answered = now
    db.flush()
    return {"prayer": prayer, "update": update}


def _apply_prayer_deletion(db, request, payload, now) -> Dict[str, Any]:
    prayer = _load_prayer(db, payload.prayer_id)
    db.delete(prayer)
    db.flush()
    return {"prayer": prayer}


def _apply_status_change(db, request, payload, now) -> Dict[str, Any]:
    prayer = _load_prayer(db, payload.prayer_id)
    previous = prayer.status
    prayer.status = payload.status
    prayer.date_answered = now if payload.status == PrayerStatus.ANSWERED else None
    db.flush()
    return {"prayer": prayer, "previous_status": previous}


def _apply_update_deletion(db, request, payload, now) -> Dict[str, Any]:
    update = db.get(PrayerUpdate, uuid.UUID(payload.update_id))
    if update is None:
        raise TargetMissing(f"update {payload.update_id} no longer exists")
    db.delete(update)
    db.flush()
    return {"update": update}


def _apply_preference_change(db, request, payload, now) -> Dict[str, Any]:
    subscriber = (
        db.query(EmailSubscriber)
        .filter(EmailSubscriber.email == request.submitter_email)
        .first()
    )
    if subscriber is None:
        subscriber = EmailSubscriber(
            name=payload.name,
            email=request.submitter_email,
            is_active=payload.receive_notifications,
        )
        db.add(subscriber)
    else:
        subscriber.name = payload.name
        subscriber.is_active = payload.receive_notifications
    db.flush()
    return {"subscriber": subscriber}


_APPLIERS: Dict[ActionType, Callable[[Session, PendingRequest, ActionPayload, datetime], Dict[str, Any]]] = {
    ActionType.PRAYER_SUBMISSION: _apply_prayer_submission,
    ActionType.PRAYER_UPDATE: _apply_prayer_update,
    ActionType.PRAYER_DELETION: _apply_prayer_deletion,
    ActionType.STATUS_CHANGE: _apply_status_change,
    ActionType.UPDATE_DELETION: _apply_update_deletion,
    ActionType.PREFERENCE_CHANGE: _apply_preference_change,
}


# ────────────────────────────────────────────────────────────
# Decisions
# ────────────────────────────────────────────────────────────
def _as_uuid(request_id) -> uuid.UUID:
    if isinstance(request_id, uuid.UUID):
        return request_id
    try:
        return uuid.UUID(str(request_id))
    except ValueError:
        raise RequestNotFound(request_id)


def _load_pending(db: Session, rid: uuid.UUID) -> PendingRequest:
    request = (
        db.query(PendingRequest)
        .filter(PendingRequest.id == rid)
        .with_for_update()
        .first()
    )
    if request is None:
        raise RequestNotFound(rid)
    if request.approval_status != ApprovalStatus.PENDING:
        raise AlreadyReviewed(rid, request.approval_status)
    return request


def _mark_reviewed(db: Session, rid: uuid.UUID, values: Dict[str, Any]) -> None:
    """Flip pending -> approved/denied; losing a concurrent race raises AlreadyReviewed."""
    flipped = (
        db.query(PendingRequest)
        .filter(
            PendingRequest.id == rid,
            PendingRequest.approval_status == ApprovalStatus.PENDING,
        )
        .update(values, synchronize_session=False)
    )
    if flipped != 1:
        db.rollback()
        current = db.get(PendingRequest, rid)
        raise AlreadyReviewed(rid, current.approval_status if current else "reviewed")


def approve_request(
    request_id,
    reviewer: str,
    dispatcher: Optional[EmailDispatcher] = None,
    now: Optional[datetime] = None,
) -> PendingRequest:
    """
    Apply a pending request and mark it approved in one transaction. If the
    side effect fails nothing is committed and SideEffectFailure is raised,
    so the request stays pending and can be retried.
    """
    rid = _as_uuid(request_id)
    now = now or utcnow()

    with SessionLocal() as db:
        request = _load_pending(db, rid)

        try:
            payload = parse_action_data(request.action_type, request.action_data)
            outcome = _APPLIERS[request.action_type](db, request, payload, now)
        except (SQLAlchemyError, LookupError, InvalidActionData) as e:
            db.rollback()
            logger.error(f"Approval of {rid} ({request.action_type.value}) not applied: {e}")
            raise SideEffectFailure(rid, str(e)) from e

        _mark_reviewed(db, rid, {
            PendingRequest.approval_status: ApprovalStatus.APPROVED,
            PendingRequest.reviewed_by: reviewer,
            PendingRequest.reviewed_at: now,
        })

        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Approval of {rid} failed to commit: {e}")
            raise SideEffectFailure(rid, str(e)) from e

        db.refresh(request)

    logger.info(f"Approved {request.action_type.value} request {rid} by {reviewer}")
    _notify_approved(request, payload, outcome, dispatcher)
    return request


def deny_request(
    request_id,
    reviewer: str,
    reason: str,
    dispatcher: Optional[EmailDispatcher] = None,
    now: Optional[datetime] = None,
) -> PendingRequest:
    if not isinstance(reason, str) or not reason.strip():
        raise MissingDenialReason()
    reason = reason.strip()

    rid = _as_uuid(request_id)
    now = now or utcnow()

    with SessionLocal() as db:
        request = _load_pending(db, rid)
        _mark_reviewed(db, rid, {
            PendingRequest.approval_status: ApprovalStatus.DENIED,
            PendingRequest.reviewed_by: reviewer,
            PendingRequest.reviewed_at: now,
            PendingRequest.denial_reason: reason,
        })
        db.commit()
        db.refresh(request)

    logger.info(f"Denied {request.action_type.value} request {rid} by {reviewer}")
    _notify_denied(request, dispatcher)
    return request


# ────────────────────────────────────────────────────────────
# Notifications (best-effort, after the decision is committed).
# Subscriber broadcasts only go into the outbox; the outbox timer sends them.
# ────────────────────────────────────────────────────────────
def _notify_approved(request: PendingRequest, payload, outcome: Dict[str, Any], dispatcher) -> None:
    try:
        result = send_template(
            request.submitter_email,
            "request_approved",
            {
                "name": request.submitter_name,
                "action_label": ACTION_LABELS[request.action_type],
                "summary": summarize(request.action_type, request.action_data),
            },
            dispatcher=dispatcher,
        )
        if not result.ok:
            logger.warning(f"Approval notice for {request.id} not delivered: {result.errors}")

        if request.action_type == ActionType.PRAYER_SUBMISSION:
            prayer = outcome["prayer"]
            broadcast_to_subscribers(
                "new_prayer_broadcast",
                {
                    "title": prayer.title,
                    "prayer_for": prayer.prayer_for,
                    "requester": prayer.display_requester,
                    "description": prayer.description,
                },
            )
        elif request.action_type == ActionType.PRAYER_UPDATE:
            prayer, update = outcome["prayer"], outcome["update"]
            broadcast_to_subscribers(
                "prayer_update_broadcast",
                {
                    "title": prayer.title,
                    "author": "Anonymous" if update.is_anonymous else update.author,
                    "content": update.content,
                },
            )
    except Exception as e:
        logger.warning(f"Notifications for approved request {request.id} failed: {e}")


def _notify_denied(request: PendingRequest, dispatcher) -> None:
    try:
        result = send_template(
            request.submitter_email,
            "request_denied",
            {
                "name": request.submitter_name,
                "action_label": ACTION_LABELS[request.action_type],
                "summary": summarize(request.action_type, request.action_data),
                "denial_reason": request.denial_reason,
            },
            dispatcher=dispatcher,
        )
        if not result.ok:
            logger.warning(f"Denial notice for {request.id} not delivered: {result.errors}")
    except Exception as e:
        logger.warning(f"Notification for denied request {request.id} failed: {e}")
