from __future__ import annotations
import uuid
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func as sql_func

from db import SessionLocal
from models import ActionType, ApprovalStatus, PendingRequest
from services.action_payloads import parse_action_type, parse_action_data, payload_to_dict
from services.email_service import EmailDispatcher, send_template
from services.email_templates import APP_URL
from services.errors import RequestNotFound
from services.settings_service import get_admin_config

logger = logging.getLogger(__name__)

ACTION_LABELS = {
    ActionType.PRAYER_SUBMISSION: "prayer request",
    ActionType.PRAYER_UPDATE: "prayer update",
    ActionType.PRAYER_DELETION: "prayer deletion request",
    ActionType.STATUS_CHANGE: "status change request",
    ActionType.UPDATE_DELETION: "update deletion request",
    ActionType.PREFERENCE_CHANGE: "email preference change",
}


def summarize(action_type: ActionType, data: Dict[str, Any]) -> str:
    """One-line description of a request for notification emails."""
    if action_type == ActionType.PRAYER_SUBMISSION:
        return f"{data.get('title')} (for {data.get('prayer_for')})"
    if action_type == ActionType.PRAYER_UPDATE:
        return data.get("content") or ""
    if action_type == ActionType.STATUS_CHANGE:
        reason = f": {data['reason']}" if data.get("reason") else ""
        return f"Change status to '{data.get('requested_status')}'{reason}"
    if action_type in (ActionType.PRAYER_DELETION, ActionType.UPDATE_DELETION):
        return f"Reason: {data.get('reason')}"
    if action_type == ActionType.PREFERENCE_CHANGE:
        return (
            "Subscribe to new prayer emails"
            if data.get("receive_notifications")
            else "Unsubscribe from new prayer emails"
        )
    return ""


def enqueue(
    action_type,
    action_data: Dict[str, Any],
    submitter_email: str,
    submitter_name: str,
    dispatcher: Optional[EmailDispatcher] = None,
    notify_admins: bool = True,
    config=None,
) -> PendingRequest:
    """
    Queue a request for admin review. Duplicates are not collapsed; each
    submission gets its own row.
    """
    action_type = parse_action_type(action_type)
    payload = parse_action_data(action_type, action_data)
    email_lc = (submitter_email or "").strip().lower()
    if not email_lc:
        raise ValueError("submitter email is required")

    with SessionLocal() as db:
        request = PendingRequest(
            action_type=action_type,
            action_data=payload_to_dict(payload),
            submitter_email=email_lc,
            submitter_name=(submitter_name or payload.submitter_name).strip(),
            approval_status=ApprovalStatus.PENDING,
        )
        db.add(request)
        db.commit()
        db.refresh(request)

    logger.info(f"Queued {action_type.value} request {request.id}")

    if notify_admins:
        _notify_admins(request, config, dispatcher)
    return request


def _notify_admins(request: PendingRequest, config, dispatcher: Optional[EmailDispatcher]) -> None:
    try:
        recipients = (config or get_admin_config()).notification_emails
    except Exception as e:
        logger.warning(f"Could not load admin recipients for request {request.id}: {e}")
        return
    if not recipients:
        return

    result = send_template(
        recipients,
        "admin_new_request",
        {
            "action_label": ACTION_LABELS[request.action_type],
            "submitter_name": request.submitter_name,
            "submitter_email": request.submitter_email,
            "summary": summarize(request.action_type, request.action_data),
            "admin_link": f"{APP_URL}/admin",
        },
        dispatcher=dispatcher,
    )
    if not result.ok:
        logger.warning(f"Admin notification for request {request.id} failed: {result.errors}")


def get_request(request_id) -> PendingRequest:
    try:
        rid = request_id if isinstance(request_id, uuid.UUID) else uuid.UUID(str(request_id))
    except ValueError:
        raise RequestNotFound(request_id)
    with SessionLocal() as db:
        request = db.get(PendingRequest, rid)
    if request is None:
        raise RequestNotFound(rid)
    return request


def list_requests(status: ApprovalStatus, action_type=None) -> List[PendingRequest]:
    with SessionLocal() as db:
        query = db.query(PendingRequest).filter(PendingRequest.approval_status == status)
        if action_type is not None:
            query = query.filter(PendingRequest.action_type == parse_action_type(action_type))
        if status == ApprovalStatus.PENDING:
            query = query.order_by(PendingRequest.created_at.asc())
        else:
            query = query.order_by(PendingRequest.reviewed_at.desc())
        return query.all()


def list_pending(action_type=None) -> List[PendingRequest]:
    return list_requests(ApprovalStatus.PENDING, action_type)


def list_denied(action_type=None) -> List[PendingRequest]:
    return list_requests(ApprovalStatus.DENIED, action_type)


def count_by_status(status: ApprovalStatus) -> Dict[ActionType, int]:
    """Per-action-type counts for one status, with every type present."""
    counts = {t: 0 for t in ActionType}
    with SessionLocal() as db:
        rows = (
            db.query(PendingRequest.action_type, sql_func.count(PendingRequest.id))
            .filter(PendingRequest.approval_status == status)
            .group_by(PendingRequest.action_type)
            .all()
        )
    for action_type, count in rows:
        counts[action_type] = count
    return counts
