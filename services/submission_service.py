"""
Entry point for member submissions.

With email verification off, a validated submission goes straight to the
pending queue. With it on, the payload is parked server-side behind a
one-time code and only queued once confirm() consumes that code.
"""
import re
import uuid
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from models import PendingRequest
from services.action_payloads import parse_action_type, parse_action_data, payload_to_dict
from services.email_service import EmailDispatcher
from services.errors import InvalidActionData
from services.pending_request_service import enqueue
from services.settings_service import AdminConfig, get_admin_config
from services.verification_service import issue_code, resend_code, validate_code

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class SubmissionResult:
    verification_required: bool
    request: Optional[PendingRequest] = None
    code_id: Optional[uuid.UUID] = None
    expires_at: Optional[datetime] = None


def _prepare(email: str, action_type, action_data: Dict[str, Any]):
    email_lc = (email or "").strip().lower()
    if not _EMAIL_RE.match(email_lc):
        raise InvalidActionData("A valid email address is required")
    action_type = parse_action_type(action_type)
    payload = parse_action_data(action_type, action_data)
    return email_lc, action_type, payload


def submit(
    email: str,
    action_type,
    action_data: Dict[str, Any],
    config: Optional[AdminConfig] = None,
    dispatcher: Optional[EmailDispatcher] = None,
) -> SubmissionResult:
    email_lc, action_type, payload = _prepare(email, action_type, action_data)
    config = config or get_admin_config()
    data = payload_to_dict(payload)

    if not config.require_email_verification:
        request = enqueue(
            action_type, data, email_lc, payload.submitter_name,
            dispatcher=dispatcher, config=config,
        )
        return SubmissionResult(verification_required=False, request=request)

    issued = issue_code(
        email_lc,
        action_type,
        data,
        length=config.verification_code_length,
        ttl_minutes=config.verification_code_expiry_minutes,
        dispatcher=dispatcher,
    )
    return SubmissionResult(
        verification_required=True,
        code_id=issued.code_id,
        expires_at=issued.expires_at,
    )


def resend(
    email: str,
    action_type,
    action_data: Dict[str, Any],
    config: Optional[AdminConfig] = None,
    dispatcher: Optional[EmailDispatcher] = None,
) -> SubmissionResult:
    """Issue a new code for the same action; the previous code id is abandoned."""
    email_lc, action_type, payload = _prepare(email, action_type, action_data)
    config = config or get_admin_config()
    issued = resend_code(
        email_lc,
        action_type,
        payload_to_dict(payload),
        length=config.verification_code_length,
        ttl_minutes=config.verification_code_expiry_minutes,
        dispatcher=dispatcher,
    )
    return SubmissionResult(
        verification_required=True,
        code_id=issued.code_id,
        expires_at=issued.expires_at,
    )


def confirm(
    code_id,
    code: str,
    config: Optional[AdminConfig] = None,
    dispatcher: Optional[EmailDispatcher] = None,
    now: Optional[datetime] = None,
) -> PendingRequest:
    """Consume a verification code and queue the action it was issued for."""
    verified = validate_code(code_id, code, now=now)
    payload = parse_action_data(verified.action_type, verified.action_data)
    return enqueue(
        verified.action_type,
        verified.action_data,
        verified.email,
        payload.submitter_name,
        dispatcher=dispatcher,
        config=config,
    )
