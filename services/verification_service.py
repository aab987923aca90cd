import uuid
import secrets
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from db import SessionLocal
from models import ActionType, VerificationCode
from services.action_payloads import parse_action_type
from services.email_service import EmailDispatcher, send_template
from services.errors import CodeExpired, CodeMismatch, CodeNotFound
from utils.clock import utcnow

logger = logging.getLogger(__name__)

MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 8

ACTION_DESCRIPTIONS = {
    ActionType.PRAYER_SUBMISSION: "submit a prayer request",
    ActionType.PRAYER_UPDATE: "add a prayer update",
    ActionType.PRAYER_DELETION: "request a prayer deletion",
    ActionType.STATUS_CHANGE: "request a status change",
    ActionType.UPDATE_DELETION: "request an update deletion",
    ActionType.PREFERENCE_CHANGE: "update your email preferences",
}


@dataclass(frozen=True)
class IssuedCode:
    code_id: uuid.UUID
    code: str
    expires_at: datetime


@dataclass(frozen=True)
class VerifiedAction:
    """What a consumed code was bound to."""
    email: str
    action_type: ActionType
    action_data: Dict[str, Any]


# ────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────
def generate_code(length: int) -> str:
    """Uniform random code of exactly `length` digits with no leading zero."""
    if not MIN_CODE_LENGTH <= length <= MAX_CODE_LENGTH:
        raise ValueError(f"code length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}")
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def _as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


# ────────────────────────────────────────────────────────────
# Store operations
# ────────────────────────────────────────────────────────────
def issue_code(
    email: str,
    action_type,
    action_data: Dict[str, Any],
    length: int = 6,
    ttl_minutes: int = 15,
    dispatcher: Optional[EmailDispatcher] = None,
    now: Optional[datetime] = None,
) -> IssuedCode:
    """
    Create a code bound to (email, action_type, action_data), store it with
    its expiry and email it. The email is best-effort: a failed send is
    logged and the code stays valid.
    """
    email_lc = (email or "").strip().lower()
    if not email_lc:
        raise ValueError("email is required")
    action_type = parse_action_type(action_type)

    code = generate_code(length)
    issued_at = now or utcnow()
    expires_at = issued_at + timedelta(minutes=ttl_minutes)

    with SessionLocal() as db:
        record = VerificationCode(
            email=email_lc,
            code=code,
            action_type=action_type,
            action_data=action_data,
            expires_at=expires_at,
            created_at=issued_at,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        code_id = record.id

    logger.info(f"Issued verification code {code_id} for {action_type.value}")

    result = send_template(
        email_lc,
        "verification_code",
        {
            "code": code,
            "action_description": ACTION_DESCRIPTIONS[action_type],
            "expiry_minutes": str(ttl_minutes),
        },
        dispatcher=dispatcher,
    )
    if not result.ok:
        logger.warning(f"Verification email for code {code_id} was not delivered: {result.errors}")

    return IssuedCode(code_id=code_id, code=code, expires_at=expires_at)


def resend_code(
    email: str,
    action_type,
    action_data: Dict[str, Any],
    length: int = 6,
    ttl_minutes: int = 15,
    dispatcher: Optional[EmailDispatcher] = None,
) -> IssuedCode:
    """
    Issue a fresh code for the same action. The caller drops the old code id;
    the orphaned row expires and is removed by purge_expired_codes().
    """
    return issue_code(email, action_type, action_data, length, ttl_minutes, dispatcher=dispatcher)


def validate_code(code_id, submitted_code: str, now: Optional[datetime] = None) -> VerifiedAction:
    """
    Check a submitted code and consume it. Raises CodeNotFound, CodeExpired
    or CodeMismatch; on success the row is deleted, so a code validates once.
    """
    cid = _as_uuid(code_id)
    if cid is None:
        raise CodeNotFound(code_id)
    now = now or utcnow()
    submitted = (submitted_code or "").strip()

    with SessionLocal() as db:
        record = db.get(VerificationCode, cid)
        if record is None:
            raise CodeNotFound(cid)
        if now > record.expires_at:
            raise CodeExpired(cid)
        if not secrets.compare_digest(record.code.encode(), submitted.encode()):
            raise CodeMismatch(cid)

        verified = VerifiedAction(
            email=record.email,
            action_type=record.action_type,
            action_data=dict(record.action_data or {}),
        )

        # Conditional delete: only one concurrent confirm can consume the row
        consumed = (
            db.query(VerificationCode)
            .filter(VerificationCode.id == cid)
            .delete(synchronize_session=False)
        )
        db.commit()

    if consumed != 1:
        raise CodeNotFound(cid)

    logger.info(f"Verification code {cid} consumed for {verified.action_type.value}")
    return verified


def purge_expired_codes(now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    with SessionLocal() as db:
        rows = (
            db.query(VerificationCode)
            .filter(VerificationCode.expires_at < now)
            .delete(synchronize_session=False)
        )
        db.commit()
    if rows:
        logger.info(f"Purged {rows} expired verification codes")
    return rows
