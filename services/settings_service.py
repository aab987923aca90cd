from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field, asdict, replace
from typing import Any, Dict, List

from db import SessionLocal
from models import AdminSettings, SETTINGS_ROW_ID
from services.errors import InvalidSettings

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_INT_RANGES = {
    "verification_code_length": (4, 8),
    "verification_code_expiry_minutes": (5, 60),
    "reminder_interval_days": (0, 90),
    "auto_transition_days": (0, 365),
    "days_before_archive": (1, 365),
}
_BOOL_FIELDS = {"require_email_verification", "enable_auto_archive"}


@dataclass(frozen=True)
class AdminConfig:
    """Snapshot of the admin settings row, passed to services explicitly."""
    require_email_verification: bool = False
    verification_code_length: int = 6
    verification_code_expiry_minutes: int = 15
    reminder_interval_days: int = 0
    auto_transition_days: int = 0
    enable_auto_archive: bool = False
    days_before_archive: int = 7
    notification_emails: List[str] = field(default_factory=list)

    def validate(self) -> "AdminConfig":
        for name, (low, high) in _INT_RANGES.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidSettings(f"{name} must be an integer")
            if not low <= value <= high:
                raise InvalidSettings(f"{name} must be between {low} and {high}")
        for name in _BOOL_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise InvalidSettings(f"{name} must be true or false")
        if not isinstance(self.notification_emails, list):
            raise InvalidSettings("notification_emails must be a list")
        for email in self.notification_emails:
            if not isinstance(email, str) or not _EMAIL_RE.match(email):
                raise InvalidSettings(f"Invalid notification email: {email}")
        return self

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _from_row(row: AdminSettings) -> AdminConfig:
    return AdminConfig(
        require_email_verification=bool(row.require_email_verification),
        verification_code_length=row.verification_code_length,
        verification_code_expiry_minutes=row.verification_code_expiry_minutes,
        reminder_interval_days=row.reminder_interval_days,
        auto_transition_days=row.auto_transition_days,
        enable_auto_archive=bool(row.enable_auto_archive),
        days_before_archive=row.days_before_archive,
        notification_emails=list(row.notification_emails or []),
    )


def get_admin_config() -> AdminConfig:
    """Read the current settings; defaults when the row has not been created yet."""
    with SessionLocal() as db:
        row = db.get(AdminSettings, SETTINGS_ROW_ID)
        if row is None:
            return AdminConfig()
        return _from_row(row)


def update_admin_config(changes: Dict[str, Any]) -> AdminConfig:
    if not isinstance(changes, dict) or not changes:
        raise InvalidSettings("No settings supplied")

    known = set(AdminConfig.__dataclass_fields__)
    unknown = sorted(set(changes) - known)
    if unknown:
        raise InvalidSettings(f"Unknown settings: {', '.join(unknown)}")

    if "notification_emails" in changes and isinstance(changes["notification_emails"], list):
        changes = dict(changes)
        changes["notification_emails"] = [
            e.strip().lower() if isinstance(e, str) else e
            for e in changes["notification_emails"]
        ]

    with SessionLocal() as db:
        row = db.get(AdminSettings, SETTINGS_ROW_ID)
        current = _from_row(row) if row is not None else AdminConfig()
        updated = replace(current, **changes).validate()

        if row is None:
            row = AdminSettings(id=SETTINGS_ROW_ID)
            db.add(row)
        for name, value in updated.as_dict().items():
            setattr(row, name, value)
        db.commit()

    logger.info(f"Admin settings updated: {', '.join(sorted(changes))}")
    return updated
