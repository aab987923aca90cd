from __future__ import annotations
import uuid
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Union

from models import ActionType, PrayerStatus
from services.errors import InvalidActionData

MAX_TEXT = 5000


# ────────────────────────────────────────────────────────────
# Field helpers
# ────────────────────────────────────────────────────────────
def _text(data: Dict[str, Any], key: str, required: bool = True) -> Optional[str]:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidActionData(f"{key} is required")
        return None
    if not isinstance(value, str):
        raise InvalidActionData(f"{key} must be a string")
    value = value.strip()
    if len(value) > MAX_TEXT:
        raise InvalidActionData(f"{key} is too long")
    return value


def _flag(data: Dict[str, Any], key: str, required: bool = False) -> bool:
    value = data.get(key)
    if value is None:
        if required:
            raise InvalidActionData(f"{key} is required")
        return False
    if not isinstance(value, bool):
        raise InvalidActionData(f"{key} must be true or false")
    return value


def _uuid(data: Dict[str, Any], key: str) -> str:
    raw = data.get(key)
    if not raw:
        raise InvalidActionData(f"{key} is required")
    try:
        return str(uuid.UUID(str(raw)))
    except ValueError:
        raise InvalidActionData(f"{key} is not a valid id")


# ────────────────────────────────────────────────────────────
# Payloads, one per action type
# ────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class PrayerSubmission:
    title: str
    description: str
    requester: str
    prayer_for: str
    is_anonymous: bool = False
    prayer_type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrayerSubmission":
        return cls(
            title=_text(data, "title"),
            description=_text(data, "description"),
            requester=_text(data, "requester"),
            prayer_for=_text(data, "prayer_for"),
            is_anonymous=_flag(data, "is_anonymous"),
            prayer_type=_text(data, "prayer_type", required=False),
        )

    @property
    def submitter_name(self) -> str:
        return self.requester


@dataclass(frozen=True)
class PrayerUpdateSubmission:
    prayer_id: str
    content: str
    author: str
    is_anonymous: bool = False
    mark_as_answered: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrayerUpdateSubmission":
        return cls(
            prayer_id=_uuid(data, "prayer_id"),
            content=_text(data, "content"),
            author=_text(data, "author"),
            is_anonymous=_flag(data, "is_anonymous"),
            mark_as_answered=_flag(data, "mark_as_answered"),
        )

    @property
    def submitter_name(self) -> str:
        return self.author


@dataclass(frozen=True)
class PrayerDeletion:
    prayer_id: str
    reason: str
    requested_by: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrayerDeletion":
        return cls(
            prayer_id=_uuid(data, "prayer_id"),
            reason=_text(data, "reason"),
            requested_by=_text(data, "requested_by"),
        )

    @property
    def submitter_name(self) -> str:
        return self.requested_by


@dataclass(frozen=True)
class StatusChange:
    prayer_id: str
    requested_status: str
    requested_by: str
    reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusChange":
        requested = _text(data, "requested_status")
        try:
            PrayerStatus(requested)
        except ValueError:
            allowed = ", ".join(s.value for s in PrayerStatus)
            raise InvalidActionData(f"requested_status must be one of: {allowed}")
        return cls(
            prayer_id=_uuid(data, "prayer_id"),
            requested_status=requested,
            requested_by=_text(data, "requested_by"),
            reason=_text(data, "reason", required=False),
        )

    @property
    def status(self) -> PrayerStatus:
        return PrayerStatus(self.requested_status)

    @property
    def submitter_name(self) -> str:
        return self.requested_by


@dataclass(frozen=True)
class UpdateDeletion:
    update_id: str
    reason: str
    requested_by: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdateDeletion":
        return cls(
            update_id=_uuid(data, "update_id"),
            reason=_text(data, "reason"),
            requested_by=_text(data, "requested_by"),
        )

    @property
    def submitter_name(self) -> str:
        return self.requested_by


@dataclass(frozen=True)
class PreferenceChange:
    name: str
    receive_notifications: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PreferenceChange":
        return cls(
            name=_text(data, "name"),
            receive_notifications=_flag(data, "receive_notifications", required=True),
        )

    @property
    def submitter_name(self) -> str:
        return self.name


ActionPayload = Union[
    PrayerSubmission,
    PrayerUpdateSubmission,
    PrayerDeletion,
    StatusChange,
    UpdateDeletion,
    PreferenceChange,
]

PAYLOAD_TYPES = {
    ActionType.PRAYER_SUBMISSION: PrayerSubmission,
    ActionType.PRAYER_UPDATE: PrayerUpdateSubmission,
    ActionType.PRAYER_DELETION: PrayerDeletion,
    ActionType.STATUS_CHANGE: StatusChange,
    ActionType.UPDATE_DELETION: UpdateDeletion,
    ActionType.PREFERENCE_CHANGE: PreferenceChange,
}


def parse_action_type(value: Union[str, ActionType]) -> ActionType:
    if isinstance(value, ActionType):
        return value
    try:
        return ActionType(value)
    except ValueError:
        raise InvalidActionData(f"Unknown action type: {value}")


def parse_action_data(action_type: ActionType, data: Any) -> ActionPayload:
    """Validate a raw payload for the given action type."""
    if not isinstance(data, dict):
        raise InvalidActionData("action data must be an object")
    return PAYLOAD_TYPES[action_type].from_dict(data)


def payload_to_dict(payload: ActionPayload) -> Dict[str, Any]:
    return asdict(payload)
