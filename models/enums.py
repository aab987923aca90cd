import enum


class ActionType(enum.Enum):
    PRAYER_SUBMISSION = "prayer_submission"
    PRAYER_UPDATE = "prayer_update"
    PRAYER_DELETION = "prayer_deletion"
    STATUS_CHANGE = "status_change"
    UPDATE_DELETION = "update_deletion"
    PREFERENCE_CHANGE = "preference_change"


class ApprovalStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class PrayerStatus(enum.Enum):
    CURRENT = "current"
    ONGOING = "ongoing"
    ANSWERED = "answered"
    CLOSED = "closed"
