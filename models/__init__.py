### models/__init__.py
from .base import Base
from .enums import ActionType, ApprovalStatus, PrayerStatus
from .prayer import Prayer, PrayerUpdate
from .verification_code import VerificationCode
from .pending_request import PendingRequest
from .admin_settings import AdminSettings, SETTINGS_ROW_ID
from .email_subscriber import EmailSubscriber
from .email_template import EmailTemplate
from .admin_user import AdminUser
from .queued_email import QueuedEmail
