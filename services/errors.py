"""
Typed errors raised by the verification and approval services.

Route handlers map each one to a specific HTTP status and message so the
client can tell "code expired, request a new one" apart from a wrong code,
or "already reviewed" apart from a failed approval.
"""


class PrayerAppError(Exception):
    """Base class for all service-level errors."""


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class VerificationError(PrayerAppError):
    """The submitted verification code cannot be used."""


class CodeNotFound(VerificationError):
    def __init__(self, code_id) -> None:
        self.code_id = code_id
        super().__init__(f"Verification code {code_id} not found or already used")


class CodeExpired(VerificationError):
    def __init__(self, code_id) -> None:
        self.code_id = code_id
        super().__init__(f"Verification code {code_id} has expired")


class CodeMismatch(VerificationError):
    def __init__(self, code_id) -> None:
        self.code_id = code_id
        super().__init__("Verification code does not match")


# ---------------------------------------------------------------------------
# Approval
# ---------------------------------------------------------------------------


class ApprovalError(PrayerAppError):
    """An admin decision could not be recorded."""


class RequestNotFound(ApprovalError):
    def __init__(self, request_id) -> None:
        self.request_id = request_id
        super().__init__(f"Pending request {request_id} not found")


class AlreadyReviewed(ApprovalError):
    def __init__(self, request_id, status) -> None:
        self.request_id = request_id
        self.status = status
        super().__init__(f"Request {request_id} was already {getattr(status, 'value', status)}")


class MissingDenialReason(ApprovalError):
    def __init__(self) -> None:
        super().__init__("A denial reason is required")


class SideEffectFailure(PrayerAppError):
    """Applying an approved request to the prayer data failed; the request stays pending."""

    def __init__(self, request_id, detail: str) -> None:
        self.request_id = request_id
        self.detail = detail
        super().__init__(f"Approval of {request_id} was not applied: {detail}")


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InvalidActionData(PrayerAppError, ValueError):
    """Submitted action payload is missing fields or has the wrong shape."""


class InvalidSettings(PrayerAppError, ValueError):
    """Admin settings change is out of range or names an unknown field."""
