import uuid

import pytest

from models import ActionType, ApprovalStatus
from services.approval_service import deny_request
from services.errors import InvalidActionData, RequestNotFound
from services.pending_request_service import (
    count_by_status,
    enqueue,
    get_request,
    list_denied,
    list_pending,
    summarize,
)

SUBMISSION = {
    "title": "Job search",
    "description": "Looking for work",
    "requester": "Sam",
    "prayer_for": "Sam",
}


def _deletion(prayer_id=None):
    return {
        "prayer_id": str(prayer_id or uuid.uuid4()),
        "reason": "Resolved privately",
        "requested_by": "Sam",
    }


class TestEnqueue:
    def test_stores_normalized_payload(self):
        request = enqueue("prayer_submission", SUBMISSION, "Sam@Example.org", "Sam", notify_admins=False)

        assert request.approval_status == ApprovalStatus.PENDING
        assert request.submitter_email == "sam@example.org"
        assert request.reviewed_by is None
        assert request.action_data == {
            "title": "Job search",
            "description": "Looking for work",
            "requester": "Sam",
            "prayer_for": "Sam",
            "is_anonymous": False,
            "prayer_type": None,
        }

    def test_duplicates_are_kept_as_separate_requests(self):
        first = enqueue("prayer_submission", SUBMISSION, "sam@example.org", "Sam", notify_admins=False)
        second = enqueue("prayer_submission", SUBMISSION, "sam@example.org", "Sam", notify_admins=False)

        assert first.id != second.id
        assert len(list_pending()) == 2

    def test_rejects_payload_for_wrong_type(self):
        with pytest.raises(InvalidActionData):
            enqueue("prayer_deletion", SUBMISSION, "sam@example.org", "Sam", notify_admins=False)


class TestQueries:
    def test_pending_list_is_oldest_first_and_filterable(self):
        a = enqueue("prayer_submission", SUBMISSION, "a@example.org", "A", notify_admins=False)
        b = enqueue("prayer_deletion", _deletion(), "b@example.org", "B", notify_admins=False)
        c = enqueue("prayer_submission", SUBMISSION, "c@example.org", "C", notify_admins=False)

        assert [r.id for r in list_pending()] == [a.id, b.id, c.id]
        assert [r.id for r in list_pending("prayer_submission")] == [a.id, c.id]
        assert [r.id for r in list_pending(ActionType.PRAYER_DELETION)] == [b.id]

    def test_denied_list_and_counts(self):
        enqueue("prayer_submission", SUBMISSION, "a@example.org", "A", notify_admins=False)
        denied = enqueue("prayer_deletion", _deletion(), "b@example.org", "B", notify_admins=False)
        deny_request(denied.id, "admin@church.org", "Not appropriate")

        assert [r.id for r in list_denied()] == [denied.id]
        assert denied.id not in [r.id for r in list_pending()]

        pending = count_by_status(ApprovalStatus.PENDING)
        assert set(pending) == set(ActionType)
        assert pending[ActionType.PRAYER_SUBMISSION] == 1
        assert pending[ActionType.PRAYER_DELETION] == 0

        denied_counts = count_by_status(ApprovalStatus.DENIED)
        assert denied_counts[ActionType.PRAYER_DELETION] == 1
        assert sum(denied_counts.values()) == 1

    def test_get_request_not_found(self):
        with pytest.raises(RequestNotFound):
            get_request(uuid.uuid4())
        with pytest.raises(RequestNotFound):
            get_request("garbage")


class TestSummarize:
    def test_status_change_mentions_target_status(self):
        text = summarize(ActionType.STATUS_CHANGE, {"requested_status": "answered", "reason": "Healed"})
        assert text == "Change status to 'answered': Healed"

    def test_preference_change(self):
        assert summarize(ActionType.PREFERENCE_CHANGE, {"receive_notifications": False}) == (
            "Unsubscribe from new prayer emails"
        )
