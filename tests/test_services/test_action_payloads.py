import uuid

import pytest

from models import ActionType, PrayerStatus
from services.action_payloads import (
    PrayerUpdateSubmission,
    StatusChange,
    parse_action_data,
    parse_action_type,
    payload_to_dict,
)
from services.errors import InvalidActionData


class TestActionPayloads:
    def test_each_type_has_a_payload(self):
        samples = {
            ActionType.PRAYER_SUBMISSION: {"title": "t", "description": "d", "requester": "r", "prayer_for": "p"},
            ActionType.PRAYER_UPDATE: {"prayer_id": str(uuid.uuid4()), "content": "c", "author": "a"},
            ActionType.PRAYER_DELETION: {"prayer_id": str(uuid.uuid4()), "reason": "r", "requested_by": "x"},
            ActionType.STATUS_CHANGE: {"prayer_id": str(uuid.uuid4()), "requested_status": "closed",
                                       "requested_by": "x"},
            ActionType.UPDATE_DELETION: {"update_id": str(uuid.uuid4()), "reason": "r", "requested_by": "x"},
            ActionType.PREFERENCE_CHANGE: {"name": "n", "receive_notifications": True},
        }
        for action_type, data in samples.items():
            payload = parse_action_data(action_type, data)
            assert payload.submitter_name

    def test_text_is_trimmed_and_ids_normalized(self):
        prayer_id = uuid.uuid4()
        payload = parse_action_data(ActionType.PRAYER_UPDATE, {
            "prayer_id": str(prayer_id).upper(),
            "content": "  Doing better  ",
            "author": "Ann",
        })

        assert isinstance(payload, PrayerUpdateSubmission)
        assert payload.prayer_id == str(prayer_id)
        assert payload.content == "Doing better"
        assert payload_to_dict(payload)["mark_as_answered"] is False

    def test_status_change_validates_target(self):
        payload = parse_action_data(ActionType.STATUS_CHANGE, {
            "prayer_id": str(uuid.uuid4()), "requested_status": "answered", "requested_by": "Ann",
        })
        assert isinstance(payload, StatusChange)
        assert payload.status == PrayerStatus.ANSWERED

        with pytest.raises(InvalidActionData):
            parse_action_data(ActionType.STATUS_CHANGE, {
                "prayer_id": str(uuid.uuid4()), "requested_status": "forgotten", "requested_by": "Ann",
            })

    @pytest.mark.parametrize("action_type, data", [
        (ActionType.PRAYER_UPDATE, {"prayer_id": "abc", "content": "c", "author": "a"}),
        (ActionType.PREFERENCE_CHANGE, {"name": "n"}),
        (ActionType.PREFERENCE_CHANGE, {"name": "n", "receive_notifications": "yes"}),
        (ActionType.PRAYER_SUBMISSION, {"title": "t" * 5001, "description": "d", "requester": "r",
                                        "prayer_for": "p"}),
        (ActionType.PRAYER_SUBMISSION, ["not", "a", "dict"]),
    ])
    def test_invalid_payloads(self, action_type, data):
        with pytest.raises(InvalidActionData):
            parse_action_data(action_type, data)

    def test_parse_action_type(self):
        assert parse_action_type("update_deletion") == ActionType.UPDATE_DELETION
        with pytest.raises(InvalidActionData):
            parse_action_type("UPDATE_DELETION")
