import uuid

from db import SessionLocal
from models import VerificationCode
from routes.submissions import confirm_verification, resend_verification, submit_request
from services.pending_request_service import list_pending
from services.settings_service import update_admin_config

SUBMISSION = {
    "title": "Healing",
    "description": "Please pray",
    "requester": "Ann",
    "prayer_for": "Bob",
}


def _submit(call, data=SUBMISSION, email="ann@example.org", action_type="prayer_submission"):
    return call(submit_request, "POST", f"requests/{action_type}",
                body={"email": email, "data": data},
                route_params={"action_type": action_type})


class TestSubmitRoute:
    def test_queues_directly_when_verification_off(self, call):
        status, body = _submit(call)

        assert status == 201
        assert body["status"] == "submitted"
        assert [str(r.id) for r in list_pending()] == [body["request_id"]]

    def test_returns_code_handle_when_verification_on(self, call):
        update_admin_config({"require_email_verification": True})

        status, body = _submit(call)

        assert status == 202
        assert body["status"] == "verification_required"
        assert body["code_id"]
        assert body["expires_at"]
        assert list_pending() == []

    def test_invalid_payload(self, call):
        status, body = _submit(call, data={"title": "x"})
        assert status == 400
        assert body["success"] is False
        assert "description" in body["error"]

    def test_unknown_action_type(self, call):
        status, _ = _submit(call, action_type="prayer_teleport")
        assert status == 400

    def test_options_preflight(self, call):
        status, _ = call(submit_request, "OPTIONS", "requests/prayer_submission",
                         route_params={"action_type": "prayer_submission"})
        assert status == 204


class TestConfirmRoute:
    def _issue(self, call):
        update_admin_config({"require_email_verification": True})
        _, body = _submit(call)
        with SessionLocal() as db:
            code = db.get(VerificationCode, uuid.UUID(body["code_id"])).code
        return body["code_id"], code

    def test_correct_code_queues_request(self, call):
        code_id, code = self._issue(call)

        status, body = call(confirm_verification, "POST", "verification/confirm",
                            body={"code_id": code_id, "code": code})

        assert status == 201
        assert [str(r.id) for r in list_pending()] == [body["request_id"]]

    def test_reused_code_is_not_found(self, call):
        code_id, code = self._issue(call)
        call(confirm_verification, "POST", "verification/confirm", body={"code_id": code_id, "code": code})

        status, body = call(confirm_verification, "POST", "verification/confirm",
                            body={"code_id": code_id, "code": code})

        assert status == 404
        assert body["code"] == "code_not_found"

    def test_wrong_code(self, call):
        code_id, code = self._issue(call)
        wrong = "111111" if code != "111111" else "222222"

        status, body = call(confirm_verification, "POST", "verification/confirm",
                            body={"code_id": code_id, "code": wrong})

        assert status == 400
        assert body["code"] == "code_mismatch"

    def test_missing_fields(self, call):
        status, _ = call(confirm_verification, "POST", "verification/confirm", body={"code_id": ""})
        assert status == 400

    def test_resend(self, call):
        update_admin_config({"require_email_verification": True})

        status, body = call(resend_verification, "POST", "verification/resend", body={
            "email": "ann@example.org",
            "action_type": "prayer_submission",
            "data": SUBMISSION,
        })

        assert status == 202
        assert body["status"] == "verification_required"
