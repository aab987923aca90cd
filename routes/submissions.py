import azure.functions as func
import logging
from utils.cors import cors_response, json_response, error_response
from services.errors import CodeExpired, CodeMismatch, CodeNotFound, InvalidActionData
from services.submission_service import submit, resend, confirm

logger = logging.getLogger(__name__)
bp = func.Blueprint()


def _read_body(req: func.HttpRequest) -> dict:
    try:
        data = req.get_json()
    except ValueError:
        raise InvalidActionData("Request body must be JSON")
    if not isinstance(data, dict):
        raise InvalidActionData("Request body must be a JSON object")
    return data


def _verification_pending(result) -> func.HttpResponse:
    return json_response(
        {
            "status": "verification_required",
            "code_id": str(result.code_id),
            "expires_at": result.expires_at.isoformat(),
        },
        202,
    )


@bp.function_name(name="SubmitRequest")
@bp.route(route="requests/{action_type}", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def submit_request(req: func.HttpRequest) -> func.HttpResponse:
    """
    Submit a member action for admin review.

    When email verification is enabled the action is held behind a one-time
    code mailed to the submitter; otherwise it is queued immediately.

    Args:
        req: HTTP request with route param action_type and JSON
             {"email": str, "data": {...action fields...}}

    Returns:
        201 with the pending request id, or 202 with a code_id to confirm

    Raises:
        400: Unknown action type, invalid email or invalid action data
        500: Server error
    """
    if req.method == "OPTIONS":
        return cors_response(status=204)

    try:
        body = _read_body(req)
        result = submit(body.get("email"), req.route_params.get("action_type"), body.get("data"))
        if result.verification_required:
            return _verification_pending(result)
        return json_response({"status": "submitted", "request_id": str(result.request.id)}, 201)

    except InvalidActionData as e:
        return error_response(str(e), 400, "invalid_request")
    except Exception:
        logger.exception("Failed to submit request")
        return error_response("Internal server error", 500)


@bp.function_name(name="ResendVerificationCode")
@bp.route(route="verification/resend", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def resend_verification(req: func.HttpRequest) -> func.HttpResponse:
    """
    Issue a fresh code for an action whose code expired or never arrived.

    Body: {"email": str, "action_type": str, "data": {...}}. The previous
    code id should be discarded by the client.
    """
    if req.method == "OPTIONS":
        return cors_response(status=204)

    try:
        body = _read_body(req)
        result = resend(body.get("email"), body.get("action_type"), body.get("data"))
        return _verification_pending(result)

    except InvalidActionData as e:
        return error_response(str(e), 400, "invalid_request")
    except Exception:
        logger.exception("Failed to resend verification code")
        return error_response("Internal server error", 500)


@bp.function_name(name="ConfirmVerificationCode")
@bp.route(route="verification/confirm", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def confirm_verification(req: func.HttpRequest) -> func.HttpResponse:
    """
    Confirm a verification code and queue the action it was issued for.

    Args:
        req: HTTP request containing JSON with code_id and code

    Returns:
        201 with the pending request id

    Raises:
        400: Missing fields or wrong code
        404: Unknown or already used code
        410: Code expired
        500: Server error
    """
    if req.method == "OPTIONS":
        return cors_response(status=204)

    try:
        body = _read_body(req)
        code_id = body.get("code_id")
        code = str(body.get("code") or "").strip()
        if not code_id or not code:
            return error_response("code_id and code are required", 400, "invalid_request")

        request = confirm(code_id, code)
        return json_response({"status": "submitted", "request_id": str(request.id)}, 201)

    except CodeNotFound as e:
        return error_response(str(e), 404, "code_not_found")
    except CodeExpired as e:
        return error_response(str(e), 410, "code_expired")
    except CodeMismatch as e:
        return error_response(str(e), 400, "code_mismatch")
    except InvalidActionData as e:
        return error_response(str(e), 400, "invalid_request")
    except Exception:
        logger.exception("Failed to confirm verification code")
        return error_response("Internal server error", 500)
