import azure.functions as func
import logging
from utils.cors import cors_response, json_response, error_response
from auth.deps import current_admin_from_request
from models import ActionType, ApprovalStatus
from services.approval_service import approve_request, deny_request
from services.email_templates import list_templates, save_template, reset_template
from services.errors import (
    AlreadyReviewed,
    InvalidActionData,
    InvalidSettings,
    MissingDenialReason,
    RequestNotFound,
    SideEffectFailure,
)
from services.pending_request_service import count_by_status, get_request, list_requests
from services.settings_service import get_admin_config, update_admin_config
from services.staleness_service import run_scheduled_scans

logger = logging.getLogger(__name__)
bp = func.Blueprint()


def _serialize_request(r) -> dict:
    return {
        "id": str(r.id),
        "action_type": r.action_type.value,
        "action_data": r.action_data,
        "submitter_email": r.submitter_email,
        "submitter_name": r.submitter_name,
        "approval_status": r.approval_status.value,
        "reviewed_by": r.reviewed_by,
        "reviewed_at": r.reviewed_at.isoformat() if r.reviewed_at else None,
        "denial_reason": r.denial_reason,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


def _unauthorized() -> func.HttpResponse:
    return error_response("Unauthorized", 401, "unauthorized")


@bp.function_name(name="AdminListRequests")
@bp.route(route="admin/requests", methods=["GET", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_list_requests(req: func.HttpRequest) -> func.HttpResponse:
    """
    List requests by approval status (default pending), optionally for one
    action type. Pending requests come oldest first; reviewed ones newest
    decision first.
    """
    if req.method == "OPTIONS":
        return cors_response(status=204)

    admin = current_admin_from_request(req)
    if not admin:
        return _unauthorized()

    try:
        status = ApprovalStatus(req.params.get("status") or ApprovalStatus.PENDING.value)
    except ValueError:
        return error_response("Invalid status", 400, "invalid_request")

    try:
        requests_ = list_requests(status, req.params.get("action_type") or None)
        return json_response([_serialize_request(r) for r in requests_])
    except InvalidActionData as e:
        return error_response(str(e), 400, "invalid_request")
    except Exception:
        logger.exception("Failed to list requests")
        return error_response("Internal server error", 500)


@bp.function_name(name="AdminGetRequest")
@bp.route(route="admin/requests/{request_id}", methods=["GET", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_get_request(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response(status=204)

    admin = current_admin_from_request(req)
    if not admin:
        return _unauthorized()

    try:
        request = get_request(req.route_params.get("request_id"))
        return json_response(_serialize_request(request))
    except RequestNotFound as e:
        return error_response(str(e), 404, "request_not_found")
    except Exception:
        logger.exception("Failed to load request")
        return error_response("Internal server error", 500)


@bp.function_name(name="AdminRequestCounts")
@bp.route(route="admin/request-counts", methods=["GET", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_request_counts(req: func.HttpRequest) -> func.HttpResponse:
    """Pending and denied counts per action type, for the admin badges."""
    if req.method == "OPTIONS":
        return cors_response(status=204)

    admin = current_admin_from_request(req)
    if not admin:
        return _unauthorized()

    try:
        body = {}
        for status in (ApprovalStatus.PENDING, ApprovalStatus.DENIED):
            counts = count_by_status(status)
            body[status.value] = {
                "by_type": {t.value: counts[t] for t in ActionType},
                "total": sum(counts.values()),
            }
        return json_response(body)
    except Exception:
        logger.exception("Failed to count requests")
        return error_response("Internal server error", 500)


@bp.function_name(name="AdminApproveRequest")
@bp.route(route="admin/requests/{request_id}/approve", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_approve_request(req: func.HttpRequest) -> func.HttpResponse:
    """
    Approve a pending request and apply it to the prayer data.

    Raises:
        401: Not signed in as an admin
        404: Unknown request
        409: Request was already approved or denied
        500: The change could not be applied; the request is still pending
    """
    if req.method == "OPTIONS":
        return cors_response(status=204)

    admin = current_admin_from_request(req)
    if not admin:
        return _unauthorized()

    try:
        request = approve_request(req.route_params.get("request_id"), admin.reviewer_id)
        return json_response(_serialize_request(request))
    except RequestNotFound as e:
        return error_response(str(e), 404, "request_not_found")
    except AlreadyReviewed as e:
        return error_response(str(e), 409, "already_reviewed")
    except SideEffectFailure as e:
        return error_response(
            f"Approval was not applied, please retry ({e.detail})", 500, "not_applied"
        )
    except Exception:
        logger.exception("Failed to approve request")
        return error_response("Internal server error", 500)


@bp.function_name(name="AdminDenyRequest")
@bp.route(route="admin/requests/{request_id}/deny", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_deny_request(req: func.HttpRequest) -> func.HttpResponse:
    """
    Deny a pending request. Body: {"reason": str}; the reason is required
    and is emailed to the submitter.
    """
    if req.method == "OPTIONS":
        return cors_response(status=204)

    admin = current_admin_from_request(req)
    if not admin:
        return _unauthorized()

    try:
        try:
            data = req.get_json() or {}
        except ValueError:
            data = {}
        reason = data.get("reason") if isinstance(data, dict) else None

        request = deny_request(req.route_params.get("request_id"), admin.reviewer_id, reason)
        return json_response(_serialize_request(request))
    except MissingDenialReason as e:
        return error_response(str(e), 400, "missing_reason")
    except RequestNotFound as e:
        return error_response(str(e), 404, "request_not_found")
    except AlreadyReviewed as e:
        return error_response(str(e), 409, "already_reviewed")
    except Exception:
        logger.exception("Failed to deny request")
        return error_response("Internal server error", 500)


@bp.function_name(name="AdminSettings")
@bp.route(route="admin/settings", methods=["GET", "PUT", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_settings(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response(status=204)

    admin = current_admin_from_request(req)
    if not admin:
        return _unauthorized()

    try:
        if req.method == "GET":
            return json_response(get_admin_config().as_dict())

        try:
            changes = req.get_json()
        except ValueError:
            return error_response("Request body must be JSON", 400, "invalid_request")
        updated = update_admin_config(changes)
        logger.info(f"Settings changed by {admin.reviewer_id}")
        return json_response(updated.as_dict())
    except InvalidSettings as e:
        return error_response(str(e), 400, "invalid_settings")
    except Exception:
        logger.exception("Failed to handle settings")
        return error_response("Internal server error", 500)


@bp.function_name(name="AdminListEmailTemplates")
@bp.route(route="admin/email-templates", methods=["GET", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_list_email_templates(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response(status=204)

    admin = current_admin_from_request(req)
    if not admin:
        return _unauthorized()

    try:
        return json_response(list_templates())
    except Exception:
        logger.exception("Failed to list email templates")
        return error_response("Internal server error", 500)


@bp.function_name(name="AdminEmailTemplate")
@bp.route(route="admin/email-templates/{template_key}", methods=["PUT", "DELETE", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_email_template(req: func.HttpRequest) -> func.HttpResponse:
    """
    PUT saves an override of a built-in template ({subject, html_body,
    text_body}); DELETE drops the override so the default is used again.
    """
    if req.method == "OPTIONS":
        return cors_response(status=204)

    admin = current_admin_from_request(req)
    if not admin:
        return _unauthorized()

    template_key = req.route_params.get("template_key")
    try:
        if req.method == "DELETE":
            removed = reset_template(template_key)
            return json_response({"success": True, "reset": removed})

        try:
            data = req.get_json()
        except ValueError:
            return error_response("Request body must be JSON", 400, "invalid_request")
        if not isinstance(data, dict):
            return error_response("Request body must be a JSON object", 400, "invalid_request")

        row = save_template(
            template_key,
            data.get("subject"),
            data.get("html_body"),
            data.get("text_body"),
        )
        return json_response({
            "template_key": row.template_key,
            "subject": row.subject,
            "html_body": row.html_body,
            "text_body": row.text_body,
            "customized": True,
        })
    except ValueError as e:
        return error_response(str(e), 400, "invalid_template")
    except Exception:
        logger.exception("Failed to save email template")
        return error_response("Internal server error", 500)


@bp.function_name(name="AdminRunScans")
@bp.route(route="admin/scans/run", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_run_scans(req: func.HttpRequest) -> func.HttpResponse:
    """Run the daily reminder, auto-transition and auto-archive job now."""
    if req.method == "OPTIONS":
        return cors_response(status=204)

    admin = current_admin_from_request(req)
    if not admin:
        return _unauthorized()

    try:
        summary = run_scheduled_scans()
        logger.info(f"Manual scan run by {admin.reviewer_id}: {summary}")
        return json_response(summary)
    except Exception:
        logger.exception("Manual scan run failed")
        return error_response("Internal server error", 500)
