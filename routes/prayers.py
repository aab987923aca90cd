import azure.functions as func
import uuid as _uuid
import logging
from utils.cors import cors_response, json_response
from models import PrayerStatus
from services.prayer_service import list_public_prayers, get_public_prayer, public_updates

logger = logging.getLogger(__name__)
bp = func.Blueprint()


def _serialize_prayer(p) -> dict:
    """Public view of a prayer; owner emails are never exposed."""
    return {
        "id": str(p.id),
        "title": p.title,
        "description": p.description,
        "requester": p.display_requester,
        "prayer_for": p.prayer_for,
        "prayer_type": p.prayer_type,
        "status": p.status.value,
        "date_answered": p.date_answered.isoformat() if p.date_answered else None,
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "updates": [
            {
                "id": str(u.id),
                "content": u.content,
                "author": "Anonymous" if u.is_anonymous else u.author,
                "created_at": u.created_at.isoformat() if u.created_at else None,
            }
            for u in public_updates(p)
        ],
    }


@bp.function_name(name="ListPrayers")
@bp.route(route="prayers", methods=["GET", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def list_prayers(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response(status=204)

    status = None
    raw_status = req.params.get("status")
    if raw_status:
        try:
            status = PrayerStatus(raw_status)
        except ValueError:
            return cors_response("Invalid status", 400)

    try:
        prayers = list_public_prayers(status)
        return json_response([_serialize_prayer(p) for p in prayers])
    except Exception:
        logger.exception("Failed to list prayers")
        return cors_response("Internal server error", 500)


@bp.function_name(name="PrayerItem")
@bp.route(route="prayers/{prayer_id}", methods=["GET", "OPTIONS"], auth_level=func.AuthLevel.ANONYMOUS)
def prayer_item(req: func.HttpRequest) -> func.HttpResponse:
    if req.method == "OPTIONS":
        return cors_response(status=204)

    try:
        prayer_id = _uuid.UUID(req.route_params["prayer_id"])
    except Exception:
        return cors_response("Invalid prayer_id", 400)

    try:
        prayer = get_public_prayer(prayer_id)
    except Exception:
        logger.exception("Failed to load prayer")
        return cors_response("Internal server error", 500)

    if not prayer:
        return cors_response("Not found", 404)
    return json_response(_serialize_prayer(prayer))
