import uuid
from typing import Optional
from db import SessionLocal
from models import AdminUser
from auth.token import decode_token


def get_current_admin(token: str) -> Optional[AdminUser]:
    payload = decode_token(token)
    if not payload:
        return None
    admin_id = payload.get("sub")
    if not admin_id:
        return None
    try:
        admin_uuid = uuid.UUID(admin_id)
    except ValueError:
        return None
    with SessionLocal() as db:
        admin = db.get(AdminUser, admin_uuid)
    if not admin or not admin.is_active:
        return None
    return admin


def current_admin_from_request(req) -> Optional[AdminUser]:
    auth = req.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return get_current_admin(auth[7:])
