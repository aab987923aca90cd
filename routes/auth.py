import azure.functions as func
import json, logging
from utils.cors import cors_response
from auth.utils import verify_password
from auth.token import create_access_token
from db import SessionLocal
from models import AdminUser

logger = logging.getLogger(__name__)
bp = func.Blueprint()


@bp.function_name(name="AdminLogin")
@bp.route(route="admin/login", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
def admin_login(req: func.HttpRequest) -> func.HttpResponse:
    """
    Authenticate an admin with email and password.

    Validates the credentials against admin_users and returns a bearer
    token for the admin endpoints.

    Args:
        req: HTTP request containing JSON with email and password

    Returns:
        HTTP response with access token and admin info

    Raises:
        400: Missing email or password
        401: Invalid credentials or deactivated account
        500: Server error
    """
    if req.method == "OPTIONS":
        return cors_response(status=204)

    try:
        data     = req.get_json()
        email    = (data.get("email") or "").strip().lower()
        password = (data.get("password") or "").strip()
        if not all([email, password]):
            return cors_response("Missing email or password", 400)

        with SessionLocal() as db:
            admin = db.query(AdminUser).filter(AdminUser.email == email).first()

        if not admin or not admin.is_active or not verify_password(password, admin.password_hash):
            logger.info(f"Rejected admin login for {email}")
            return cors_response("Invalid credentials", 401)

        token = create_access_token({"sub": str(admin.id)})
        return cors_response(
            json.dumps({
                "success": True,
                "access_token": token,
                "token_type": "bearer",
                "admin": {
                    "id": str(admin.id),
                    "email": admin.email,
                    "name": admin.name,
                },
            }),
            200,
            "application/json",
        )

    except ValueError:
        return cors_response("Request body must be JSON", 400)
    except Exception as e:
        logger.exception("Admin login failed")
        return cors_response(str(e), 500)
