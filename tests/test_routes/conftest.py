import json

import azure.functions as func
import pytest

from auth.token import create_access_token
from auth.utils import hash_password
from db import SessionLocal
from models import AdminUser


def _request(method, route, body=None, route_params=None, params=None, headers=None):
    return func.HttpRequest(
        method=method,
        url=f"/api/{route}",
        headers=headers or {},
        params=params or {},
        route_params=route_params or {},
        body=json.dumps(body).encode() if body is not None else b"",
    )


@pytest.fixture
def call():
    """Invoke a blueprint handler the way the Functions host would."""
    def _call(handler, method="GET", route="", body=None, route_params=None, params=None, token=None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        req = _request(method, route, body, route_params, params, headers)
        resp = handler.build().get_user_function()(req)
        payload = resp.get_body()
        try:
            data = json.loads(payload) if payload else None
        except ValueError:
            data = payload.decode()
        return resp.status_code, data
    return _call


@pytest.fixture
def admin():
    with SessionLocal() as db:
        user = AdminUser(email="pastor@church.org", name="Pastor", password_hash=hash_password("s3cret-pass"))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user


@pytest.fixture
def admin_token(admin):
    return create_access_token({"sub": str(admin.id)})
