"""Authentication endpoints using the session service."""

from __future__ import annotations

from flask import Blueprint, request

from authcore.api.deps import (
    current_user_id,
    get_session_service,
    json_response,
    require_auth,
    timing,
)
from authcore.schemas import (
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    SessionSchema,
    TokenPairSchema,
    UserSchema,
)
from authcore.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
session_schema = SessionSchema()
token_schema = TokenPairSchema()
user_schema = UserSchema()


@bp.post("/register")
@timing
def register():
    """Register a new user and return a fresh session."""

    data = register_schema.load(request.get_json(silent=True) or {})
    session = get_session_service().register(RegisterIn(**data))
    return json_response({"data": session_schema.dump(session)}, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue a token pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    session = get_session_service().login(LoginIn(**data))
    return json_response({"data": session_schema.dump(session)})


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token; the presented token stops working."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    pair = get_session_service().refresh(RefreshIn(**data))
    return json_response({"data": token_schema.dump(pair)})


@bp.post("/logout")
@timing
def logout():
    data = logout_schema.load(request.get_json(silent=True) or {})
    get_session_service().logout(LogoutIn(**data))
    return "", 204


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated user profile."""

    user = get_session_service().get_user(current_user_id())
    return json_response({"data": user_schema.dump(user)})
