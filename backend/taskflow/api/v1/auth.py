"""Authentication endpoints delegating to the session service."""

from __future__ import annotations

from flask import Blueprint, current_app, g, request

from taskflow.api.deps import (
    get_session_service,
    json_response,
    require_auth,
    timing,
    translate_service_errors,
)
from taskflow.core.extensions import limiter
from taskflow.schemas import LoginSchema, RefreshSchema, RegisterSchema, SessionResponseSchema
from taskflow.services.auth.dto import LoginIn, RegisterIn

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
session_schema = SessionResponseSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per 15 minutes"))


def _register_rate_limit() -> str:
    return str(current_app.config.get("AUTH_REGISTER_RATE_LIMIT", "3 per hour"))


def _refresh_rate_limit() -> str:
    return str(current_app.config.get("AUTH_REFRESH_RATE_LIMIT", "10 per minute"))


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
@translate_service_errors
def login():
    """Authenticate credentials and issue a token pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    result = get_session_service().login(LoginIn(email=data["email"], password=data["password"]))
    return json_response(session_schema.dump(result.to_dict()))


@bp.post("/register")
@limiter.limit(_register_rate_limit)
@timing
@translate_service_errors
def register():
    """Create an account and sign it in."""

    data = register_schema.load(request.get_json(silent=True) or {})
    result = get_session_service().register(
        RegisterIn(email=data["email"], password=data["password"], name=data["name"])
    )
    return json_response(session_schema.dump(result.to_dict()), status=201)


@bp.post("/refresh")
@limiter.limit(_refresh_rate_limit)
@timing
@translate_service_errors
def refresh():
    """Rotate a refresh token into a new token pair."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    result = get_session_service().refresh(data["refresh_token"])
    return json_response(session_schema.dump(result.to_dict()))


@bp.post("/logout")
@timing
@require_auth
@translate_service_errors
def logout():
    """Revoke the presented access token and every refresh token of the caller."""

    get_session_service().logout(g.access_token, str(g.auth_claims["sub"]))
    return json_response({"message": "Logged out successfully"})


@bp.delete("/revoke-refresh-tokens")
@timing
@require_auth
@translate_service_errors
def revoke_refresh_tokens():
    """Deactivate every refresh token of the caller; access tokens run out naturally."""

    get_session_service().revoke_all_sessions(str(g.auth_claims["sub"]))
    return json_response({"message": "All refresh tokens revoked"})
