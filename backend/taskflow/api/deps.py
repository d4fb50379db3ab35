"""Shared API helpers: authentication, service lookup and response helpers."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

import jwt
from flask import Response, current_app, g, jsonify, request

from taskflow.core.errors import Unauthorized
from taskflow.services._shared.base import BaseService
from taskflow.services.auth.service import SessionService

F = TypeVar("F", bound=Callable[..., Any])

SERVICE_KEY = "session_service"


def get_session_service() -> SessionService:
    """Return the :class:`SessionService` wired by the application factory."""

    return cast(SessionService, current_app.extensions[SERVICE_KEY])


def bearer_token() -> str:
    """Extract the token from ``Authorization: Bearer <token>``.

    :raises Unauthorized: Header missing or not a bearer credential.
    """

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Missing bearer token")
    return token.strip()


def translate_service_errors(func: F) -> F:
    """Re-raise service-layer errors as API errors (RFC 7807 handled upstream)."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            translated = BaseService.translate_exceptions(exc)
            if translated is exc:
                raise
            raise translated from exc

    return wrapper  # type: ignore[return-value]


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, non-revoked access token.

    Verified claims are exposed as ``g.auth_claims`` and the raw token as
    ``g.access_token``. A revocation cache fault denies the request.
    """

    @functools.wraps(func)
    @translate_service_errors
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        service = get_session_service()
        try:
            claims = service.issuer.decode_access(token)
        except jwt.InvalidTokenError as exc:
            raise Unauthorized("Invalid or expired token") from exc
        if service.revocation.is_revoked(str(claims["jti"])):
            raise Unauthorized("Token has been revoked")
        g.auth_claims = claims
        g.access_token = token
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
