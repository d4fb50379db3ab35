# taskflow/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable

from taskflow.core import errors as api_errors
from taskflow.services._shared.errors import (
    AccountLocked,
    ConflictError,
    InternalFailure,
    InvalidCredentials,
    InvalidRefreshToken,
    ServiceError,
)
from taskflow.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide a helper to open a read-write unit of work.
    * Centralize error translation to API errors.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - ``uow_factory`` is injectable so tests can bind a specific session.
    """

    def __init__(self, *, uow_factory: Callable[[], SQLAlchemyUnitOfWork] | None = None) -> None:
        """
        Initialize the base service.

        :param uow_factory: Callable returning a fresh unit of work.
        """
        self._uow_factory = uow_factory or SQLAlchemyUnitOfWork

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return self._uow_factory()

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, InvalidCredentials):
            return api_errors.Unauthorized(str(exc), code="invalid_credentials")

        if isinstance(exc, AccountLocked):
            return api_errors.Unauthorized(str(exc), code="account_locked")

        if isinstance(exc, InvalidRefreshToken):
            return api_errors.Unauthorized(str(exc), code="invalid_refresh_token")

        if isinstance(exc, ConflictError):
            # → 409 Conflict
            return api_errors.Conflict(exc.detail)

        if isinstance(exc, InternalFailure):
            # Operator detail stays in the logs
            return api_errors.ServiceUnavailable()

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
