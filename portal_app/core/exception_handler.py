import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .cookies import carry_rotated_cookies, expire_session_cookies, role_for_path
from .exceptions import (
    AccessDenied,
    ApprovalIncomplete,
    AuthError,
    ConcurrentRotation,
    InvalidCredentials,
    NotificationError,
    PortalError,
    SessionExpired,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ValidationErrorHandler:
    async def __call__(self, request: Request, exc: RequestValidationError):

        errors = []

        for err in exc.errors():
            errors.append({
                "loc": err.get("loc"),
                "msg": str(err.get("msg")),
                "type": err.get("type"),
            })

        response = JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": "Validation failed",
                "details": errors,
            },
        )
        carry_rotated_cookies(request, response)
        return response


class HTTPErrorHandler:
    async def __call__(self, request: Request, exc: HTTPException):
        response = JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )
        carry_rotated_cookies(request, response)
        return response


class PortalErrorHandler:
    """Turns the portal error taxonomy into JSON responses.

    Authentication failures all answer with the same generic body; the
    precise reason has already been logged where it was raised.
    """

    async def __call__(self, request: Request, exc: PortalError):
        response = self._respond(request.url.path, exc)
        if not isinstance(exc, AuthError):
            carry_rotated_cookies(request, response)
        return response

    def _respond(self, path: str, exc: PortalError) -> JSONResponse:
        if isinstance(exc, ValidationError):
            return self._error(400, exc.message)

        if isinstance(exc, AccessDenied):
            return self._error(403, AccessDenied.detail)

        if isinstance(exc, ConcurrentRotation):
            return self._error(409, ConcurrentRotation.detail)

        if isinstance(exc, AuthError):
            detail = InvalidCredentials.detail if isinstance(exc, InvalidCredentials) else AuthError.detail
            response = self._error(401, detail)
            # an unknown or mismatched pair leaves cookies alone: the browser
            # may already hold the pair a parallel request was issued
            role = role_for_path(path)
            if role is not None and isinstance(exc, (SessionExpired, InvalidCredentials)):
                expire_session_cookies(response, role)
            return response

        if isinstance(exc, ApprovalIncomplete):
            logger.error(
                f"Approval incomplete on {path}: application {exc.application_id} "
                f"stopped at '{exc.step}'"
            )
            return self._error(
                500,
                exc.detail,
                application_id=exc.application_id,
                step=exc.step,
            )

        if isinstance(exc, NotificationError) and exc.application_id is not None:
            logger.error(f"Notification failed on {path} for application {exc.application_id}")
            return self._error(500, exc.detail, application_id=exc.application_id)

        if isinstance(exc, NotificationError) and exc.message_id is not None:
            logger.error(f"Notification failed on {path} for message {exc.message_id}")
            return self._error(500, exc.detail, message_id=exc.message_id)

        logger.error(f"{type(exc).__name__} on {path}: {exc.message}")
        return self._error(500, exc.detail)

    @staticmethod
    def _error(status_code: int, detail: str, **extra) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "error": detail, **extra},
        )
