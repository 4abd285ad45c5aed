import logging
from functools import wraps

from fastapi import HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import PortalError

logger = logging.getLogger(__name__)

# first match wins, so subclasses go before their bases
FRIENDLY_MESSAGES = (
    (TimeoutError, "The request took too long. Please try again later."),
    (ConnectionError, "A portal service is unreachable. Please try again later."),
    (SQLAlchemyError, "Portal records are temporarily unavailable. Please try again shortly."),
    ((ValueError, KeyError), "Some of the submitted details could not be processed."),
)


def get_friendly_message(error: Exception) -> str:
    for error_types, message in FRIENDLY_MESSAGES:
        if isinstance(error, error_types):
            return message
    return "Something went wrong on our end. Please try again."


def _request_context(request: Request | None):
    if request is None:
        return "none", "unknown", "unknown"
    client_ip = request.client.host if request.client else "unknown"
    trace_id = request.headers.get("X-Request-ID", "none")
    return trace_id, request.url.path, client_ip


def safe_handler(func):
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Request | None = None
        for arg in list(args) + list(kwargs.values()):
            if isinstance(arg, Request):
                request = arg
                break

        try:
            return await func(*args, **kwargs)
        except (HTTPException, PortalError) as e:
            trace_id, path, client_ip = _request_context(request)
            logger.warning(
                f"[{type(e).__name__}] TraceID={trace_id} | {path} from {client_ip}: "
                f"{getattr(e, 'detail', e)}"
            )
            raise
        except Exception as e:
            trace_id, path, client_ip = _request_context(request)
            logger.error(
                f"[Unhandled Error] TraceID={trace_id} | in {func.__name__} | Path: {path} | "
                f"Client: {client_ip} | Error: {e}",
                exc_info=True,
            )
            raise HTTPException(status_code=500, detail=get_friendly_message(e))

    return wrapper
