import logging
from contextlib import contextmanager
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from firebase_admin import exceptions as firebase_exceptions
from google.api_core import exceptions as google_exceptions

logger = logging.getLogger(__name__)


class ConsoleError(Exception):
    """Base error; carries the HTTP status and the message shown to clients."""

    status_code = 500
    public_message = "Internal error"
    expose_detail = False

    def __init__(self, message: str = "", public_message: Optional[str] = None):
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message
        elif self.expose_detail and message:
            self.public_message = message


class ConfigurationError(ConsoleError):
    status_code = 500
    public_message = "Failed to initialize Firebase. Check your service account credentials."


class QueryError(ConsoleError):
    status_code = 400
    public_message = "Invalid query"
    expose_detail = True


class NotFoundError(ConsoleError):
    status_code = 404
    public_message = "Not found"
    expose_detail = True


class StoreUnavailableError(ConsoleError):
    status_code = 503
    public_message = "Backing store unavailable"


_QUERY_ERRORS = (
    google_exceptions.InvalidArgument,
    google_exceptions.FailedPrecondition,
    firebase_exceptions.InvalidArgumentError,
    firebase_exceptions.FailedPreconditionError,
)


@contextmanager
def store_errors(action: str):
    """Translate SDK exceptions raised inside the block into ConsoleError subclasses."""
    try:
        yield
    except ConsoleError:
        raise
    except _QUERY_ERRORS as e:
        raise QueryError(f"{action}: {getattr(e, 'message', None) or e}") from e
    except (google_exceptions.GoogleAPIError, firebase_exceptions.FirebaseError) as e:
        raise StoreUnavailableError(f"{action}: {e}", public_message=f"Failed to {action}") from e


async def console_error_handler(request: Request, exc: ConsoleError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})
