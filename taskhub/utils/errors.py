# taskhub/utils/errors.py
"""
Domain errors raised by the service layer and their HTTP mapping
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TaskHubError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class PermissionDenied(TaskHubError):
    """The caller holds no grant for the requested resource"""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You don't have permission to perform this action"


class NotFound(TaskHubError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class ValidationFailed(TaskHubError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


async def taskhub_error_handler(request: Request, exc: TaskHubError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(TaskHubError, taskhub_error_handler)
