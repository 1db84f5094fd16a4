"""
Global exception handlers and custom exception classes.

Every error leaves the API inside the same envelope: {"error": <detail>}.
"""
from typing import Any, Dict, Optional
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

# Set up logging
logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"


class AppException(Exception):
    """
    Base exception class for application-specific exceptions.
    """
    def __init__(self, status_code: int, detail: Any, headers: Optional[Dict[str, str]] = None):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.headers = headers


class FailedValidationException(AppException):
    """Exception raised when one or more fields fail validation."""
    def __init__(self, errors: Dict[str, str]):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=dict(errors))
        self.errors = dict(errors)


class RecordNotFoundException(AppException):
    """Exception raised when a record does not exist."""
    def __init__(self, detail: str = "the requested resource could not be found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class EditConflictException(AppException):
    """Exception raised when a write is based on a stale version of a record."""
    def __init__(self, detail: str = "unable to update the record due to an edit conflict, please try again"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class RateLimitExceededException(AppException):
    """Exception raised when a client exceeds its request budget."""
    def __init__(self, detail: str = "rate limit exceeded"):
        super().__init__(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail)


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.
    
    Args:
        request: The request that caused the exception
        exc: The exception instance
        
    Returns:
        JSONResponse: Standardized error response
    """
    logger.warning(f"Application error on {request.method} {request.url.path}: {exc.status_code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request bodies that could not be decoded into the expected shape.
    
    Args:
        request: The request that caused the exception
        exc: The validation exception instance
        
    Returns:
        JSONResponse: 400 response with the decoding problems
    """
    logger.warning(f"Malformed request on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "request body is badly formed",
            "errors": jsonable_encoder(exc.errors())
        }
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for routing errors (unknown path, method not allowed).
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Handler for any exception that escaped the application.
    
    The failure is logged with its traceback and the client only sees a
    generic message. The connection is closed so no partial response survives.
    """
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": SERVER_ERROR_MESSAGE},
        headers={"Connection": "close"}
    )


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.
    
    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
