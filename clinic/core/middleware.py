"""
Custom middleware for the FastAPI application.
"""
import time
import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import uuid

from ..exceptions import RateLimitExceededException
from .rate_limit import ClientRateLimiter

# Set up logging
logger = logging.getLogger(__name__)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging request and response information.
    """
    def __init__(self, app: ASGIApp):
        super().__init__(app)
    
    async def dispatch(self, request: Request, call_next):
        """
        Process the request and log information.
        
        Args:
            request: The incoming request
            call_next: The next middleware or endpoint handler
            
        Returns:
            Response: The response from the next handler
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request {request_id} started: {request.method} {request.url.path} from {client_host}")
        
        start_time = time.time()
        
        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request {request_id} failed: {request.method} {request.url.path} "
                f"- Error: {str(e)} - Duration: {process_time:.4f}s"
            )
            raise
        
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Request-ID"] = request_id
        
        logger.info(
            f"Request {request_id} completed: {request.method} {request.url.path} "
            f"- Status: {response.status_code} - Duration: {process_time:.4f}s"
        )
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware rejecting clients that exceed their token bucket.
    
    The limiter is constructed by the application factory and passed in,
    so its lifecycle (sweeper start/stop) belongs to the application.
    """
    def __init__(self, app: ASGIApp, limiter: ClientRateLimiter, enabled: bool = True):
        super().__init__(app)
        self.limiter = limiter
        self.enabled = enabled
    
    async def dispatch(self, request: Request, call_next):
        """
        Process the request with rate limiting.
        
        Args:
            request: The incoming request
            call_next: The next middleware or endpoint handler
            
        Returns:
            Response: The response from the next handler or a 429 response
        """
        if self.enabled:
            client_ip = request.client.host if request.client else "unknown"
            if not self.limiter.allow(client_ip):
                logger.warning(f"Rate limit exceeded for IP: {client_ip}")
                exc = RateLimitExceededException()
                return JSONResponse(
                    status_code=exc.status_code,
                    content={"error": exc.detail}
                )
        
        return await call_next(request)


def setup_middlewares(app, limiter: ClientRateLimiter, rate_limit_enabled: bool = True):
    """
    Set up all custom middlewares for the application.
    
    Args:
        app: FastAPI application instance
        limiter: Rate limiter shared by every request
        rate_limit_enabled: Whether to enforce the limiter
    """
    app.add_middleware(RateLimitMiddleware, limiter=limiter, enabled=rate_limit_enabled)
    app.add_middleware(RequestLoggingMiddleware)
