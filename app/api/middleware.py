"""
Request timing and logging middleware
"""
import logging
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log request timing and the routed doctor for each request
    """
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        doctor = request.query_params.get("doctor") or request.query_params.get("doctor_id") or "-"

        # Process request
        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"[TIMING] {request.method} {request.url.path} | doctor={doctor} | duration={duration_ms:.2f}ms | status={response.status_code}"
        )

        return response
