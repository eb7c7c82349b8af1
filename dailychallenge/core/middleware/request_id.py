"""Request correlation: every request carries an id and ends with one access log line."""

import time
from typing import Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from dailychallenge.core.logging import latency_bucket_ms, log_event, request_id_ctx_var

REQUEST_ID_HEADER = "x-request-id"
USER_ID_HEADER = "x-user-id"


def _acting_user(request: Request) -> Optional[str]:
    user_id = request.headers.get(USER_ID_HEADER)
    return user_id.strip() if user_id and user_id.strip() else None


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind x-request-id to the logging context and echo it on the response."""

    def __init__(self, app, header_name: str = REQUEST_ID_HEADER):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(self.header_name) or str(uuid4())
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)

        response.headers[self.header_name] = rid
        log_event(
            "info",
            "request.complete",
            request_id=rid,
            user_id=_acting_user(request),
            challenge_id=request.path_params.get("challenge_id"),
            participant_id=request.path_params.get("participant_id"),
            event_type="http.request",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status": response.status_code,
                "latency_bucket": latency_bucket_ms((time.perf_counter() - started) * 1000),
            },
        )
        return response
