from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import time
import uuid

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP call under a short request id and echoes the id back to the client.

    UI error reports quote the id, which is how they get matched to log lines.
    """

    def __init__(self, app, logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request: Request, call_next):
        log = self.logger.bind(req_id=uuid.uuid4().hex[:8])
        started = time.perf_counter()

        client = request.client.host if request.client else None
        log.info("request_started", method=request.method, path=request.url.path, client_ip=client)

        try:
            response = await call_next(request)
        except Exception as e:
            log.error("request_failed", path=request.url.path, error=str(e))
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        log.info("request_completed", status=response.status_code, duration_ms=round(elapsed_ms, 2))
        response.headers[REQUEST_ID_HEADER] = log.context["req_id"]
        return response
