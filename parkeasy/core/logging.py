import logging
import json
import uuid
from contextvars import ContextVar
from typing import Callable
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# Request id of the request currently being served (None outside a request)
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Simple JSON formatter for line-oriented logs
class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        # Include request id if available
        rid = getattr(record, "request_id", None)
        if rid:
            payload["request_id"] = rid
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)

_base_record_factory = logging.getLogRecordFactory()

def _record_with_request_id(*args, **kwargs) -> logging.LogRecord:
    # Stamped at creation so every handler sees it, not just ours
    record = _base_record_factory(*args, **kwargs)
    record.request_id = request_id_var.get()
    return record

def configure_logging(level: str = "INFO"):
    """
    Replace uvicorn default formatter with JSON so log shippers
    get structured, request-correlated lines.
    """
    logging.setLogRecordFactory(_record_with_request_id)
    root = logging.getLogger()
    root.setLevel(level.upper())
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.handlers = [handler]

class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Ensures every request has an X-Request-Id header,
    attaches it to the response and log records.
    """
    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        # Make it visible to downstream handlers via state
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response: Response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-Id"] = request_id
        return response
