"""
Request ID middleware.

Every request gets an id (the client's ``X-Request-ID`` if it sent one) that is
echoed back in the response and stamped on every log record emitted while the
request is being served, so all logs of one order placement or delivery action
can be pulled together.
"""

import logging
import uuid
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def _install_record_factory():
    # Installed once; the value comes from the context of whichever task logs
    base_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = base_factory(*args, **kwargs)
        if getattr(record, "request_id", None) is None:
            record.request_id = _request_id.get()
        return record

    logging.setLogRecordFactory(record_factory)


_install_record_factory()


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        token = _request_id.set(request_id)
        try:
            response: Response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            _request_id.reset(token)
