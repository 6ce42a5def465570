"""
Tienda Services: Request ID Middleware
========================================

What:  Gives every request a short correlation ID and echoes it back in the
       X-Request-ID response header.
How:   A client-supplied X-Request-ID is reused when it looks like an ID
       (1-64 characters from [A-Za-z0-9._-]); otherwise 8 hex characters are
       generated. The ID lives in a ContextVar so loggers and exception
       handlers can read it without access to the request.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_VALID_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns the correlation ID before any other middleware or handler runs."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get(REQUEST_ID_HEADER, "")
        rid = supplied if _VALID_ID.match(supplied) else new_request_id()

        # not reset afterwards: the catch-all 500 handler runs outside this
        # middleware and still needs the ID
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
