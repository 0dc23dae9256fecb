import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Read by the log filter and the error envelope
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
tenant_ctx: ContextVar[str | None] = ContextVar("tenant", default=None)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind the request id and tenant of the current request to log context.

    ``X-Request-ID`` is echoed back when supplied, otherwise a fresh UUID is
    issued so a customer can quote it when an order fails.
    """

    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = req_id
        rid_token = request_id_ctx.set(req_id)
        tenant_token = tenant_ctx.set(request.headers.get("X-Tenant-ID"))
        try:
            response = await call_next(request)
        finally:
            tenant_ctx.reset(tenant_token)
            request_id_ctx.reset(rid_token)
        response.headers["X-Request-ID"] = req_id
        return response
