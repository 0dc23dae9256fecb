from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..i18n import select_language


class LanguageMiddleware(BaseHTTPMiddleware):
    """Resolve the response language from ``?lang=`` or ``Accept-Language``."""

    def __init__(self, app, default: str = "id") -> None:
        super().__init__(app)
        self.default = default

    async def dispatch(self, request: Request, call_next):
        requested = request.query_params.get("lang") or request.headers.get(
            "Accept-Language"
        )
        request.state.lang = select_language(requested, self.default)
        response = await call_next(request)
        response.headers["Content-Language"] = request.state.lang
        return response
