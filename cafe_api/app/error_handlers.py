"""Exception handlers rendering errors in the response envelope.

Domain errors become their HTTP status class with a localized message.
Unexpected errors become a generic 500; the exception text is only attached
outside production.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .domain.errors import DomainError
from .i18n import CATALOG, hint, message
from .obs import capture_exception
from .utils.responses import err

logger = logging.getLogger("api")


def request_lang(request: Request) -> str:
    default = getattr(getattr(request.app.state, "settings", None), "default_language", "id")
    return getattr(request.state, "lang", default)


def _expose_details(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return settings is not None and not settings.is_production


def _capture(request: Request, exc: Exception, order_id: str | None = None) -> None:
    capture_exception(
        exc,
        tenant=request.headers.get("X-Tenant-ID"),
        order_id=order_id or request.path_params.get("order_id"),
        request_id=getattr(request.state, "request_id", None),
        route=request.url.path,
    )


def internal_error_body(request: Request, exc: Exception) -> dict:
    details = {"exception": repr(exc)} if _expose_details(request) else None
    return err("INTERNAL_ERROR", message("INTERNAL_ERROR", request_lang(request)), details)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    lang = request_lang(request)
    details = None
    if _expose_details(request) and (exc.params or exc.detail):
        details = {k: v for k, v in exc.params.items()}
        if exc.detail:
            details["detail"] = exc.detail
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "domain error %s",
        exc.code,
        extra={
            "status": exc.status_code,
            "route": request.url.path,
            "tenant": request.headers.get("X-Tenant-ID"),
            "order_id": exc.params.get("order_id"),
        },
    )
    if exc.status_code >= 500:
        _capture(request, exc, exc.params.get("order_id"))
    body = err(
        exc.code,
        message(exc.code, lang, **exc.params),
        jsonable_encoder(details) if details else None,
        hint(exc.hint, lang, **exc.params) if exc.hint else None,
    )
    return JSONResponse(body, status_code=exc.status_code)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    body = err(
        "VALIDATION_ERROR",
        message("VALIDATION_ERROR", request_lang(request)),
        {"errors": jsonable_encoder(exc.errors())},
    )
    return JSONResponse(body, status_code=400)


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    logger.warning(
        str(exc.detail),
        extra={
            "status": exc.status_code,
            "route": request.url.path,
            "tenant": request.headers.get("X-Tenant-ID"),
        },
    )
    code = exc.detail if exc.detail in CATALOG["id"]["errors"] else exc.status_code
    text = (
        message(exc.detail, request_lang(request))
        if isinstance(code, str)
        else str(exc.detail)
    )
    return JSONResponse(err(code, text), status_code=exc.status_code)


async def general_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_error",
        extra={
            "status": 500,
            "route": request.url.path,
            "tenant": request.headers.get("X-Tenant-ID"),
        },
    )
    _capture(request, exc)
    return JSONResponse(internal_error_body(request, exc), status_code=500)


def install(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, general_error_handler)
