from .language import LanguageMiddleware
from .logging import LoggingMiddleware
from .prometheus import PrometheusMiddleware
from .request_id import RequestIdMiddleware, request_id_ctx, tenant_ctx

__all__ = [
    "RequestIdMiddleware",
    "LoggingMiddleware",
    "LanguageMiddleware",
    "PrometheusMiddleware",
    "request_id_ctx",
    "tenant_ctx",
]
