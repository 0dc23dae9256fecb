"""Observability helpers: error sink and SQL timing.

JSON log formatting lives in :mod:`.logging` and is configured by the
application lifespan.
"""

from .errors import capture_exception, init_sentry
from .queries import SLOW_QUERY_MS, add_query_logger

__all__ = ["capture_exception", "init_sentry", "add_query_logger", "SLOW_QUERY_MS"]
