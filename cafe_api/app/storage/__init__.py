"""Storage backend selector.

Provides a unified interface to save proof-of-payment images and fetch public
URLs using either a local filesystem or S3-backed implementation. The backend
is chosen by the ``storage_backend`` setting (``local`` by default) and built
once by the application lifespan.
"""

from __future__ import annotations

from typing import Protocol, Tuple


class StorageBackend(Protocol):
    """Minimal protocol implemented by storage backends."""

    async def save(
        self, tenant: str, name: str, data: bytes, content_type: str
    ) -> Tuple[str, str]:
        """Persist ``data`` for ``tenant`` and return ``(url, key)``."""

    def read(self, key: str) -> bytes:
        """Return raw bytes for ``key``."""

    def url(self, key: str) -> str:
        """Return a public URL for ``key``."""


def build_storage(settings) -> StorageBackend:
    """Return the backend selected by ``settings.storage_backend``."""

    if settings.storage_backend.lower() == "s3":  # pragma: no cover - needs S3
        from .s3_backend import S3Backend

        return S3Backend()
    from .local_backend import LocalBackend

    return LocalBackend(settings.media_dir)


__all__ = ["StorageBackend", "build_storage"]
