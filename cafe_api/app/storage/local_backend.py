"""Filesystem-based storage backend."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Tuple
from uuid import uuid4


class LocalBackend:
    """Save media files under ``MEDIA_DIR`` and serve them from ``/media``."""

    def __init__(self, base_dir: str | None = None) -> None:
        self.base_dir = Path(base_dir or os.getenv("MEDIA_DIR", "media"))
        self.base_dir.mkdir(parents=True, exist_ok=True)

    async def save(
        self, tenant: str, name: str, data: bytes, content_type: str
    ) -> Tuple[str, str]:
        key = f"{tenant}/{uuid4().hex}_{name}"
        path = self.base_dir / key
        await asyncio.to_thread(self._write, path, data)
        return self.url(key), key

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def read(self, key: str) -> bytes:
        return (self.base_dir / key).read_bytes()

    def url(self, key: str) -> str:
        return f"/media/{key}"
