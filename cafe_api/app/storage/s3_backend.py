"""S3 storage backend serving objects through presigned URLs."""

from __future__ import annotations

import asyncio
import os
from typing import Tuple
from uuid import uuid4

import boto3


class S3Backend:
    """Upload proof images to a private bucket and hand out presigned reads."""

    def __init__(self, client=None) -> None:
        endpoint = os.getenv("S3_ENDPOINT")
        region = os.getenv("S3_REGION")
        access = os.getenv("S3_ACCESS_KEY")
        secret = os.getenv("S3_SECRET_KEY")
        self.bucket = os.getenv("S3_BUCKET", "")
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint,
            region_name=region,
            aws_access_key_id=access,
            aws_secret_access_key=secret,
        )

    async def save(
        self, tenant: str, name: str, data: bytes, content_type: str
    ) -> Tuple[str, str]:
        key = f"{tenant}/{uuid4().hex}_{name}"
        # boto3 is blocking
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            CacheControl="private, max-age=86400",
        )
        return self.url(key), key

    def read(self, key: str) -> bytes:  # pragma: no cover - passthrough
        obj = self.client.get_object(Bucket=self.bucket, Key=key)
        return obj["Body"].read()

    def url(self, key: str) -> str:
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=3600,
        )
