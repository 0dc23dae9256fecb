"""Proof-of-payment ingestion.

Uploads are validated for type and size before any decoding, then normalized
off the event loop: EXIF orientation applied, downscaled to a bounded
dimension and re-encoded as JPEG. The payment stays ``pending``; staff decide
on it separately.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from ..domain import PROOF_METHODS, OrderStatus, PaymentMethod, PaymentStatus
from ..domain.errors import (
    InvalidProofImage,
    OrderNotFound,
    PaymentNotFound,
    ProofNotAccepted,
    ProofTooLarge,
    ProofTypeNotAllowed,
)
from ..repos.unit_of_work import UnitOfWork
from ..routes_metrics import order_transitions_total, payment_proofs_total
from ..storage import StorageBackend
from ..utils.retry import RetryPolicy
from .order_status_service import OrderStatusService

logger = logging.getLogger("cafe_api.payments")

ALLOWED_TYPES = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}


@dataclass(frozen=True)
class ProcessedImage:
    data: bytes
    width: int
    height: int
    orientation: str


def orientation_of(width: int, height: int) -> str:
    """UX hint only; square images count as portrait."""
    return "landscape" if width > height else "portrait"


def compress_image(data: bytes, max_dimension: int, quality: int) -> ProcessedImage:
    """Decode, auto-rotate, downscale and re-encode ``data`` as JPEG.

    CPU bound; run it in a worker thread.
    """

    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise InvalidProofImage() from exc

    img = ImageOps.exif_transpose(img)
    img.thumbnail((max_dimension, max_dimension))
    if img.mode != "RGB":
        img = img.convert("RGB")
    out = BytesIO()
    img.save(out, format="JPEG", quality=quality, optimize=True)
    return ProcessedImage(
        data=out.getvalue(),
        width=img.width,
        height=img.height,
        orientation=orientation_of(img.width, img.height),
    )


class ProofIngestor:
    def __init__(
        self,
        uow: UnitOfWork,
        storage: StorageBackend,
        *,
        tenant_id: str,
        max_bytes: int = 5 * 1024 * 1024,
        max_dimension: int = 1600,
        quality: int = 80,
        retry: RetryPolicy = RetryPolicy(),
        status_service: OrderStatusService | None = None,
    ) -> None:
        self.uow = uow
        self.storage = storage
        self.tenant_id = tenant_id
        self.max_bytes = max_bytes
        self.max_dimension = max_dimension
        self.quality = quality
        self.retry = retry
        self.status = status_service or OrderStatusService(uow, tenant_id=tenant_id)

    def check_upload(self, content_type: str | None, size: int) -> None:
        if (content_type or "").lower() not in ALLOWED_TYPES:
            raise ProofTypeNotAllowed(content_type=content_type)
        if size > self.max_bytes:
            raise ProofTooLarge(max_mb=self.max_bytes // (1024 * 1024))

    async def submit(
        self, payment_id: str, data: bytes, content_type: str | None
    ) -> dict:
        payment = await self.uow.payments.get(payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id=payment_id)
        if PaymentMethod(payment.method) not in PROOF_METHODS:
            raise ProofNotAccepted(method=payment.method)
        if payment.status != PaymentStatus.PENDING.value:
            raise ProofNotAccepted(method=payment.method, status=payment.status)
        self.check_upload(content_type, len(data))

        processed = await asyncio.to_thread(
            compress_image, data, self.max_dimension, self.quality
        )
        url, key = await self.retry.run(
            lambda: self.storage.save(
                self.tenant_id, f"proof_{payment_id}.jpg", processed.data, "image/jpeg"
            ),
            op="proof_store",
        )

        await self.uow.payments.update(
            payment_id,
            {"proof_image_url": url, "proof_orientation": processed.orientation},
        )
        order = await self.uow.orders.get(payment.order_id)
        if order is None:
            raise OrderNotFound(order_id=payment.order_id)
        moved = order.status == OrderStatus.PENDING_PAYMENT.value
        if moved:
            await self.status.transition(
                order.id,
                OrderStatus.PAYMENT_VERIFICATION,
                via_payment=True,
                commit=False,
            )
        await self.uow.commit()

        payment_proofs_total.inc()
        if moved:
            order_transitions_total.labels(
                status=OrderStatus.PAYMENT_VERIFICATION.value
            ).inc()
            await self.status.notify(
                order.id,
                OrderStatus.PAYMENT_VERIFICATION.value,
                order.order_number,
                order.table_id,
            )
        logger.info(
            "payment proof stored %s (%s bytes)",
            key,
            len(processed.data),
            extra={"order_id": order.id, "payment_id": payment_id},
        )
        return {
            "payment_id": payment_id,
            "proof_image_url": url,
            "orientation": processed.orientation,
            "width": processed.width,
            "height": processed.height,
            "status": "pending_verification",
        }
