"""Payment intents, proof uploads and staff verification."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile

from .deps.services import get_payment_service, get_proof_ingestor
from .deps.staff import get_staff_id
from .schemas import PaymentCreateIn, PaymentVerifyIn
from .services.payment_service import PaymentService
from .services.proof_service import ProofIngestor
from .utils.responses import ok

router = APIRouter()


@router.post("/api/payments", status_code=201)
async def create_payment(
    body: PaymentCreateIn,
    payments: PaymentService = Depends(get_payment_service),
) -> dict:
    """Open a payment for an order and return method-specific instructions."""

    intent = await payments.create_payment(body.order_id, body.method, body.amount)
    return ok(intent)


@router.get("/api/payments/{payment_id}")
async def get_payment(
    payment_id: str, payments: PaymentService = Depends(get_payment_service)
) -> dict:
    return ok(payments.intent(await payments.get_payment(payment_id)))


@router.get("/api/payments/{payment_id}/status")
async def get_payment_status(
    payment_id: str, payments: PaymentService = Depends(get_payment_service)
) -> dict:
    return ok(await payments.payment_status(payment_id))


@router.post("/api/payments/{payment_id}/proof")
async def upload_proof(
    payment_id: str,
    proof: UploadFile = File(...),
    ingestor: ProofIngestor = Depends(get_proof_ingestor),
) -> dict:
    """Attach a proof-of-payment image to a QRIS or transfer payment."""

    # reject by declared size before buffering when the client sent one
    if proof.size is not None:
        ingestor.check_upload(proof.content_type, proof.size)
    contents = await proof.read()
    return ok(await ingestor.submit(payment_id, contents, proof.content_type))


@router.post("/api/payments/{payment_id}/verify")
async def verify_payment(
    payment_id: str,
    body: PaymentVerifyIn,
    staff_id: str = Depends(get_staff_id),
    payments: PaymentService = Depends(get_payment_service),
) -> dict:
    result = await payments.verify(
        payment_id, approved=body.approved, staff_id=staff_id, notes=body.notes
    )
    return ok(result)
