"""Build request-scoped services from application state and settings."""

from __future__ import annotations

from datetime import timedelta

from fastapi import Depends, Request

from ..error_handlers import request_lang
from ..pricing import PricingConfig
from ..repos_sqlalchemy import SQLUnitOfWork
from ..services.order_builder import OrderBuilder
from ..services.order_service import OrderOrchestrator
from ..services.order_status_service import OrderStatusService
from ..services.payment_service import PaymentService
from ..services.proof_service import ProofIngestor
from ..utils.retry import RetryPolicy
from .db import get_uow
from .tenant import get_tenant_id


def get_app_settings(request: Request):
    return request.app.state.settings


def get_lang(request: Request) -> str:
    return request_lang(request)


def get_status_service(
    request: Request,
    uow: SQLUnitOfWork = Depends(get_uow),
    tenant_id: str = Depends(get_tenant_id),
) -> OrderStatusService:
    return OrderStatusService(
        uow, publisher=request.app.state.publisher, tenant_id=tenant_id
    )


def get_order_builder(
    uow: SQLUnitOfWork = Depends(get_uow), settings=Depends(get_app_settings)
) -> OrderBuilder:
    return OrderBuilder(
        uow,
        pricing=PricingConfig.from_settings(settings),
        retry=RetryPolicy.from_settings(settings),
    )


def get_orchestrator(
    request: Request,
    uow: SQLUnitOfWork = Depends(get_uow),
    tenant_id: str = Depends(get_tenant_id),
    settings=Depends(get_app_settings),
) -> OrderOrchestrator:
    return OrderOrchestrator(
        uow,
        prep_window=timedelta(minutes=settings.prep_window_minutes),
        retry=RetryPolicy.from_settings(settings),
        publisher=request.app.state.publisher,
        tenant_id=tenant_id,
    )


def get_payment_service(
    uow: SQLUnitOfWork = Depends(get_uow),
    status_service: OrderStatusService = Depends(get_status_service),
    settings=Depends(get_app_settings),
    lang: str = Depends(get_lang),
) -> PaymentService:
    return PaymentService(
        uow,
        merchant_name=settings.merchant_name,
        qris_static_code=settings.qris_static_code,
        bank_accounts=settings.bank_accounts,
        transfer_expiry=timedelta(minutes=settings.transfer_expiry_minutes),
        lang=lang,
        status_service=status_service,
    )


def get_proof_ingestor(
    request: Request,
    uow: SQLUnitOfWork = Depends(get_uow),
    tenant_id: str = Depends(get_tenant_id),
    status_service: OrderStatusService = Depends(get_status_service),
    settings=Depends(get_app_settings),
) -> ProofIngestor:
    return ProofIngestor(
        uow,
        request.app.state.storage,
        tenant_id=tenant_id,
        max_bytes=settings.proof_max_bytes,
        max_dimension=settings.proof_max_dimension,
        quality=settings.proof_jpeg_quality,
        retry=RetryPolicy.from_settings(settings),
        status_service=status_service,
    )
