"""Billing API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.core.security import get_actor_id
from app.modules.billing.schemas import PaymentRead, PaymentStatsRead, PaymentUpdateStatus
from app.modules.billing.service import BillingService, get_billing_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/payments/enrollments/{enrollment_id}", response_model=Page[PaymentRead])
async def list_enrollment_payments(
    enrollment_id: UUID,
    pagination=Depends(get_pagination_params),
    service: BillingService = Depends(get_billing_service),
) -> Page[PaymentRead]:
    """List payments for an enrollment."""
    items, total = await service.list_enrollment_payments(
        enrollment_id=enrollment_id,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [PaymentRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/payments/stats", response_model=PaymentStatsRead)
async def get_payment_stats(
    service: BillingService = Depends(get_billing_service),
) -> PaymentStatsRead:
    """Payment counts per status."""
    return await service.get_payment_stats()


@router.patch("/payments/{payment_id}/status", response_model=PaymentRead)
async def update_payment_status(
    payment_id: UUID,
    payload: PaymentUpdateStatus,
    service: BillingService = Depends(get_billing_service),
    actor_id: UUID | None = Depends(get_actor_id),
) -> PaymentRead:
    """Update payment status."""
    payment = await service.update_payment_status(payment_id, payload.status, actor_id)
    return PaymentRead.model_validate(payment)
