"""Billing business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import PaymentStatusEnum
from app.modules.audit.repository import AuditRepository
from app.modules.billing.models import Payment
from app.modules.billing.repository import BillingRepository
from app.modules.billing.schemas import PaymentStatsRead
from app.shared.exceptions import InvalidStateException, NotFoundException
from app.shared.utils import utc_now

ALLOWED_PAYMENT_TRANSITIONS: dict[PaymentStatusEnum, set[PaymentStatusEnum]] = {
    PaymentStatusEnum.PENDING: {
        PaymentStatusEnum.PAID,
        PaymentStatusEnum.OVERDUE,
        PaymentStatusEnum.CANCELLED,
    },
    PaymentStatusEnum.OVERDUE: {PaymentStatusEnum.PAID, PaymentStatusEnum.CANCELLED},
    PaymentStatusEnum.PAID: {PaymentStatusEnum.REFUNDED},
    PaymentStatusEnum.CANCELLED: set(),
    PaymentStatusEnum.REFUNDED: set(),
}


class BillingService:
    """Payment ledger service."""

    def __init__(
        self,
        repository: BillingRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.audit_repository = audit_repository

    async def list_enrollment_payments(
        self,
        enrollment_id: UUID,
        limit: int,
        offset: int,
    ) -> tuple[list[Payment], int]:
        """List payments of an enrollment, latest period first."""
        return await self.repository.list_payments_by_enrollment(
            enrollment_id=enrollment_id,
            limit=limit,
            offset=offset,
        )

    async def get_payment_stats(self) -> PaymentStatsRead:
        """Count payments per status."""
        counts = await self.repository.count_by_status()
        by_status = {status: counts.get(status, 0) for status in PaymentStatusEnum}
        return PaymentStatsRead(
            pending=by_status[PaymentStatusEnum.PENDING],
            paid=by_status[PaymentStatusEnum.PAID],
            overdue=by_status[PaymentStatusEnum.OVERDUE],
            cancelled=by_status[PaymentStatusEnum.CANCELLED],
            refunded=by_status[PaymentStatusEnum.REFUNDED],
            total=sum(by_status.values()),
        )

    async def update_payment_status(
        self,
        payment_id: UUID,
        status: PaymentStatusEnum,
        actor_id: UUID | None,
    ) -> Payment:
        """Move payment through its status lifecycle."""
        payment = await self.repository.get_payment_by_id(payment_id)
        if payment is None:
            raise NotFoundException("Payment not found")

        if payment.status == status:
            return payment
        previous_status = payment.status

        if status not in ALLOWED_PAYMENT_TRANSITIONS[payment.status]:
            raise InvalidStateException(
                f"Invalid payment status transition: {payment.status} -> {status}",
            )

        if status == PaymentStatusEnum.PAID:
            paid_at = payment.paid_at or utc_now()
        elif status == PaymentStatusEnum.REFUNDED:
            paid_at = payment.paid_at
        else:
            paid_at = None

        payment = await self.repository.set_payment_status(payment, status, paid_at)
        await self.audit_repository.create_audit_log(
            actor_id=actor_id,
            action="billing.payment.status.update",
            entity_type="payment",
            entity_id=str(payment.id),
            payload={
                "from_status": str(previous_status),
                "to_status": str(status),
                "paid_at": payment.paid_at.isoformat() if payment.paid_at is not None else None,
            },
        )
        await self.audit_repository.create_outbox_event(
            aggregate_type="billing",
            aggregate_id=str(payment.id),
            event_type="billing.payment.status.updated",
            payload={
                "payment_id": str(payment.id),
                "enrollment_id": str(payment.enrollment_id),
                "student_id": str(payment.student_id),
                "from_status": str(previous_status),
                "to_status": str(status),
            },
        )
        return payment


async def get_billing_service(session: AsyncSession = Depends(get_db_session)) -> BillingService:
    """Dependency provider for billing service."""
    return BillingService(
        repository=BillingRepository(session),
        audit_repository=AuditRepository(session),
    )
