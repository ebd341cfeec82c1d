"""Billing repository layer."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import PaymentStatusEnum, PaymentTypeEnum
from app.modules.billing.models import Payment
from app.modules.billing.proration import ProrationResult


class BillingRepository:
    """DB access methods for the payment ledger."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_period_payment(
        self,
        enrollment_id: UUID,
        group_id: UUID,
        student_id: UUID,
        payment_type: PaymentTypeEnum,
        currency: str,
        proration: ProrationResult,
        due_date: date,
    ) -> Payment:
        payment = Payment(
            enrollment_id=enrollment_id,
            group_id=group_id,
            student_id=student_id,
            amount=proration.prorated_amount,
            currency=currency.upper(),
            payment_type=payment_type,
            period_start=proration.period_start,
            period_end=proration.period_end,
            lessons_in_period=proration.total_lessons_in_period,
            lessons_missed=proration.lessons_missed,
            lessons_included=proration.lessons_included,
            lesson_price=proration.effective_lesson_price,
            discount_applied=proration.discount_applied,
            is_prorated=proration.is_prorated,
            status=PaymentStatusEnum.PENDING,
            due_date=due_date,
        )
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def get_payment_by_id(self, payment_id: UUID) -> Payment | None:
        stmt = select(Payment).where(Payment.id == payment_id, Payment.is_deleted.is_(False))
        return await self.session.scalar(stmt)

    async def list_payments_by_enrollment(
        self,
        enrollment_id: UUID,
        limit: int,
        offset: int,
    ) -> tuple[list[Payment], int]:
        base_stmt: Select[tuple[Payment]] = select(Payment).where(
            Payment.enrollment_id == enrollment_id,
            Payment.is_deleted.is_(False),
        )
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Payment.period_start.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def sum_paid_for_student_group(self, student_id: UUID, group_id: UUID) -> Decimal:
        stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.student_id == student_id,
            Payment.group_id == group_id,
            Payment.status == PaymentStatusEnum.PAID,
            Payment.is_deleted.is_(False),
        )
        return Decimal((await self.session.scalar(stmt)) or 0)

    async def count_by_status(self) -> dict[PaymentStatusEnum, int]:
        stmt = (
            select(Payment.status, func.count())
            .where(Payment.is_deleted.is_(False))
            .group_by(Payment.status)
        )
        rows = (await self.session.execute(stmt)).all()
        return {status: int(count) for status, count in rows}

    async def set_payment_status(
        self,
        payment: Payment,
        status: PaymentStatusEnum,
        paid_at: datetime | None,
    ) -> Payment:
        payment.status = status
        payment.paid_at = paid_at
        await self.session.flush()
        return payment
