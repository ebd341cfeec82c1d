"""Refund repository layer."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import RefundStatusEnum
from app.modules.refunds.models import RefundRequest


class RefundsRepository:
    """DB operations for refund requests."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_refund(
        self,
        center_id: UUID,
        enrollment_id: UUID,
        student_id: UUID,
        group_id: UUID,
        request_reason: str,
        total_paid: Decimal,
        lessons_attended: int,
        total_lessons: int,
        refund_amount: Decimal,
    ) -> RefundRequest:
        refund = RefundRequest(
            center_id=center_id,
            enrollment_id=enrollment_id,
            student_id=student_id,
            group_id=group_id,
            request_reason=request_reason,
            total_paid=total_paid,
            lessons_attended=lessons_attended,
            total_lessons=total_lessons,
            refund_amount=refund_amount,
            status=RefundStatusEnum.PENDING,
        )
        self.session.add(refund)
        await self.session.flush()
        return refund

    async def get_refund_by_id(self, refund_id: UUID, *, for_update: bool = False) -> RefundRequest | None:
        stmt = select(RefundRequest).where(
            RefundRequest.id == refund_id,
            RefundRequest.is_deleted.is_(False),
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return await self.session.scalar(stmt)

    async def get_pending_refund(self, student_id: UUID, group_id: UUID) -> RefundRequest | None:
        stmt = select(RefundRequest).where(
            RefundRequest.student_id == student_id,
            RefundRequest.group_id == group_id,
            RefundRequest.status == RefundStatusEnum.PENDING,
            RefundRequest.is_deleted.is_(False),
        )
        return await self.session.scalar(stmt)

    async def list_refunds(
        self,
        status: RefundStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[RefundRequest], int]:
        base_stmt: Select[tuple[RefundRequest]] = select(RefundRequest).where(
            RefundRequest.is_deleted.is_(False),
        )
        if status is not None:
            base_stmt = base_stmt.where(RefundRequest.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(RefundRequest.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def save(self, refund: RefundRequest) -> RefundRequest:
        await self.session.flush()
        return refund
