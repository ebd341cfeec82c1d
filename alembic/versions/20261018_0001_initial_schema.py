"""Initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


payment_type_enum = sa.Enum(
    "start_to_end_of_month",
    "monthly_same_date",
    "lesson_based",
    name="payment_type_enum",
    native_enum=False,
)
enrollment_status_enum = sa.Enum("lead", "active", "frozen", "dropped", name="enrollment_status_enum", native_enum=False)
payment_status_enum = sa.Enum(
    "pending",
    "paid",
    "overdue",
    "cancelled",
    "refunded",
    name="payment_status_enum",
    native_enum=False,
)
freeze_status_enum = sa.Enum("active", "ended", "cancelled", name="freeze_status_enum", native_enum=False)
refund_status_enum = sa.Enum("pending", "approved", "rejected", "completed", name="refund_status_enum", native_enum=False)
outbox_status_enum = sa.Enum("pending", "processed", "failed", name="outbox_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def _deleted_col() -> sa.Column:
    return sa.Column("is_deleted", sa.Boolean(), server_default=sa.false(), nullable=False)


def _money_col(name: str, *, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "groups",
        _id_col(),
        _created_col(),
        _updated_col(),
        _deleted_col(),
        sa.Column("center_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        _money_col("monthly_price"),
        sa.Column("course_start_date", sa.Date(), nullable=False),
        sa.Column("course_end_date", sa.Date(), nullable=False),
        sa.Column("payment_type", payment_type_enum, nullable=False),
        sa.Column("lessons_per_payment_period", sa.Integer(), nullable=True),
        sa.CheckConstraint("monthly_price >= 0", name="ck_groups_monthly_price_non_negative"),
        sa.CheckConstraint("course_start_date <= course_end_date", name="ck_groups_course_dates_ordered"),
        sa.CheckConstraint(
            "payment_type <> 'lesson_based' OR lessons_per_payment_period >= 1",
            name="ck_groups_lesson_based_requires_period",
        ),
    )
    op.create_index("ix_groups_center_id", "groups", ["center_id"], unique=False)

    op.create_table(
        "lesson_schedules",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("group_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["groups.id"],
            name="fk_lesson_schedules_group_id_groups",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("group_id", "day_of_week", name="uq_lesson_schedules_group_id_day_of_week"),
        sa.CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_lesson_schedules_day_of_week_iso"),
        sa.CheckConstraint("end_time > start_time", name="ck_lesson_schedules_end_after_start"),
    )
    op.create_index("ix_lesson_schedules_group_id", "lesson_schedules", ["group_id"], unique=False)

    op.create_table(
        "group_discounts",
        _id_col(),
        _created_col(),
        _updated_col(),
        _deleted_col(),
        sa.Column("group_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("months", sa.Integer(), nullable=False),
        _money_col("discount_amount"),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["groups.id"],
            name="fk_group_discounts_group_id_groups",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint("months >= 2", name="ck_group_discounts_months_at_least_two"),
        sa.CheckConstraint("discount_amount >= 0", name="ck_group_discounts_discount_amount_non_negative"),
    )
    op.create_index("ix_group_discounts_group_id", "group_discounts", ["group_id"], unique=False)
    op.create_index(
        "uq_group_discounts_group_id_months_live",
        "group_discounts",
        ["group_id", "months"],
        unique=True,
        postgresql_where=sa.text("is_deleted = false"),
    )

    op.create_table(
        "enrollments",
        _id_col(),
        _created_col(),
        _updated_col(),
        _deleted_col(),
        sa.Column("group_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", enrollment_status_enum, nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("lesson_start_date", sa.Date(), nullable=True),
        _money_col("base_lesson_price"),
        _money_col("per_lesson_price"),
        sa.Column("next_payment_date", sa.Date(), nullable=True),
        _money_col("individual_discount_amount"),
        sa.Column("is_recurring_discount", sa.Boolean(), nullable=False),
        sa.Column("discount_valid_until", sa.Date(), nullable=True),
        sa.Column("discount_reason", sa.String(length=512), nullable=True),
        sa.Column("is_free_enrollment", sa.Boolean(), nullable=False),
        sa.Column("removed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("removal_reason", sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["groups.id"],
            name="fk_enrollments_group_id_groups",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint(
            "individual_discount_amount >= 0",
            name="ck_enrollments_individual_discount_non_negative",
        ),
    )
    op.create_index("ix_enrollments_group_id", "enrollments", ["group_id"], unique=False)
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"], unique=False)
    op.create_index("ix_enrollments_status", "enrollments", ["status"], unique=False)
    op.create_index(
        "uq_enrollments_student_id_group_id_live",
        "enrollments",
        ["student_id", "group_id"],
        unique=True,
        postgresql_where=sa.text("is_deleted = false AND status <> 'dropped'"),
    )

    op.create_table(
        "payments",
        _id_col(),
        _created_col(),
        _updated_col(),
        _deleted_col(),
        sa.Column("enrollment_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("group_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        _money_col("amount"),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("payment_type", payment_type_enum, nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("lessons_in_period", sa.Integer(), nullable=False),
        sa.Column("lessons_missed", sa.Integer(), nullable=False),
        sa.Column("lessons_included", sa.Integer(), nullable=False),
        _money_col("lesson_price"),
        _money_col("discount_applied"),
        sa.Column("is_prorated", sa.Boolean(), nullable=False),
        sa.Column("status", payment_status_enum, nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["enrollment_id"],
            ["enrollments.id"],
            name="fk_payments_enrollment_id_enrollments",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["groups.id"],
            name="fk_payments_group_id_groups",
            ondelete="RESTRICT",
        ),
    )
    op.create_index("ix_payments_enrollment_id", "payments", ["enrollment_id"], unique=False)
    op.create_index("ix_payments_group_id", "payments", ["group_id"], unique=False)
    op.create_index("ix_payments_student_id", "payments", ["student_id"], unique=False)
    op.create_index("ix_payments_status", "payments", ["status"], unique=False)

    op.create_table(
        "student_freezes",
        _id_col(),
        _created_col(),
        _updated_col(),
        _deleted_col(),
        sa.Column("enrollment_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("reason", sa.String(length=512), nullable=False),
        sa.Column("freeze_start_date", sa.Date(), nullable=False),
        sa.Column("freeze_end_date", sa.Date(), nullable=True),
        sa.Column("actual_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", freeze_status_enum, nullable=False),
        sa.Column("ended_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("end_reason", sa.String(length=512), nullable=True),
        sa.ForeignKeyConstraint(
            ["enrollment_id"],
            ["enrollments.id"],
            name="fk_student_freezes_enrollment_id_enrollments",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "freeze_end_date IS NULL OR freeze_end_date > freeze_start_date",
            name="ck_student_freezes_freeze_dates_ordered",
        ),
    )
    op.create_index("ix_student_freezes_enrollment_id", "student_freezes", ["enrollment_id"], unique=False)
    op.create_index("ix_student_freezes_student_id", "student_freezes", ["student_id"], unique=False)
    op.create_index("ix_student_freezes_status", "student_freezes", ["status"], unique=False)
    op.create_index(
        "uq_student_freezes_enrollment_id_active",
        "student_freezes",
        ["enrollment_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active' AND is_deleted = false"),
    )

    op.create_table(
        "refund_requests",
        _id_col(),
        _created_col(),
        _updated_col(),
        _deleted_col(),
        sa.Column("center_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("enrollment_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("group_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("request_reason", sa.String(length=1024), nullable=False),
        _money_col("total_paid"),
        sa.Column("lessons_attended", sa.Integer(), nullable=False),
        sa.Column("total_lessons", sa.Integer(), nullable=False),
        _money_col("refund_amount"),
        sa.Column("status", refund_status_enum, nullable=False),
        sa.Column("processed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processing_notes", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["enrollment_id"],
            ["enrollments.id"],
            name="fk_refund_requests_enrollment_id_enrollments",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["groups.id"],
            name="fk_refund_requests_group_id_groups",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint("refund_amount >= 0", name="ck_refund_requests_refund_amount_non_negative"),
        sa.CheckConstraint("refund_amount <= total_paid", name="ck_refund_requests_refund_amount_within_paid"),
    )
    op.create_index("ix_refund_requests_center_id", "refund_requests", ["center_id"], unique=False)
    op.create_index("ix_refund_requests_enrollment_id", "refund_requests", ["enrollment_id"], unique=False)
    op.create_index("ix_refund_requests_student_id", "refund_requests", ["student_id"], unique=False)
    op.create_index("ix_refund_requests_group_id", "refund_requests", ["group_id"], unique=False)
    op.create_index("ix_refund_requests_status", "refund_requests", ["status"], unique=False)
    op.create_index(
        "uq_refund_requests_student_id_group_id_pending",
        "refund_requests",
        ["student_id", "group_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending' AND is_deleted = false"),
    )

    op.create_table(
        "audit_logs",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"], unique=False)
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"], unique=False)

    op.create_table(
        "outbox_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("aggregate_type", sa.String(length=64), nullable=False),
        sa.Column("aggregate_id", sa.String(length=64), nullable=False),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", outbox_status_enum, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retries", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_outbox_events_aggregate_type", "outbox_events", ["aggregate_type"], unique=False)
    op.create_index("ix_outbox_events_aggregate_id", "outbox_events", ["aggregate_id"], unique=False)
    op.create_index("ix_outbox_events_event_type", "outbox_events", ["event_type"], unique=False)
    op.create_index("ix_outbox_events_status", "outbox_events", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_outbox_events_status", table_name="outbox_events")
    op.drop_index("ix_outbox_events_event_type", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_id", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_type", table_name="outbox_events")
    op.drop_table("outbox_events")

    op.drop_index("ix_audit_logs_entity_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_entity_type", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_actor_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("uq_refund_requests_student_id_group_id_pending", table_name="refund_requests")
    op.drop_index("ix_refund_requests_status", table_name="refund_requests")
    op.drop_index("ix_refund_requests_group_id", table_name="refund_requests")
    op.drop_index("ix_refund_requests_student_id", table_name="refund_requests")
    op.drop_index("ix_refund_requests_enrollment_id", table_name="refund_requests")
    op.drop_index("ix_refund_requests_center_id", table_name="refund_requests")
    op.drop_table("refund_requests")

    op.drop_index("uq_student_freezes_enrollment_id_active", table_name="student_freezes")
    op.drop_index("ix_student_freezes_status", table_name="student_freezes")
    op.drop_index("ix_student_freezes_student_id", table_name="student_freezes")
    op.drop_index("ix_student_freezes_enrollment_id", table_name="student_freezes")
    op.drop_table("student_freezes")

    op.drop_index("ix_payments_status", table_name="payments")
    op.drop_index("ix_payments_student_id", table_name="payments")
    op.drop_index("ix_payments_group_id", table_name="payments")
    op.drop_index("ix_payments_enrollment_id", table_name="payments")
    op.drop_table("payments")

    op.drop_index("uq_enrollments_student_id_group_id_live", table_name="enrollments")
    op.drop_index("ix_enrollments_status", table_name="enrollments")
    op.drop_index("ix_enrollments_student_id", table_name="enrollments")
    op.drop_index("ix_enrollments_group_id", table_name="enrollments")
    op.drop_table("enrollments")

    op.drop_index("uq_group_discounts_group_id_months_live", table_name="group_discounts")
    op.drop_index("ix_group_discounts_group_id", table_name="group_discounts")
    op.drop_table("group_discounts")

    op.drop_index("ix_lesson_schedules_group_id", table_name="lesson_schedules")
    op.drop_table("lesson_schedules")

    op.drop_index("ix_groups_center_id", table_name="groups")
    op.drop_table("groups")
