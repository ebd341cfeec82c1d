"""Core enums used across modules."""

from enum import StrEnum


class PaymentTypeEnum(StrEnum):
    """How a group bills its students."""

    START_TO_END_OF_MONTH = "start_to_end_of_month"
    MONTHLY_SAME_DATE = "monthly_same_date"
    LESSON_BASED = "lesson_based"


class EnrollmentStatusEnum(StrEnum):
    """Enrollment lifecycle status."""

    LEAD = "lead"
    ACTIVE = "active"
    FROZEN = "frozen"
    DROPPED = "dropped"


class PaymentStatusEnum(StrEnum):
    """Billing period payment status."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class FreezeStatusEnum(StrEnum):
    """Student freeze status."""

    ACTIVE = "active"
    ENDED = "ended"
    CANCELLED = "cancelled"


class RefundStatusEnum(StrEnum):
    """Refund request status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class RefundDecisionEnum(StrEnum):
    """Admin decision on a pending refund request."""

    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationEventEnum(StrEnum):
    """Events delivered to the student-facing notifier."""

    FREEZE_CREATED = "freeze_created"
    FREEZE_ENDED = "freeze_ended"
    FREEZE_CANCELLED = "freeze_cancelled"
    REFUND_CREATED = "refund_created"
    REFUND_APPROVED = "refund_approved"
    REFUND_REJECTED = "refund_rejected"


class OutboxStatusEnum(StrEnum):
    """Outbox event status for integration publishing."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
