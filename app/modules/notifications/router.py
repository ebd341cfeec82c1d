"""Notifications API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.modules.notifications.schemas import NotificationDeliveryMetricsRead
from app.modules.notifications.service import NotificationsService, get_notifications_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/delivery-metrics", response_model=NotificationDeliveryMetricsRead)
async def get_delivery_metrics(
    max_retries: int = Query(default=5, ge=1, le=100),
    service: NotificationsService = Depends(get_notifications_service),
) -> NotificationDeliveryMetricsRead:
    """Return delivery observability metrics."""
    return await service.get_delivery_metrics(max_retries=max_retries)
