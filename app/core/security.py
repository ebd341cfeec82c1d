"""Caller identity forwarded by the upstream authorization gateway."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, Request, status

from app.core.config import get_settings

settings = get_settings()


def get_actor_id(request: Request) -> UUID | None:
    """Return the acting user id asserted by the gateway, if any.

    Authentication and tenant ownership checks happen upstream; this
    dependency only parses the forwarded identity so it can be written to
    audit logs and refund processing records.
    """
    raw_value = request.headers.get(settings.actor_header_name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        return UUID(raw_value.strip())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{settings.actor_header_name} must be a UUID",
        ) from exc
