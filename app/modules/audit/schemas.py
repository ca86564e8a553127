"""Audit schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from app.shared.schemas import CamelModel


class AuditLogRead(CamelModel):
    """Audit log response schema."""

    id: UUID
    actor_id: UUID | None
    action: str
    resource_type: str
    resource_id: str | None
    details: dict
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class AdminActivityRead(CamelModel):
    """Per-admin activity summary."""

    total_actions: int
    action_counts: dict[str, int]
    recent_logs: list[AuditLogRead]
