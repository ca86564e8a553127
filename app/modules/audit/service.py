"""Audit business logic layer."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import AuditActionEnum
from app.modules.audit.models import AuditLog
from app.modules.audit.repository import AuditLogFilters, AuditRepository
from app.modules.audit.schemas import AdminActivityRead, AuditLogRead
from app.shared.request_context import RequestContext

ADMIN_AUTH_RESOURCE = "admin_auth"
ADMIN_USERS_RESOURCE = "admin_users"


class AuditService:
    """Append-only security event log.

    Write failures propagate so the enclosing request fails and rolls back
    instead of completing without a trace.
    """

    def __init__(self, repository: AuditRepository) -> None:
        self.repository = repository

    async def record(
        self,
        action: AuditActionEnum | str,
        *,
        actor_id: UUID | None,
        resource_type: str = ADMIN_AUTH_RESOURCE,
        resource_id: UUID | str | None = None,
        details: dict | None = None,
        context: RequestContext | None = None,
    ) -> AuditLog:
        """Append one audit entry."""
        context = context or RequestContext()
        return await self.repository.create_audit_log(
            actor_id=actor_id,
            action=str(action),
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=details or {},
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )

    async def record_and_commit(self, action: AuditActionEnum | str, **kwargs) -> AuditLog:
        """Append and commit immediately, for entries that must survive a rejected request."""
        log = await self.record(action, **kwargs)
        await self.repository.commit()
        return log

    async def list_logs(self, filters: AuditLogFilters, limit: int, offset: int) -> tuple[list[AuditLog], int]:
        return await self.repository.list_audit_logs(filters, limit=limit, offset=offset)

    async def resource_history(self, resource_type: str, resource_id: str) -> list[AuditLog]:
        return await self.repository.list_resource_history(resource_type, resource_id)

    async def actor_activity(
        self,
        actor_id: UUID,
        *,
        days: int,
        now: datetime,
        recent_limit: int = 10,
    ) -> AdminActivityRead:
        """Summarize what an admin did over the last ``days`` days."""
        since = now - timedelta(days=days)
        action_counts = await self.repository.count_actor_actions(actor_id, since)
        recent = await self.repository.list_actor_activity(actor_id, since, recent_limit)
        return AdminActivityRead(
            total_actions=sum(action_counts.values()),
            action_counts=action_counts,
            recent_logs=[AuditLogRead.model_validate(log) for log in recent],
        )


async def get_audit_service(session: AsyncSession = Depends(get_db_session)) -> AuditService:
    """Dependency provider for audit service."""
    return AuditService(AuditRepository(session))
