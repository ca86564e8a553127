"""Audit repository layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.audit.models import AuditLog


@dataclass(frozen=True, slots=True)
class AuditLogFilters:
    actor_id: UUID | None = None
    resource_type: str | None = None
    action: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class AuditRepository:
    """Append and query audit log entries."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_audit_log(
        self,
        actor_id: UUID | None,
        action: str,
        resource_type: str,
        resource_id: str | None,
        details: dict,
        ip_address: str | None,
        user_agent: str | None,
    ) -> AuditLog:
        log = AuditLog(
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(log)
        await self.session.flush()
        return log

    async def commit(self) -> None:
        await self.session.commit()

    async def list_audit_logs(
        self,
        filters: AuditLogFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[AuditLog], int]:
        base_stmt: Select[tuple[AuditLog]] = select(AuditLog)
        if filters.actor_id is not None:
            base_stmt = base_stmt.where(AuditLog.actor_id == filters.actor_id)
        if filters.resource_type:
            base_stmt = base_stmt.where(AuditLog.resource_type == filters.resource_type)
        if filters.action:
            base_stmt = base_stmt.where(AuditLog.action == filters.action)
        if filters.created_from is not None:
            base_stmt = base_stmt.where(AuditLog.created_at >= filters.created_from)
        if filters.created_to is not None:
            base_stmt = base_stmt.where(AuditLog.created_at <= filters.created_to)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return list(items), total

    async def list_resource_history(self, resource_type: str, resource_id: str) -> list[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.resource_type == resource_type, AuditLog.resource_id == resource_id)
            .order_by(AuditLog.created_at.desc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def count_actor_actions(self, actor_id: UUID, since: datetime) -> dict[str, int]:
        stmt = (
            select(AuditLog.action, func.count())
            .where(AuditLog.actor_id == actor_id, AuditLog.created_at >= since)
            .group_by(AuditLog.action)
        )
        rows = (await self.session.execute(stmt)).all()
        return {action: int(count) for action, count in rows}

    async def list_actor_activity(self, actor_id: UUID, since: datetime, limit: int) -> list[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.actor_id == actor_id, AuditLog.created_at >= since)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return list((await self.session.scalars(stmt)).all())
