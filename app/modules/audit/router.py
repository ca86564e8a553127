"""Audit log API router."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.core.enums import ActionEnum, ResourceEnum
from app.modules.admin_auth.dependencies import require_permission
from app.modules.admin_auth.service import AuthenticatedAdmin
from app.modules.audit.repository import AuditLogFilters
from app.modules.audit.schemas import AuditLogRead
from app.modules.audit.service import AuditService, get_audit_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/admin/audit-logs", tags=["audit"])


@router.get("", response_model=Page[AuditLogRead])
async def list_logs(
    actor_id: UUID | None = Query(default=None, alias="actorId"),
    resource_type: str | None = Query(default=None, alias="resourceType", max_length=64),
    action: str | None = Query(default=None, max_length=64),
    created_from: datetime | None = Query(default=None, alias="from"),
    created_to: datetime | None = Query(default=None, alias="to"),
    pagination=Depends(get_pagination_params),
    _: AuthenticatedAdmin = Depends(require_permission(ResourceEnum.AUDIT_LOGS, ActionEnum.READ)),
    service: AuditService = Depends(get_audit_service),
) -> Page[AuditLogRead]:
    """List audit logs, newest first."""
    filters = AuditLogFilters(
        actor_id=actor_id,
        resource_type=resource_type,
        action=action,
        created_from=created_from,
        created_to=created_to,
    )
    items, total = await service.list_logs(filters, pagination.limit, pagination.offset)
    return build_page([AuditLogRead.model_validate(item) for item in items], total, pagination)


@router.get("/resources/{resource_type}/{resource_id}", response_model=list[AuditLogRead])
async def resource_history(
    resource_type: str,
    resource_id: str,
    _: AuthenticatedAdmin = Depends(require_permission(ResourceEnum.AUDIT_LOGS, ActionEnum.READ)),
    service: AuditService = Depends(get_audit_service),
) -> list[AuditLogRead]:
    items = await service.resource_history(resource_type, resource_id)
    return [AuditLogRead.model_validate(item) for item in items]
